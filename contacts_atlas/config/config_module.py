"""
Configuration management module for Contacts Atlas.

Loads the .env file, reads individual settings from the environment and
assembles the immutable settings the data layer is built from.
"""

import json
import os
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError


class ConfigError(Exception):
    """Custom exception for configuration-related errors."""
    pass


DEFAULT_RANGES = {
    "communication": "Communication!A1:Z1000",
    "commercial": "Commercial!A1:Z1000",
}
DEFAULT_JOURNAL_RANGE = "Journal!A1:G1000"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "ContactsAtlas/1.0"


def load_config(env_path: str = ".env") -> bool:
    """
    Load environment variables from a .env file.

    Values in the file replace those already in the process environment.

    Args:
        env_path: Path to the .env file (default: ".env")

    Returns:
        True if the file was found and loaded
    """
    logger = logging.getLogger(__name__)

    if not os.path.exists(env_path):
        logger.warning(f"Configuration file {env_path} not found, using system environment variables only")
        return False

    load_dotenv(env_path, override=True)
    logger.info(f"Loaded configuration from {env_path}")
    return True


def get_config(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get a configuration value from environment variables.

    Surrounding whitespace is stripped and a blank value counts as unset.

    Args:
        key: Environment variable key
        default: Value returned when the key is unset

    Returns:
        Configuration value or default
    """
    logger = logging.getLogger(__name__)

    value = os.getenv(key, "").strip()
    if value:
        return value

    if default is None:
        logger.warning(f"Configuration key '{key}' not set and no default provided")
    else:
        logger.debug(f"Configuration key '{key}' not set, using default value: {default!r}")
    return default


def sheet_name_from_range(range_a1: str, fallback: str = "") -> str:
    """
    Extract the sheet name from an A1 range such as "'My Sheet'!A1:Z1000".

    Args:
        range_a1: Range in A1 notation
        fallback: Returned when the range carries no sheet prefix

    Returns:
        Sheet name without surrounding quotes
    """
    match = re.match(r"^([^!]+)!", range_a1 or "")
    if not match:
        return fallback
    return match.group(1).strip().strip("'").replace("''", "'")


@dataclass(frozen=True)
class AtlasSettings:
    """Immutable settings for the data layer, loaded once at startup."""

    credential: Optional["ServiceAccountCredential"] = None
    spreadsheet_id: str = ""
    table_ranges: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_RANGES))
    journal_range: str = DEFAULT_JOURNAL_RANGE
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_user_agent: str = DEFAULT_USER_AGENT
    geocoder_language: str = "fr"
    offline_cache_path: str = ""
    cache_ttl_seconds: float = 120.0
    http_timeout: float = 30.0

    @property
    def offline_enabled(self) -> bool:
        return bool(self.offline_cache_path)


def _float_setting(key: str, default: float) -> float:
    raw = get_config(key, str(default))
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")


def parse_service_account_key(raw: str) -> "ServiceAccountCredential":
    """
    Parse the service account JSON into a credential.

    Args:
        raw: JSON document of the service account key

    Returns:
        Parsed credential

    Raises:
        ConfigError: If the JSON is malformed or lacks required fields
    """
    from ..auth.auth_credentials import ServiceAccountCredential

    try:
        return ServiceAccountCredential.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"GOOGLE_SERVICE_ACCOUNT_KEY: invalid JSON ({e})")


def load_settings(env_path: Optional[str] = ".env") -> AtlasSettings:
    """
    Load the .env file and build settings from the environment.

    A missing credential or spreadsheet id is tolerated here so the shell can
    still start and report it; operations that need them raise ConfigError.

    Args:
        env_path: .env file to load first, or None to read the process
            environment only

    Returns:
        AtlasSettings for this process

    Raises:
        ConfigError: If a value is present but malformed
    """
    logger = logging.getLogger(__name__)

    if env_path is not None:
        load_config(env_path)

    raw_key = get_config("GOOGLE_SERVICE_ACCOUNT_KEY")
    credential = parse_service_account_key(raw_key) if raw_key else None

    table_ranges = {
        "communication": get_config("GOOGLE_SHEETS_RANGE", DEFAULT_RANGES["communication"]),
        "commercial": get_config("GOOGLE_SHEETS_RANGE_COM", DEFAULT_RANGES["commercial"]),
    }

    settings = AtlasSettings(
        credential=credential,
        spreadsheet_id=get_config("GOOGLE_SHEETS_SPREADSHEET_ID") or "",
        table_ranges=table_ranges,
        journal_range=get_config("GOOGLE_SHEETS_JOURNAL_RANGE", DEFAULT_JOURNAL_RANGE),
        geocoder_url=get_config("GEOCODER_URL", DEFAULT_GEOCODER_URL),
        geocoder_user_agent=get_config("GEOCODER_USER_AGENT", DEFAULT_USER_AGENT),
        geocoder_language=get_config("GEOCODER_LANGUAGE", "fr"),
        offline_cache_path=get_config("OFFLINE_CACHE_PATH", ""),
        cache_ttl_seconds=_float_setting("CACHE_TTL_SECONDS", 120.0),
        http_timeout=_float_setting("HTTP_TIMEOUT_SECONDS", 30.0),
    )

    logger.info(
        f"Settings loaded (tables={', '.join(table_ranges)}, "
        f"spreadsheet={'set' if settings.spreadsheet_id else 'missing'}, "
        f"credential={'set' if credential else 'missing'}, "
        f"offline_cache={'on' if settings.offline_enabled else 'off'})"
    )
    return settings
