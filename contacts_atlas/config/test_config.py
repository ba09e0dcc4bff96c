"""
Unit tests for config_module.

Tests cover:
- .env file loading and environment variable overriding
- get_config with present keys, missing keys, and defaults
- load_settings reading a .env file
- load_settings defaults, overrides and malformed values
"""

import json
import logging
import os

import pytest

from contacts_atlas.config.config_module import (
    AtlasSettings,
    ConfigError,
    get_config,
    load_config,
    load_settings,
    sheet_name_from_range,
)


SETTINGS_KEYS = [
    "GOOGLE_SERVICE_ACCOUNT_KEY",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SHEETS_RANGE",
    "GOOGLE_SHEETS_RANGE_COM",
    "GOOGLE_SHEETS_JOURNAL_RANGE",
    "GEOCODER_URL",
    "GEOCODER_USER_AGENT",
    "GEOCODER_LANGUAGE",
    "OFFLINE_CACHE_PATH",
    "CACHE_TTL_SECONDS",
    "HTTP_TIMEOUT_SECONDS",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings key from the environment."""
    for key in SETTINGS_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadConfig:
    """Test cases for load_config function."""

    def test_load_config_existing_file(self, tmp_path, caplog, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("ATLAS_TEST_KEY=test_value\n")
        monkeypatch.delenv("ATLAS_TEST_KEY", raising=False)

        with caplog.at_level(logging.INFO):
            load_config(str(env_file))

        assert os.getenv("ATLAS_TEST_KEY") == "test_value"
        assert f"Loaded configuration from {env_file}" in caplog.text
        monkeypatch.delenv("ATLAS_TEST_KEY", raising=False)

    def test_load_config_nonexistent_file(self, caplog):
        nonexistent_file = "/path/that/does/not/exist/.env"

        with caplog.at_level(logging.WARNING):
            load_config(nonexistent_file)

        assert f"Configuration file {nonexistent_file} not found" in caplog.text

    def test_load_config_overrides_existing_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OVERRIDE_TEST", "original_value")
        env_file = tmp_path / ".env"
        env_file.write_text("OVERRIDE_TEST=new_value\n")

        load_config(str(env_file))

        assert os.getenv("OVERRIDE_TEST") == "new_value"


class TestGetConfig:
    """Test cases for get_config function."""

    def test_existing_key(self, monkeypatch):
        monkeypatch.setenv("EXISTING_KEY", "  existing_value ")
        assert get_config("EXISTING_KEY") == "existing_value"

    def test_missing_key_with_default(self, monkeypatch, caplog):
        monkeypatch.delenv("ATLAS_MISSING_KEY", raising=False)
        with caplog.at_level(logging.WARNING):
            result = get_config("ATLAS_MISSING_KEY", "default_value")

        assert result == "default_value"
        assert "ATLAS_MISSING_KEY" not in caplog.text

    def test_blank_value_counts_as_unset(self, monkeypatch):
        monkeypatch.setenv("ATLAS_BLANK_KEY", "   ")

        assert get_config("ATLAS_BLANK_KEY", "fallback") == "fallback"

    def test_missing_key_no_default(self, monkeypatch, caplog):
        monkeypatch.delenv("ATLAS_MISSING_KEY", raising=False)
        with caplog.at_level(logging.WARNING):
            result = get_config("ATLAS_MISSING_KEY")

        assert result is None
        assert "'ATLAS_MISSING_KEY' not set and no default provided" in caplog.text


class TestSheetNameFromRange:
    """Test cases for sheet_name_from_range."""

    @pytest.mark.parametrize("range_a1,expected", [
        ("Communication!A1:Z1000", "Communication"),
        ("'Contacts 2024'!A1:Z1000", "Contacts 2024"),
        ("'O''Brien'!A:Z", "O'Brien"),
        ("A1:Z1000", "fallback"),
        ("", "fallback"),
    ])
    def test_extraction(self, range_a1, expected):
        assert sheet_name_from_range(range_a1, "fallback") == expected


class TestLoadSettings:
    """Test cases for load_settings."""

    def test_defaults_without_credentials(self, clean_env, caplog):
        with caplog.at_level(logging.WARNING):
            settings = load_settings(env_path=None)

        assert settings.credential is None
        assert settings.spreadsheet_id == ""
        assert settings.table_ranges == {
            "communication": "Communication!A1:Z1000",
            "commercial": "Commercial!A1:Z1000",
        }
        assert settings.journal_range == "Journal!A1:G1000"
        assert settings.cache_ttl_seconds == 120.0
        assert settings.http_timeout == 30.0
        assert settings.offline_enabled is False
        assert "'GOOGLE_SERVICE_ACCOUNT_KEY' not set" in caplog.text
        assert "'GOOGLE_SHEETS_SPREADSHEET_ID' not set" in caplog.text

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "GOOGLE_SHEETS_SPREADSHEET_ID=sheet-from-dotenv\n"
            "GOOGLE_SHEETS_RANGE_COM=Clients!A1:Z300\n"
            "HTTP_TIMEOUT_SECONDS=12\n"
        )

        settings = load_settings(env_path=str(env_file))

        assert settings.spreadsheet_id == "sheet-from-dotenv"
        assert settings.table_ranges["commercial"] == "Clients!A1:Z300"
        assert settings.http_timeout == 12.0

    def test_missing_dotenv_falls_back_to_environment(self, clean_env, tmp_path, caplog):
        clean_env.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-from-env")

        with caplog.at_level(logging.WARNING):
            settings = load_settings(env_path=str(tmp_path / "absent.env"))

        assert settings.spreadsheet_id == "sheet-from-env"
        assert "not found" in caplog.text

    def test_credential_without_spreadsheet(self, clean_env, service_account_info):
        clean_env.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", json.dumps(service_account_info))

        settings = load_settings(env_path=None)

        assert settings.credential.client_email == service_account_info["client_email"]
        assert settings.spreadsheet_id == ""

    def test_overrides(self, clean_env, service_account_info, tmp_path):
        clean_env.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", json.dumps(service_account_info))
        clean_env.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")
        clean_env.setenv("GOOGLE_SHEETS_RANGE", "Tableau!A1:Z500")
        clean_env.setenv("GOOGLE_SHEETS_JOURNAL_RANGE", "'Audit Log'!A1:G1000")
        clean_env.setenv("OFFLINE_CACHE_PATH", str(tmp_path / "cache.db"))
        clean_env.setenv("CACHE_TTL_SECONDS", "30")

        settings = load_settings(env_path=None)

        assert settings.spreadsheet_id == "sheet-123"
        assert settings.table_ranges["communication"] == "Tableau!A1:Z500"
        assert sheet_name_from_range(settings.journal_range) == "Audit Log"
        assert settings.offline_enabled is True
        assert settings.cache_ttl_seconds == 30.0

    def test_invalid_service_account_json(self, clean_env):
        clean_env.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", "{not json")

        with pytest.raises(ConfigError, match="invalid JSON"):
            load_settings(env_path=None)

    def test_service_account_missing_fields(self, clean_env):
        clean_env.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", json.dumps({"client_email": "x@y"}))

        with pytest.raises(ConfigError):
            load_settings(env_path=None)

    def test_malformed_number(self, clean_env):
        clean_env.setenv("CACHE_TTL_SECONDS", "two minutes")

        with pytest.raises(ConfigError, match="CACHE_TTL_SECONDS"):
            load_settings(env_path=None)

    def test_settings_are_frozen(self):
        settings = AtlasSettings()
        with pytest.raises(Exception):
            settings.spreadsheet_id = "other"
