"""
Best-effort audit journal.

Appends one row per successful mutation to the journal sheet. A journal
failure is logged and reported through the return value; it never reaches
the caller of the mutation it accompanies.
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from ..auth.auth_errors import AuthError
from ..config.config_module import (
    DEFAULT_JOURNAL_RANGE,
    AtlasSettings,
    ConfigError,
    sheet_name_from_range,
)
from ..config.logger_module import log_info, log_warning, log_error
from ..sheets.sheets_client import SheetsHttpClient, a1_range
from ..sheets.sheets_errors import SheetsError


class JournalAction(str, Enum):
    ADD = "Ajouté"
    EDIT = "Modifié"
    DELETE = "Supprimé"


class JournalRecorder:
    """Writes `date, time, action, table, record id, name, detail` rows."""

    def __init__(self,
                 client: Optional[SheetsHttpClient],
                 tokens,
                 journal_range: str = DEFAULT_JOURNAL_RANGE,
                 now: Callable[[], datetime] = datetime.now):
        """
        Initialize the recorder.

        Args:
            client: Spreadsheet HTTP client (None disables the journal)
            tokens: Bearer-token provider (None disables the journal)
            journal_range: Range of the journal sheet
            now: Source of local timestamps
        """
        self.client = client
        self.tokens = tokens
        self.sheet_name = sheet_name_from_range(journal_range, "Journal")
        self._now = now

    @classmethod
    def from_settings(cls, settings: AtlasSettings, client: SheetsHttpClient = None,
                      tokens=None) -> "JournalRecorder":
        return cls(client, tokens, journal_range=settings.journal_range)

    @property
    def enabled(self) -> bool:
        return self.client is not None and self.tokens is not None

    def build_row(self,
                  action,
                  table_kind: str,
                  record_id: str = None,
                  display_name: str = None,
                  detail: str = None,
                  when: datetime = None) -> List[str]:
        when = when or self._now()
        label = action.value if isinstance(action, JournalAction) else str(action)
        return [
            when.strftime("%d/%m/%Y"),
            when.strftime("%H:%M:%S"),
            label,
            table_kind,
            record_id or "",
            display_name or "",
            detail or "",
        ]

    async def append_entry(self,
                           action,
                           table_kind: str,
                           record_id: str = None,
                           display_name: str = None,
                           detail: str = None) -> bool:
        """
        Append one journal row.

        Args:
            action: JournalAction (or a free-form label)
            table_kind: Logical table the mutation targeted
            record_id: Affected record identifier
            display_name: Affected record's name
            detail: Free text

        Returns:
            True if the row was written, False otherwise
        """
        if not self.enabled:
            log_warning("Journal disabled (no spreadsheet or credential configured)")
            return False

        row = self.build_row(action, table_kind, record_id, display_name, detail)
        try:
            token = await self.tokens.get_access_token()
            await asyncio.to_thread(
                self.client.append_values, token, a1_range(self.sheet_name, "A:G"), [row]
            )
        except (ConfigError, AuthError, SheetsError) as e:
            log_warning(f"Journal entry not written ({row[2]} {table_kind}): {e}")
            return False
        except Exception as e:
            log_error(f"Unexpected journal failure ({row[2]} {table_kind}): {e}")
            return False

        log_info(f"Journal entry written: {row[2]} {table_kind} {record_id or ''}".rstrip())
        return True
