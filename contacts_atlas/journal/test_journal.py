"""
Tests for the audit journal recorder.
"""

import asyncio
import logging
from datetime import datetime

import pytest

from contacts_atlas.auth.auth_errors import AuthError
from contacts_atlas.config.config_module import AtlasSettings
from contacts_atlas.sheets.sheets_errors import RemoteError

from .journal_recorder import JournalAction, JournalRecorder


FIXED_NOW = datetime(2024, 3, 7, 9, 5, 2)


@pytest.fixture
def recorder(fake_backend, stub_tokens):
    return JournalRecorder(fake_backend, stub_tokens, now=lambda: FIXED_NOW)


class TestBuildRow:

    def test_row_layout(self, recorder):
        row = recorder.build_row(JournalAction.ADD, "communication", "sheet-3",
                                 "Alice", "Ajout depuis la carte")

        assert row == ["07/03/2024", "09:05:02", "Ajouté", "communication",
                       "sheet-3", "Alice", "Ajout depuis la carte"]

    def test_missing_parts_are_blank(self, recorder):
        row = recorder.build_row(JournalAction.DELETE, "commercial")

        assert row[2:] == ["Supprimé", "commercial", "", "", ""]

    def test_free_form_action_label(self, recorder):
        row = recorder.build_row("Import", "communication")

        assert row[2] == "Import"


class TestAppendEntry:

    def test_appends_to_journal_sheet(self, recorder, fake_backend):
        written = asyncio.run(recorder.append_entry(
            JournalAction.EDIT, "communication", "sheet-0", "Alice", "Champs: city"
        ))

        assert written is True
        assert ("append_values", "Journal!A:G") in fake_backend.calls
        assert fake_backend.data_rows("Journal") == [[
            "07/03/2024", "09:05:02", "Modifié", "communication",
            "sheet-0", "Alice", "Champs: city",
        ]]

    def test_custom_journal_sheet(self, fake_backend, stub_tokens):
        fake_backend.add_sheet("Audit Log", [["Date"]], sheet_id=77)
        recorder = JournalRecorder(fake_backend, stub_tokens,
                                   journal_range="'Audit Log'!A1:G500",
                                   now=lambda: FIXED_NOW)

        assert asyncio.run(recorder.append_entry(JournalAction.ADD, "communication")) is True
        assert ("append_values", "'Audit Log'!A:G") in fake_backend.calls
        assert fake_backend.data_rows("Audit Log")[0][2] == "Ajouté"

    def test_remote_failure_is_reported_not_raised(self, recorder, fake_backend, caplog):
        fake_backend.fail_next("append_values", RemoteError("quota", status=429, body="slow down"))

        with caplog.at_level(logging.WARNING):
            written = asyncio.run(recorder.append_entry(JournalAction.ADD, "communication"))

        assert written is False
        assert fake_backend.data_rows("Journal") == []
        assert "Journal entry not written" in caplog.text

    def test_token_failure_is_reported_not_raised(self, fake_backend):
        class FailingTokens:
            async def get_access_token(self):
                raise AuthError("Token exchange failed (HTTP 400)", body="invalid_grant")

        recorder = JournalRecorder(fake_backend, FailingTokens())

        assert asyncio.run(recorder.append_entry(JournalAction.DELETE, "communication")) is False
        assert fake_backend.count("append_values") == 0

    def test_unexpected_failure_is_reported_not_raised(self, recorder, fake_backend, caplog):
        fake_backend.fail_next("append_values", RuntimeError("boom"))

        with caplog.at_level(logging.ERROR):
            written = asyncio.run(recorder.append_entry(JournalAction.ADD, "communication"))

        assert written is False
        assert "Unexpected journal failure" in caplog.text

    def test_disabled_without_client(self, stub_tokens):
        recorder = JournalRecorder(None, stub_tokens)

        assert recorder.enabled is False
        assert asyncio.run(recorder.append_entry(JournalAction.ADD, "communication")) is False
        assert stub_tokens.calls == 0


class TestFromSettings:

    def test_uses_configured_range(self, fake_backend, stub_tokens):
        settings = AtlasSettings(journal_range="Historique!A1:G200")

        recorder = JournalRecorder.from_settings(settings, client=fake_backend, tokens=stub_tokens)

        assert recorder.sheet_name == "Historique"
        assert recorder.enabled is True

    def test_disabled_by_default(self):
        assert JournalRecorder.from_settings(AtlasSettings()).enabled is False
