"""
Unit tests for header alias resolution and row building.
"""

import pytest

from .sheets_schema import (
    ABSENT,
    HEADER_ALIASES,
    TableSchema,
    build_row,
    fold_accents,
    normalize_header,
    resolve_columns,
)


class TestNormalization:

    def test_normalize_header(self):
        assert normalize_header("  NDA   Signée ") == "nda signée"
        assert normalize_header("") == ""
        assert normalize_header(None) == ""

    def test_fold_accents(self):
        assert fold_accents("région/état") == "region/etat"


class TestResolveColumns:

    @pytest.mark.parametrize("header", ["NDA Signée", "nda signee", "  NDA ", "Nda   Signée"])
    def test_alias_variants_resolve_to_same_column(self, header):
        columns = resolve_columns(["Pseudo", "Pays", header])
        assert columns["ndaSignee"] == 2

    @pytest.mark.parametrize("header", ["Langue(s) parlée(s)", "LANGUES PARLÉES", "Langues"])
    def test_languages_aliases(self, header):
        assert resolve_columns(["Pseudo", header])["langues"] == 1

    def test_first_alias_in_priority_order_wins(self):
        # "id discord" is listed before "discord"
        columns = resolve_columns(["Discord", "Pseudo", "ID Discord"])
        assert columns["idDiscord"] == 2

    def test_unmatched_field_is_absent(self):
        columns = resolve_columns(["Pseudo"])
        assert columns["pseudo"] == 0
        assert columns["email"] == ABSENT
        assert set(columns) == set(HEADER_ALIASES)

    def test_accent_folded_second_pass(self):
        columns = resolve_columns(["Pseudo", "Région/Etat", "Referent"])
        assert columns["region"] == 1
        assert columns["referent"] == 2

    def test_accented_header_without_literal_alias(self):
        # Literal aliases miss, the folded form matches
        columns = resolve_columns(["Prénôm"])
        assert columns["prenom"] == 0

    def test_duplicate_header_last_occurrence_wins(self):
        columns = resolve_columns(["Pseudo", "Notes", "Notes"])
        assert columns["notes"] == 2

    def test_custom_alias_table(self):
        columns = resolve_columns(["Handle", "Country"], {"pseudo": ["handle"], "pays": ["country"]})
        assert columns == {"pseudo": 0, "pays": 1}

    def test_contacter_spellings(self):
        for spelling in ["Contacter ?", "À contacter", "Déjà contacté", "Contact OK ?"]:
            assert resolve_columns(["Pseudo", spelling])["contacter"] == 1


class TestBuildRow:

    HEADERS = ["Pseudo", "Pays", "Ville", "Colonne perso"]

    def test_new_row_sized_to_header(self):
        row = build_row(self.HEADERS, {"pseudo": "  Alice ", "ville": "Paris"})
        assert row == ["Alice", "", "Paris", ""]

    def test_merge_preserves_unspecified_cells(self):
        base = ["Alice", "France", "Paris", "garde-moi"]
        row = build_row(self.HEADERS, {"ville": "Lyon"}, base_row=base)
        assert row == ["Alice", "France", "Lyon", "garde-moi"]
        assert base[2] == "Paris"

    def test_none_values_are_ignored(self):
        base = ["Alice", "France", "Paris"]
        row = build_row(self.HEADERS, {"pays": None}, base_row=base)
        assert row == ["Alice", "France", "Paris", ""]

    def test_empty_string_clears_cell(self):
        row = build_row(self.HEADERS, {"pays": ""}, base_row=["Alice", "France", "Paris"])
        assert row[1] == ""

    def test_unresolved_fields_are_dropped(self):
        row = build_row(self.HEADERS, {"email": "a@example.com", "pseudo": "A"})
        assert row == ["A", "", "", ""]

    def test_base_row_longer_than_header_is_kept(self):
        row = build_row(["Pseudo"], {"pseudo": "B"}, base_row=["A", "extra"])
        assert row == ["B", "extra"]

    def test_values_are_stringified(self):
        row = build_row(["Latitude", "Longitude"], {"latitude": 48.85, "longitude": 2})
        assert row == ["48.85", "2"]


class TestTableSchema:

    def test_from_headers(self):
        schema = TableSchema.from_headers(["Pseudo", "Pays", "Ville"])

        assert schema.width == 3
        assert schema.has("pays")
        assert not schema.has("email")
        assert set(schema.resolved_fields()) == {"pseudo", "pays", "ville"}

    def test_value_handles_short_rows(self):
        schema = TableSchema.from_headers(["Pseudo", "Pays", "Ville"])

        assert schema.value(["Alice", " France "], "pays") == "France"
        assert schema.value(["Alice"], "ville") == ""
        assert schema.value(["Alice"], "email") == ""
