from __future__ import annotations
import pytest

from sheet_import.models.mapping import FieldMapping, MappingSet, UnknownFieldError
from sheet_import.services.column_mapper import auto_map, is_complete, missing_required, set_mapping


FIELDS = [
    FieldMapping("name", required=True),
    FieldMapping("email", required=True),
    FieldMapping("phone", required=False),
]


def test_auto_map_case_insensitive_and_order_independent():
    m = auto_map(["Email", "Name"], [FieldMapping("name"), FieldMapping("email")])
    assert m.bindings == {"name": "Name", "email": "Email"}


def test_auto_map_exact_match_only():
    m = auto_map(["E-mail", "Full Name"], FIELDS)
    assert m.source_for("email") is None
    assert m.source_for("name") is None
    assert m.source_for("phone") is None


def test_auto_map_trims_whitespace():
    m = auto_map(["  NAME  ", "email "], FIELDS)
    assert m.source_for("name") == "  NAME  "
    assert m.source_for("email") == "email "


def test_auto_map_duplicate_headers_first_match_wins():
    m = auto_map(["email", "EMAIL"], [FieldMapping("email")])
    assert m.source_for("email") == "email"


def test_auto_map_skips_empty_headers():
    m = auto_map([None, "", "name"], [FieldMapping("name")])
    assert m.source_for("name") == "name"


def test_auto_map_uses_source_column_hint_literally():
    fields = [FieldMapping("user_email", required=True, source_column_hint="Email")]
    assert auto_map(["EMAIL"], fields).source_for("user_email") == "EMAIL"
    # ヒントも完全一致のみ
    assert auto_map(["E-mail"], fields).source_for("user_email") is None


def test_auto_map_target_field_preferred_over_hint():
    fields = [FieldMapping("user_email", source_column_hint="email")]
    m = auto_map(["email", "user_email"], fields)
    assert m.source_for("user_email") == "user_email"


def test_set_mapping_overrides_and_allows_reuse():
    m = auto_map(["name", "email"], FIELDS)
    m2 = set_mapping(m, "phone", "name")
    assert m2.source_for("phone") == "name"
    assert m2.source_for("name") == "name"
    # 元の MappingSet は変更されない
    assert m.source_for("phone") is None


def test_set_mapping_empty_unbinds():
    m = auto_map(["name", "email"], FIELDS)
    assert set_mapping(m, "name", "").source_for("name") is None
    assert set_mapping(m, "name", None).source_for("name") is None


def test_set_mapping_unknown_field():
    m = MappingSet.empty(["name"])
    with pytest.raises(UnknownFieldError):
        set_mapping(m, "nmae", "name")


def test_is_complete_tracks_required_fields_only():
    m = MappingSet.empty([f.target_field for f in FIELDS])
    assert not is_complete(m, FIELDS)
    m = set_mapping(m, "name", "Name")
    assert not is_complete(m, FIELDS)
    assert missing_required(m, FIELDS) == ["email"]
    m = set_mapping(m, "email", "Email")
    assert is_complete(m, FIELDS)
    # optional field is irrelevant
    assert is_complete(set_mapping(m, "phone", None), FIELDS)


def test_is_complete_rejects_blank_source():
    m = MappingSet(bindings={"name": "  ", "email": "Email", "phone": None})
    assert not is_complete(m, FIELDS)


def test_is_complete_with_no_required_fields():
    fields = [FieldMapping("note")]
    assert is_complete(MappingSet.empty(["note"]), fields)


def test_auto_map_without_hint_matches_identifier_only():
    fields = [FieldMapping("user_email", required=True)]
    mapping = auto_map(["email", "Email Address"], fields)
    assert mapping.source_for("user_email") is None
    assert missing_required(mapping, fields) == ["user_email"]
