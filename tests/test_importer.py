from __future__ import annotations

import io
import json

import pytest
from openpyxl import Workbook

from comax.core.exceptions import ValidationError
from comax.io.importer import canonical_field, parse_import_file


def _xlsx(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    for values in rows:
        ws.append(values)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.mark.parametrize("header", ["resourceType", "Resource Type", "resource_type", "RESOURCE TYPE"])
def test_header_variants_map_to_canonical_field(header) -> None:
    assert canonical_field(header) == "resource_type"


def test_parse_json_array() -> None:
    content = json.dumps([
        {"resourceType": "APP1", "cultureCode": "en-US", "resourceKey": "greet", "resourceValue": "Hello"},
        {"resourceType": "APP1", "cultureCode": "he_il", "resourceKey": "greet"},
    ]).encode("utf-8")

    records = parse_import_file("batch.json", content)

    assert [(r.culture_code, r.resource_value, r.row_number) for r in records] == [
        ("en-US", "Hello", 1),
        ("he-IL", "", 2),
    ]


def test_parse_json_single_object() -> None:
    content = json.dumps({"resource_type": "APP1", "culture_code": "ro-RO",
                          "resource_key": "k", "resource_value": "v"}).encode("utf-8")
    assert len(parse_import_file("one.json", content)) == 1


def test_parse_csv_with_bom_and_spaced_headers() -> None:
    content = (
        "\ufeffResource Type,Culture Code,Resource Key,Resource Value\n"
        "APP1,th-TH,greet,สวัสดี\n"
        "\n"
    ).encode("utf-8")

    records = parse_import_file("batch.csv", content)

    assert len(records) == 1
    assert records[0].resource_value == "สวัสดี"
    assert records[0].culture_code == "th-TH"


def test_parse_xlsx() -> None:
    content = _xlsx([
        ["resourceType", "cultureCode", "resourceKey", "resourceValue"],
        ["APP1", "en-US", "greet", "Hello"],
        [None, None, None, None],
        ["APP1", "he-IL", 42, "ארבעים ושתיים"],
    ])

    records = parse_import_file("batch.xlsx", content)

    assert [r.resource_key for r in records] == ["greet", "42"]


def test_missing_required_field_names_row_and_field() -> None:
    content = json.dumps([
        {"resourceType": "APP1", "cultureCode": "en-US", "resourceKey": "ok"},
        {"resourceType": "APP1", "cultureCode": "en-US"},
    ]).encode("utf-8")

    with pytest.raises(ValidationError) as excinfo:
        parse_import_file("batch.json", content)

    assert excinfo.value.row == 2
    assert excinfo.value.field == "resource_key"


def test_disallowed_culture_is_rejected() -> None:
    content = json.dumps([{"resourceType": "APP1", "cultureCode": "ar-SA", "resourceKey": "k"}]).encode()

    with pytest.raises(ValidationError) as excinfo:
        parse_import_file("batch.json", content)

    assert excinfo.value.row == 1
    assert excinfo.value.field == "culture_code"


@pytest.mark.parametrize("filename", ["legacy.xls", "notes.txt", "noextension"])
def test_unsupported_file_types(filename) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_import_file(filename, b"whatever")
    assert excinfo.value.code == "unsupported_file_type"


def test_invalid_json_and_empty_file() -> None:
    with pytest.raises(ValidationError):
        parse_import_file("bad.json", b"{not json")
    with pytest.raises(ValidationError) as excinfo:
        parse_import_file("empty.json", b"[]")
    assert excinfo.value.code == "empty_file"


def test_csv_row_with_extra_cells_is_rejected() -> None:
    content = (
        "Resource Type,Culture Code,Resource Key,Resource Value\n"
        "APP1,en-US,greet,Hi\n"
        "APP1,en-US,farewell,Bye, now\n"
    ).encode("utf-8")

    with pytest.raises(ValidationError) as excinfo:
        parse_import_file("batch.csv", content)

    assert excinfo.value.row == 2
    assert "too many fields" in str(excinfo.value)


def test_csv_extra_cells_after_empty_ones_are_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_import_file("batch.csv", b"a,b\n,,x\n")

    assert excinfo.value.row == 1
