"""
Import file parsing.

Turns an uploaded JSON, CSV or Excel file into validated ImportRecord
objects. Header variants ("Resource Type", resourceType, resource_type)
are mapped to canonical field names. The first invalid row aborts parsing
with a ValidationError naming the row and field, so nothing reaches the
import reconciler until the whole file is valid.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook

from comax import cultures
from comax.core.exceptions import ValidationError
from comax.grid.reconcile import ImportRecord
from comax.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("resource_type", "culture_code", "resource_key")

# Canonical field -> accepted header spellings (compared after _header_token)
HEADER_ALIASES = {
    "resource_type": ("resourceType", "Resource Type", "resource_type", "type", "application"),
    "culture_code": ("cultureCode", "Culture Code", "culture_code", "culture", "language"),
    "resource_key": ("resourceKey", "Resource Key", "resource_key", "key"),
    "resource_value": ("resourceValue", "Resource Value", "resource_value", "value"),
    "resource_id": ("resourceId", "Resource ID", "resource_id", "id"),
}

SUPPORTED_EXTENSIONS = (".json", ".csv", ".xlsx")


def _header_token(header: Any) -> str:
    return "".join(ch for ch in str(header).lower() if ch.isalnum())


_ALIAS_LOOKUP = {
    _header_token(alias): canonical
    for canonical, aliases in HEADER_ALIASES.items()
    for alias in aliases
}


def canonical_field(header: Any) -> Optional[str]:
    """Map a header variant to its canonical field name, or None if unknown."""
    if header is None:
        return None
    return _ALIAS_LOOKUP.get(_header_token(header))


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_item(item: Dict[str, Any]) -> Dict[str, str]:
    """Rename the keys of one raw item to canonical field names, dropping unknown keys."""
    normalized: Dict[str, str] = {}
    for header, value in item.items():
        field = canonical_field(header)
        if field and not normalized.get(field):
            normalized[field] = _cell_text(value)
    return normalized


def validate_items(items: List[Dict[str, Any]],
                   allowed_cultures: Optional[List[str]] = None) -> List[ImportRecord]:
    """
    Validate raw items and convert them to ImportRecord objects.

    Args:
        items: Raw dictionaries with any supported header spelling
        allowed_cultures: Culture allow-list; defaults to ALLOWED_IMPORT_CULTURES

    Raises:
        ValidationError: On the first row with a missing field or disallowed culture
    """
    allowed = allowed_cultures or cultures.ALLOWED_IMPORT_CULTURES
    records: List[ImportRecord] = []

    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Row {index}: expected an object", row=index)

        fields = normalize_item(item)
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise ValidationError(
                f"Row {index}: missing required fields ({', '.join(missing)})",
                row=index,
                field=missing[0],
            )

        try:
            culture_code = cultures.validate_culture_code(fields["culture_code"], allowed=allowed)
        except ValidationError as e:
            raise ValidationError(f"Row {index}: {e}", row=index, field="culture_code",
                                  details=e.details) from e

        records.append(ImportRecord(
            resource_type=fields["resource_type"],
            culture_code=culture_code,
            resource_key=fields["resource_key"],
            resource_value=fields.get("resource_value", ""),
            row_number=index,
        ))

    logger.info(f"Validated {len(records)} import records")
    return records


def read_json_items(content: bytes) -> List[Dict[str, Any]]:
    """Read a JSON array (or a single object) of records."""
    try:
        data = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid JSON file: {e}") from e
    return data if isinstance(data, list) else [data]


def read_csv_items(content: bytes) -> List[Dict[str, Any]]:
    """Read a CSV file with a header row."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(f"CSV file must be UTF-8 encoded: {e}") from e
    reader = csv.DictReader(io.StringIO(text))
    items = []
    for row in reader:
        if None in row:
            # Extra cells land under the None restkey
            number = len(items) + 1
            raise ValidationError(f"Row {number}: too many fields", row=number)
        if any((value or "").strip() for value in row.values()):
            items.append(dict(row))
    return items


def read_xlsx_items(content: bytes) -> List[Dict[str, Any]]:
    """Read the first worksheet of an Excel workbook; row 1 is the header."""
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationError(f"Invalid Excel file: {e}") from e

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header or not any(h is not None for h in header):
            raise ValidationError("Excel header row is empty")

        items = []
        for values in rows:
            if values is None or all(v is None or str(v).strip() == "" for v in values):
                continue
            items.append({
                str(h): v for h, v in zip(header, values) if h is not None
            })
        return items
    finally:
        workbook.close()


def parse_import_file(filename: str, content: bytes,
                      allowed_cultures: Optional[List[str]] = None) -> List[ImportRecord]:
    """
    Parse and validate an uploaded import file.

    Args:
        filename: Original filename; its extension selects the reader
        content: Raw file bytes

    Returns:
        Validated records in file order

    Raises:
        ValidationError: If the file type is unsupported or any row is invalid
    """
    suffix = Path(filename or "").suffix.lower()
    logger.info(f"Parsing import file {filename} ({len(content)} bytes)")

    if suffix == ".json":
        items = read_json_items(content)
    elif suffix == ".csv":
        items = read_csv_items(content)
    elif suffix == ".xlsx":
        items = read_xlsx_items(content)
    else:
        raise ValidationError(
            f"Unsupported file type \"{suffix or filename}\". Use JSON, Excel (.xlsx) or CSV.",
            code="unsupported_file_type",
        )

    if not items:
        raise ValidationError("The file contains no records", code="empty_file")

    return validate_items(items, allowed_cultures=allowed_cultures)
