"""
Export of aggregated grid rows.

Formats:
- CSV: every field quoted, one column per culture
- Excel: same layout as CSV in a single worksheet
- JSON: {key, value} pairs where key is the English text (falling back to
  the resource key) and value is the target culture's translation
"""

import csv
import io
from datetime import date
from typing import Dict, Iterable, List, Optional

from openpyxl import Workbook

from comax import cultures
from comax.grid.aggregator import LocalizationRow
from comax.logger import get_logger

logger = get_logger(__name__)

BASE_HEADERS = ["Resource Type", "Resource Key"]


def _table(rows: Iterable[LocalizationRow], culture_codes: List[str]) -> List[List[str]]:
    table = [BASE_HEADERS + list(culture_codes)]
    for row in rows:
        table.append(
            [row.resource_type, row.resource_key]
            + [row.value_for(code) or "" for code in culture_codes]
        )
    return table


def export_csv(rows: Iterable[LocalizationRow], culture_codes: Optional[List[str]] = None) -> str:
    """Serialize rows to CSV text with every field quoted."""
    culture_codes = list(culture_codes or cultures.GRID_CULTURES)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    table = _table(rows, culture_codes)
    writer.writerows(table)
    logger.info(f"Exported {len(table) - 1} rows to CSV ({', '.join(culture_codes)})")
    return buffer.getvalue()


def export_xlsx(rows: Iterable[LocalizationRow], culture_codes: Optional[List[str]] = None) -> bytes:
    """Serialize rows to an Excel workbook."""
    culture_codes = list(culture_codes or cultures.GRID_CULTURES)
    wb = Workbook()
    ws = wb.active
    ws.title = "Translations"
    table = _table(rows, culture_codes)
    for values in table:
        ws.append(values)

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.info(f"Exported {len(table) - 1} rows to Excel")
    return buffer.getvalue()


def export_key_value_json(rows: Iterable[LocalizationRow], target_culture: str) -> List[Dict[str, str]]:
    """
    Build the key/value export for one target culture.

    Only rows that have a translation record for the target culture are
    included, matching the localization JSON API.

    Example:
        >>> export_key_value_json(rows, 'he-IL')
        [{'key': 'Hello', 'value': 'שלום'}]
    """
    result = []
    for row in rows:
        cell = row.translations.get(target_culture)
        if cell is None:
            continue
        english = row.value_for(cultures.ENGLISH_CULTURE)
        result.append({
            "key": english or row.resource_key,
            "value": cell.value or "",
        })
    logger.info(f"Exported {len(result)} key/value pairs for {target_culture}")
    return result


def export_filename(extension: str, today: Optional[date] = None) -> str:
    """Download filename, e.g. localization_export_2024-01-31.csv"""
    today = today or date.today()
    return f"localization_export_{today.isoformat()}.{extension}"
