"""
Write-back of grid edits and file imports.

This module handles:
- Saving one cell edit as an update or insert, then merging the confirmed
  row into the in-memory LocalizationRow
- Importing a batch of records with per-record failure isolation, followed
  by a full re-fetch so the view reflects exactly what was persisted
- Recording audit entries for both
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from comax import cultures
from comax.config import DEFAULT_STORE_PAGE_SIZE
from comax.core import audit
from comax.core import database as db
from comax.core.exceptions import ComaxError, ValidationError
from comax.core.session import Session
from comax.grid.aggregator import AggregationResult, LocalizationRow, TranslationCell, load_rows
from comax.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportRecord:
    """A validated record headed for the store. row_number is 1-based."""

    resource_type: str
    culture_code: str
    resource_key: str
    resource_value: str = ""
    row_number: int = 0


@dataclass
class EditResult:
    """Outcome of a saved cell."""

    action: str  # CREATE|UPDATE
    row: LocalizationRow
    culture_code: str
    record: Dict[str, Any]
    audit_entry: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "culture_code": self.culture_code,
            "row": self.row.to_dict(),
            "record": self.record,
        }


@dataclass
class ImportResult:
    """Counters and errors of an import batch, plus the refreshed rows."""

    imported_count: int = 0
    added_count: int = 0
    updated_count: int = 0
    errors: List[str] = field(default_factory=list)
    aggregation: Optional[AggregationResult] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def summary(self) -> Dict[str, int]:
        return {
            "importedCount": self.imported_count,
            "addedCount": self.added_count,
            "updatedCount": self.updated_count,
            "errorCount": self.error_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported_count": self.imported_count,
            "added_count": self.added_count,
            "updated_count": self.updated_count,
            "error_count": self.error_count,
            "errors": list(self.errors),
        }


def _insert_scope(session: Session, require_organization: bool) -> Optional[int]:
    if require_organization:
        return session.require_organization()
    return session.organization_id


def save_cell(row: LocalizationRow, culture_code: str, new_value: str,
              session: Session, require_organization: bool = False) -> EditResult:
    """
    Persist one cell edit and merge the confirmed value into the row.

    An existing translation is updated by id; otherwise a new record is
    inserted and its id stored in the row. The row is only touched after
    the store confirms the write, so any failure leaves it unchanged.

    Args:
        row: The in-memory row being edited
        culture_code: Culture column of the edited cell
        new_value: The value to save
        session: Acting user and organization scope
        require_organization: Whether inserts must carry an organization id

    Returns:
        EditResult describing the write

    Raises:
        ValidationError: If the culture code is invalid
        ScopeError: If an insert requires an organization and none is selected
        StoreError: If the store rejects the write
    """
    culture_code = cultures.validate_culture_code(culture_code)
    new_value = "" if new_value is None else str(new_value)
    existing = row.translations.get(culture_code)

    if existing is not None:
        record = db.update_resource_value(existing.id, new_value)
        row.translations[culture_code] = TranslationCell(id=record["id"], value=record["resource_value"])
        entry = audit.record(
            session,
            "UPDATE",
            audit.RESOURCES_TABLE,
            record_id=record["id"],
            old_value={"resource_value": existing.value},
            new_value={"resource_value": record["resource_value"]},
            description=f"Updated translation {row.resource_key} ({culture_code})",
        )
        logger.info(f"{session.username} updated {row.resource_key} [{culture_code}] (id={record['id']})")
        return EditResult("UPDATE", row, culture_code, record, entry)

    organization_id = _insert_scope(session, require_organization)
    record = db.insert_resource(
        resource_type=row.resource_type,
        culture_code=culture_code,
        resource_key=row.resource_key,
        resource_value=new_value,
        organization_id=organization_id,
    )
    row.translations[culture_code] = TranslationCell(id=record["id"], value=record["resource_value"])
    entry = audit.record(
        session,
        "CREATE",
        audit.RESOURCES_TABLE,
        record_id=record["id"],
        new_value={
            "resource_type": record["resource_type"],
            "culture_code": record["culture_code"],
            "resource_key": record["resource_key"],
            "resource_value": record["resource_value"],
        },
        description=f"Created translation {row.resource_key} ({culture_code})",
    )
    logger.info(f"{session.username} created {row.resource_key} [{culture_code}] (id={record['id']})")
    return EditResult("CREATE", row, culture_code, record, entry)


def _describe(record: ImportRecord) -> str:
    prefix = f"Row {record.row_number}: " if record.row_number else ""
    return f"{prefix}{record.resource_type}/{record.culture_code}/{record.resource_key}"


def import_records(records: Iterable[ImportRecord], session: Session,
                   require_organization: bool = False,
                   page_size: int = DEFAULT_STORE_PAGE_SIZE,
                   resource_types: Optional[Iterable[str]] = None) -> ImportResult:
    """
    Merge a batch of records into the store, one record at a time.

    Each record updates the existing (type, culture, key) record or inserts
    a new one. A failing record is reported in errors and the batch moves
    on. Afterwards the full record set is re-fetched and re-aggregated, and
    one IMPORT audit entry summarizes the run.

    Raises:
        ScopeError: If inserts require an organization and none is selected;
            nothing is written in that case
    """
    organization_id = _insert_scope(session, require_organization)
    result = ImportResult()

    for record in records:
        result.imported_count += 1
        try:
            if not (record.resource_type and record.culture_code and record.resource_key):
                raise ValidationError("missing required fields (resource_type, culture_code, resource_key)")
            existing = db.find_resource(record.resource_type, record.culture_code, record.resource_key)
            if existing:
                db.update_resource_value(existing["id"], record.resource_value)
                result.updated_count += 1
            else:
                db.insert_resource(
                    resource_type=record.resource_type,
                    culture_code=record.culture_code,
                    resource_key=record.resource_key,
                    resource_value=record.resource_value,
                    organization_id=organization_id,
                )
                result.added_count += 1
        except ComaxError as e:
            message = f"{_describe(record)}: {e}"
            result.errors.append(message)
            logger.warning(f"Import record failed: {message}")

    logger.info(
        f"Import finished: imported={result.imported_count}, added={result.added_count}, "
        f"updated={result.updated_count}, errors={result.error_count}"
    )

    audit.record(
        session,
        "IMPORT",
        audit.RESOURCES_TABLE,
        new_value=result.summary(),
        description=(
            f"Imported {result.imported_count} records "
            f"({result.added_count} added, {result.updated_count} updated, {result.error_count} errors)"
        ),
    )

    result.aggregation = load_rows(page_size=page_size, resource_types=resource_types)
    return result
