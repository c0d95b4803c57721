"""
Row aggregation for the translation grid.

The store holds one flat record per (resource_type, culture_code,
resource_key). The grid shows one row per resource key with a column per
culture, so this module:
- Fetches the complete record set page by page
- Groups records into LocalizationRow objects keyed by resource_key
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from comax import cultures
from comax.config import DEFAULT_STORE_PAGE_SIZE
from comax.core import database as db
from comax.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TranslationRecord:
    """One localization resource as stored."""

    id: int
    resource_type: str
    culture_code: str
    resource_key: str
    resource_value: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TranslationRecord":
        return cls(
            id=row["id"],
            resource_type=row["resource_type"],
            culture_code=row["culture_code"],
            resource_key=row["resource_key"],
            resource_value=row.get("resource_value") or "",
        )


@dataclass
class TranslationCell:
    """A stored translation for one culture of a row."""

    id: int
    value: str


# culture_code -> cell. A missing key means no translation exists yet for
# that culture, which is different from a cell holding an empty string.
Translations = Dict[str, TranslationCell]


@dataclass
class LocalizationRow:
    """One resource key with all of its per-culture translations."""

    resource_key: str
    resource_type: str
    translations: Translations = field(default_factory=dict)

    def value_for(self, culture_code: str) -> Optional[str]:
        cell = self.translations.get(culture_code)
        return cell.value if cell else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_key": self.resource_key,
            "resource_type": self.resource_type,
            "translations": {
                code: {"id": cell.id, "value": cell.value}
                for code, cell in self.translations.items()
            },
        }


@dataclass
class AggregationResult:
    """Aggregated rows plus the keys whose records disagree on resource_type."""

    rows: List[LocalizationRow] = field(default_factory=list)
    type_conflicts: Dict[str, Set[str]] = field(default_factory=dict)
    record_count: int = 0


def fetch_all_records(page_size: int = DEFAULT_STORE_PAGE_SIZE,
                      resource_types: Optional[Iterable[str]] = None,
                      culture_code: Optional[str] = None,
                      fetch_page: Callable[..., List[Dict[str, Any]]] = None) -> List[TranslationRecord]:
    """
    Fetch every localization record, ordered by (resource_key, culture_code).

    The store returns at most one page per select, so this loops over fixed
    size pages until a short page comes back. Stopping after the first page
    would silently truncate data sets larger than the page size.

    Args:
        page_size: Rows requested per select
        resource_types: Optional resource type scope
        culture_code: Optional culture scope
        fetch_page: Page fetcher (offset, limit, resource_types, culture_code);
            defaults to the database client

    Returns:
        All matching records in store order
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    fetch_page = fetch_page or db.get_resources_page
    types = list(resource_types) if resource_types is not None else None

    records: List[TranslationRecord] = []
    offset = 0
    while True:
        page = fetch_page(offset, page_size, types, culture_code)
        records.extend(TranslationRecord.from_row(row) for row in page)
        logger.debug(f"Fetched page at offset {offset}: {len(page)} records")
        if len(page) < page_size:
            break
        offset += page_size

    logger.info(f"Fetched {len(records)} localization records")
    return records


def aggregate_rows(records: Iterable[TranslationRecord]) -> AggregationResult:
    """
    Group flat records into one row per resource key.

    Row order follows the first appearance of each key. A key's
    resource_type is taken from the first record seen for it; keys whose
    records carry other types are reported in type_conflicts.

    Example:
        >>> result = aggregate_rows([
        ...     TranslationRecord(1, "APP1", "he-IL", "greet", "שלום"),
        ...     TranslationRecord(2, "APP1", "en-US", "greet", ""),
        ... ])
        >>> [row.resource_key for row in result.rows]
        ['greet']
        >>> result.rows[0].translations["en-US"].value
        ''
    """
    result = AggregationResult()
    by_key: Dict[str, LocalizationRow] = {}
    unknown_cultures: Set[str] = set()

    for record in records:
        result.record_count += 1
        row = by_key.get(record.resource_key)
        if row is None:
            row = LocalizationRow(resource_key=record.resource_key, resource_type=record.resource_type)
            by_key[record.resource_key] = row
            result.rows.append(row)
        elif record.resource_type != row.resource_type:
            conflicts = result.type_conflicts.setdefault(record.resource_key, {row.resource_type})
            conflicts.add(record.resource_type)

        if not cultures.is_supported(record.culture_code):
            unknown_cultures.add(record.culture_code)

        row.translations[record.culture_code] = TranslationCell(id=record.id, value=record.resource_value)

    if unknown_cultures:
        logger.warning(f"Records with unknown culture codes: {sorted(unknown_cultures)}")
    if result.type_conflicts:
        logger.warning(
            f"{len(result.type_conflicts)} resource keys appear under more than one resource type; "
            f"keeping the first type seen"
        )

    logger.debug(f"Aggregated {result.record_count} records into {len(result.rows)} rows")
    return result


def load_rows(page_size: int = DEFAULT_STORE_PAGE_SIZE,
              resource_types: Optional[Iterable[str]] = None) -> AggregationResult:
    """Fetch the full record set and aggregate it."""
    return aggregate_rows(fetch_all_records(page_size=page_size, resource_types=resource_types))
