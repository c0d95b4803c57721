"""Search filters applied to aggregated grid rows."""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from comax.grid.aggregator import LocalizationRow

# Sentinel for "every resource type"
ALL = "ALL"


@dataclass(frozen=True)
class SearchFilters:
    """
    Conjunction of grid predicates.

    only_empty_values keeps rows where any translation is blank. When
    cultures is set, it instead keeps rows where one of those cultures is
    blank or has no translation yet.
    """

    resource_types: Union[FrozenSet[str], str] = ALL
    resource_key: str = ""
    resource_value: str = ""
    only_empty_values: bool = False
    cultures: Optional[Tuple[str, ...]] = None

    def is_identity(self) -> bool:
        return (
            self.resource_types == ALL
            and not self.resource_key.strip()
            and not self.resource_value.strip()
            and not self.only_empty_values
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchFilters":
        """Build filters from a request payload (missing keys mean no filter)."""
        raw_types = data.get("resource_types", data.get("resource_type", ALL))
        if raw_types in (None, "", ALL) or raw_types == [ALL]:
            resource_types: Union[FrozenSet[str], str] = ALL
        elif isinstance(raw_types, str):
            resource_types = frozenset(t.strip() for t in raw_types.split(",") if t.strip())
        else:
            resource_types = frozenset(str(t) for t in raw_types)

        raw_cultures = data.get("cultures")
        if isinstance(raw_cultures, str):
            raw_cultures = [c for c in raw_cultures.split(",") if c.strip()]
        filter_cultures = tuple(c.strip() for c in raw_cultures) if raw_cultures else None

        only_empty = data.get("only_empty_values", False)
        if isinstance(only_empty, str):
            only_empty = only_empty.lower() in ("1", "true", "yes")

        return cls(
            resource_types=resource_types,
            resource_key=str(data.get("resource_key") or ""),
            resource_value=str(data.get("resource_value") or ""),
            only_empty_values=bool(only_empty),
            cultures=filter_cultures,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_types": ALL if self.resource_types == ALL else sorted(self.resource_types),
            "resource_key": self.resource_key,
            "resource_value": self.resource_value,
            "only_empty_values": self.only_empty_values,
            "cultures": list(self.cultures) if self.cultures else None,
        }


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _has_missing(row: LocalizationRow, cultures: Optional[Tuple[str, ...]]) -> bool:
    if cultures:
        return any(_is_blank(row.value_for(code)) for code in cultures)
    return any(_is_blank(cell.value) for cell in row.translations.values())


def matches(row: LocalizationRow, filters: SearchFilters) -> bool:
    """Check one row against every predicate."""
    if filters.resource_types != ALL and row.resource_type not in filters.resource_types:
        return False

    key_term = filters.resource_key.strip().casefold()
    if key_term and key_term not in row.resource_key.casefold():
        return False

    value_term = filters.resource_value.strip().casefold()
    if value_term and not any(
        value_term in (cell.value or "").casefold() for cell in row.translations.values()
    ):
        return False

    if filters.only_empty_values and not _has_missing(row, filters.cultures):
        return False

    return True


def filter_rows(rows: Iterable[LocalizationRow], filters: SearchFilters) -> List[LocalizationRow]:
    """
    Return the rows passing every predicate, in input order.

    Rows are never copied or mutated; the identity filter returns every row.
    """
    if filters.is_identity():
        return list(rows)
    return [row for row in rows if matches(row, filters)]
