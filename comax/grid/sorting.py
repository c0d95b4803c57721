"""Column sorting for grid rows with tri-state header toggling."""

import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from comax.grid.aggregator import LocalizationRow

KEY_COLUMN = "resource_key"

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class SortState:
    """Sorted column and direction; column None means original order."""

    column: Optional[str] = None
    direction: Optional[str] = None

    @property
    def is_unsorted(self) -> bool:
        return self.column is None or self.direction is None

    def toggle(self, column: str) -> "SortState":
        """
        Advance the header click cycle for a column: none -> asc -> desc -> none.

        Clicking a different column starts that column at ascending.
        """
        if column != self.column or self.direction is None:
            return SortState(column, ASC)
        if self.direction == ASC:
            return SortState(column, DESC)
        return SortState()

    def to_dict(self):
        return {"column": self.column, "direction": self.direction}


def collation_key(text: str) -> Tuple[str, str, str]:
    """
    Sort key approximating locale-aware comparison.

    Primary level ignores case and combining marks (Hebrew niqqud, Latin
    accents); ties fall back to case-folded then raw text so ordering is
    total and deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return base, decomposed.casefold(), text


def _cell_text(row: LocalizationRow, column: str) -> str:
    if column == KEY_COLUMN:
        return row.resource_key
    return row.value_for(column) or ""


def sort_rows(rows: Iterable[LocalizationRow], state: SortState) -> List[LocalizationRow]:
    """
    Stable sort of rows by the state's column.

    Missing translations sort as empty strings. Rows with equal keys keep
    their incoming order in both directions.
    """
    rows = list(rows)
    if state.is_unsorted:
        return rows
    return sorted(
        rows,
        key=lambda row: collation_key(_cell_text(row, state.column)),
        reverse=state.direction == DESC,
    )
