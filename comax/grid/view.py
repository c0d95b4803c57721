"""
Per-session grid state.

A GridView owns one session's aggregated rows and the filter, sort and
scroll window applied to them. Rows are only replaced or mutated by the
view's own completed operations (reload, saved edit, finished import).
Views are kept in an in-memory registry keyed by view id.
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from comax.config import DEFAULT_GRID_PAGE_SIZE, DEFAULT_STORE_PAGE_SIZE
from comax.core.exceptions import ValidationError
from comax.core.session import Session
from comax.cultures import ALL, normalize_culture_code
from comax.grid.aggregator import AggregationResult, LocalizationRow, load_rows
from comax.grid.filters import SearchFilters, filter_rows
from comax.grid.pagination import PaginationController, Scheduler, immediate_scheduler
from comax.grid.reconcile import EditResult, ImportRecord, ImportResult, import_records, save_cell
from comax.grid.sorting import SortState, sort_rows
from comax.logger import get_logger

logger = get_logger(__name__)

_KEEP_SCOPE = object()


def scope_types(resource_types: Any) -> Optional[List[str]]:
    """Normalize a requested type scope; None means every type."""
    if resource_types is None:
        return None
    if isinstance(resource_types, str):
        resource_types = resource_types.split(",")
    elif not isinstance(resource_types, (list, tuple, set)):
        resource_types = [resource_types]
    types = [str(t).strip() for t in resource_types if str(t).strip()]
    if not types or ALL in types:
        return None
    return types


class GridView:
    """Rows + filters + sort + window for one console session."""

    def __init__(self, page_size: int = DEFAULT_GRID_PAGE_SIZE,
                 store_page_size: int = DEFAULT_STORE_PAGE_SIZE,
                 load_delay: float = 0.0,
                 scheduler: Optional[Scheduler] = None):
        self.view_id = uuid.uuid4().hex
        self.store_page_size = store_page_size
        self.filters = SearchFilters()
        self.sort_state = SortState()
        self.resource_types: Optional[List[str]] = None
        self.pagination = PaginationController(
            page_size=page_size,
            delay=load_delay,
            scheduler=scheduler or immediate_scheduler,
        )
        self.last_access = time.time()
        self._aggregation = AggregationResult()
        self._result: List[LocalizationRow] = []
        self._saving: Set[Tuple[str, str]] = set()
        self._lock = threading.RLock()

    @property
    def rows(self) -> List[LocalizationRow]:
        return self._aggregation.rows

    @property
    def type_conflicts(self) -> Dict[str, Set[str]]:
        return self._aggregation.type_conflicts

    @property
    def result(self) -> List[LocalizationRow]:
        """Filtered and sorted rows."""
        return self._result

    def _recompute(self, preserve_window: bool = False) -> None:
        filtered = filter_rows(self._aggregation.rows, self.filters)
        self._result = sort_rows(filtered, self.sort_state)
        self.pagination.set_source(self._result, preserve_window=preserve_window)

    def _replace_rows(self, aggregation: AggregationResult) -> None:
        with self._lock:
            self._aggregation = aggregation
            self._recompute()

    def reload(self, resource_types: Any = _KEEP_SCOPE) -> None:
        """
        Rebuild rows from the store.

        Without an argument the current type scope is kept. ``None``, an empty
        list or ``"ALL"`` clears the scope; a list of types narrows it.
        """
        if resource_types is not _KEEP_SCOPE:
            self.resource_types = scope_types(resource_types)
        aggregation = load_rows(page_size=self.store_page_size, resource_types=self.resource_types)
        self._replace_rows(aggregation)
        logger.info(f"View {self.view_id} reloaded {len(aggregation.rows)} rows")

    def apply_filters(self, filters: SearchFilters) -> None:
        with self._lock:
            self.filters = filters
            self._recompute()

    def toggle_sort(self, column: str) -> SortState:
        with self._lock:
            self.sort_state = self.sort_state.toggle(column)
            self._recompute()
            return self.sort_state

    def load_more(self) -> bool:
        """Bottom sentinel became visible."""
        return self.pagination.on_sentinel_visible()

    def find_row(self, resource_key: str) -> Optional[LocalizationRow]:
        with self._lock:
            for row in self._aggregation.rows:
                if row.resource_key == resource_key:
                    return row
        return None

    def save_cell(self, resource_key: str, culture_code: str, new_value: str,
                  session: Session, require_organization: bool = False) -> EditResult:
        """
        Save one cell; a second save for the same cell is rejected while the
        first is outstanding.

        Raises:
            ValidationError: If the row is unknown or the cell is already saving
        """
        row = self.find_row(resource_key)
        if row is None:
            raise ValidationError(f"Unknown resource key: {resource_key}", field="resource_key",
                                  code="not_found", details={"resource_key": resource_key})

        cell = (resource_key, normalize_culture_code(culture_code))
        with self._lock:
            if cell in self._saving:
                raise ValidationError(
                    f"A save for {resource_key} ({culture_code}) is already in progress",
                    code="save_in_progress",
                )
            self._saving.add(cell)
        try:
            result = save_cell(row, culture_code, new_value, session,
                               require_organization=require_organization)
        finally:
            with self._lock:
                self._saving.discard(cell)

        with self._lock:
            self._recompute(preserve_window=True)
        return result

    def import_records(self, records: Iterable[ImportRecord], session: Session,
                       require_organization: bool = False) -> ImportResult:
        """Run an import and replace rows with the re-fetched set."""
        result = import_records(
            records,
            session,
            require_organization=require_organization,
            page_size=self.store_page_size,
            resource_types=self.resource_types,
        )
        if result.aggregation is not None:
            self._replace_rows(result.aggregation)
        return result

    def window(self, offset: int = 0, limit: Optional[int] = None) -> Dict[str, Any]:
        """Serializable snapshot of the revealed rows."""
        self.last_access = time.time()
        visible = self.pagination.visible()
        if offset or limit is not None:
            end = None if limit is None else offset + limit
            visible = visible[offset:end]
        return {
            "view_id": self.view_id,
            "rows": [row.to_dict() for row in visible],
            "displayed_count": self.pagination.displayed_count,
            "filtered_count": len(self._result),
            "total_count": len(self._aggregation.rows),
            "has_more": self.pagination.has_more,
            "filters": self.filters.to_dict(),
            "sort": self.sort_state.to_dict(),
            "type_conflicts": {key: sorted(types) for key, types in self.type_conflicts.items()},
        }


_views: Dict[str, GridView] = {}
_views_lock = threading.Lock()
_VIEW_RETENTION_SECONDS = 3600  # Idle views are dropped after an hour


def create_view(**kwargs) -> GridView:
    """Create and register a new view."""
    view = GridView(**kwargs)
    with _views_lock:
        _cleanup_views_locked()
        _views[view.view_id] = view
    return view


def get_view(view_id: Optional[str]) -> Optional[GridView]:
    """Fetch a registered view (if still retained)."""
    if not view_id:
        return None
    with _views_lock:
        view = _views.get(view_id)
        if view and (time.time() - view.last_access) > _VIEW_RETENTION_SECONDS:
            _views.pop(view_id, None)
            return None
        return view


def drop_view(view_id: Optional[str]) -> None:
    with _views_lock:
        _views.pop(view_id, None)


def _cleanup_views_locked() -> None:
    now = time.time()
    expired = [vid for vid, view in _views.items() if (now - view.last_access) > _VIEW_RETENTION_SECONDS]
    for vid in expired:
        _views.pop(vid, None)
    if expired:
        logger.debug(f"Dropped {len(expired)} idle grid views")
