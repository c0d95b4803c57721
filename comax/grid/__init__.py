"""
Grid module - the translation table engine

This module provides:
- aggregator: paged fetch and grouping of records into rows
- filters: multi-criteria search
- sorting: tri-state column sorting
- pagination: infinite-scroll window
- reconcile: cell edits and imports written back to the store
- view: per-session composition of the above
"""

from comax.grid.aggregator import (
    TranslationRecord,
    TranslationCell,
    LocalizationRow,
    AggregationResult,
    fetch_all_records,
    aggregate_rows,
    load_rows,
)
from comax.grid.filters import ALL, SearchFilters, filter_rows
from comax.grid.sorting import KEY_COLUMN, SortState, sort_rows
from comax.grid.pagination import PaginationController
from comax.grid.reconcile import ImportRecord, ImportResult, EditResult, save_cell, import_records
from comax.grid.view import GridView
