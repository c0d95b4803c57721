from __future__ import annotations

import pytest

from comax.core import database
from comax.core.exceptions import ScopeError, StoreError, ValidationError
from comax.grid.aggregator import LocalizationRow, load_rows
from comax.grid.filters import SearchFilters, filter_rows
from comax.grid.reconcile import ImportRecord, import_records, save_cell
from comax.grid.sorting import KEY_COLUMN, SortState, sort_rows
from comax.grid.view import GridView


def _row(key: str):
    return next(row for row in load_rows().rows if row.resource_key == key)


def test_scenario_aggregate_then_only_missing_keeps_row(seed) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP1", "en-US", "greet", ""))

    rows = load_rows().rows

    assert len(rows) == 1
    assert rows[0].value_for("he-IL") == "שלום"
    assert rows[0].value_for("en-US") == ""
    assert filter_rows(rows, SearchFilters(only_empty_values=True)) == rows


def test_scenario_three_clicks_restore_original_order() -> None:
    original = [
        LocalizationRow(resource_key="b_key", resource_type="APP1"),
        LocalizationRow(resource_key="a_key", resource_type="APP1"),
    ]

    state = SortState().toggle(KEY_COLUMN)
    assert [r.resource_key for r in sort_rows(original, state)] == ["a_key", "b_key"]

    state = state.toggle(KEY_COLUMN).toggle(KEY_COLUMN)
    assert state.is_unsorted
    assert [r.resource_key for r in sort_rows(original, state)] == ["b_key", "a_key"]


def test_scenario_import_twice_updates_instead_of_duplicating(db_file, session) -> None:
    batch = [ImportRecord("APP1", "en-US", "greet", "Hello", row_number=1)]

    first = import_records(batch, session)
    assert (first.added_count, first.updated_count, first.error_count) == (1, 0, 0)

    second = import_records(batch, session)
    assert (second.added_count, second.updated_count, second.error_count) == (0, 1, 0)

    assert len(database.get_resources_page(0, 100)) == 1
    assert [row.resource_key for row in second.aggregation.rows] == ["greet"]


def test_scenario_edit_absent_cell_inserts_and_audits_create(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    row = _row("greet")
    assert "en-US" not in row.translations

    result = save_cell(row, "en-US", "Hi", session)

    assert result.action == "CREATE"
    assert row.translations["en-US"].value == "Hi"
    assert row.translations["en-US"].id == result.record["id"]
    entries = database.get_audit_logs(record_id=result.record["id"])
    assert [entry["action_type"] for entry in entries] == ["CREATE"]
    assert entries[0]["username"] == "editor"


def test_edit_existing_cell_updates_and_round_trips(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP1", "en-US", "greet", "Hello"))
    row = _row("greet")
    original_id = row.translations["en-US"].id

    result = save_cell(row, "en-US", "Hi there", session)

    assert result.action == "UPDATE"
    assert row.translations["en-US"].id == original_id
    assert _row("greet").value_for("en-US") == "Hi there"
    entry = database.get_audit_logs(record_id=original_id)[0]
    assert entry["old_value"] == {"resource_value": "Hello"}
    assert entry["new_value"] == {"resource_value": "Hi there"}


def test_failed_update_leaves_row_unchanged(seed, session, monkeypatch) -> None:
    seed(("APP1", "en-US", "greet", "Hello"))
    row = _row("greet")

    def fail(resource_id, value):
        raise StoreError("backend unavailable")

    monkeypatch.setattr(database, "update_resource_value", fail)

    with pytest.raises(StoreError):
        save_cell(row, "en-US", "Hi", session)
    assert row.value_for("en-US") == "Hello"


def test_insert_without_required_organization_fails_fast(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    row = _row("greet")

    with pytest.raises(ScopeError) as excinfo:
        save_cell(row, "ro-RO", "Salut", session, require_organization=True)

    assert excinfo.value.code == "scope_missing"
    assert "ro-RO" not in row.translations
    assert database.find_resource("APP1", "ro-RO", "greet") is None


def test_insert_with_organization_scope(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    organization = database.create_organization("100", "Comax")
    scoped = session.with_organization(organization["id"], organization["organization_name"])

    result = save_cell(_row("greet"), "ro-RO", "Salut", scoped, require_organization=True)

    assert result.record["organization_id"] == organization["id"]


def test_import_isolates_failing_records(db_file, session, monkeypatch) -> None:
    real_insert = database.insert_resource

    def flaky_insert(resource_type, culture_code, resource_key, resource_value, organization_id=None):
        if resource_key == "broken":
            raise StoreError("insert rejected")
        return real_insert(resource_type, culture_code, resource_key, resource_value,
                           organization_id=organization_id)

    monkeypatch.setattr(database, "insert_resource", flaky_insert)
    batch = [
        ImportRecord("APP1", "he-IL", "ok_1", "א", row_number=1),
        ImportRecord("APP1", "he-IL", "broken", "ב", row_number=2),
        ImportRecord("APP1", "he-IL", "ok_2", "ג", row_number=3),
    ]

    result = import_records(batch, session)

    assert result.imported_count == 3
    assert result.added_count == 2
    assert result.error_count == 1
    assert result.errors[0].startswith("Row 2: APP1/he-IL/broken")
    assert {row.resource_key for row in result.aggregation.rows} == {"ok_1", "ok_2"}


def test_import_writes_one_summary_audit_entry(db_file, session) -> None:
    import_records([ImportRecord("APP1", "en-US", "greet", "Hello")], session)

    entries = database.get_audit_logs()
    assert [entry["action_type"] for entry in entries] == ["IMPORT"]
    assert entries[0]["new_value"] == {
        "importedCount": 1, "addedCount": 1, "updatedCount": 0, "errorCount": 0,
    }


def test_import_requiring_scope_writes_nothing(db_file, session) -> None:
    with pytest.raises(ScopeError):
        import_records([ImportRecord("APP1", "en-US", "greet", "Hello")], session, require_organization=True)
    assert database.get_resources_page(0, 10) == []


def test_view_rejects_concurrent_save_of_same_cell(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    view = GridView()
    view.reload()
    view._saving.add(("greet", "en-US"))

    with pytest.raises(ValidationError) as excinfo:
        view.save_cell("greet", "en-US", "Hi", session)

    assert excinfo.value.code == "save_in_progress"
    assert view.find_row("greet").value_for("en-US") is None


def test_view_save_guard_ignores_culture_spelling(seed, session) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"))
    view = GridView()
    view.reload()
    view._saving.add(("greet", "en-US"))

    with pytest.raises(ValidationError) as excinfo:
        view.save_cell("greet", "en_us", "Hi", session)

    assert excinfo.value.code == "save_in_progress"


def test_view_reload_narrows_then_widens_type_scope(seed) -> None:
    seed(("APP1", "he-IL", "greet", "שלום"), ("APP2", "he-IL", "bye", "ביי"))
    view = GridView()

    view.reload(resource_types=["APP1"])
    assert [row.resource_key for row in view.rows] == ["greet"]

    view.reload()
    assert len(view.rows) == 1

    for widened in (None, [], "ALL", ["APP1", "ALL"]):
        view.reload(resource_types=["APP1"])
        view.reload(resource_types=widened)
        assert view.resource_types is None
        assert sorted(row.resource_key for row in view.rows) == ["bye", "greet"]


def test_view_save_keeps_window_and_refreshes_result(seed, session) -> None:
    seed(*[("APP1", "he-IL", f"k{i:03d}", "ערך") for i in range(120)])
    view = GridView(page_size=50)
    view.reload()
    view.load_more()
    assert view.pagination.displayed_count == 100

    view.save_cell("k005", "en-US", "value", session)

    assert view.pagination.displayed_count == 100
    assert view.find_row("k005").value_for("en-US") == "value"


def test_view_filters_sort_and_window(seed) -> None:
    seed(("APP1", "he-IL", "b_key", "ב"), ("APP1", "he-IL", "a_key", "א"), ("APP2", "he-IL", "c_key", ""))
    view = GridView()
    view.reload()

    view.apply_filters(SearchFilters(resource_types=frozenset({"APP1"})))
    view.toggle_sort(KEY_COLUMN)
    window = view.window()

    assert [row["resource_key"] for row in window["rows"]] == ["a_key", "b_key"]
    assert window["filtered_count"] == 2
    assert window["total_count"] == 3
    assert window["sort"] == {"column": KEY_COLUMN, "direction": "asc"}
