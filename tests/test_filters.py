from __future__ import annotations

from comax.grid.aggregator import LocalizationRow, TranslationCell
from comax.grid.filters import ALL, SearchFilters, filter_rows


def _row(key: str, resource_type: str = "APP1", **values: str) -> LocalizationRow:
    translations = {
        code.replace("_", "-"): TranslationCell(id=index, value=value)
        for index, (code, value) in enumerate(values.items(), start=1)
    }
    return LocalizationRow(resource_key=key, resource_type=resource_type, translations=translations)


def _rows():
    return [
        _row("Greeting.Title", he_IL="שלום", en_US="Hello"),
        _row("farewell", "APP2", he_IL="להתראות", en_US="   "),
        _row("menu.save", he_IL="שמור"),
    ]


def test_identity_filter_returns_all_rows_in_order() -> None:
    rows = _rows()
    result = filter_rows(rows, SearchFilters())

    assert result == rows
    assert result is not rows


def test_key_filter_is_case_insensitive_substring() -> None:
    result = filter_rows(_rows(), SearchFilters(resource_key="greeting"))
    assert [row.resource_key for row in result] == ["Greeting.Title"]


def test_value_filter_matches_any_culture() -> None:
    result = filter_rows(_rows(), SearchFilters(resource_value="HELLO"))
    assert [row.resource_key for row in result] == ["Greeting.Title"]

    result = filter_rows(_rows(), SearchFilters(resource_value="שמור"))
    assert [row.resource_key for row in result] == ["menu.save"]


def test_resource_type_filter() -> None:
    result = filter_rows(_rows(), SearchFilters(resource_types=frozenset({"APP2"})))
    assert [row.resource_key for row in result] == ["farewell"]


def test_only_empty_values_matches_blank_in_any_culture() -> None:
    result = filter_rows(_rows(), SearchFilters(only_empty_values=True))

    # menu.save has no en-US record at all, which is not a blank value
    assert [row.resource_key for row in result] == ["farewell"]


def test_only_empty_values_scoped_to_cultures_counts_absent_cells() -> None:
    filters = SearchFilters(only_empty_values=True, cultures=("en-US",))
    result = filter_rows(_rows(), filters)
    assert [row.resource_key for row in result] == ["farewell", "menu.save"]


def test_predicates_are_conjunctive() -> None:
    filters = SearchFilters(resource_types=frozenset({"APP1"}), resource_value="שלום", resource_key="menu")
    assert filter_rows(_rows(), filters) == []


def test_filters_never_mutate_rows() -> None:
    rows = _rows()
    before = [row.to_dict() for row in rows]
    filter_rows(rows, SearchFilters(resource_value="x", only_empty_values=True))
    assert [row.to_dict() for row in rows] == before


def test_from_dict_parses_request_values() -> None:
    filters = SearchFilters.from_dict({
        "resource_types": "APP1, APP2",
        "resource_key": "greet",
        "only_empty_values": "true",
        "cultures": "en-US,ro-RO",
    })

    assert filters.resource_types == frozenset({"APP1", "APP2"})
    assert filters.resource_key == "greet"
    assert filters.only_empty_values is True
    assert filters.cultures == ("en-US", "ro-RO")


def test_from_dict_all_means_no_type_filter() -> None:
    assert SearchFilters.from_dict({"resource_types": ALL}).resource_types == ALL
    assert SearchFilters.from_dict({}).is_identity()


def test_filtering_twice_gives_the_same_result() -> None:
    filters = SearchFilters(resource_value="ל", only_empty_values=True)
    once = filter_rows(_rows(), filters)
    assert filter_rows(once, filters) == once
