from __future__ import annotations

import pytest

from comax.grid.pagination import PaginationController, immediate_scheduler


class ManualScheduler:
    """Collects scheduled callbacks so a test decides when the delay elapses."""

    def __init__(self) -> None:
        self.pending = []

    def __call__(self, delay, callback) -> None:
        self.pending.append((delay, callback))

    def fire_all(self) -> None:
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


def test_initial_window_is_one_page() -> None:
    controller = PaginationController(page_size=50, scheduler=immediate_scheduler)
    controller.set_source(list(range(120)))

    assert controller.displayed_count == 50
    assert controller.visible() == list(range(50))
    assert controller.has_more


def test_small_result_shows_everything() -> None:
    controller = PaginationController(page_size=50, scheduler=immediate_scheduler)
    controller.set_source(list(range(10)))

    assert controller.displayed_count == 10
    assert not controller.has_more
    assert controller.on_sentinel_visible() is False


def test_sentinel_reveals_next_page_until_exhausted() -> None:
    controller = PaginationController(page_size=50, scheduler=immediate_scheduler)
    controller.set_source(list(range(120)))

    assert controller.on_sentinel_visible() is True
    assert controller.displayed_count == 100
    assert controller.on_sentinel_visible() is True
    assert controller.displayed_count == 120
    assert controller.on_sentinel_visible() is False


def test_only_one_load_in_flight() -> None:
    scheduler = ManualScheduler()
    controller = PaginationController(page_size=50, delay=0.3, scheduler=scheduler)
    controller.set_source(list(range(200)))

    assert controller.on_sentinel_visible() is True
    assert controller.is_loading
    assert controller.on_sentinel_visible() is False
    assert len(scheduler.pending) == 1
    assert scheduler.pending[0][0] == 0.3

    scheduler.fire_all()
    assert controller.displayed_count == 100
    assert not controller.is_loading


def test_new_result_set_resets_window_and_drops_stale_load() -> None:
    scheduler = ManualScheduler()
    controller = PaginationController(page_size=50, scheduler=scheduler)
    controller.set_source(list(range(200)))
    controller.on_sentinel_visible()

    controller.set_source(list(range(80)))
    scheduler.fire_all()

    assert controller.displayed_count == 50
    assert not controller.is_loading


def test_same_source_object_keeps_window() -> None:
    rows = list(range(200))
    controller = PaginationController(page_size=50, scheduler=immediate_scheduler)
    controller.set_source(rows)
    controller.on_sentinel_visible()

    controller.set_source(rows)
    assert controller.displayed_count == 100


def test_preserve_window_is_bounded_by_new_total() -> None:
    controller = PaginationController(page_size=50, scheduler=immediate_scheduler)
    controller.set_source(list(range(200)))
    controller.on_sentinel_visible()

    controller.set_source(list(range(70)), preserve_window=True)
    assert controller.displayed_count == 70

    controller.set_source(list(range(300)), preserve_window=True)
    assert controller.displayed_count == 70


def test_displayed_count_never_exceeds_total() -> None:
    controller = PaginationController(page_size=7, scheduler=immediate_scheduler)
    controller.set_source(list(range(30)))
    while controller.on_sentinel_visible():
        assert controller.displayed_count <= controller.total
    assert controller.displayed_count == 30
    assert controller.visible() == list(range(30))


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PaginationController(page_size=0)
