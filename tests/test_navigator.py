"""State-machine tests for TimelineNavigator."""

from __future__ import annotations

import pytest

from timelinemapper.core.contracts.timeline import TimelineEvent
from timelinemapper.timeline.navigator import TimelineNavigator


def _events(n: int) -> list[TimelineEvent]:
    return [
        TimelineEvent(object_id=i, title=f"E{i}", date=i * 1000, formatted_date=str(i))
        for i in range(n)
    ]


@pytest.fixture  # type: ignore[misc]
def nav() -> TimelineNavigator:
    navigator = TimelineNavigator()
    navigator.load(_events(4))
    return navigator


def test_initial_state() -> None:
    navigator = TimelineNavigator()
    assert navigator.loading is True
    assert navigator.events == ()
    assert navigator.cursor == 0
    assert navigator.filter_mode is False
    assert navigator.current_event is None
    assert navigator.visible_events == ()


def test_load_resets_cursor_and_clears_loading(nav: TimelineNavigator) -> None:
    nav.goto(2)
    nav.load(_events(2))
    assert nav.cursor == 0
    assert nav.loading is False
    assert len(nav) == 2
    assert nav.current_event is not None and nav.current_event.title == "E0"


def test_next_stops_at_the_last_event(nav: TimelineNavigator) -> None:
    moves = [nav.next() for _ in range(10)]
    assert nav.cursor == 3
    assert moves.count(True) == 3
    assert nav.is_last


def test_previous_is_a_noop_at_the_start(nav: TimelineNavigator) -> None:
    assert nav.previous() is False
    assert nav.cursor == 0
    assert nav.is_first


def test_next_then_previous_returns_to_the_same_index(nav: TimelineNavigator) -> None:
    nav.goto(1)
    nav.next()
    nav.previous()
    assert nav.cursor == 1


def test_navigation_on_empty_timeline_is_a_noop() -> None:
    navigator = TimelineNavigator()
    navigator.load([])
    assert navigator.next() is False
    assert navigator.previous() is False
    assert navigator.cursor == 0
    assert navigator.current_event is None


@pytest.mark.parametrize("index", [-1, 4, 100])  # type: ignore[misc]
def test_goto_out_of_range_does_not_move(nav: TimelineNavigator, index: int) -> None:
    nav.goto(2)
    with pytest.raises(IndexError):
        nav.goto(index)
    assert nav.cursor == 2


def test_filter_mode_shows_prefix_up_to_cursor(nav: TimelineNavigator) -> None:
    nav.goto(2)
    nav.set_filter_mode(True)
    assert [e.title for e in nav.visible_events] == ["E0", "E1", "E2"]
    assert nav.cursor == 2
    assert nav.toggle_filter() is False
    assert len(nav.visible_events) == 4
    assert nav.cursor == 2


def test_filter_mode_persists_across_loads(nav: TimelineNavigator) -> None:
    nav.set_filter_mode(True)
    nav.load(_events(3))
    assert nav.filter_mode is True
    assert [e.title for e in nav.visible_events] == ["E0"]


def test_observers_receive_effective_changes(nav: TimelineNavigator) -> None:
    seen: list[tuple[str, int]] = []
    unsubscribe = nav.subscribe(lambda change, n: seen.append((change, n.cursor)))

    nav.next()
    nav.previous()
    nav.previous()  # no-op, no notification
    nav.set_filter_mode(False)  # unchanged, no notification
    nav.toggle_filter()
    unsubscribe()
    nav.next()

    assert seen == [("cursor", 1), ("cursor", 0), ("filter", 0)]


def test_stale_generation_is_discarded() -> None:
    navigator = TimelineNavigator()
    first = navigator.begin_loading()
    second = navigator.begin_loading()

    assert navigator.load(_events(2), second) is True
    assert navigator.load(_events(5), first) is False
    assert len(navigator) == 2
    assert navigator.loading is False


def test_unconditional_load_supersedes_in_flight_extraction() -> None:
    navigator = TimelineNavigator()
    token = navigator.begin_loading()
    assert navigator.load(_events(1)) is True
    assert navigator.load(_events(3), token) is False
    assert len(navigator) == 1


def test_abort_keeps_previous_events(nav: TimelineNavigator) -> None:
    nav.goto(3)
    token = nav.begin_loading()
    assert nav.loading is True
    assert nav.abort_loading(token) is True
    assert nav.loading is False
    assert len(nav) == 4
    assert nav.cursor == 3


def test_stale_abort_is_ignored(nav: TimelineNavigator) -> None:
    old = nav.begin_loading()
    nav.begin_loading()
    assert nav.abort_loading(old) is False
    assert nav.loading is True


def test_state_snapshot_is_immutable(nav: TimelineNavigator) -> None:
    snapshot = nav.state
    nav.next()
    assert snapshot.cursor == 0
    assert nav.state.cursor == 1
