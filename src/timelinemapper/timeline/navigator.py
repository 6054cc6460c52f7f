"""
Timeline navigator: cursor, filter mode and loading state over events.

State machine
-------------
- Initial: no events, cursor 0, filter mode off, loading on.
- ``begin_loading()`` marks an extraction in flight and returns a
  generation token.
- ``load(events, generation)`` replaces the list, resets the cursor and
  clears ``loading``. A token from a superseded extraction is discarded.
- ``abort_loading(generation)`` ends a failed extraction; the previous
  events stay in place.
- ``next()`` / ``previous()`` stop at the ends; ``goto(i)`` jumps.
- ``set_filter_mode()`` / ``toggle_filter()`` never move the cursor.

Invariant: whenever events exist, ``0 <= cursor < len(events)``.

Observers registered with :meth:`TimelineNavigator.subscribe` are called
with ``(change, navigator)`` after every effective transition, where
``change`` is one of ``"loading"``, ``"loaded"``, ``"aborted"``,
``"cursor"`` or ``"filter"``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from timelinemapper.core.contracts.timeline import TimelineEvent
from timelinemapper.core.settings import get_logger

_logger = get_logger("timelinemapper.timeline.navigator")

Observer = Callable[[str, "TimelineNavigator"], None]


@dataclass(frozen=True, slots=True)
class NavigatorState:
    """Immutable snapshot of a navigator."""

    events: tuple[TimelineEvent, ...] = ()
    cursor: int = 0
    filter_mode: bool = False
    loading: bool = True
    generation: int = 0


class TimelineNavigator:
    """Single-writer state container for one timeline.

    Each instance is independent; create one per timeline (or per test).
    """

    __slots__ = ("_state", "_observers")

    def __init__(self) -> None:
        self._state = NavigatorState()
        self._observers: list[Observer] = []

    # ------------------------------- Observers -----------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _commit(self, state: NavigatorState, change: str) -> None:
        self._state = state
        for observer in tuple(self._observers):
            observer(change, self)

    # ------------------------------- Read API ------------------------------

    @property
    def state(self) -> NavigatorState:
        """Return the current immutable snapshot."""
        return self._state

    @property
    def events(self) -> tuple[TimelineEvent, ...]:
        return self._state.events

    @property
    def cursor(self) -> int:
        return self._state.cursor

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def filter_mode(self) -> bool:
        return self._state.filter_mode

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def current_event(self) -> TimelineEvent | None:
        """The event under the cursor, or None when there are no events."""
        if not self._state.events:
            return None
        return self._state.events[self._state.cursor]

    @property
    def visible_events(self) -> tuple[TimelineEvent, ...]:
        """All events, or only those up to and including the cursor in filter mode."""
        if not self._state.filter_mode:
            return self._state.events
        return self._state.events[: self._state.cursor + 1]

    @property
    def is_first(self) -> bool:
        return self._state.cursor == 0

    @property
    def is_last(self) -> bool:
        return self._state.cursor >= len(self._state.events) - 1

    def __len__(self) -> int:
        return len(self._state.events)

    # ------------------------------- Loading -------------------------------

    def begin_loading(self) -> int:
        """Mark an extraction as started and return its generation token."""
        generation = self._state.generation + 1
        self._commit(replace(self._state, loading=True, generation=generation), "loading")
        return generation

    def load(self, events: Sequence[TimelineEvent], generation: int | None = None) -> bool:
        """Replace the event list and reset the cursor.

        Parameters
        ----------
        events:
            The complete new list; nothing is merged with the old one.
        generation:
            Token from :meth:`begin_loading`. A token older than the latest
            one belongs to a superseded extraction and is discarded. ``None``
            loads unconditionally and supersedes any extraction in flight.

        Returns
        -------
        bool
            ``True`` if the events were applied.
        """
        if generation is None:
            generation = self._state.generation + 1
        elif generation != self._state.generation:
            _logger.info(
                "discarding stale load (generation %d, current %d)",
                generation,
                self._state.generation,
            )
            return False

        state = replace(
            self._state,
            events=tuple(events),
            cursor=0,
            loading=False,
            generation=generation,
        )
        self._commit(state, "loaded")
        return True

    def abort_loading(self, generation: int) -> bool:
        """End a failed extraction without touching the current events."""
        if generation != self._state.generation:
            return False
        self._commit(replace(self._state, loading=False), "aborted")
        return True

    # ------------------------------- Cursor --------------------------------

    def next(self) -> bool:
        """Advance the cursor; a no-op on the last event. Returns True if it moved."""
        if self.is_last:
            return False
        self._commit(replace(self._state, cursor=self._state.cursor + 1), "cursor")
        return True

    def previous(self) -> bool:
        """Step back; a no-op on the first event. Returns True if it moved."""
        if self._state.cursor == 0:
            return False
        self._commit(replace(self._state, cursor=self._state.cursor - 1), "cursor")
        return True

    def goto(self, index: int) -> None:
        """Move the cursor to ``index``.

        Raises
        ------
        IndexError
            If ``index`` is outside the event list; the cursor does not move.
        """
        if not 0 <= index < len(self._state.events):
            raise IndexError(f"event index {index} out of range (0..{len(self) - 1})")
        if index != self._state.cursor:
            self._commit(replace(self._state, cursor=index), "cursor")

    # ------------------------------- Filter --------------------------------

    def set_filter_mode(self, enabled: bool) -> None:
        """Show only events up to the cursor when ``enabled``."""
        if enabled != self._state.filter_mode:
            self._commit(replace(self._state, filter_mode=enabled), "filter")

    def toggle_filter(self) -> bool:
        """Flip filter mode and return the new value."""
        self.set_filter_mode(not self._state.filter_mode)
        return self._state.filter_mode


__all__ = ["NavigatorState", "TimelineNavigator", "Observer"]
