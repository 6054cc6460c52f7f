"""Event extraction and navigation."""

from __future__ import annotations

from .builder import build_events, build_query
from .navigator import NavigatorState, TimelineNavigator
from .session import TimelineSession

__all__ = [
    "build_events",
    "build_query",
    "NavigatorState",
    "TimelineNavigator",
    "TimelineSession",
]
