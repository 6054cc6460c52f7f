"""HTTP payload schemas for the timeline API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from timelinemapper.core.contracts.timeline import TimelineEvent
from timelinemapper.timeline.navigator import TimelineNavigator


class TimelineStateOut(BaseModel):
    """Navigator state as seen by a client."""

    loading: bool
    filter_mode: bool
    cursor: int
    total: int = Field(description="Number of events, ignoring the filter")
    generation: int
    current_event: TimelineEvent | None = None
    visible_events: list[TimelineEvent] = Field(default_factory=list)

    @classmethod
    def from_navigator(cls, navigator: TimelineNavigator) -> TimelineStateOut:
        return cls(
            loading=navigator.loading,
            filter_mode=navigator.filter_mode,
            cursor=navigator.cursor,
            total=len(navigator),
            generation=navigator.generation,
            current_event=navigator.current_event,
            visible_events=list(navigator.visible_events),
        )


class FilterRequest(BaseModel):
    """Body of ``PUT /timeline/filter``."""

    enabled: bool


__all__ = ["TimelineStateOut", "FilterRequest"]
