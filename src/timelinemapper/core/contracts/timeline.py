"""TimelineEvent: one dated, located entry derived from a feature."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TimelineEvent(BaseModel):
    """A single event on the timeline.

    Events are created once per qualifying feature during extraction and
    never mutated afterwards; a reload replaces the whole list.
    """

    model_config = ConfigDict(frozen=True)

    object_id: int | str | None = Field(description="Identity of the source feature")
    title: str
    subtitle: str | None = Field(default=None)
    description: str | None = Field(default=None)
    date: int | float | None = Field(
        description="Event time as epoch milliseconds; None when the raw value is unparseable"
    )
    formatted_date: str
    lon_lat: tuple[float, float] | None = Field(default=None)


__all__ = ["TimelineEvent"]
