"""Configuration contracts for timeline extraction and app registries.

Timeline app configs (JSON or YAML) use camelCase keys
(``dateField``, ``titleExpression``...). Every model here accepts those
aliases as well as the snake_case field names.

- :class:`TimelineEventConfig`: drives the event builder.
- :class:`AppConfig`: one deployable timeline (title, source, timeline).
- :class:`ConfigRegistry`: the list of available apps.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .expression import ExpressionSpec


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class QuerySpec(_CamelModel):
    """Caller-supplied query options merged into the extraction query."""

    where: str | None = Field(default=None, description="Extra filter AND-ed with the date filter")


class TimelineEventConfig(_CamelModel):
    """Which field carries the date and how to derive each display field."""

    date_field: str = Field(min_length=1)
    title_expression: ExpressionSpec
    subtitle_expression: ExpressionSpec | None = None
    description_expression: ExpressionSpec | None = None
    date_format: str | None = None
    query: QuerySpec | None = None
    utc: bool = True

    @field_validator(
        "title_expression",
        "subtitle_expression",
        "description_expression",
        mode="before",
    )
    @classmethod
    def _coerce_expression(cls, value: Any) -> Any:
        if isinstance(value, str | Mapping):
            return ExpressionSpec.coerce(value)
        return value


class AppInfo(_CamelModel):
    """Deployment metadata."""

    title: str


class SourceConfig(_CamelModel):
    """Where the features come from (a GeoJSON file relative to the config)."""

    path: str
    object_id_field: str = "OBJECTID"


class AppConfig(_CamelModel):
    """A complete timeline application configuration."""

    app: AppInfo
    source: SourceConfig
    timeline: TimelineEventConfig


class RegistryItem(_CamelModel):
    """One registered app: an id, a display name and a config path."""

    id: str
    name: str
    path: str


class ConfigRegistry(_CamelModel):
    """All registered apps."""

    apps: list[RegistryItem] = Field(default_factory=list)


__all__ = [
    "QuerySpec",
    "TimelineEventConfig",
    "AppInfo",
    "SourceConfig",
    "AppConfig",
    "RegistryItem",
    "ConfigRegistry",
]
