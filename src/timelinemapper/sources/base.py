"""Feature-source contracts: the query shape and the `Queryable` protocol.

Any map/feature-query layer can back a timeline as long as it:

- answers ``await query(params)`` with a :class:`QueryResult`,
- honours ``where``, field selection, geometry inclusion and ordering,
- exposes a settable ``definition_expression`` (the standing filter), and
- names the attribute holding object ids in ``object_id_field``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from timelinemapper.core.contracts.feature import FeatureRecord


class QueryParams(BaseModel):
    """A feature query."""

    where: str = Field(default="1=1", description="SQL-like filter clause")
    out_fields: list[str] = Field(default_factory=lambda: ["*"])
    return_geometry: bool = False
    order_by_fields: list[str] = Field(
        default_factory=list,
        description="Field names, optionally suffixed with ASC/DESC",
    )


class QueryResult(BaseModel):
    """Records returned by a source for one query."""

    records: list[FeatureRecord] = Field(default_factory=list)


@runtime_checkable
class Queryable(Protocol):
    """What the event builder needs from a feature source."""

    object_id_field: str
    definition_expression: str | None

    async def query(self, params: QueryParams) -> QueryResult:
        """Run ``params`` against the source."""
        ...


__all__ = ["QueryParams", "QueryResult", "Queryable"]
