"""In-memory feature source backed by a GeoJSON FeatureCollection.

The source behaves like a feature-service layer:

- ``where`` clauses and the standing ``definition_expression`` are both
  applied to every query; a property a feature omits reads as NULL,
- ``out_fields`` trims attributes (``"*"`` keeps all of them),
- ``return_geometry`` controls whether geometries are returned,
- ``order_by_fields`` sorts by one or more fields (``"DATE DESC"``), with
  nulls last.

Any failure (bad clause, unknown field, incomparable values) is raised as
:class:`~timelinemapper.core.errors.SourceQueryError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from timelinemapper.core.contracts.feature import FeatureRecord
from timelinemapper.core.errors import SourceQueryError
from timelinemapper.core.settings import get_logger
from timelinemapper.geometry import geometry_from_geojson

from .base import QueryParams, QueryResult
from .where import WhereSyntaxError, parse_where

_logger = get_logger("timelinemapper.sources.geojson")


def _record_from_geojson(feature: Mapping[str, Any]) -> FeatureRecord:
    return FeatureRecord(
        attributes=dict(feature.get("properties") or {}),
        geometry=geometry_from_geojson(feature.get("geometry")),
        object_id=feature.get("id"),
    )


def _sort_records(records: list[FeatureRecord], order_by: Sequence[str]) -> list[FeatureRecord]:
    """Stable multi-key sort; later keys are applied first."""
    out = list(records)
    for spec in reversed(order_by):
        parts = spec.split()
        if not parts:
            continue
        field = parts[0]
        descending = len(parts) > 1 and parts[1].upper() == "DESC"
        present = [r for r in out if r.attributes.get(field) is not None]
        missing = [r for r in out if r.attributes.get(field) is None]
        present.sort(key=lambda r: r.attributes[field], reverse=descending)
        out = present + missing
    return out


class GeoJSONFeatureSource:
    """A :class:`~timelinemapper.sources.base.Queryable` over in-memory features."""

    def __init__(
        self,
        records: Sequence[FeatureRecord],
        *,
        object_id_field: str = "OBJECTID",
        definition_expression: str | None = None,
    ) -> None:
        self._records = list(records)
        self.object_id_field = object_id_field
        self.definition_expression = definition_expression

    @classmethod
    def from_geojson(
        cls,
        collection: Mapping[str, Any],
        *,
        object_id_field: str = "OBJECTID",
    ) -> GeoJSONFeatureSource:
        """Build a source from a parsed FeatureCollection mapping."""
        if collection.get("type") != "FeatureCollection":
            raise ValueError("expected a GeoJSON FeatureCollection")
        records = [_record_from_geojson(f) for f in collection.get("features") or []]
        return cls(records, object_id_field=object_id_field)

    @classmethod
    def from_file(cls, path: Path | str, *, object_id_field: str = "OBJECTID") -> GeoJSONFeatureSource:
        """Load a FeatureCollection from ``path``."""
        with open(path, encoding="utf-8") as f:
            collection = json.load(f)
        return cls.from_geojson(collection, object_id_field=object_id_field)

    def __len__(self) -> int:
        return len(self._records)

    async def query(self, params: QueryParams) -> QueryResult:
        """Filter, sort and project the in-memory records for ``params``."""
        try:
            clause = parse_where(params.where)
            standing = parse_where(self.definition_expression)
            self._check_fields(clause.fields | standing.fields)
            matched = [
                r for r in self._records if standing(r.attributes) and clause(r.attributes)
            ]
            ordered = _sort_records(matched, params.order_by_fields)
        except WhereSyntaxError as exc:
            raise SourceQueryError(f"invalid where clause: {exc}") from exc
        except TypeError as exc:
            raise SourceQueryError(f"cannot order results: {exc}") from exc

        _logger.debug(
            "query where=%r standing=%r -> %d of %d records",
            params.where,
            self.definition_expression,
            len(ordered),
            len(self._records),
        )
        return QueryResult(records=[self._project(r, params) for r in ordered])

    def _check_fields(self, fields: frozenset[str]) -> None:
        """Reject field names that no record in the collection carries."""
        if not self._records:
            return
        known = {key.lower() for r in self._records for key in r.attributes}
        unknown = sorted(f for f in fields if f.lower() not in known)
        if unknown:
            raise SourceQueryError(f"unknown field in where clause: {', '.join(unknown)}")

    def _project(self, record: FeatureRecord, params: QueryParams) -> FeatureRecord:
        if "*" in params.out_fields:
            attributes = dict(record.attributes)
        else:
            wanted = set(params.out_fields) | {self.object_id_field}
            attributes = {k: v for k, v in record.attributes.items() if k in wanted}
        return FeatureRecord(
            attributes=attributes,
            geometry=record.geometry if params.return_geometry else None,
            object_id=record.object_id,
        )


__all__ = ["GeoJSONFeatureSource"]
