"""Feature sources the timeline can be extracted from."""

from __future__ import annotations

from .base import QueryParams, QueryResult, Queryable
from .geojson import GeoJSONFeatureSource
from .where import WhereClause, WhereSyntaxError, parse_where

__all__ = [
    "QueryParams",
    "QueryResult",
    "Queryable",
    "GeoJSONFeatureSource",
    "WhereClause",
    "WhereSyntaxError",
    "parse_where",
]
