"""Geometry normalisation: every supported shape becomes one lon/lat pair.

Two entry points:

- :func:`geometry_from_geojson` turns a GeoJSON geometry mapping into one of
  the tagged variants from :mod:`timelinemapper.core.contracts.feature`.
  Areal shapes are reduced to their centroid with shapely.
- :func:`extract_lon_lat` reads the event location off a variant.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import shape

from timelinemapper.core.contracts.feature import (
    ArealGeometry,
    Geometry,
    PointGeometry,
    UnsupportedGeometry,
)

_AREAL_TYPES = frozenset({"Polygon", "MultiPolygon"})


def geometry_from_geojson(raw: Mapping[str, Any] | None) -> Geometry | None:
    """Build a tagged geometry from a GeoJSON geometry object.

    Returns ``None`` for a missing geometry. Malformed or unhandled shapes
    become :class:`UnsupportedGeometry` rather than raising.
    """
    if not raw:
        return None
    geom_type = str(raw.get("type", "Unknown"))

    if geom_type == "Point":
        coords = raw.get("coordinates") or []
        if len(coords) < 2:
            return UnsupportedGeometry(geometry_type=geom_type)
        return PointGeometry(longitude=float(coords[0]), latitude=float(coords[1]))

    if geom_type in _AREAL_TYPES:
        try:
            centroid = shape(raw).centroid
        except (ShapelyError, ValueError, TypeError, KeyError, IndexError):
            return UnsupportedGeometry(geometry_type=geom_type)
        if centroid.is_empty:
            return UnsupportedGeometry(geometry_type=geom_type)
        return ArealGeometry(longitude=centroid.x, latitude=centroid.y, shape_type=geom_type)

    return UnsupportedGeometry(geometry_type=geom_type)


def extract_lon_lat(geometry: Geometry | None) -> tuple[float, float] | None:
    """Return ``(longitude, latitude)`` for a point or areal geometry.

    Absent and unsupported geometries yield ``None``; the event that owns
    them is still kept, it just has no location.
    """
    if isinstance(geometry, PointGeometry | ArealGeometry):
        return (geometry.longitude, geometry.latitude)
    return None


__all__ = ["geometry_from_geojson", "extract_lon_lat"]
