"""Tests for geometry normalisation and lon/lat extraction."""

from __future__ import annotations

import pytest

from timelinemapper.core.contracts.feature import (
    ArealGeometry,
    PointGeometry,
    UnsupportedGeometry,
)
from timelinemapper.geometry import extract_lon_lat, geometry_from_geojson


def test_point_returns_its_position() -> None:
    assert extract_lon_lat(PointGeometry(longitude=10, latitude=20)) == (10, 20)


def test_areal_returns_centroid() -> None:
    assert extract_lon_lat(ArealGeometry(longitude=5, latitude=6)) == (5, 6)


def test_absent_and_unsupported_yield_none() -> None:
    assert extract_lon_lat(None) is None
    assert extract_lon_lat(UnsupportedGeometry(geometry_type="LineString")) is None


def test_geojson_point() -> None:
    geom = geometry_from_geojson({"type": "Point", "coordinates": [10, 20]})
    assert isinstance(geom, PointGeometry)
    assert extract_lon_lat(geom) == (10.0, 20.0)


def test_geojson_polygon_uses_shapely_centroid() -> None:
    square = {
        "type": "Polygon",
        "coordinates": [[[4, 5], [6, 5], [6, 7], [4, 7], [4, 5]]],
    }
    geom = geometry_from_geojson(square)
    assert isinstance(geom, ArealGeometry)
    assert geom.shape_type == "Polygon"
    assert extract_lon_lat(geom) == pytest.approx((5.0, 6.0))


def test_geojson_multipolygon_centroid() -> None:
    multi = {
        "type": "MultiPolygon",
        "coordinates": [
            [[[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]]],
            [[[8, 0], [10, 0], [10, 2], [8, 2], [8, 0]]],
        ],
    }
    geom = geometry_from_geojson(multi)
    assert isinstance(geom, ArealGeometry)
    assert extract_lon_lat(geom) == pytest.approx((5.0, 1.0))


def test_geojson_other_kinds_are_unsupported() -> None:
    line = geometry_from_geojson({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})
    assert isinstance(line, UnsupportedGeometry)
    assert line.geometry_type == "LineString"
    assert geometry_from_geojson(None) is None
    assert isinstance(geometry_from_geojson({"type": "Point", "coordinates": []}), UnsupportedGeometry)
