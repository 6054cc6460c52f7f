"""Tests for the in-memory GeoJSON feature source."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from timelinemapper.core.contracts.feature import ArealGeometry, PointGeometry
from timelinemapper.core.errors import SourceQueryError
from timelinemapper.sources import GeoJSONFeatureSource, QueryParams, Queryable

COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "id": 30,
            "properties": {"OBJECTID": 3, "DATE": 300, "KIND": "b"},
            "geometry": {"type": "Point", "coordinates": [1, 2]},
        },
        {
            "type": "Feature",
            "properties": {"OBJECTID": 1, "DATE": 100, "KIND": "a"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]]],
            },
        },
        {
            "type": "Feature",
            "properties": {"OBJECTID": 2, "DATE": None, "KIND": "a"},
            "geometry": None,
        },
        {
            "type": "Feature",
            "properties": {"OBJECTID": 4, "DATE": 200, "KIND": "a"},
            "geometry": {"type": "Point", "coordinates": [5, 6]},
        },
    ],
}


def _source() -> GeoJSONFeatureSource:
    return GeoJSONFeatureSource.from_geojson(COLLECTION)


def _query(source: GeoJSONFeatureSource, **kwargs: object) -> list[dict[str, object]]:
    result = asyncio.run(source.query(QueryParams(**kwargs)))  # type: ignore[arg-type]
    return [r.attributes for r in result.records]


def test_source_satisfies_protocol() -> None:
    assert isinstance(_source(), Queryable)


def test_where_and_order_by() -> None:
    rows = _query(_source(), where="DATE is not null", order_by_fields=["DATE"])
    assert [r["OBJECTID"] for r in rows] == [1, 4, 3]


def test_descending_order_puts_nulls_last() -> None:
    rows = _query(_source(), order_by_fields=["DATE DESC"])
    assert [r["OBJECTID"] for r in rows] == [3, 4, 1, 2]


def test_ascending_order_puts_nulls_last() -> None:
    rows = _query(_source(), order_by_fields=["DATE"])
    assert [r["OBJECTID"] for r in rows] == [1, 4, 3, 2]


def test_standing_filter_is_applied_to_every_query() -> None:
    source = _source()
    source.definition_expression = "KIND = 'a'"
    rows = _query(source, where="DATE is not null", order_by_fields=["DATE"])
    assert [r["OBJECTID"] for r in rows] == [1, 4]


def test_field_selection_keeps_object_id() -> None:
    rows = _query(_source(), out_fields=["KIND"])
    assert all(set(r) == {"KIND", "OBJECTID"} for r in rows)


def test_geometry_only_when_requested() -> None:
    source = _source()
    bare = asyncio.run(source.query(QueryParams(order_by_fields=["OBJECTID"])))
    assert all(r.geometry is None for r in bare.records)

    full = asyncio.run(
        source.query(QueryParams(return_geometry=True, order_by_fields=["OBJECTID"]))
    )
    kinds = [type(r.geometry) for r in full.records]
    assert kinds == [ArealGeometry, type(None), PointGeometry, PointGeometry]


def test_feature_id_becomes_object_id() -> None:
    result = asyncio.run(_source().query(QueryParams(order_by_fields=["OBJECTID"])))
    assert [r.get_object_id() for r in result.records] == [None, None, 30, None]


@pytest.mark.parametrize("where", ["DATE >", "MISSING = 1"])  # type: ignore[misc]
def test_bad_queries_raise_source_query_error(where: str) -> None:
    with pytest.raises(SourceQueryError):
        _query(_source(), where=where)


def test_incomparable_order_values_raise_source_query_error() -> None:
    source = GeoJSONFeatureSource.from_geojson(
        {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {"DATE": 1}, "geometry": None},
                {"type": "Feature", "properties": {"DATE": "x"}, "geometry": None},
            ],
        }
    )
    with pytest.raises(SourceQueryError):
        _query(source, order_by_fields=["DATE"])


def test_from_file(tmp_path: Path) -> None:
    path = tmp_path / "features.geojson"
    path.write_text(json.dumps(COLLECTION), encoding="utf-8")
    source = GeoJSONFeatureSource.from_file(path, object_id_field="OBJECTID")
    assert len(source) == 4
    assert source.object_id_field == "OBJECTID"


def test_rejects_non_collections() -> None:
    with pytest.raises(ValueError):
        GeoJSONFeatureSource.from_geojson({"type": "Feature"})


def test_omitted_property_reads_as_null() -> None:
    collection = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"OBJECTID": 1, "DATE": 100}, "geometry": None},
            {"type": "Feature", "properties": {"OBJECTID": 2}, "geometry": None},
        ],
    }
    source = GeoJSONFeatureSource.from_geojson(collection)
    assert [r["OBJECTID"] for r in _query(source, where="DATE is not null")] == [1]
    assert [r["OBJECTID"] for r in _query(source, where="DATE is null")] == [2]


def test_unknown_field_is_reported_once_per_query() -> None:
    with pytest.raises(SourceQueryError, match="unknown field in where clause: MISSING"):
        _query(_source(), where="MISSING = 1 OR KIND = 'a'")


def test_unknown_field_in_standing_filter_is_reported() -> None:
    source = _source()
    source.definition_expression = "KINDS = 'a'"
    with pytest.raises(SourceQueryError, match="KINDS"):
        _query(source)
