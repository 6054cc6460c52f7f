"""Tests for the event builder."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from timelinemapper.core.contracts.config import QuerySpec, TimelineEventConfig
from timelinemapper.core.contracts.feature import FeatureRecord, PointGeometry
from timelinemapper.core.errors import CompileError, EvaluationError, SourceQueryError
from timelinemapper.sources import GeoJSONFeatureSource, QueryParams, QueryResult
from timelinemapper.timeline.builder import build_events, build_query

JAN_1 = 1577836800000  # 2020-01-01T00:00:00Z
JAN_2 = JAN_1 + 86_400_000
JAN_3 = JAN_2 + 86_400_000


def _record(oid: int, date: Any, name: str | None = "Quake", **extra: Any) -> FeatureRecord:
    return FeatureRecord(
        attributes={"OBJECTID": oid, "DATE": date, "NAME": name, **extra},
        geometry=PointGeometry(longitude=float(oid), latitude=-float(oid)),
    )


def _source(*records: FeatureRecord) -> GeoJSONFeatureSource:
    return GeoJSONFeatureSource(records, object_id_field="OBJECTID")


def _config(**overrides: Any) -> TimelineEventConfig:
    data: dict[str, Any] = {
        "dateField": "DATE",
        "titleExpression": "$feature.NAME",
        "dateFormat": "YYYY-MM-DD",
    }
    data.update(overrides)
    return TimelineEventConfig.model_validate(data)


def _build(source: Any, config: TimelineEventConfig) -> list[Any]:
    return asyncio.run(build_events(source, config))


class _BrokenSource:
    object_id_field = "OBJECTID"
    definition_expression: str | None = None

    async def query(self, params: QueryParams) -> QueryResult:
        raise ConnectionError("service unavailable")


class _UnorderedSource:
    """Ignores ordering and returns records exactly as given."""

    object_id_field = "OBJECTID"
    definition_expression: str | None = None

    def __init__(self, records: list[FeatureRecord]) -> None:
        self.records = records

    async def query(self, params: QueryParams) -> QueryResult:
        return QueryResult(records=self.records)


def test_build_query_shape() -> None:
    params = build_query(_config())
    assert params.where == "DATE is not null"
    assert params.out_fields == ["*"]
    assert params.return_geometry is True
    assert params.order_by_fields == ["DATE"]


def test_build_query_ands_configured_filter() -> None:
    params = build_query(_config(query={"where": "MAG > 5"}))
    assert params.where == "(DATE is not null) AND (MAG > 5)"


def test_null_dates_are_skipped_and_order_follows_dates() -> None:
    source = _source(
        _record(1, JAN_3, "C"),
        _record(2, None, "no date"),
        _record(3, JAN_1, "A"),
        _record(4, JAN_2, "B"),
    )
    events = _build(source, _config())
    assert [e.title for e in events] == ["A", "B", "C"]
    assert [e.object_id for e in events] == [3, 4, 1]
    assert [e.formatted_date for e in events] == ["2020-01-01", "2020-01-02", "2020-01-03"]
    assert events[0].date == JAN_1
    assert events[0].lon_lat == (3.0, -3.0)


def test_source_order_is_not_resorted() -> None:
    source = _UnorderedSource([_record(1, JAN_3, "C"), _record(2, JAN_1, "A")])
    events = _build(source, _config())
    assert [e.title for e in events] == ["C", "A"]


def test_null_date_is_skipped_even_if_source_returns_it() -> None:
    source = _UnorderedSource([_record(1, None), _record(2, JAN_1)])
    events = _build(source, _config())
    assert [e.object_id for e in events] == [2]


def test_epoch_zero_is_a_valid_date() -> None:
    events = _build(_source(_record(1, 0)), _config())
    assert events[0].formatted_date == "1970-01-01"


def test_unparseable_date_keeps_the_event() -> None:
    source = _UnorderedSource([_record(1, "01/15/2020", "a"), _record(2, "2020-01-02", "b")])
    events = _build(source, _config())
    assert [(e.title, e.formatted_date) for e in events] == [
        ("a", "Invalid Date"),
        ("b", "2020-01-02"),
    ]
    assert events[0].date is None
    assert events[1].date == JAN_2


def test_feature_without_the_date_property_is_skipped() -> None:
    collection = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"OBJECTID": i, "DATE": d, "NAME": f"E{i}"}}
            for i, d in enumerate((JAN_3, JAN_1, JAN_2), start=1)
        ]
        + [{"type": "Feature", "properties": {"OBJECTID": 4, "NAME": "no date key"}}],
    }
    events = _build(GeoJSONFeatureSource.from_geojson(collection), _config())
    assert [e.title for e in events] == ["E2", "E3", "E1"]


def test_iso_dates_are_converted_to_epoch_millis() -> None:
    events = _build(_source(_record(1, "2020-01-02T00:00:00Z")), _config())
    assert events[0].date == JAN_2
    assert events[0].formatted_date == "2020-01-02"


def test_standing_filter_is_set_on_the_source() -> None:
    source = _source(_record(1, JAN_1))
    _build(source, _config(query={"where": "NAME = 'Quake'"}))
    assert source.definition_expression == "(DATE is not null) AND (NAME = 'Quake')"


def test_configured_filter_narrows_the_events() -> None:
    source = _source(_record(1, JAN_1, MAG=4), _record(2, JAN_2, MAG=7))
    events = _build(source, _config(query=QuerySpec(where="MAG >= 6")))
    assert [e.object_id for e in events] == [2]


def test_source_failure_is_wrapped() -> None:
    with pytest.raises(SourceQueryError, match="service unavailable"):
        _build(_BrokenSource(), _config())


def test_invalid_configured_filter_is_a_source_error() -> None:
    with pytest.raises(SourceQueryError):
        _build(_source(_record(1, JAN_1)), _config(query={"where": "MAG >"}))


def test_title_failure_aborts_the_build() -> None:
    source = _source(
        _record(1, JAN_1),
        FeatureRecord(attributes={"OBJECTID": 2, "DATE": JAN_2}),
    )
    with pytest.raises(EvaluationError) as info:
        _build(source, _config())
    assert info.value.field == "title"
    assert info.value.object_id == 2


def test_subtitle_failure_only_blanks_that_field() -> None:
    source = _source(
        _record(1, JAN_1, MAG=6.1),
        _record(2, JAN_2),
    )
    events = _build(source, _config(subtitleExpression="concat('M', $feature.MAG)"))
    assert [e.subtitle for e in events] == ["M6.1", None]
    assert [e.title for e in events] == ["Quake", "Quake"]


def test_description_uses_script_mapping() -> None:
    source = _source(_record(1, JAN_1, NOTES=None), _record(2, JAN_2, NOTES="aftershock"))
    config = _config(
        descriptionExpression={"script": "default($feature.NOTES, 'No notes')"},
    )
    events = _build(source, config)
    assert [e.description for e in events] == ["No notes", "aftershock"]


def test_missing_optional_expressions_give_none() -> None:
    events = _build(_source(_record(1, JAN_1)), _config())
    assert events[0].subtitle is None
    assert events[0].description is None


def test_none_title_becomes_empty_string() -> None:
    events = _build(_source(_record(1, JAN_1, name=None)), _config())
    assert events[0].title == ""


def test_non_text_title_is_stringified() -> None:
    events = _build(_source(_record(1, JAN_1)), _config(titleExpression="$feature.OBJECTID"))
    assert events[0].title == "1"


def test_identity_prefers_record_id_then_attribute() -> None:
    source = _source(
        FeatureRecord(attributes={"OBJECTID": 1, "DATE": JAN_1, "NAME": "a"}, object_id="f-1"),
        FeatureRecord(attributes={"OBJECTID": 2, "DATE": JAN_2, "NAME": "b"}),
    )
    events = _build(source, _config())
    assert [e.object_id for e in events] == ["f-1", 2]


def test_missing_geometry_gives_no_location() -> None:
    source = _source(FeatureRecord(attributes={"OBJECTID": 1, "DATE": JAN_1, "NAME": "a"}))
    events = _build(source, _config())
    assert events[0].lon_lat is None


def test_compile_error_is_raised_before_any_event() -> None:
    with pytest.raises(CompileError):
        _build(_source(_record(1, JAN_1)), _config(titleExpression="$feature.NAME +"))


def test_empty_source_gives_empty_timeline() -> None:
    assert _build(_source(), _config()) == []
