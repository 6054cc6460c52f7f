"""
Event builder: from a feature source + config to an ordered event list.

Flow
----
1. Build a query: ``"<date_field> is not null"`` AND-ed with any configured
   filter, all fields, geometry included, ordered by the date field.
2. Run it against the source. A failure is raised as
   :class:`SourceQueryError` and never retried here.
3. Apply the ``where`` clause to the source as its standing filter, so later
   independent queries (e.g. map rendering) match the timeline.
4. Compile title (required), subtitle and description (optional) once.
5. For each record with a non-null date: locate it, evaluate the
   expressions, format the date and assign its identity. A date that cannot
   be parsed still yields an event; its ``date`` is ``None`` and its
   ``formatted_date`` reads ``"Invalid Date"``.
6. Return events in the order the source produced them.

Ordering
--------
Events are *not* re-sorted. The query asks the source for ascending date
order and the builder trusts it; a source that ignores ``order_by_fields``
produces an unsorted timeline.

Failure policy
--------------
- Title evaluation failure aborts the build with :class:`EvaluationError`;
  no partial list is returned.
- Subtitle / description failures are logged and that field becomes ``None``.
"""

from __future__ import annotations

from typing import Any

from timelinemapper.core.contracts.config import TimelineEventConfig
from timelinemapper.core.contracts.feature import FeatureRecord
from timelinemapper.core.contracts.timeline import TimelineEvent
from timelinemapper.core.errors import EvaluationError, SourceQueryError, TimelineError
from timelinemapper.core.settings import get_logger, load_settings
from timelinemapper.dates import format_date, to_epoch_millis
from timelinemapper.expressions.evaluator import CompiledExpression, ExpressionEvaluator
from timelinemapper.geometry import extract_lon_lat
from timelinemapper.sources.base import Queryable, QueryParams

_logger = get_logger("timelinemapper.timeline.builder")


def build_query(config: TimelineEventConfig) -> QueryParams:
    """Return the extraction query for ``config``."""
    where = f"{config.date_field} is not null"
    extra = config.query.where if config.query else None
    if extra and extra.strip():
        where = f"({where}) AND ({extra.strip()})"
    return QueryParams(
        where=where,
        out_fields=["*"],
        return_geometry=True,
        order_by_fields=[config.date_field],
    )


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _evaluate_optional(
    evaluator: ExpressionEvaluator,
    expr: CompiledExpression | None,
    feature: FeatureRecord,
    *,
    field: str,
    object_id: Any,
) -> str | None:
    """Evaluate a non-required expression; failures degrade to ``None``."""
    if expr is None:
        return None
    try:
        return _as_text(evaluator.evaluate(expr, feature))
    except EvaluationError as exc:
        _logger.warning("%s expression failed for feature %r: %s", field, object_id, exc)
        return None


async def build_events(
    source: Queryable,
    config: TimelineEventConfig,
    evaluator: ExpressionEvaluator | None = None,
) -> list[TimelineEvent]:
    """Extract timeline events from ``source`` according to ``config``.

    Parameters
    ----------
    source:
        The feature source. Its ``definition_expression`` is overwritten with
        the extraction's ``where`` clause.
    config:
        Date field, expressions, date format and optional extra filter.
    evaluator:
        Expression evaluator; defaults to the sandboxed engine.

    Returns
    -------
    list[TimelineEvent]
        One event per record with a non-null date, in source order.

    Raises
    ------
    SourceQueryError
        The source failed to answer the query.
    CompileError
        One of the configured expressions is malformed.
    EvaluationError
        The title expression failed for some feature.
    """
    evaluator = evaluator or ExpressionEvaluator()
    params = build_query(config)
    _logger.info("querying timeline features where %s", params.where)

    try:
        result = await source.query(params)
    except TimelineError:
        raise
    except Exception as exc:
        raise SourceQueryError(f"feature query failed: {exc}") from exc

    source.definition_expression = params.where

    title_expr = evaluator.compile(config.title_expression)
    subtitle_expr = (
        evaluator.compile(config.subtitle_expression) if config.subtitle_expression else None
    )
    description_expr = (
        evaluator.compile(config.description_expression)
        if config.description_expression
        else None
    )

    records = result.records
    if records:
        _logger.debug("example feature: %r", records[0])

    current = load_settings()
    date_format = config.date_format or current.date_format
    utc = config.utc if "utc" in config.model_fields_set else current.date_utc
    events: list[TimelineEvent] = []
    for feature in records:
        raw_date = feature.attributes.get(config.date_field)
        if raw_date is None:
            continue
        date = to_epoch_millis(raw_date)
        object_id = feature.get_object_id()
        if object_id is None:
            object_id = feature.attributes.get(source.object_id_field)
        if date is None:
            _logger.warning("feature %r has an unparseable date %r", object_id, raw_date)

        try:
            title = evaluator.evaluate(title_expr, feature)
        except EvaluationError as exc:
            exc.field = "title"
            exc.object_id = object_id
            raise

        events.append(
            TimelineEvent(
                object_id=object_id,
                title=_as_text(title) or "",
                subtitle=_evaluate_optional(
                    evaluator, subtitle_expr, feature, field="subtitle", object_id=object_id
                ),
                description=_evaluate_optional(
                    evaluator,
                    description_expr,
                    feature,
                    field="description",
                    object_id=object_id,
                ),
                date=date,
                formatted_date=format_date(raw_date, date_format, utc=utc),
                lon_lat=extract_lon_lat(feature.geometry),
            )
        )

    _logger.info("built %d timeline events from %d features", len(events), len(records))
    return events


__all__ = ["build_query", "build_events"]
