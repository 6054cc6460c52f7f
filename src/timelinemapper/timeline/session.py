"""Timeline session: ties a source, a config and a navigator together.

:meth:`TimelineSession.reload` is the one place an extraction cycle runs:

1. ``navigator.begin_loading()`` issues a generation token.
2. :func:`~timelinemapper.timeline.builder.build_events` runs to completion.
3. The events are loaded with the token. If another reload started in the
   meantime, the token is stale and the late result is dropped.

If the build fails, loading is aborted and the error re-raised; whatever
timeline was already populated stays visible.
"""

from __future__ import annotations

from pathlib import Path

from timelinemapper.core.contracts.config import AppConfig, TimelineEventConfig
from timelinemapper.core.errors import ConfigError, TimelineError
from timelinemapper.core.registry import resolve_source_path
from timelinemapper.core.settings import get_logger
from timelinemapper.expressions.evaluator import ExpressionEvaluator
from timelinemapper.sources.base import Queryable
from timelinemapper.sources.geojson import GeoJSONFeatureSource

from .builder import build_events
from .navigator import TimelineNavigator

_logger = get_logger("timelinemapper.timeline.session")


class TimelineSession:
    """Owns the extraction cycle for one navigator."""

    def __init__(
        self,
        source: Queryable,
        config: TimelineEventConfig,
        navigator: TimelineNavigator | None = None,
        evaluator: ExpressionEvaluator | None = None,
    ) -> None:
        self.source = source
        self.config = config
        self.navigator = navigator if navigator is not None else TimelineNavigator()
        self.evaluator = evaluator if evaluator is not None else ExpressionEvaluator()

    @classmethod
    def from_app_config(cls, config: AppConfig, config_path: Path | str) -> TimelineSession:
        """Open the config's GeoJSON source and wrap it in a fresh session."""
        path = resolve_source_path(config, config_path)
        try:
            source = GeoJSONFeatureSource.from_file(
                path, object_id_field=config.source.object_id_field
            )
        except (OSError, ValueError) as exc:
            raise ConfigError(f"could not open feature source {path}: {exc}") from exc
        return cls(source, config.timeline)

    async def reload(self) -> bool:
        """Rebuild the events and load them into the navigator.

        Returns
        -------
        bool
            ``False`` if a newer reload superseded this one.

        Raises
        ------
        TimelineError
            Any extraction failure, after loading has been aborted.
        """
        generation = self.navigator.begin_loading()
        try:
            events = await build_events(self.source, self.config, self.evaluator)
        except Exception as exc:
            kind = exc.kind if isinstance(exc, TimelineError) else type(exc).__name__
            _logger.error("timeline reload failed (%s): %s", kind, exc)
            self.navigator.abort_loading(generation)
            raise
        return self.navigator.load(events, generation)


__all__ = ["TimelineSession"]
