"""Error taxonomy for timeline extraction.

Every failure that can abort an extraction is a :class:`TimelineError`, and
each subclass carries a short ``kind`` label so callers (CLI, HTTP API, UI)
can tell failures apart without string matching:

- :class:`CompileError`     - malformed expression or undeclared variable.
- :class:`EvaluationError`  - an expression raised while running for a feature.
- :class:`SourceQueryError` - the feature source rejected or failed the query.
- :class:`ConfigError`      - registry / app config could not be resolved.

An unsupported geometry is *not* an error; it simply yields no location.
"""

from __future__ import annotations

from typing import Any, ClassVar


class TimelineError(Exception):
    """Base class for all timeline failures."""

    kind: ClassVar[str] = "timeline_error"


class CompileError(TimelineError):
    """The expression script could not be compiled against its profile."""

    kind: ClassVar[str] = "compile_error"

    def __init__(self, message: str, *, script: str | None = None) -> None:
        super().__init__(message)
        self.script = script


class EvaluationError(TimelineError):
    """Executing a compiled expression failed for one feature.

    Parameters
    ----------
    message:
        Human-readable reason.
    object_id:
        Identity of the feature being evaluated, when known.
    field:
        Which event field was being derived (``"title"``, ``"subtitle"``...).
    """

    kind: ClassVar[str] = "evaluation_error"

    def __init__(
        self,
        message: str,
        *,
        object_id: Any = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.object_id = object_id
        self.field = field


class SourceQueryError(TimelineError):
    """The feature source failed to answer a query."""

    kind: ClassVar[str] = "source_query_error"


class ConfigError(TimelineError):
    """The application registry or config file is missing or invalid."""

    kind: ClassVar[str] = "config_error"


__all__ = [
    "TimelineError",
    "CompileError",
    "EvaluationError",
    "SourceQueryError",
    "ConfigError",
]
