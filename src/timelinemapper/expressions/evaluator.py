"""Expression evaluation: compile once, evaluate per feature.

The concrete scripting language lives behind the :class:`ExpressionEngine`
protocol (``compile(script, profile) -> handle`` and
``evaluate(handle, bindings) -> value``). :class:`ExpressionEvaluator` wraps
an engine and adds the feature-binding rules:

- The feature is bound to the profile's feature variable (``$feature`` in
  the default profile).
- Optional ``context`` bindings fill the profile's other variables; keys
  may be given with or without the ``$`` sigil.
- Engine failures surface as :class:`CompileError` / :class:`EvaluationError`
  no matter what the engine raised internally.

A :class:`CompiledExpression` holds no reference to any feature, so one
instance is safe to reuse across every record of an extraction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from timelinemapper.core.contracts.expression import ExpressionSpec
from timelinemapper.core.contracts.feature import FeatureRecord
from timelinemapper.core.errors import CompileError, EvaluationError

from .engine import SafeExpressionEngine


@runtime_checkable
class ExpressionEngine(Protocol):
    """Capability interface for a pluggable scripting engine."""

    def compile(self, script: str, profile: Any) -> Any:
        """Return an opaque, reusable handle or raise on invalid scripts."""
        ...

    def evaluate(self, handle: Any, bindings: Mapping[str, Any]) -> Any:
        """Execute ``handle`` with variables bound by name."""
        ...


@dataclass(frozen=True, slots=True)
class CompiledExpression:
    """A compiled script ready to run against any number of features.

    Attributes
    ----------
    spec : ExpressionSpec
        The script and profile it was compiled from.
    handle : Any
        The engine's opaque compiled form.
    engine : ExpressionEngine
        The engine that produced ``handle`` and must execute it.
    feature_variable : str | None
        Profile variable that receives the current feature.
    """

    spec: ExpressionSpec
    handle: Any
    engine: ExpressionEngine
    feature_variable: str | None


class ExpressionEvaluator:
    """Compile :class:`ExpressionSpec` values and evaluate them per feature."""

    def __init__(self, engine: ExpressionEngine | None = None) -> None:
        self.engine: ExpressionEngine = engine if engine is not None else SafeExpressionEngine()

    def compile(self, spec: ExpressionSpec | str | Mapping[str, Any]) -> CompiledExpression:
        """Compile ``spec`` (or a raw script / config mapping).

        Raises
        ------
        CompileError
            If the script is malformed or uses an undeclared variable.
        """
        try:
            expr_spec = ExpressionSpec.coerce(spec)
        except (TypeError, ValueError) as exc:
            raise CompileError(f"invalid expression spec: {exc}") from exc

        try:
            handle = self.engine.compile(expr_spec.script, expr_spec.profile)
        except CompileError:
            raise
        except Exception as exc:
            raise CompileError(str(exc), script=expr_spec.script) from exc

        return CompiledExpression(
            spec=expr_spec,
            handle=handle,
            engine=self.engine,
            feature_variable=expr_spec.profile.feature_variable(),
        )

    def evaluate(
        self,
        expr: CompiledExpression,
        feature: FeatureRecord,
        context: Mapping[str, Any] | None = None,
    ) -> Any:
        """Run ``expr`` for one feature and return its scalar result.

        Raises
        ------
        EvaluationError
            If the profile has no feature variable or the script fails.
        """
        if expr.feature_variable is None:
            raise EvaluationError(
                "expression profile declares no feature variable",
                object_id=feature.get_object_id(),
            )
        bindings: dict[str, Any] = dict(context or {})
        for key, value in (context or {}).items():
            bindings.setdefault(key if key.startswith("$") else f"${key}", value)
        bindings[expr.feature_variable] = feature

        try:
            return expr.engine.evaluate(expr.handle, bindings)
        except EvaluationError as exc:
            if exc.object_id is None:
                exc.object_id = feature.get_object_id()
            raise
        except Exception as exc:
            raise EvaluationError(str(exc), object_id=feature.get_object_id()) from exc

    def evaluate_many(
        self,
        expr: CompiledExpression,
        features: Iterable[FeatureRecord],
        context: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        """Evaluate ``expr`` for each feature, in order."""
        return [self.evaluate(expr, feature, context) for feature in features]


__all__ = ["ExpressionEngine", "CompiledExpression", "ExpressionEvaluator"]
