"""Expression compilation and per-feature evaluation."""

from __future__ import annotations

from .engine import FUNCTIONS, SafeExpressionEngine
from .evaluator import CompiledExpression, ExpressionEngine, ExpressionEvaluator

__all__ = [
    "FUNCTIONS",
    "SafeExpressionEngine",
    "CompiledExpression",
    "ExpressionEngine",
    "ExpressionEvaluator",
]
