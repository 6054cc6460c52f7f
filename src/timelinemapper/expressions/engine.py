"""Sandboxed default expression engine.

Scripts are single Python expressions in which profile variables are written
with a ``$`` sigil, e.g.::

    concat($feature.NAME, " (", $feature.TYPE, ")")
    iif($feature.POP > 1000, "city", "town")
    upper($feature["event name"])

Before compiling, ``$name`` tokens outside string literals are rewritten to
plain identifiers and the parsed AST is checked against a whitelist: no
imports, lambdas, comprehensions or private attribute access, and only the
functions in :data:`FUNCTIONS` may be called. The compiled code object is
then evaluated with empty builtins.

Field access on a feature is case-insensitive as a fallback, so
``$feature.name`` resolves ``NAME`` when no exact match exists.
"""

from __future__ import annotations

import ast
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import CodeType
from typing import Any

from timelinemapper.core.contracts.expression import ProfileSpec
from timelinemapper.core.contracts.feature import FeatureRecord
from timelinemapper.core.errors import CompileError, EvaluationError
from timelinemapper.dates import format_date

_VAR_PREFIX = "_var_"


# --------------------------------------------------------------------------- #
# Runtime values
# --------------------------------------------------------------------------- #


class FieldAccessor:
    """Read-only attribute/item view over a feature's fields."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self._fields = fields

    def _lookup(self, name: str) -> Any:
        if name in self._fields:
            return self._fields[name]
        lowered = name.lower()
        for key, value in self._fields.items():
            if key.lower() == lowered:
                return value
        raise KeyError(f"field not found: {name}")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._lookup(name)

    def __getitem__(self, name: Any) -> Any:
        return self._lookup(str(name))

    def __contains__(self, name: object) -> bool:
        try:
            self._lookup(str(name))
        except KeyError:
            return False
        return True

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"FieldAccessor({dict(self._fields)!r})"


def _wrap(value: Any) -> Any:
    if isinstance(value, FeatureRecord):
        return FieldAccessor(value.attributes)
    if isinstance(value, Mapping):
        return FieldAccessor(value)
    return value


# --------------------------------------------------------------------------- #
# Function library
# --------------------------------------------------------------------------- #


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _concat(*parts: Any, sep: str = "") -> str:
    return sep.join(_text(p) for p in parts)


def _default(value: Any, fallback: Any) -> Any:
    return fallback if value is None or value == "" else value


def _iif(condition: Any, if_true: Any, if_false: Any) -> Any:
    return if_true if condition else if_false


def _has_field(feature: Any, name: str) -> bool:
    return isinstance(feature, FieldAccessor) and name in feature


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "upper": lambda s: _text(s).upper(),
    "lower": lambda s: _text(s).lower(),
    "proper": lambda s: _text(s).title(),
    "trim": lambda s: _text(s).strip(),
    "concat": _concat,
    "default": _default,
    "iif": _iif,
    "has_field": _has_field,
    "format_date": format_date,
    "str": _text,
    "int": int,
    "float": float,
    "bool": bool,
    "round": round,
    "abs": abs,
    "len": len,
    "min": min,
    "max": max,
}

_ALLOWED_NODES: tuple[type[ast.AST], ...] = (
    ast.Expression,
    ast.Constant,
    ast.Name,
    ast.Load,
    ast.Attribute,
    ast.Subscript,
    ast.Slice,
    ast.Tuple,
    ast.List,
    ast.BinOp,
    ast.UnaryOp,
    ast.BoolOp,
    ast.Compare,
    ast.IfExp,
    ast.Call,
    ast.keyword,
    ast.JoinedStr,
    ast.FormattedValue,
    ast.operator,
    ast.unaryop,
    ast.boolop,
    ast.cmpop,
)


# --------------------------------------------------------------------------- #
# Compilation
# --------------------------------------------------------------------------- #


def _py_name(variable: str) -> str:
    return _VAR_PREFIX + variable[1:] if variable.startswith("$") else variable


def _skip_string(script: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``."""
    quote = script[start]
    triple = script[start : start + 3] == quote * 3
    delim = quote * 3 if triple else quote
    i = start + len(delim)
    while i < len(script):
        if script[i] == "\\":
            i += 2
            continue
        if script.startswith(delim, i):
            return i + len(delim)
        i += 1
    return len(script)


def rewrite_sigils(script: str) -> str:
    """Rewrite ``$name`` tokens outside string literals to plain identifiers."""
    out: list[str] = []
    i = 0
    while i < len(script):
        ch = script[i]
        if ch in "'\"":
            end = _skip_string(script, i)
            out.append(script[i:end])
            i = end
            continue
        if ch == "$":
            j = i + 1
            while j < len(script) and (script[j].isalnum() or script[j] == "_"):
                j += 1
            if j > i + 1 and not script[i + 1].isdigit():
                out.append(_VAR_PREFIX + script[i + 1 : j])
                i = j
                continue
        out.append(ch)
        i += 1
    return "".join(out)


@dataclass(frozen=True, slots=True)
class CompiledScript:
    """Engine handle: the checked code object plus its variable name map."""

    code: CodeType
    variables: Mapping[str, str]


class _Validator(ast.NodeVisitor):
    def __init__(self, script: str, variables: Mapping[str, str]) -> None:
        self.script = script
        self.variables = variables

    def generic_visit(self, node: ast.AST) -> None:
        if not isinstance(node, _ALLOWED_NODES):
            raise CompileError(
                f"unsupported syntax in expression: {type(node).__name__}",
                script=self.script,
            )
        super().generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id in self.variables or node.id in FUNCTIONS:
            return
        if node.id.startswith(_VAR_PREFIX):
            undeclared = "$" + node.id[len(_VAR_PREFIX) :]
            raise CompileError(
                f"expression references undeclared variable {undeclared!r}",
                script=self.script,
            )
        raise CompileError(f"unknown name {node.id!r} in expression", script=self.script)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if node.attr.startswith("_"):
            raise CompileError(
                f"access to private attribute {node.attr!r} is not allowed",
                script=self.script,
            )
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            raise CompileError("only library functions may be called", script=self.script)
        self.generic_visit(node)


class SafeExpressionEngine:
    """Default :class:`~timelinemapper.expressions.evaluator.ExpressionEngine`."""

    def compile(self, script: str, profile: ProfileSpec) -> CompiledScript:
        """Parse, validate and compile ``script`` for ``profile``."""
        if not script or not script.strip():
            raise CompileError("expression script is empty", script=script)

        variables = {_py_name(name): name for name in profile.names()}
        for py_name in variables:
            if not py_name.isidentifier():
                raise CompileError(f"invalid profile variable name {variables[py_name]!r}")

        source = rewrite_sigils(script.strip())
        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as exc:
            raise CompileError(f"invalid expression syntax: {exc.msg}", script=script) from exc

        _Validator(script, variables).visit(tree)
        code = compile(tree, "<expression>", "eval")
        return CompiledScript(code=code, variables=variables)

    def evaluate(self, handle: CompiledScript, bindings: Mapping[str, Any]) -> Any:
        """Run a compiled script with ``bindings`` keyed by profile variable name."""
        scope = {
            py_name: _wrap(bindings.get(name))
            for py_name, name in handle.variables.items()
        }
        env: dict[str, Any] = {"__builtins__": {}, **FUNCTIONS}
        try:
            return eval(handle.code, env, scope)  # noqa: S307 - AST-whitelisted code
        except Exception as exc:
            raise EvaluationError(f"{type(exc).__name__}: {exc}") from exc


__all__ = ["FUNCTIONS", "FieldAccessor", "CompiledScript", "SafeExpressionEngine", "rewrite_sigils"]
