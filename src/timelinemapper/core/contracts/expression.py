"""Expression contracts: scripts plus the profile of variables they may use.

A configured expression is either a bare script string or a mapping with a
``script`` (``arcadeScript`` is accepted for older configs) and an optional
``profile``. Both shapes normalise into :class:`ExpressionSpec` via
:meth:`ExpressionSpec.coerce`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

#: Name of the variable bound to "the current feature" in the default profile.
FEATURE_VARIABLE = "$feature"


class ProfileVariable(BaseModel):
    """One variable an expression is allowed to reference."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Variable name, e.g. '$feature'")
    type: str = Field(default="feature", description="Declared type, e.g. 'feature', 'text'")


class ProfileSpec(BaseModel):
    """The set of variable bindings visible to a script."""

    model_config = ConfigDict(frozen=True)

    variables: tuple[ProfileVariable, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_names(self) -> ProfileSpec:
        names = [v.name for v in self.variables]
        if len(names) != len(set(names)):
            raise ValueError(f"profile declares duplicate variables: {names}")
        return self

    def names(self) -> tuple[str, ...]:
        """Return declared variable names in declaration order."""
        return tuple(v.name for v in self.variables)

    def feature_variable(self) -> str | None:
        """Return the variable that receives the current feature, if any.

        The first variable typed ``feature`` wins; a profile without one can
        still be compiled but cannot be evaluated per feature.
        """
        for var in self.variables:
            if var.type == "feature":
                return var.name
        return None


DEFAULT_PROFILE = ProfileSpec(variables=(ProfileVariable(name=FEATURE_VARIABLE),))


class ExpressionSpec(BaseModel):
    """An immutable script + profile pair."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    script: str = Field(
        validation_alias=AliasChoices("script", "arcadeScript"),
        description="Expression source text",
    )
    profile: ProfileSpec = Field(default=DEFAULT_PROFILE)

    @classmethod
    def coerce(cls, value: ExpressionSpec | str | Mapping[str, Any]) -> ExpressionSpec:
        """Normalise the accepted config shapes into an :class:`ExpressionSpec`."""
        if isinstance(value, ExpressionSpec):
            return value
        if isinstance(value, str):
            return cls(script=value)
        if isinstance(value, Mapping):
            data = dict(value)
            if data.get("profile") is None:
                data.pop("profile", None)
            return cls.model_validate(data)
        raise TypeError(f"unsupported expression value: {type(value).__name__}")


__all__ = [
    "FEATURE_VARIABLE",
    "ProfileVariable",
    "ProfileSpec",
    "DEFAULT_PROFILE",
    "ExpressionSpec",
]
