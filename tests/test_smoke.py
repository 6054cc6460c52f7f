"""
Smoke tests for package structure and availability.

Scope
-----
These tests strictly verify that the package is installed correctly in the
environment and that top-level modules are importable.
"""

from __future__ import annotations

import importlib

import pytest

from timelinemapper import __version__


def test_package_importable() -> None:
    """Ensure the top-level package can be imported."""
    mod = importlib.import_module("timelinemapper")
    assert mod is not None


@pytest.mark.parametrize(  # type: ignore[misc]
    "module",
    [
        "timelinemapper.cli",
        "timelinemapper.api.app",
        "timelinemapper.expressions",
        "timelinemapper.sources",
        "timelinemapper.timeline",
    ],
)
def test_submodules_importable(module: str) -> None:
    assert importlib.import_module(module) is not None


def test_version_is_set() -> None:
    """Ensure the package exposes a valid version string."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0
