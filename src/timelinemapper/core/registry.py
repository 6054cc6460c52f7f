"""Registry and app-config loading.

A registry file lists the available timeline apps::

    apps:
      - id: quakes
        name: Earthquakes 2020
        path: quakes.yml

Each item points at an app config (relative paths resolve against the
registry's directory). Both files may be YAML or JSON; JSON is read through
the YAML loader as well since it is a subset.

When no app id is requested, the first app ordered by name is used.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from timelinemapper.core.contracts.config import AppConfig, ConfigRegistry, RegistryItem
from timelinemapper.core.errors import ConfigError
from timelinemapper.core.settings import get_logger

_logger = get_logger("timelinemapper.core.registry")


def load_document(path: Path | str) -> Any:
    """Read a YAML or JSON document from ``path``."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {p}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"could not parse {p}: {exc}") from exc


def load_registry(path: Path | str) -> ConfigRegistry:
    """Load the app registry at ``path``."""
    data = load_document(path)
    try:
        return ConfigRegistry.model_validate(data or {})
    except ValidationError as exc:
        raise ConfigError(f"invalid registry {path}: {exc}") from exc


def select_app(registry: ConfigRegistry, app_id: str | None = None) -> RegistryItem:
    """Pick ``app_id`` from the registry, or the first app by name."""
    if not registry.apps:
        raise ConfigError("registry lists no apps")
    if app_id is None:
        item = sorted(registry.apps, key=lambda a: a.name)[0]
        _logger.info("no app id given, using %r", item.id)
        return item
    for item in registry.apps:
        if item.id == app_id:
            return item
    raise ConfigError(f"no configuration found for app id {app_id!r}")


def load_app_config(path: Path | str) -> AppConfig:
    """Load and validate one app config."""
    data = load_document(path)
    try:
        config = AppConfig.model_validate(data or {})
    except ValidationError as exc:
        raise ConfigError(f"invalid app config {path}: {exc}") from exc
    _logger.info("loaded app config %r from %s", config.app.title, path)
    return config


def resolve_source_path(config: AppConfig, config_path: Path | str) -> Path:
    """Return the feature file path, resolved against the config's directory."""
    source = Path(config.source.path)
    return source if source.is_absolute() else Path(config_path).parent / source


def resolve_app_config(
    registry_path: Path | str,
    app_id: str | None = None,
) -> tuple[AppConfig, Path]:
    """Resolve an app through the registry.

    Returns
    -------
    tuple[AppConfig, Path]
        The validated config and the path it was read from.
    """
    registry = load_registry(registry_path)
    item = select_app(registry, app_id)
    config_path = Path(item.path)
    if not config_path.is_absolute():
        config_path = Path(registry_path).parent / config_path
    return load_app_config(config_path), config_path


__all__ = [
    "load_document",
    "load_registry",
    "select_app",
    "load_app_config",
    "resolve_source_path",
    "resolve_app_config",
]
