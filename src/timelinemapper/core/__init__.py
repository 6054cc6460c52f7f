"""Core package initializer for timelinemapper.

Settings, error taxonomy, contracts and config loading live here:
    from timelinemapper.core.settings import settings, load_settings, Settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
