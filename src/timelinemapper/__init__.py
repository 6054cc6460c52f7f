"""timelinemapper package bootstrap.

Turns a queryable collection of geospatial features into an ordered timeline
of events and exposes navigation state over it.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
