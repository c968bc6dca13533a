"""filesort exception hierarchy.

All exceptions can be imported from this package:
    from filesort.exceptions import ConfigError, FilesortError

Template-specific errors live next to the engine in
``filesort.templates.errors`` and derive from ``FilesortError`` as well.
"""

from __future__ import annotations

from filesort.exceptions.base import FilesortError
from filesort.exceptions.config import ConfigError

__all__ = [
    "FilesortError",
    "ConfigError",
]
