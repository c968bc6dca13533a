"""Thread-safe cache of parsed templates keyed by source text.

Rules usually render the same handful of templates for thousands of files,
so each distinct source is parsed once. Parse failures are cached too: a
malformed template is reported when it is first compiled and re-raised from
the cache afterwards instead of being re-parsed on every render.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass

from filesort.logging import get_logger
from filesort.templates.errors import TemplateParseError
from filesort.templates.nodes import Template
from filesort.templates.parser import parse_template

__all__ = ["CacheStats", "TemplateCache"]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache counters."""

    hits: int
    misses: int
    size: int
    maxsize: int


class TemplateCache:
    """Least-recently-used cache of parse results.

    Args:
        maxsize: Maximum number of distinct sources kept. 0 disables caching.
    """

    def __init__(self, maxsize: int = 256) -> None:
        if maxsize < 0:
            raise ValueError("maxsize cannot be negative")
        self._maxsize = maxsize
        self._entries: OrderedDict[str, Template | TemplateParseError] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, source: str) -> Template:
        """Return the parsed template for ``source``, parsing on a miss.

        Raises:
            TemplateParseError: If ``source`` is malformed (cached as well).
        """
        with self._lock:
            entry = self._entries.get(source)
            if entry is not None:
                self._entries.move_to_end(source)
                self._hits += 1
            else:
                self._misses += 1

        if entry is None:
            # Parse outside the lock; a concurrent miss on the same source
            # parses twice and stores an equal result.
            try:
                entry = parse_template(source)
            except TemplateParseError as e:
                logger.debug("template_parse_failed", template=source, error=e.reason)
                self._store(source, _fresh_copy(e))
                raise
            logger.debug("template_compiled", template=source)
            self._store(source, entry)

        if isinstance(entry, TemplateParseError):
            # Each caller gets its own exception object; the cached one is
            # never raised.
            raise _fresh_copy(entry)
        return entry

    def _store(self, source: str, entry: Template | TemplateParseError) -> None:
        if self._maxsize == 0:
            return
        with self._lock:
            self._entries[source] = entry
            self._entries.move_to_end(source)
            while len(self._entries) > self._maxsize:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                maxsize=self._maxsize,
            )

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return source in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _fresh_copy(error: TemplateParseError) -> TemplateParseError:
    return TemplateParseError(
        error.reason,
        error.template or "",
        error.offset,
        expected=error.expected,
    )
