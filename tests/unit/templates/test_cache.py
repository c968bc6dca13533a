"""Unit tests for the template parse cache."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from filesort.templates.cache import TemplateCache
from filesort.templates.errors import TemplateParseError


class TestTemplateCache:
    def test_same_source_returns_identical_template(self) -> None:
        cache = TemplateCache()
        first = cache.get("{{ upper(name) }}")
        assert cache.get("{{ upper(name) }}") is first

    def test_hits_and_misses_are_counted(self) -> None:
        cache = TemplateCache()
        cache.get("a")
        cache.get("a")
        cache.get("b")
        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.size) == (1, 2, 2)

    def test_parse_errors_are_cached(self) -> None:
        cache = TemplateCache()
        with pytest.raises(TemplateParseError) as first:
            cache.get("{{foo(")
        with pytest.raises(TemplateParseError) as second:
            cache.get("{{foo(")
        assert second.value is not first.value
        assert second.value.message == first.value.message
        assert second.value.offset == 6
        assert cache.stats().hits == 1

    def test_each_thread_gets_its_own_parse_error(self) -> None:
        cache = TemplateCache()

        def compile_bad(_: int) -> TemplateParseError:
            with pytest.raises(TemplateParseError) as exc_info:
                cache.get("{{ f( }}")
            return exc_info.value

        with ThreadPoolExecutor(max_workers=8) as pool:
            errors = list(pool.map(compile_bad, range(8)))
        assert len({id(error) for error in errors}) == 8
        assert {error.reason for error in errors} == {"unexpected end of expression"}

    def test_least_recently_used_entry_is_evicted(self) -> None:
        cache = TemplateCache(maxsize=2)
        cache.get("a")
        cache.get("b")
        cache.get("a")
        cache.get("c")
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_zero_size_disables_caching(self) -> None:
        cache = TemplateCache(maxsize=0)
        first = cache.get("{{ x }}")
        second = cache.get("{{ x }}")
        assert first == second
        assert first is not second
        assert len(cache) == 0

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            TemplateCache(maxsize=-1)

    def test_clear(self) -> None:
        cache = TemplateCache()
        cache.get("a")
        cache.clear()
        assert len(cache) == 0
        assert cache.stats().misses == 0

    def test_concurrent_access(self) -> None:
        cache = TemplateCache(maxsize=8)
        sources = [f"{{{{ v{i % 12} }}}}" for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            templates = list(pool.map(cache.get, sources))
        assert [t.source for t in templates] == sources
        assert len(cache) <= 8
        stats = cache.stats()
        assert stats.hits + stats.misses == len(sources)
