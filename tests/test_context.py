from datetime import datetime, timezone

import pytest

from api_test_planner.generator.context import EPOCH, GenerationContext, fixed_clock
from api_test_planner.model.cache import LruCache, canonical_form


class TestGenerationContext:
    def test_seeded_ids_repeat(self):
        a, b = GenerationContext(seed=5), GenerationContext(seed=5)
        assert [a.new_id() for _ in range(3)] == [b.new_id() for _ in range(3)]
        assert a.execution_id() == b.execution_id()

    def test_ids_are_numbered(self):
        ctx = GenerationContext(seed=5)
        assert ctx.new_id().startswith("tc-0001-")
        assert ctx.new_id("ep").startswith("ep-0002-")

    def test_seeded_context_has_fixed_clock(self):
        assert GenerationContext(seed=1).now() == EPOCH

    def test_explicit_clock(self):
        moment = datetime(2030, 5, 1, tzinfo=timezone.utc)
        assert GenerationContext(clock=fixed_clock(moment)).now() == moment

    def test_unseeded_uses_wall_clock(self):
        assert GenerationContext().now() > EPOCH

    def test_child_rng_is_deterministic(self):
        a, b = GenerationContext(seed=9).child_rng(), GenerationContext(seed=9).child_rng()
        assert a.random() == b.random()


class TestLruCache:
    def test_evicts_least_recent(self):
        cache = LruCache(max_entries=2)
        cache.get_or_compute("a", lambda: 1)
        cache.get_or_compute("b", lambda: 2)
        cache.get_or_compute("a", lambda: 0)
        cache.get_or_compute("c", lambda: 3)
        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2
        assert (cache.hits, cache.misses) == (1, 3)

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            LruCache(0)

    def test_clear_resets_counters(self):
        cache = LruCache()
        cache.get_or_compute("a", lambda: 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.misses == 0

    def test_canonical_form_sorts_keys(self):
        assert canonical_form({"b": 1, "a": [1, 2]}) == canonical_form({"a": [1, 2], "b": 1})
