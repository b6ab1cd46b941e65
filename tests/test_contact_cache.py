# tests/test_contact_cache.py
import pytest

from contacts_bridge.services.contact_cache import CacheConfig, ContactCache

# ~802 estimated bytes each (200 overhead + 300 UTF-16 chars + 1 digit)
BIG_A = {"A" * 300: ["1"]}
BIG_B = {"B" * 300: ["2"]}
BIG_C = {"C" * 300: ["3"]}
TINY_BUDGET_MB = 0.001  # ~1048 bytes: room for one BIG_* snapshot, not two


def _cache(clock, **config) -> ContactCache:
    return ContactCache(CacheConfig(**config), clock=clock)


def test_set_then_get_returns_equal_snapshot(cache):
    snapshot = {"Alice": ["123", "456"], "Bob": ["789"]}
    cache.set(snapshot, "k")
    assert cache.get("k") == snapshot


def test_get_returns_a_copy(cache):
    cache.set({"Alice": ["123"]}, "k")
    first = cache.get("k")
    first["Mallory"] = ["666"]
    first["Alice"].append("999")
    assert cache.get("k") == {"Alice": ["123"]}


def test_set_stores_a_copy(cache):
    snapshot = {"Alice": ["123"]}
    cache.set(snapshot, "k")
    snapshot["Alice"].append("999")
    assert cache.get("k") == {"Alice": ["123"]}


def test_expired_entry_is_a_miss_and_an_eviction(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["123"]}, "k")
    clock.advance(150)

    assert cache.get("k") is None
    stats = cache.get_stats()
    assert stats.misses == 1
    assert stats.evictions == 1
    assert stats.current_entries == 0


def test_ttl_is_absolute_not_sliding(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["123"]}, "k")
    for _ in range(3):
        clock.advance(30)
        assert cache.get("k") is not None
    # 120 ms after set, despite reads every 30 ms
    clock.advance(30)
    assert cache.get("k") is None


def test_entry_exactly_at_ttl_is_still_served(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["123"]}, "k")
    clock.advance(100)
    assert cache.get("k") == {"Alice": ["123"]}


def test_lru_eviction_on_entry_count(clock):
    cache = _cache(clock, max_entries=2)
    cache.set({"one": ["1"]}, "k1")
    clock.advance(10)
    cache.set({"two": ["2"]}, "k2")
    clock.advance(10)
    assert cache.get("k1") is not None  # k2 is now least recently used
    clock.advance(10)
    cache.set({"three": ["3"]}, "k3")

    assert cache.get("k2") is None
    assert cache.get("k1") == {"one": ["1"]}
    assert cache.get("k3") == {"three": ["3"]}
    assert cache.get_stats().evictions == 1


def test_lru_ties_are_broken_by_recency_order(clock):
    # Manual clock never moves: every timestamp is equal.
    cache = _cache(clock, max_entries=2)
    cache.set({"one": ["1"]}, "k1")
    cache.set({"two": ["2"]}, "k2")
    cache.get("k1")
    cache.set({"three": ["3"]}, "k3")
    assert cache.get("k2") is None
    assert cache.get("k1") is not None


def test_overwriting_a_key_at_capacity_does_not_evict_others(clock):
    cache = _cache(clock, max_entries=2)
    cache.set({"one": ["1"]}, "k1")
    cache.set({"two": ["2"]}, "k2")
    cache.set({"two": ["2", "22"]}, "k2")
    assert cache.get_stats().current_entries == 2
    assert cache.get_stats().evictions == 0
    assert cache.get("k2") == {"two": ["2", "22"]}


def test_set_resets_creation_time(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["1"]}, "k")
    clock.advance(80)
    cache.set({"Alice": ["2"]}, "k")
    clock.advance(80)
    assert cache.get("k") == {"Alice": ["2"]}


def test_set_evicts_one_lru_entry_for_memory(clock):
    cache = _cache(clock, max_memory_mb=TINY_BUDGET_MB)
    cache.set(BIG_A, "a")
    clock.advance(1)
    cache.set(BIG_B, "b")

    assert cache.get("a") is None
    assert cache.get("b") == BIG_B
    assert cache.get_stats().evictions == 1


def test_set_memory_eviction_is_single_shot(clock):
    cache = _cache(clock, max_memory_mb=1)
    cache.set(BIG_A, "a")
    cache.set(BIG_B, "b")
    cache.update_config(max_memory_mb=TINY_BUDGET_MB)
    clock.advance(1)
    cache.set(BIG_C, "c")

    # only one LRU entry goes; the store stays over budget until cleanup
    assert cache.get_stats().current_entries == 2
    assert cache.get_stats().estimated_memory_mb > TINY_BUDGET_MB
    cache.cleanup()
    assert cache.get_stats().current_entries == 1
    assert cache.get("c") == BIG_C


def test_oversized_snapshot_is_stored_until_cleanup(clock):
    cache = _cache(clock, max_memory_mb=0.0005)
    cache.set(BIG_A, "a")
    assert cache.get_stats().current_entries == 1
    assert cache.cleanup() == 1
    assert cache.get_stats().current_entries == 0


def test_cleanup_removes_expired_entries(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"old": ["1"]}, "old")
    clock.advance(60)
    cache.set({"new": ["2"]}, "new")
    clock.advance(60)

    assert cache.cleanup() == 1
    stats = cache.get_stats()
    assert stats.current_entries == 1
    assert stats.evictions == 1
    assert stats.total_queries == 0
    assert cache.get("new") == {"new": ["2"]}


def test_cleanup_evicts_until_under_memory_ceiling(clock):
    cache = _cache(clock, max_memory_mb=1)
    cache.set(BIG_A, "a")
    clock.advance(1)
    cache.set(BIG_B, "b")
    clock.advance(1)
    cache.set(BIG_C, "c")
    clock.advance(1)
    cache.get("a")  # most recently used

    cache.update_config(max_memory_mb=TINY_BUDGET_MB)
    assert cache.cleanup() == 2

    assert cache.get_stats().current_entries == 1
    assert cache.get_stats().estimated_memory_mb <= TINY_BUDGET_MB
    assert cache.get("a") == BIG_A


def test_invalidate_single_key(cache):
    cache.set({"one": ["1"]}, "k1")
    cache.set({"two": ["2"]}, "k2")
    cache.invalidate("k1")
    cache.invalidate("missing")
    assert cache.get("k1") is None
    assert cache.get("k2") == {"two": ["2"]}
    assert cache.get_stats().current_entries == 1


def test_invalidate_all(cache):
    cache.set({"one": ["1"]}, "k1")
    cache.set({"two": ["2"]}, "k2")
    cache.invalidate()
    stats = cache.get_stats()
    assert stats.current_entries == 0
    assert stats.estimated_memory_mb == 0


def test_merge_updates_live_entry_in_place(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["123"]}, "k")
    clock.advance(60)
    cache.merge("Bob", ["555-1234"], "k")
    assert cache.get("k") == {"Alice": ["123"], "Bob": ["555-1234"]}

    # merged record expires with the snapshot it joined
    clock.advance(60)
    assert cache.get("k") is None


def test_merge_creates_snapshot_when_absent(cache):
    cache.merge("Bob", ["555-1234"], "k")
    assert cache.get("k") == {"Bob": ["555-1234"]}


def test_merge_replaces_stale_snapshot(clock):
    cache = _cache(clock, ttl_ms=100)
    cache.set({"Alice": ["123"]}, "k")
    clock.advance(150)
    cache.merge("Bob", ["555-1234"], "k")
    assert cache.get("k") == {"Bob": ["555-1234"]}


def test_disabled_cache_always_misses(clock):
    cache = _cache(clock, enabled=False)
    cache.set({"Alice": ["123"]}, "k")
    cache.merge("Bob", ["1"], "k")
    assert cache.get("k") is None
    assert cache.cleanup() == 0
    stats = cache.get_stats()
    assert stats.misses == 1
    assert stats.current_entries == 0


def test_disabling_clears_entries_until_reenabled(cache):
    cache.set({"Alice": ["123"]}, "k")
    cache.update_config(enabled=False)
    assert cache.get_stats().current_entries == 0
    assert cache.get("k") is None
    cache.set({"Alice": ["123"]}, "k")
    assert cache.get("k") is None

    cache.update_config(enabled=True)
    assert cache.get("k") is None
    cache.set({"Alice": ["123"]}, "k")
    assert cache.get("k") == {"Alice": ["123"]}


def test_hit_rate_tracks_hits_over_queries(cache):
    assert cache.get_stats().hit_rate == 0
    cache.set({"Alice": ["123"]}, "k")
    cache.get("k")
    cache.get("k")
    cache.get("missing")
    stats = cache.get_stats()
    assert stats.total_queries == 3
    assert stats.hits == 2
    assert stats.misses == 1
    assert stats.hit_rate == pytest.approx(stats.hits / stats.total_queries)


def test_get_stats_returns_a_copy(cache):
    stats = cache.get_stats()
    stats.hits = 99
    assert cache.get_stats().hits == 0


def test_config_cannot_be_mutated_through_getter(cache):
    config = cache.get_config()
    with pytest.raises(AttributeError):
        config.ttl_ms = 1  # frozen dataclass
    assert cache.get_config().ttl_ms == 600_000


def test_default_config_values():
    config = CacheConfig()
    assert config.enabled is True
    assert config.ttl_ms == 600_000
    assert config.max_memory_mb == 50
    assert config.max_entries == 10
    assert config.cleanup_interval_ms == 60_000


@pytest.mark.parametrize("field", ["ttl_ms", "max_memory_mb", "max_entries", "cleanup_interval_ms"])
def test_non_positive_config_values_are_rejected(cache, field):
    with pytest.raises(ValueError):
        cache.update_config(**{field: 0})
    assert getattr(cache.get_config(), field) > 0


def test_unknown_config_field_is_rejected(cache):
    with pytest.raises(TypeError):
        cache.update_config(ttl=5)


def test_destroy_drops_entries(cache):
    cache.set({"Alice": ["123"]}, "k")
    cache.destroy()
    assert cache.get_stats().current_entries == 0
    assert not cache.sweeper_running


def test_factory_builds_unstarted_cache_from_env_defaults():
    from contacts_bridge.services.cache_factory import build_contact_cache, cache_config_from_env

    cache = build_contact_cache(max_entries=3)
    try:
        config = cache.get_config()
        assert config.max_entries == 3
        assert config.ttl_ms == cache_config_from_env().ttl_ms
        assert not cache.sweeper_running
    finally:
        cache.destroy()
