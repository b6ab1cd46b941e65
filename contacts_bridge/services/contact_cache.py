# contacts_bridge/services/contact_cache.py
"""
In-process cache of contact directory snapshots.

Entries expire a fixed time after they were stored (absolute TTL, never
extended by reads) and are evicted least-recently-used first when either the
entry-count or the estimated-memory ceiling is reached. A background sweeper
purges expired and over-budget entries when nobody is reading.

All operations hold a re-entrant lock: FastAPI runs sync handlers in a
thread pool and the sweeper has its own thread. Sweeper start/stop is
serialised by a second lock that the sweeper thread never takes.
"""
import logging
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass, field, fields, replace
from threading import Lock, RLock
from typing import Callable, Dict, List, Optional

from contacts_bridge.services.memory import estimate_snapshot_mb, estimate_total_mb
from contacts_bridge.services.sweeper import CacheSweeper

logger = logging.getLogger(__name__)

ContactsSnapshot = Dict[str, List[str]]

DEFAULT_KEY = "default"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


def _copy_snapshot(snapshot: ContactsSnapshot) -> ContactsSnapshot:
    return {name: list(phones) for name, phones in snapshot.items()}


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool = True
    ttl_ms: int = 10 * 60 * 1000
    max_memory_mb: float = 50
    max_entries: int = 10
    cleanup_interval_ms: int = 60 * 1000

    def __post_init__(self) -> None:
        for name in ("ttl_ms", "max_memory_mb", "max_entries", "cleanup_interval_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"{name} must be a positive number, got {value!r}")
        if not isinstance(self.enabled, bool):
            raise ValueError(f"enabled must be a bool, got {self.enabled!r}")

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_queries: int = 0
    current_entries: int = 0
    estimated_memory_mb: float = 0.0
    hit_rate: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CacheEntry:
    data: ContactsSnapshot
    created_at: float
    last_accessed_at: float
    access_count: int = field(default=1)


class ContactCache:
    """TTL + LRU store of contact snapshots with a memory ceiling and a background sweeper."""

    def __init__(self, config: Optional[CacheConfig] = None, clock: Callable[[], float] = _monotonic_ms) -> None:
        # clock: returns "now" in milliseconds; tests inject a manual clock
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = CacheStats()
        self._lock = RLock()
        # held across a config swap and the sweeper start/stop that follows it
        self._lifecycle_lock = Lock()
        self._sweeper = CacheSweeper(self.cleanup, self._config.cleanup_interval_ms)

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Arm the background sweeper if caching is enabled."""
        with self._lifecycle_lock:
            if self._config.enabled:
                self._sweeper.start()

    def destroy(self) -> None:
        """Stop the sweeper and drop every entry."""
        with self._lifecycle_lock:
            self._sweeper.stop()
            with self._lock:
                self._entries.clear()
                self._update_stats()
        logger.info("Contact cache destroyed")

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper.running

    # ---------- core operations ----------

    def get(self, key: str = DEFAULT_KEY) -> Optional[ContactsSnapshot]:
        """
        Return a copy of the cached snapshot for `key`, or None.

        Every call counts as a query. Disabled cache, absent key and stale
        entry are all misses; a stale entry is also removed and counted as an
        eviction.
        """
        with self._lock:
            self._stats.total_queries += 1
            if not self._config.enabled:
                self._stats.misses += 1
                self._update_stats()
                return None

            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                self._update_stats()
                return None

            now = self._clock()
            age = now - entry.created_at
            if age > self._config.ttl_ms:
                del self._entries[key]
                self._stats.misses += 1
                self._stats.evictions += 1
                self._update_stats()
                logger.debug("Cache EXPIRED: %s (age: %.0f ms)", key, age)
                return None

            entry.access_count += 1
            entry.last_accessed_at = now
            self._entries.move_to_end(key)
            self._stats.hits += 1
            self._update_stats()
            logger.debug("Cache HIT: %s -> %d contacts (age: %.0f s)", key, len(entry.data), age / 1000)
            return _copy_snapshot(entry.data)

    def set(self, snapshot: ContactsSnapshot, key: str = DEFAULT_KEY) -> None:
        """
        Store a copy of `snapshot` under `key`.

        At most one LRU entry is evicted for the memory ceiling and at most one
        for the entry-count ceiling; a single oversized snapshot can leave the
        store over budget until the next sweep. The entry-count check only
        applies to new keys: overwriting an existing key at capacity evicts
        nothing, since the count does not grow.
        """
        with self._lock:
            if not self._config.enabled:
                return

            data = _copy_snapshot(snapshot)
            others = [e.data for k, e in self._entries.items() if k != key]
            if estimate_total_mb(others) + estimate_snapshot_mb(data) > self._config.max_memory_mb:
                self._evict_lru(exclude=key)

            if key not in self._entries and len(self._entries) >= self._config.max_entries:
                self._evict_lru()

            now = self._clock()
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(data=data, created_at=now, last_accessed_at=now, access_count=1)
            self._update_stats()
            logger.info("Cache SET: %s -> %d contacts (TTL: %s s)", key, len(data), self._config.ttl_ms / 1000)

    def merge(self, name: str, phones: List[str], key: str = DEFAULT_KEY) -> None:
        """
        Fold one (name, phones) record into the cached snapshot under `key`.

        A live entry is updated in place and keeps its creation time, so the
        merged record expires together with the rest of the snapshot. With no
        live entry, a new single-record snapshot is stored.
        """
        with self._lock:
            if not self._config.enabled:
                return
            entry = self._entries.get(key)
            if entry is not None and self._clock() - entry.created_at <= self._config.ttl_ms:
                entry.data[name] = list(phones)
                self._update_stats()
                logger.debug("Cache MERGE: %s += 1 contact (%d total)", key, len(entry.data))
                return
            self.set({name: phones}, key)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Remove one entry, or every entry when `key` is None."""
        with self._lock:
            if key is not None:
                if self._entries.pop(key, None) is not None:
                    logger.info("Cache INVALIDATED: %s", key)
            else:
                count = len(self._entries)
                self._entries.clear()
                logger.info("Cache CLEARED: %d entries removed", count)
            self._update_stats()

    def cleanup(self) -> int:
        """Remove expired entries, then evict LRU entries until under the memory ceiling."""
        with self._lock:
            if not self._config.enabled:
                return 0

            now = self._clock()
            expired = [k for k, e in self._entries.items() if now - e.created_at > self._config.ttl_ms]
            for key in expired:
                del self._entries[key]
                self._stats.evictions += 1

            evicted = 0
            while self._entries and self._is_over_memory_limit():
                self._evict_lru()
                evicted += 1

            self._update_stats()
            if expired:
                logger.info("Cache cleanup: %d expired entries removed", len(expired))
            return len(expired) + evicted

    # ---------- stats & config ----------

    def get_stats(self) -> CacheStats:
        with self._lock:
            return replace(self._stats)

    def get_config(self) -> CacheConfig:
        """Current config; CacheConfig is frozen, updates go through update_config()."""
        return self._config

    def update_config(self, **changes) -> CacheConfig:
        """
        Merge `changes` into the live config.

        enabled True -> False stops the sweeper and discards every entry;
        False -> True starts the sweeper. A new cleanup interval re-arms a
        running sweeper.
        """
        known = {f.name for f in fields(CacheConfig)}
        unknown = set(changes) - known
        if unknown:
            raise TypeError(f"Unknown cache config field(s): {', '.join(sorted(unknown))}")

        with self._lifecycle_lock:
            with self._lock:
                old = self._config
                new = replace(old, **changes)
                self._config = new
                if old.enabled and not new.enabled:
                    self._entries.clear()
                self._update_stats()

            # Sweeper start/stop joins a thread that may be waiting on self._lock.
            if old.enabled and not new.enabled:
                self._sweeper.stop()
            elif new.enabled and (not old.enabled or new.cleanup_interval_ms != old.cleanup_interval_ms):
                if not old.enabled or self._sweeper.running:
                    self._sweeper.restart(new.cleanup_interval_ms)
                else:
                    self._sweeper.interval_ms = new.cleanup_interval_ms

        logger.info("Cache config updated: %s", new.to_dict())
        return new

    # ---------- internals ----------

    def _evict_lru(self, exclude: Optional[str] = None) -> None:
        """Drop the entry with the oldest last access; ties go to iteration (recency) order."""
        candidates = [(k, e) for k, e in self._entries.items() if k != exclude]
        if not candidates:
            return
        lru_key, _ = min(candidates, key=lambda item: item[1].last_accessed_at)
        del self._entries[lru_key]
        self._stats.evictions += 1
        logger.info("Cache EVICTED: %s (LRU)", lru_key)

    def _is_over_memory_limit(self) -> bool:
        return estimate_total_mb(e.data for e in self._entries.values()) > self._config.max_memory_mb

    def _update_stats(self) -> None:
        self._stats.current_entries = len(self._entries)
        self._stats.estimated_memory_mb = estimate_total_mb(e.data for e in self._entries.values())
        total = self._stats.total_queries
        self._stats.hit_rate = self._stats.hits / total if total else 0.0
