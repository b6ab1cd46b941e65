# contacts_bridge/services/cache_factory.py
from contacts_bridge.config import (
    CONTACT_CACHE_CLEANUP_INTERVAL_MS,
    CONTACT_CACHE_ENABLED,
    CONTACT_CACHE_MAX_ENTRIES,
    CONTACT_CACHE_MAX_MEMORY_MB,
    CONTACT_CACHE_TTL_MS,
)
from contacts_bridge.services.contact_cache import CacheConfig, ContactCache


def cache_config_from_env() -> CacheConfig:
    """CacheConfig built from the CONTACT_CACHE_* environment variables."""
    return CacheConfig(
        enabled=CONTACT_CACHE_ENABLED,
        ttl_ms=CONTACT_CACHE_TTL_MS,
        max_memory_mb=CONTACT_CACHE_MAX_MEMORY_MB,
        max_entries=CONTACT_CACHE_MAX_ENTRIES,
        cleanup_interval_ms=CONTACT_CACHE_CLEANUP_INTERVAL_MS,
    )


def build_contact_cache(**overrides) -> ContactCache:
    """
    Returns a new, not yet started, contact cache.

    There is no process-wide instance: the application lifespan owns the
    cache it builds here and injects it where needed, so tests get a fresh
    one each time.
    """
    config = cache_config_from_env()
    if overrides:
        config = CacheConfig(**{**config.to_dict(), **overrides})
    return ContactCache(config)
