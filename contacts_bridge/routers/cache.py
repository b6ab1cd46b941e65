# contacts_bridge/routers/cache.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from contacts_bridge.dependencies import get_contacts_service
from contacts_bridge.schemas.contacts import CacheConfigRead, CacheConfigUpdate, CacheStatsRead
from contacts_bridge.services.contact_cache import CacheConfig
from contacts_bridge.services.contacts_service import ContactsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


def _config_read(config: CacheConfig) -> dict:
    return {
        "enabled": config.enabled,
        "ttlMs": config.ttl_ms,
        "maxMemoryMB": config.max_memory_mb,
        "maxEntries": config.max_entries,
        "cleanupIntervalMs": config.cleanup_interval_ms,
    }


@router.get("/stats", response_model=CacheStatsRead)
def cache_stats(service: ContactsService = Depends(get_contacts_service)):
    """GET /cache/stats: cumulative hit/miss/eviction counters and current size."""
    stats = service.get_cache_statistics()
    return {
        "hits": stats.hits,
        "misses": stats.misses,
        "evictions": stats.evictions,
        "totalQueries": stats.total_queries,
        "currentEntries": stats.current_entries,
        "estimatedMemoryMB": stats.estimated_memory_mb,
        "hitRate": stats.hit_rate,
    }


@router.get("/config", response_model=CacheConfigRead)
def cache_config(service: ContactsService = Depends(get_contacts_service)):
    return _config_read(service.get_cache_config())


@router.patch("/config", response_model=CacheConfigRead)
def update_cache_config(update: CacheConfigUpdate, service: ContactsService = Depends(get_contacts_service)):
    """
    PATCH /cache/config
    Applies the given fields at runtime. Disabling the cache discards its
    contents; enabling it starts the background sweeper.
    422 for non-positive numbers or unknown fields (pydantic).
    """
    try:
        config = service.update_cache_config(**update.to_changes())
    except ValueError as ex:
        raise HTTPException(status_code=400, detail=str(ex))
    return _config_read(config)


@router.delete("", status_code=204)
def invalidate_cache(key: Optional[str] = None, service: ContactsService = Depends(get_contacts_service)):
    """DELETE /cache[?key=...]: drop one entry, or all of them."""
    service.invalidate_cache(key)
