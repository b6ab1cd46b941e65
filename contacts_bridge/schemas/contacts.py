# contacts_bridge/schemas/contacts.py

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactsList(BaseModel):
    count: int = Field(..., description="Number of contacts with at least one phone number.")
    contacts: Dict[str, List[str]] = Field(..., description="Display name -> phone numbers.")


class ContactPhones(BaseModel):
    query: str
    phones: List[str]


class ContactByPhone(BaseModel):
    phone: str
    name: str


class CacheStatsRead(BaseModel):
    """Cumulative counters plus current size; hitRate is hits / totalQueries."""
    hits: int
    misses: int
    evictions: int
    totalQueries: int
    currentEntries: int
    estimatedMemoryMB: float
    hitRate: float


class CacheConfigRead(BaseModel):
    enabled: bool
    ttlMs: int
    maxMemoryMB: float
    maxEntries: int
    cleanupIntervalMs: int


class CacheConfigUpdate(BaseModel):
    """
    Partial cache config update; omitted fields keep their current value.
    Unknown fields are rejected so a typo does not silently do nothing.
    """
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    ttlMs: Optional[int] = Field(None, gt=0, description="Absolute lifetime of a snapshot in ms")
    maxMemoryMB: Optional[float] = Field(None, gt=0, description="Estimated memory ceiling in MB")
    maxEntries: Optional[int] = Field(None, gt=0, description="Max number of cached snapshots")
    cleanupIntervalMs: Optional[int] = Field(None, gt=0, description="Sweeper period in ms")

    def to_changes(self) -> Dict[str, object]:
        """Only the provided fields, renamed to CacheConfig attribute names."""
        names = {
            "enabled": "enabled",
            "ttlMs": "ttl_ms",
            "maxMemoryMB": "max_memory_mb",
            "maxEntries": "max_entries",
            "cleanupIntervalMs": "cleanup_interval_ms",
        }
        return {names[k]: v for k, v in self.model_dump(exclude_none=True).items()}
