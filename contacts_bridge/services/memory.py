# contacts_bridge/services/memory.py
"""
Approximate footprint of cached contact snapshots.

The estimate models every string as UTF-16 code units (2 bytes each) plus a
fixed overhead per cache entry for container bookkeeping. It does not try to
match real interpreter memory usage; it only has to be cheap and grow with
the snapshot.
"""
from typing import Dict, Iterable, List

BYTES_PER_MB = 1024 * 1024
ENTRY_OVERHEAD_BYTES = 200


def _utf16_bytes(value: str) -> int:
    return len(value.encode("utf-16-le"))


def estimate_snapshot_bytes(snapshot: Dict[str, List[str]]) -> int:
    """Estimated size in bytes of one cached snapshot, overhead included."""
    total = ENTRY_OVERHEAD_BYTES
    for name, phones in snapshot.items():
        total += _utf16_bytes(name)
        total += sum(_utf16_bytes(phone) for phone in phones)
    return total


def estimate_snapshot_mb(snapshot: Dict[str, List[str]]) -> float:
    return estimate_snapshot_bytes(snapshot) / BYTES_PER_MB


def estimate_total_mb(snapshots: Iterable[Dict[str, List[str]]]) -> float:
    """Sum of the estimates over every cached snapshot."""
    return sum(estimate_snapshot_bytes(s) for s in snapshots) / BYTES_PER_MB
