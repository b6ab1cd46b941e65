# contacts_bridge/config.py
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Contact cache configuration:
#   CONTACT_CACHE_ENABLED: "true" | "false"
#   CONTACT_CACHE_TTL_MS: absolute lifetime of a cached snapshot
#   CONTACT_CACHE_MAX_MEMORY_MB: estimated footprint ceiling across all entries
#   CONTACT_CACHE_MAX_ENTRIES: max number of cached snapshots
#   CONTACT_CACHE_CLEANUP_INTERVAL_MS: how often the background sweeper runs
CONTACT_CACHE_ENABLED = os.getenv("CONTACT_CACHE_ENABLED", "true").lower() == "true"
CONTACT_CACHE_TTL_MS = int(os.getenv("CONTACT_CACHE_TTL_MS", "600000"))  # 10 minutes
CONTACT_CACHE_MAX_MEMORY_MB = float(os.getenv("CONTACT_CACHE_MAX_MEMORY_MB", "50"))
CONTACT_CACHE_MAX_ENTRIES = int(os.getenv("CONTACT_CACHE_MAX_ENTRIES", "10"))
CONTACT_CACHE_CLEANUP_INTERVAL_MS = int(os.getenv("CONTACT_CACHE_CLEANUP_INTERVAL_MS", "60000"))  # 1 minute

# Scripting bridge used to talk to Contacts.app.
OSASCRIPT_BIN = os.getenv("OSASCRIPT_BIN", "osascript")
OSASCRIPT_TIMEOUT_SECONDS = float(os.getenv("OSASCRIPT_TIMEOUT_SECONDS", "30"))

# Read once at process start; change at runtime via PATCH /cache/config.
