"""
In-memory cache of formatted schema snapshots, keyed by database identity.
Entries live until explicitly invalidated; schema changes are not detected.
"""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def schema_cache_key(db_type: str, identity: str, tables: Optional[list[str]] = None) -> str:
    table_part = ",".join(sorted(tables)) if tables is not None else "*"
    return f"{db_type}|{identity}|{table_part}"


class SchemaCache:
    def __init__(self):
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, schema_text: str) -> None:
        with self._lock:
            self._entries[key] = schema_text

    def get_or_build(self, key: str, build: Callable[[], str]) -> str:
        """Return the cached text for `key`, building and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("Schema cache hit: %s", key)
            return cached
        logger.info("Schema cache miss: %s", key)
        schema_text = build()
        self.set(key, schema_text)
        return schema_text

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Schema cache cleared (%d entries)", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide cache used by the request layer
schema_cache = SchemaCache()
