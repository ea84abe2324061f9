"""Thread-safe TTL cache for the normalized catalog.

Holds the normalized ``cars`` table for ``ttl`` seconds. Each uvicorn worker
gets its own cache instance.
"""

import logging
import threading

from cachetools import TTLCache

from partfinder.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

_CATALOG_KEY = "catalog"


class CatalogCache:
    """TTL cache holding the most recent normalized catalog."""

    def __init__(self, ttl: int = 300) -> None:
        self._cache: TTLCache[str, list[Vehicle]] = TTLCache(maxsize=1, ttl=ttl)
        self._lock = threading.Lock()

    def get(self) -> list[Vehicle] | None:
        """Return the cached catalog, or None on miss/expiry."""
        with self._lock:
            return self._cache.get(_CATALOG_KEY)

    def set(self, catalog: list[Vehicle]) -> None:
        with self._lock:
            self._cache[_CATALOG_KEY] = catalog
        logger.debug(f"Catalog cache set: {len(catalog)} vehicles")

    def invalidate(self) -> None:
        with self._lock:
            self._cache.pop(_CATALOG_KEY, None)
