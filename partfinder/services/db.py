"""Document store access: one lazily created Supabase client per process."""

import logging
import threading
from datetime import datetime, timezone

from supabase import Client, create_client

from partfinder.config import get_settings

logger = logging.getLogger(__name__)

_client: Client | None = None
_lock = threading.Lock()


def get_supabase_client() -> Client:
    """Return the process-wide client, creating it on first use."""
    global _client
    if _client is not None:
        return _client
    with _lock:
        if _client is None:
            settings = get_settings()
            _client = create_client(settings.supabase_url, settings.supabase_key)
            logger.info(f"Connected document store client to {settings.supabase_url}")
    return _client


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp for saved_at / updated_at / submitted_at columns."""
    return datetime.now(timezone.utc).isoformat()
