"""Durable cache of fetched posts, keyed by source name."""
import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from ..domain import CacheRecord, DeserializationError


class CacheStore:
    """
    Key/value store for ``CacheRecord`` objects.
    
    There is no TTL: callers judge staleness from ``captured_at``. Writes
    replace the previous value (last write wins).
    """
    
    def __init__(self, conn: sqlite3.Connection, logger: Optional[logging.Logger] = None):
        """
        Initialize cache store.
        
        Args:
            conn: Connection created by ``init_database``
            logger: Logger instance
        """
        self.conn = conn
        self.logger = logger or logging.getLogger("widget")
    
    async def get(self, key: str) -> Optional[CacheRecord]:
        """
        Load the record for ``key``.
        
        Malformed data is reported and treated as a missing record.
        
        Args:
            key: Source name
            
        Returns:
            CacheRecord or None
        """
        row = self.conn.execute(
            "SELECT value FROM cache WHERE key = ?",
            (key,)
        ).fetchone()
        
        if not row:
            return None
        
        try:
            return CacheRecord.from_dict(json.loads(row[0]))
        except (json.JSONDecodeError, DeserializationError) as e:
            self.logger.warning(f"Ignoring malformed cache entry for '{key}': {e}")
            return None
    
    async def set(self, key: str, record: CacheRecord) -> None:
        """
        Store ``record`` under ``key``, replacing any previous value.
        
        Args:
            key: Source name
            record: Record to persist
        """
        value = json.dumps(record.to_dict(), ensure_ascii=False)
        self.conn.execute(
            """
            INSERT INTO cache (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat())
        )
        self.conn.commit()
    
    async def delete(self, key: str) -> bool:
        """Remove the record for ``key``. Returns True if one existed."""
        cursor = self.conn.execute("DELETE FROM cache WHERE key = ?", (key,))
        self.conn.commit()
        return cursor.rowcount > 0
    
    def keys(self) -> list[str]:
        """All source names with a cached record."""
        return [row[0] for row in self.conn.execute("SELECT key FROM cache ORDER BY key")]
