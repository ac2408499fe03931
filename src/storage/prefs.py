"""User preferences stored as JSON values."""
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional


REFRESH_CIRCLE = "refresh-circle"
OPEN_IN_SAFARI = "open-in-safari"


class PreferencesStore:
    """Small key/value store for settings such as the refresh interval."""
    
    def __init__(self, conn: sqlite3.Connection, logger: Optional[logging.Logger] = None):
        self.conn = conn
        self.logger = logger or logging.getLogger("widget")
    
    def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key`` or None if unset or unreadable."""
        row = self.conn.execute(
            "SELECT value FROM prefs WHERE key = ?",
            (key,)
        ).fetchone()
        
        if not row:
            return None
        
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            self.logger.warning(f"Ignoring unreadable preference '{key}'")
            return None
    
    def set(self, key: str, value: Any) -> None:
        self.conn.execute(
            """
            INSERT INTO prefs (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(value, ensure_ascii=False), datetime.now().isoformat())
        )
        self.conn.commit()
    
    def all(self) -> dict[str, Any]:
        """All stored preferences."""
        return {
            key: self.get(key)
            for (key,) in self.conn.execute("SELECT key FROM prefs ORDER BY key").fetchall()
        }
