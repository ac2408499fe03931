"""Database schema and initialization."""
import sqlite3
from pathlib import Path


DATABASE_SCHEMA = """
-- Cache table: one serialized record per tracked source
CREATE TABLE IF NOT EXISTS cache (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Preferences table: JSON encoded user settings
CREATE TABLE IF NOT EXISTS prefs (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def init_database(db_path: str | Path) -> sqlite3.Connection:
    """
    Initialize database with schema.
    
    Args:
        db_path: Path to SQLite database file, or ":memory:"
        
    Returns:
        Database connection
    """
    if str(db_path) != ":memory:":
        db_path = Path(db_path)
        # Ensure data directory exists
        db_path.parent.mkdir(parents=True, exist_ok=True)
    
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode = WAL")
    
    # Initialize schema
    conn.executescript(DATABASE_SCHEMA)
    conn.commit()
    
    return conn
