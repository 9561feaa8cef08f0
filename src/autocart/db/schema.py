"""
SQLite schema for the cart automation: persisted run state and the
per-run set of processed products.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from autocart.db.connection import default_database_path

logger = logging.getLogger(__name__)


def create_database(db_path: Optional[Path] = None) -> Path:
    """Create all database tables"""
    db_path = Path(db_path) if db_path else default_database_path()

    # Ensure data directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # Run state, one JSON value per key
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS run_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    # Products visited in the current run, insertion order = id order
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS processed_products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            product_id TEXT UNIQUE NOT NULL,
            processed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.commit()
    conn.close()

    logger.debug(f"DATABASE: schema ready at {db_path}")
    return db_path


if __name__ == "__main__":
    print(f"[OK] Database created at: {create_database()}")
