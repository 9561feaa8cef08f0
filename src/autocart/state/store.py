"""
Persisted run state and the dedup tracker.

Both live in SQLite so they outlive page navigations and process
restarts; the coordinator is their only writer during a run.
"""

import json
import logging
from typing import Any, List

from autocart.db.connection import Database
from autocart.state.models import RunState

logger = logging.getLogger(__name__)


class RunStateStore:
    """Read / merge-write of the RunState"""

    def __init__(self, database: Database):
        self.database = database

    def get(self) -> RunState:
        rows = self.database.execute_query("SELECT key, value FROM run_state")
        stored = {row['key']: json.loads(row['value']) for row in rows}
        # Keys written by an older schema are dropped
        known = {k: v for k, v in stored.items() if k in RunState.model_fields}
        return RunState.model_validate(known)

    def update(self, **changes: Any) -> RunState:
        unknown = set(changes) - set(RunState.model_fields)
        if unknown:
            raise ValueError(f"Unknown run state fields: {', '.join(sorted(unknown))}")

        merged = self.get().model_dump()
        merged.update(changes)
        state = RunState.model_validate(merged)

        with self.database.get_connection() as conn:
            cursor = conn.cursor()
            for key, value in state.model_dump().items():
                cursor.execute(
                    "INSERT OR REPLACE INTO run_state (key, value) VALUES (?, ?)",
                    (key, json.dumps(value)),
                )
        return state


class ProcessedTracker:
    """Set of product ids visited during the current run, first write wins"""

    def __init__(self, database: Database):
        self.database = database

    def is_processed(self, product_id: str) -> bool:
        row = self.database.fetch_one(
            "SELECT 1 AS hit FROM processed_products WHERE product_id = ?", (product_id,))
        return row is not None

    def mark_processed(self, product_id: str) -> bool:
        """Insert `product_id`; False (and no write) when it was already there."""
        inserted = self.database.execute_update(
            "INSERT OR IGNORE INTO processed_products (product_id) VALUES (?)", (product_id,))
        if inserted == 1:
            logger.debug(f"TRACKER: marked {product_id}")
            return True
        return False

    def clear(self) -> int:
        removed = self.database.execute_update("DELETE FROM processed_products")
        logger.debug(f"TRACKER: cleared {removed} product(s)")
        return removed

    def processed_ids(self) -> List[str]:
        rows = self.database.execute_query("SELECT product_id FROM processed_products ORDER BY id")
        return [row['product_id'] for row in rows]

    def __len__(self):
        row = self.database.fetch_one("SELECT COUNT(*) AS total FROM processed_products")
        return row['total'] if row else 0
