"""
Collection store backend (SQLite).

Every entity type lives in its own logical collection of JSON documents keyed
by id. Services do read-modify-write cycles while holding the collection's
lock, so concurrent writers inside one process never lose updates.
"""
import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import StoreError

logger = logging.getLogger(__name__)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path, timeout=5.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class CollectionStore:
    """SQLite-backed store of per-entity-type document collections."""

    def __init__(self, db_path: str = None):
        """Initialize store and create tables if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "taskboard" / "board.db")
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._init_schema()

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success, rolls back on error and always closes."""
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Cannot open store {self.db_path}: {e}")
            raise StoreError(f"Cannot open store: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Store operation failed on {self.db_path}: {e}")
            raise StoreError(f"Store operation failed: {e}") from e
        finally:
            conn.close()

    def _init_schema(self):
        """Create the records table if it doesn't exist."""
        with self._session() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    data TEXT NOT NULL,  -- JSON document
                    PRIMARY KEY (collection, id)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_records_seq ON records(collection, seq)"
            )

    def lock(self, collection: str) -> threading.RLock:
        """Re-entrant lock serializing read-modify-write cycles on one collection."""
        with self._locks_guard:
            if collection not in self._locks:
                self._locks[collection] = threading.RLock()
            return self._locks[collection]

    def read_all(self, collection: str) -> List[dict]:
        """All documents of a collection, in insertion order."""
        with self._session() as conn:
            rows = conn.execute(
                "SELECT data FROM records WHERE collection = ? ORDER BY seq ASC",
                (collection,)
            ).fetchall()
        return [json.loads(row["data"]) for row in rows]

    def get_one(self, collection: str, record_id: str) -> Optional[dict]:
        with self._session() as conn:
            row = conn.execute(
                "SELECT data FROM records WHERE collection = ? AND id = ?",
                (collection, record_id)
            ).fetchone()
        return json.loads(row["data"]) if row else None

    def replace_all(self, collection: str, records: Iterable[dict]) -> List[dict]:
        """Overwrite a collection with exactly `records` (not a diff)."""
        items = [dict(record) for record in records]
        with self.lock(collection), self._session() as conn:
            conn.execute("DELETE FROM records WHERE collection = ?", (collection,))
            conn.executemany(
                "INSERT INTO records (collection, id, seq, data) VALUES (?, ?, ?, ?)",
                [
                    (collection, item["id"], seq, json.dumps(item))
                    for seq, item in enumerate(items)
                ],
            )
        logger.debug(f"Replaced {collection} with {len(items)} records")
        return items

    def upsert_one(self, collection: str, record: dict) -> dict:
        """Insert or update one document; new documents go to the end of the collection."""
        return self.upsert_many(collection, [record])[0]

    def upsert_many(self, collection: str, records: Iterable[dict]) -> List[dict]:
        """Upsert several documents in a single transaction."""
        items = [dict(record) for record in records]
        if not items:
            return items
        with self.lock(collection), self._session() as conn:
            for item in items:
                conn.execute("""
                    INSERT INTO records (collection, id, seq, data)
                    VALUES (?, ?, (SELECT COALESCE(MAX(seq), -1) + 1 FROM records WHERE collection = ?), ?)
                    ON CONFLICT(collection, id) DO UPDATE SET data = excluded.data
                """, (collection, item["id"], collection, json.dumps(item)))
        return items

    def delete_one(self, collection: str, record_id: str) -> bool:
        """Delete a document by id. Returns whether it existed."""
        with self.lock(collection), self._session() as conn:
            cursor = conn.execute(
                "DELETE FROM records WHERE collection = ? AND id = ?",
                (collection, record_id)
            )
            return cursor.rowcount > 0

    def count(self, collection: str) -> int:
        with self._session() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM records WHERE collection = ?", (collection,)
            ).fetchone()[0]
