"""
Storage backends for step ledgers.

A ledger holds the recorded results of a multi-step node's completed steps,
scoped to one node within one run. The SQLite backend runs in WAL mode so
ledgers survive process restarts and an interrupted run can be replayed.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Generator, Tuple

from core.node_interfaces import CircuitEngineError


logger = logging.getLogger(__name__)


class LedgerStoreError(CircuitEngineError):
    """Base exception for ledger store operations."""
    pass


class LedgerStore(ABC):
    """Persistence interface used by StepCheckpointer."""

    @abstractmethod
    def load(self, run_id: str, node_id: str) -> Dict[int, Any]:
        """Return recorded step results keyed by step index."""
        pass

    @abstractmethod
    def record(self, run_id: str, node_id: str, index: int, result: Any,
               name: str = None) -> None:
        """Record the result of one step. A step index is written once."""
        pass

    @abstractmethod
    def discard_node(self, run_id: str, node_id: str) -> None:
        pass

    @abstractmethod
    def discard_run(self, run_id: str) -> None:
        pass


class InMemoryLedgerStore(LedgerStore):
    """Process-local ledger store; entries are lost with the process."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], Dict[int, Any]] = {}
        self._lock = threading.RLock()

    def load(self, run_id: str, node_id: str) -> Dict[int, Any]:
        with self._lock:
            return dict(self._entries.get((run_id, node_id), {}))

    def record(self, run_id: str, node_id: str, index: int, result: Any,
               name: str = None) -> None:
        with self._lock:
            steps = self._entries.setdefault((run_id, node_id), {})
            if index in steps:
                raise LedgerStoreError(
                    f"Step {index} of node {node_id} in run {run_id} is already recorded"
                )
            steps[index] = result

    def discard_node(self, run_id: str, node_id: str) -> None:
        with self._lock:
            self._entries.pop((run_id, node_id), None)

    def discard_run(self, run_id: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[0] == run_id]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(steps) for steps in self._entries.values())


class SqliteLedgerStore(LedgerStore):
    """
    SQLite-backed ledger store with WAL mode.

    Step results are stored JSON-encoded; anything json.dumps rejects cannot
    be recorded.
    """

    def __init__(self, db_path: str = "data/step_ledger.db"):
        """
        Initialize the SQLite ledger store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._initialize_database()

    def _initialize_database(self) -> None:
        """Create the schema and configure WAL."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA temp_store=MEMORY")
            conn.execute("PRAGMA busy_timeout=5000")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS step_ledger (
                    run_id TEXT NOT NULL,
                    node_id TEXT NOT NULL,
                    step_index INTEGER NOT NULL,
                    step_name TEXT,
                    result TEXT NOT NULL,  -- JSON
                    recorded_at TEXT NOT NULL,
                    PRIMARY KEY (run_id, node_id, step_index)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_step_ledger_recorded_at ON step_ledger (recorded_at)"
            )
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection, converting sqlite errors."""
        conn = None
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=5.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            raise LedgerStoreError(f"Database operation failed: {e}") from e
        finally:
            if conn:
                conn.close()

    def load(self, run_id: str, node_id: str) -> Dict[int, Any]:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT step_index, result FROM step_ledger "
                "WHERE run_id = ? AND node_id = ? ORDER BY step_index",
                (run_id, node_id)
            )
            return {row['step_index']: json.loads(row['result']) for row in cursor}

    def record(self, run_id: str, node_id: str, index: int, result: Any,
               name: str = None) -> None:
        try:
            encoded = json.dumps(result)
        except (TypeError, ValueError) as e:
            raise LedgerStoreError(
                f"Step {index} of node {node_id} produced a result that cannot be stored: {e}"
            ) from e

        with self._lock:
            with self._get_connection() as conn:
                try:
                    conn.execute("""
                        INSERT INTO step_ledger (
                            run_id, node_id, step_index, step_name, result, recorded_at
                        ) VALUES (?, ?, ?, ?, ?, ?)
                    """, (run_id, node_id, index, name, encoded, datetime.now(timezone.utc).isoformat()))
                except sqlite3.IntegrityError as e:
                    raise LedgerStoreError(
                        f"Step {index} of node {node_id} in run {run_id} is already recorded"
                    ) from e
                conn.commit()

    def discard_node(self, run_id: str, node_id: str) -> None:
        with self._lock:
            with self._get_connection() as conn:
                conn.execute(
                    "DELETE FROM step_ledger WHERE run_id = ? AND node_id = ?",
                    (run_id, node_id)
                )
                conn.commit()

    def discard_run(self, run_id: str) -> None:
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("DELETE FROM step_ledger WHERE run_id = ?", (run_id,))
                if cursor.rowcount:
                    logger.debug(f"Discarded {cursor.rowcount} ledger entries for run {run_id}")
                conn.commit()

    def cleanup_old_entries(self, older_than_days: int = 7) -> int:
        """
        Remove entries left behind by runs that never reached a terminal state.

        Args:
            older_than_days: Remove entries recorded more than this many days ago.

        Returns:
            Number of entries removed.
        """
        cutoff_date = datetime.now(timezone.utc) - timedelta(days=older_than_days)

        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM step_ledger WHERE recorded_at < ?",
                    (cutoff_date.isoformat(),)
                )
                deleted_count = cursor.rowcount
                conn.commit()

                conn.execute("VACUUM")
                return deleted_count

    def get_store_stats(self) -> Dict[str, int]:
        """Get entry, run and node counts for the store."""
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT COUNT(*) AS entries,
                       COUNT(DISTINCT run_id) AS runs,
                       COUNT(DISTINCT run_id || '/' || node_id) AS nodes
                FROM step_ledger
            """).fetchone()
            return {'entries': row['entries'], 'runs': row['runs'], 'nodes': row['nodes']}
