from __future__ import annotations

import json
import sqlite3
import threading
import time
from typing import Any, Dict, List, Optional


class AuditLog:
    """
    Optional SQLite audit log of relay operations.

    This is OFF by default. Enable by setting `RELAY_AUDIT_DB_PATH` (or `AUDIT_DB_PATH`).
    It exists so operators can reconstruct who stored or signed what, and when,
    after a submission fails on chain.

    IMPORTANT:
    - This is not the record store; the relay never reads records back from it.
    - Only hex lengths and prefixes are stored, never full signatures.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = (db_path or "").strip()
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

    def enabled(self) -> bool:
        return bool(self._db_path)

    def append(
        self,
        *,
        ts_ms: int,
        transaction_id: str,
        operation: str,
        ok: bool,
        error_code: str | None = None,
        mode: str | None = None,
        summary: Dict[str, Any] | None = None,
    ) -> None:
        conn = self._get_conn()
        if conn is None:
            return
        payload = json.dumps(summary or {}, sort_keys=True)
        with self._lock:
            conn.execute(
                """
                INSERT INTO relay_events(ts_ms, transaction_id, operation, ok, error_code, mode, summary_json)
                VALUES(?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(ts_ms),
                    str(transaction_id),
                    str(operation),
                    1 if ok else 0,
                    error_code,
                    mode,
                    payload,
                ),
            )
            conn.commit()

    def events(self, transaction_id: str | None = None) -> List[Dict[str, Any]]:
        conn = self._get_conn()
        if conn is None:
            return []
        query = "SELECT ts_ms, transaction_id, operation, ok, error_code, mode, summary_json FROM relay_events"
        params: tuple = ()
        if transaction_id is not None:
            query += " WHERE transaction_id = ?"
            params = (transaction_id,)
        with self._lock:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        return [
            {
                "ts_ms": r[0],
                "transaction_id": r[1],
                "operation": r[2],
                "ok": bool(r[3]),
                "error_code": r[4],
                "mode": r[5],
                "summary": json.loads(r[6]),
            }
            for r in rows
        ]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _get_conn(self) -> Optional[sqlite3.Connection]:
        if not self._db_path:
            return None
        with self._lock:
            if self._conn is None:
                self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
                if self._db_path != ":memory:":
                    self._conn.execute("PRAGMA journal_mode=WAL;")
                self._conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS relay_events(
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        ts_ms INTEGER NOT NULL,
                        transaction_id TEXT NOT NULL,
                        operation TEXT NOT NULL,
                        ok INTEGER NOT NULL,
                        error_code TEXT,
                        mode TEXT,
                        summary_json TEXT NOT NULL
                    )
                    """
                )
                self._conn.commit()
            return self._conn


def now_ms() -> int:
    return int(time.time() * 1000)
