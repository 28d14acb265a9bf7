from __future__ import annotations

import os
import sqlite3
import threading
import time
from typing import Any, Dict, List, Optional

from querylens.app.core.settings import settings


class HistoryStore:
    """Recent queries, newest first, unique by exact text, capped at max_items."""

    def __init__(self, path: str = settings.HISTORY_DB_PATH, max_items: int = settings.HISTORY_MAX) -> None:
        if path != ":memory:":
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self.max_items = max_items
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS recent_queries(
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts REAL,
              query TEXT
            );
            """
        )
        self._conn.commit()
        self._lock = threading.Lock()

    def add(self, query: str) -> int:
        with self._lock:
            self._conn.execute("DELETE FROM recent_queries WHERE query = ?", (query,))
            cur = self._conn.execute(
                "INSERT INTO recent_queries(ts, query) VALUES(?, ?)",
                (time.time(), query),
            )
            self._conn.execute(
                "DELETE FROM recent_queries WHERE id NOT IN "
                "(SELECT id FROM recent_queries ORDER BY id DESC LIMIT ?)",
                (self.max_items,),
            )
            self._conn.commit()
        lid = cur.lastrowid
        return int(lid) if lid is not None else 0

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        n = self.max_items if limit is None else max(0, min(limit, self.max_items))
        with self._lock:
            rows = self._conn.execute(
                "SELECT query, ts FROM recent_queries ORDER BY id DESC LIMIT ?",
                (n,),
            ).fetchall()
        return [{"query": r[0], "ts": r[1]} for r in rows]

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM recent_queries")
            self._conn.commit()


STORE = HistoryStore()
