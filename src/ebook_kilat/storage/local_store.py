"""
Local SQLite fallback store for projects saved while the remote store is down.
"""
import json
import logging
import random
import sqlite3
import string
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LOCAL_PROJECTS_KEY = "pro_ebook_kilat_local_projects"
LOCAL_ID_PREFIX = "local-"


def new_local_id() -> str:
    """Identifier for a record that only exists in local storage."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}-{suffix}"


def is_local_id(project_id: Optional[str]) -> bool:
    return bool(project_id) and project_id.startswith(LOCAL_ID_PREFIX)


class LocalProjectStore:
    """
    On-device fallback storage for projects.
    A small SQLite key/value table; every local project row lives in one JSON
    array stored under LOCAL_PROJECTS_KEY, newest first.
    """

    def __init__(self, db_path: str = "data/local_storage.db"):
        """
        Initialize the local store.

        Args:
            db_path (str): Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        logger.info(f"LocalProjectStore initialized. DB at {self.db_path}")

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        try:
            with self._get_conn() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
                conn.commit()
        except Exception as e:
            logger.critical(f"Failed to initialize local storage database: {e}", exc_info=True)
            raise

    # --- Raw key/value access ---

    def _read_all(self) -> List[Dict[str, Any]]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (LOCAL_PROJECTS_KEY,)
            ).fetchone()
        if not row:
            return []
        try:
            data = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.error("Local project storage is corrupted; treating it as empty")
            return []
        return data if isinstance(data, list) else []

    def _write_all(self, rows: List[Dict[str, Any]]):
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (LOCAL_PROJECTS_KEY, json.dumps(rows, ensure_ascii=False)),
            )
            conn.commit()

    # --- Project rows ---

    def list_projects(self, user_id: str) -> List[Dict[str, Any]]:
        return [row for row in self._read_all() if row.get("user_id") == user_id]

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        for row in self._read_all():
            if row.get("id") == project_id:
                return row
        return None

    def save(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the row with the same id in place, or insert it at the front."""
        rows = self._read_all()
        for index, existing in enumerate(rows):
            if existing.get("id") == row["id"]:
                rows[index] = {**existing, **row}
                self._write_all(rows)
                return rows[index]
        rows.insert(0, row)
        self._write_all(rows)
        logger.info(f"Project {row['id']} stored locally")
        return row

    def delete(self, project_id: str) -> bool:
        rows = self._read_all()
        remaining = [row for row in rows if row.get("id") != project_id]
        if len(remaining) == len(rows):
            return False
        self._write_all(remaining)
        return True
