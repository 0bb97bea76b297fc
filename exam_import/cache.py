"""
Rejected Import Cache
=====================
SQLite side-channel that keeps a raw JSON copy of every exam the exam
service rejected, so the user can inspect, fix and retry it later.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import (
    CachedExamStatistics,
    CachedInvalidExam,
    ImportErrorType,
)

logger = logging.getLogger(__name__)

# Default database path: project_root/database.sqlite
_DEFAULT_DB_PATH = str(Path(__file__).parent.parent / "database.sqlite")


def get_db_path() -> str:
    """Return the configured database path."""
    return os.environ.get("EXAM_IMPORT_DB_PATH", _DEFAULT_DB_PATH)


@contextmanager
def get_connection(db_path: str = None):
    """
    Context manager for database connections.
    Ensures proper commit/rollback and connection cleanup.
    """
    db_path = db_path or get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = None):
    """
    Initialize the cache schema.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    db_path = db_path or get_db_path()
    logger.info(f"Initializing import cache at: {db_path}")

    with get_connection(db_path) as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS invalid_imports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                data TEXT NOT NULL,
                error_type TEXT DEFAULT 'validation-error',
                cached_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_invalid_imports_cached_at
                ON invalid_imports(cached_at);
        """)


def _row_to_cached(row: sqlite3.Row) -> CachedInvalidExam:
    return CachedInvalidExam(
        id=row["id"],
        exam=row["data"],
        error_type=ImportErrorType(row["error_type"]),
        cached_at=row["cached_at"],
    )


# ─── Mutations ────────────────────────────────────────────────────────────────


def add_invalid_exam(
    data: str,
    error_type: ImportErrorType = ImportErrorType.VALIDATION_ERROR,
    db_path: str = None,
) -> int:
    """Store a rejected exam's JSON. Returns the cache id."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        cursor = conn.execute(
            "INSERT INTO invalid_imports (data, error_type, cached_at) "
            "VALUES (?, ?, ?)",
            (data, error_type.value, datetime.now().isoformat(sep=" ")),
        )
        cache_id = cursor.lastrowid
    logger.info(f"Cached rejected import {cache_id} ({error_type.value})")
    return cache_id


def delete_invalid_exam(cache_id: int, db_path: str = None) -> bool:
    """Delete one cached import. Returns False if it did not exist."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        cursor = conn.execute(
            "DELETE FROM invalid_imports WHERE id = ?", (cache_id,)
        )
        return cursor.rowcount > 0


def clear_invalid_exams(db_path: str = None) -> int:
    """Delete every cached import. Returns the number removed."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        cursor = conn.execute("DELETE FROM invalid_imports")
        removed = cursor.rowcount
    if removed:
        logger.info(f"Cleared {removed} cached imports")
    return removed


# ─── Queries ──────────────────────────────────────────────────────────────────


def get_all_invalid_exams(db_path: str = None) -> list[CachedInvalidExam]:
    init_db(db_path)
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM invalid_imports ORDER BY id"
        ).fetchall()
    return [_row_to_cached(row) for row in rows]


def load_invalid_exam(
    cache_id: int,
    db_path: str = None,
) -> Optional[CachedInvalidExam]:
    init_db(db_path)
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM invalid_imports WHERE id = ?", (cache_id,)
        ).fetchone()
    return _row_to_cached(row) if row else None


def get_statistics(db_path: str = None) -> CachedExamStatistics:
    """Counts per error type and the newest cache timestamp."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        row = conn.execute("""
            SELECT
                COUNT(*) AS total,
                SUM(CASE WHEN error_type = 'validation-error' THEN 1 ELSE 0 END)
                    AS validation_errors,
                SUM(CASE WHEN error_type = 'error' THEN 1 ELSE 0 END)
                    AS general_errors,
                MAX(cached_at) AS most_recent_date
            FROM invalid_imports
        """).fetchone()

    return CachedExamStatistics(
        total=row["total"] or 0,
        validation_errors=row["validation_errors"] or 0,
        general_errors=row["general_errors"] or 0,
        most_recent_date=row["most_recent_date"],
    )
