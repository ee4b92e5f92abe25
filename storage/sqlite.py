"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional, Union
from pathlib import Path

from config.settings import settings


def connect(db_path: Union[str, Path, None] = None) -> sqlite3.Connection:
    """Open a connection with row access by name and foreign keys enforced."""

    path = str(db_path or settings.DB_PATH)
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_conn(db_path: Optional[Union[str, Path]] = None) -> Iterator[sqlite3.Connection]:
    """Yield a connection that commits on success and rolls back on error."""

    conn = connect(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
