from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime
from typing import Any

from .settings import settings

logger = logging.getLogger("pns")

DB_PATH = settings.db_path


def utc_now() -> str:
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    When the syncer runs in a container, a bind-mounted *file* path that does
    not exist yet is created by Docker as a *directory*. If the configured path
    is a directory, the journal is placed inside it.
    """

    p = os.path.abspath(DB_PATH)

    if os.path.isdir(p):
        p = os.path.join(p, "pns.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist."""
    with connect() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              network_id TEXT,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            """
        )


def log_event(level: str, message: str, network_id: str | None = None) -> None:
    """Record an event in the journal and echo it to the process log."""
    level = level.upper()
    if network_id:
        logger.log(logging.getLevelName(level), "%s (network %s)", message, network_id[:12])
    else:
        logger.log(logging.getLevelName(level), "%s", message)

    # A failing journal must never break a reconciliation cycle.
    try:
        with connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, network_id, message) VALUES (?, ?, ?, ?)",
                (utc_now(), level, network_id, message),
            )
    except (sqlite3.Error, OSError):
        logger.exception("Unable to write event journal at %s", DB_PATH)


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with connect() as conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
    return [dict(r) for r in rows]
