from __future__ import annotations
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

_DB_PATH = Path("./curlcount.db")

SCHEMA = r"""
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS users (
  username TEXT PRIMARY KEY,
  reps INTEGER NOT NULL DEFAULT 0,
  updated_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS workouts (
  id TEXT PRIMARY KEY,
  username TEXT NOT NULL,
  started_at REAL NOT NULL,
  stopped_at REAL,
  total_reps INTEGER
);
"""

_conn: Optional[sqlite3.Connection] = None
_lock = threading.Lock()


@dataclass(frozen=True)
class LeaderboardEntry:
    username: str
    reps: int
    timestamp: float


def configure(path: Path):
    """Point the module at another database file (closes any open connection)."""
    global _DB_PATH, _conn
    with _lock:
        if _conn is not None:
            _conn.close()
            _conn = None
        _DB_PATH = Path(path)


def get_conn() -> sqlite3.Connection:
    global _conn
    if _conn is None:
        _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _conn = sqlite3.connect(_DB_PATH.as_posix(), check_same_thread=False)
        _conn.executescript(SCHEMA)
        _conn.commit()
    return _conn

# Leaderboard documents

def upsert_user(username: str, reps: int, ts: float):
    """Merge-write {reps, updated_at} under username."""
    with _lock:
        conn = get_conn()
        conn.execute(
            """
            INSERT INTO users (username, reps, updated_at) VALUES (?,?,?)
            ON CONFLICT(username) DO UPDATE SET reps=excluded.reps, updated_at=excluded.updated_at
            """,
            (username, int(reps), ts),
        )
        conn.commit()


def get_user(username: str) -> Optional[LeaderboardEntry]:
    with _lock:
        row = get_conn().execute(
            "SELECT username, reps, updated_at FROM users WHERE username=?", (username,)
        ).fetchone()
    return LeaderboardEntry(*row) if row else None


def top_users(limit: int = 10) -> List[LeaderboardEntry]:
    with _lock:
        rows = get_conn().execute(
            "SELECT username, reps, updated_at FROM users ORDER BY reps DESC, username ASC LIMIT ?",
            (int(limit),),
        ).fetchall()
    return [LeaderboardEntry(*r) for r in rows]

# Workout sessions

def insert_workout(workout_id: str, username: str, started_at: float):
    with _lock:
        conn = get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO workouts (id, username, started_at) VALUES (?,?,?)",
            (workout_id, username, started_at),
        )
        conn.commit()


def stop_workout(workout_id: str, stopped_at: float, total_reps: int):
    with _lock:
        conn = get_conn()
        conn.execute(
            "UPDATE workouts SET stopped_at=?, total_reps=? WHERE id=?",
            (stopped_at, int(total_reps), workout_id),
        )
        conn.commit()


def get_workout(workout_id: str) -> Optional[dict]:
    with _lock:
        row = get_conn().execute(
            "SELECT id, username, started_at, stopped_at, total_reps FROM workouts WHERE id=?",
            (workout_id,),
        ).fetchone()
    if row is None:
        return None
    return dict(zip(("id", "username", "started_at", "stopped_at", "total_reps"), row))
