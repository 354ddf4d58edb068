"""Per-user, per-day tally stored in the `daily_counts` table.

Rows are keyed by (user_id, "YYYY-MM-DD"), created on the first increment of a day and never
deleted. The count never drops below zero.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone

from .models import DailyCount


def day_key(day: date | None = None) -> str:
    return (day or date.today()).isoformat()


def get_count(conn: sqlite3.Connection, user_id: int, day: str) -> int:
    row = conn.execute(
        "SELECT count FROM daily_counts WHERE user_id = ? AND day = ?",
        (user_id, day),
    ).fetchone()
    return int(row[0]) if row else 0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_today(conn: sqlite3.Connection, user_id: int, today: date | None = None) -> int:
    return get_count(conn, user_id, day_key(today))


def increment(conn: sqlite3.Connection, user_id: int, today: date | None = None) -> int:
    # Single statement so concurrent sessions never lose an update.
    rows = conn.execute(
        """
        INSERT INTO daily_counts (user_id, day, count, updated_at)
        VALUES (?, ?, 1, ?)
        ON CONFLICT(user_id, day) DO UPDATE SET
            count = count + 1,
            updated_at = excluded.updated_at
        RETURNING count
        """,
        (user_id, day_key(today), _now()),
    ).fetchall()
    conn.commit()
    return int(rows[0][0])


def decrement(conn: sqlite3.Connection, user_id: int, today: date | None = None) -> int:
    rows = conn.execute(
        """
        UPDATE daily_counts
        SET count = count - 1, updated_at = ?
        WHERE user_id = ? AND day = ? AND count > 0
        RETURNING count
        """,
        (_now(), user_id, day_key(today)),
    ).fetchall()
    conn.commit()
    return int(rows[0][0]) if rows else 0


def fetch_history(conn: sqlite3.Connection, user_id: int, start: str, end: str) -> list[DailyCount]:
    rows = conn.execute(
        """
        SELECT day, count, updated_at
        FROM daily_counts
        WHERE user_id = ? AND day >= ? AND day <= ?
        ORDER BY day ASC
        """,
        (user_id, start, end),
    ).fetchall()
    return [DailyCount(day=str(r[0]), count=int(r[1]), updated_at=str(r[2])) for r in rows]
