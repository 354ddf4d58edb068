from __future__ import annotations

import sqlite3
from datetime import date, timedelta

import pandas as pd

from .counter import fetch_history
from .models import TrendPoint

PERIODS = (7, 30, 90, 180, 365)


def trend_range(
    conn: sqlite3.Connection,
    user_id: int,
    days: int,
    today: date | None = None,
) -> list[TrendPoint]:
    """Daily counts for the last `days` days, oldest first, ending today. Missing days count 0."""
    if days not in PERIODS:
        raise ValueError(f"Unsupported trend period: {days}")

    end = today or date.today()
    start = end - timedelta(days=days - 1)
    history = {row.day: row.count for row in fetch_history(conn, user_id, start.isoformat(), end.isoformat())}

    points = []
    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        points.append(TrendPoint(date=day, count=history.get(day, 0)))
    return points


def percentage_change(points: list[TrendPoint]) -> float | None:
    """Change of today's count against yesterday's, in percent."""
    if len(points) < 2:
        return None
    yesterday, today = points[-2].count, points[-1].count
    if yesterday == 0:
        return 100.0 if today > 0 else None
    return (today - yesterday) / yesterday * 100


def trend_frame(points: list[TrendPoint]) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "Date": pd.to_datetime([p.date for p in points]),
            "Count": [p.count for p in points],
        }
    )
    df["Count"] = df["Count"].astype(int)
    return df
