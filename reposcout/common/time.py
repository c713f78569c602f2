"""Clock helpers shared by discovery runs and the inventory."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for run bookkeeping and DB defaults."""
    return dt.datetime.now(dt.UTC)


def seconds_since(started_at: dt.datetime) -> float:
    """Return seconds elapsed since an aware ``started_at`` timestamp."""
    return (utcnow() - started_at).total_seconds()
