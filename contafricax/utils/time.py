from __future__ import annotations
from datetime import date, datetime, timezone

__all__ = ["utc_now", "today", "month_key", "shift_month"]


def utc_now() -> datetime:
    """Timezone-aware current UTC time (replaces datetime.utcnow)."""
    return datetime.now(timezone.utc)


def today() -> date:
    return utc_now().date()


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by ``delta`` months, e.g. (2025, 1, -1) -> (2024, 12)."""
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1
