from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from src.core.errors import BadRequestError

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def months_for_period(period: str, period_number: int = 1) -> List[int]:
    """Calendar months (1-12) covered by a reporting period."""
    if period == "monthly":
        if not 1 <= period_number <= 12:
            raise BadRequestError("Month must be between 1 and 12")
        return [period_number]
    if period == "quarterly":
        if not 1 <= period_number <= 4:
            raise BadRequestError("Quarter must be between 1 and 4")
        start = (period_number - 1) * 3 + 1
        return [start, start + 1, start + 2]
    if period == "half-yearly":
        if period_number not in (1, 2):
            raise BadRequestError("Half must be 1 or 2")
        return list(range(1, 7)) if period_number == 1 else list(range(7, 13))
    if period == "yearly":
        return list(range(1, 13))
    raise BadRequestError("Unsupported period")


def period_start(time_period: str, today: Optional[date] = None) -> date:
    today = today or date.today()
    if time_period == "month":
        return date(today.year, today.month, 1)
    if time_period == "quarter":
        return date(today.year, ((today.month - 1) // 3) * 3 + 1, 1)
    if time_period == "half":
        return date(today.year, 1 if today.month <= 6 else 7, 1)
    if time_period == "year":
        return date(today.year, 1, 1)
    raise BadRequestError("Unsupported time period")


def remaining_months(today: Optional[date] = None) -> int:
    """Months left in the year, counting the current one."""
    today = today or date.today()
    return 12 - today.month + 1


def month_key(value: datetime | date) -> str:
    return f"{value.year}-{value.month:02d}"


def month_label(value: datetime | date) -> str:
    return f"{MONTH_LABELS[value.month - 1]} {value.year}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
