"""
Helper utilities
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple


def utc_today() -> date:
    """Current calendar day in UTC"""
    return datetime.now(timezone.utc).date()


def parse_range_months(value: Any, default: int = 24) -> int:
    """Read a ?range= / ?months= value, falling back to default when not a positive integer"""
    try:
        months = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return months if months > 0 else default


def months_ago_first_day(today: date, months: int) -> date:
    """First day of the month that lies ``months`` calendar months before ``today``"""
    total = today.year * 12 + (today.month - 1) - months
    return date(total // 12, total % 12 + 1, 1)


def calculate_report_window(months: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Calculate the trailing report window.

    The window starts on the first day of the month ``months`` months back and
    ends today (UTC), both inclusive.
    """
    end = today or utc_today()
    return months_ago_first_day(end, months), end


def enumerate_days(start: date, end: date) -> List[date]:
    """Every calendar day in [start, end], inclusive"""
    if start > end:
        raise ValueError(f"Window start {start} is after end {end}")
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def to_utc_day(timestamp: str) -> date:
    """Calendar day (UTC) of an ISO-8601 timestamp such as '2024-03-01T23:10:00Z'"""
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def safe_divide(numerator: float, denominator: float, default: Optional[float] = None) -> Optional[float]:
    """Divide, returning default when the denominator is not positive"""
    if not denominator or denominator <= 0:
        return default
    return numerator / denominator


def chunk_list(lst: List, chunk_size: int) -> List[List]:
    """Split list into chunks"""
    return [lst[i:i + chunk_size] for i in range(0, len(lst), chunk_size)]
