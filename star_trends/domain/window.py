from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from star_trends.domain.exceptions import InvalidWindowError
from star_trends.domain.models import DateWindow


def resolve_window(
    start_date: Optional[date],
    end_date: Optional[date],
    now: datetime,
    recency_days: int,
) -> DateWindow:
    """
    Clamps the requested range to what the Events API can still answer.

    effective_start = max(start_date, now - recency_days)
    effective_end   = min(end_date, now)

    Missing endpoints default to the clamp bounds themselves.

    Raises:
        InvalidWindowError: if nothing of the requested range remains.
    """
    today = now.astimezone(timezone.utc).date()
    horizon = (now - timedelta(days=recency_days)).astimezone(timezone.utc).date()

    effective_start = max(start_date, horizon) if start_date else horizon
    effective_end = min(end_date, today) if end_date else today

    if effective_start > effective_end:
        raise InvalidWindowError(
            f"Date range {start_date} to {end_date} lies outside the last "
            f"{recency_days} days covered by the GitHub Events API."
        )
    return DateWindow(start=effective_start, end=effective_end)


def window_bounds(window: DateWindow) -> Tuple[datetime, datetime]:
    """Inclusive UTC bounds: start day 00:00:00 to end day 23:59:59.999999."""
    lower = datetime.combine(window.start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(window.end, time.max, tzinfo=timezone.utc)
    return lower, upper
