from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def utcnow() -> datetime:
    """Timezone-aware current UTC time (microsecond resolution, unlike SQLite's CURRENT_TIMESTAMP)"""
    return datetime.now(timezone.utc)


def round_rating(value: float) -> float:
    """Round to one decimal place, halves away from zero (7.25 -> 7.3)"""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def mean_rating(ratings: Iterable) -> float:
    """
    Arithmetic mean of rating values rounded to one decimal place.

    Accepts Rating rows or plain numbers. Returns 0.0 when there are no ratings.
    """
    values = [float(getattr(r, "rating", r)) for r in ratings or []]
    if not values:
        return 0.0
    return round_rating(sum(values) / len(values))
