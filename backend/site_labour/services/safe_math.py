"""Division and bounding helpers shared by every labour calculation."""
import math
from datetime import datetime, timedelta
from typing import Optional


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Divide ``numerator`` by ``denominator``, returning ``default`` when the
    denominator is zero or the quotient is not a finite number.
    """
    if denominator == 0:
        return default
    try:
        result = numerator / denominator
    except (ZeroDivisionError, OverflowError):
        return default
    if not math.isfinite(result):
        return default
    return result


def clamp(value: float, low: Optional[float] = None, high: Optional[float] = None) -> float:
    """Bound ``value`` to ``[low, high]``; either side may be omitted."""
    if low is not None and value < low:
        value = low
    if high is not None and value > high:
        value = high
    return value


def ceil_days(value: float) -> int:
    """Round a day count up to a whole day, treating non-finite input as zero."""
    if not math.isfinite(value):
        return 0
    return math.ceil(value)


def add_days(moment: datetime, days: float) -> datetime:
    """
    ``moment`` shifted forward by ``days``, stopping one day short of
    ``datetime.max`` instead of overflowing.
    """
    headroom = (datetime.max - moment.replace(tzinfo=None)).days - 1
    return moment + timedelta(days=clamp(days, 0, max(0, headroom)))
