"""
Core utility functions used across domains
"""
import math
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days elapsed from ``earlier`` to ``later`` (floored, may be negative)"""
    delta = ensure_utc(later) - ensure_utc(earlier)
    return math.floor(delta.total_seconds() / 86400)


def add_months(value: date, months: int) -> date:
    """First day of the month ``months`` after the month of ``value``"""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_key(value: date) -> tuple[int, int]:
    """(year, month) pair used for month bucketing"""
    return value.year, value.month


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]; NaN collapses to lower"""
    if math.isnan(value):
        return lower
    return max(lower, min(upper, value))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers, returning default if denominator is zero"""
    if denominator == 0:
        return default
    return numerator / denominator


def round_half_up(value: float, decimals: int = 2) -> float:
    """Round with ROUND_HALF_UP semantics instead of banker's rounding"""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
