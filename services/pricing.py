"""
Reservation pricing.

Everything is computed with ``Decimal``; only the final total is rounded to
cents. Discount and tax keep full precision so that callers storing them in
two-place columns round each one exactly once.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from models.enums import ReservationType
from utils.errors import InvalidPricingInput

TAX_RATE = Decimal("0.10")
CENTS = Decimal("0.01")
SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


@dataclass(frozen=True)
class Quote:
    base: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    discount_percent: Decimal
    duration_hours: int
    days: int = 0


def _to_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidPricingInput(f"{field} must be a number")
    try:
        # str() keeps floats like 0.1 from dragging binary noise into the math
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidPricingInput(f"{field} must be a number")
    if not number.is_finite():
        raise InvalidPricingInput(f"{field} must be a number")
    return number


def duration_hours(start: datetime, end: datetime) -> int:
    """Whole hours between start and end, partial hours rounded up."""
    seconds = (end - start).total_seconds()
    return math.ceil(seconds / SECONDS_PER_HOUR)


def compute(reservation_type, start: datetime, end: datetime, hourly_rate, whole_day_rate, discount_percent=0) -> Quote:
    if start is None or end is None or end <= start:
        raise InvalidPricingInput("end_time must be after start_time")

    hourly = _to_decimal(hourly_rate, "hourly_rate")
    daily = _to_decimal(whole_day_rate, "whole_day_rate")
    pct = _to_decimal(discount_percent if discount_percent is not None else 0, "discount")

    if hourly <= 0 or daily <= 0:
        raise InvalidPricingInput("Rates must be positive")
    if pct < 0 or pct > 100:
        raise InvalidPricingInput("discount must be between 0 and 100")
    # the percent is snapshotted in a two-place column and must reprice identically
    if pct != pct.quantize(CENTS):
        raise InvalidPricingInput("discount allows at most two decimal places")

    hours = duration_hours(start, end)
    days = 0
    if reservation_type == ReservationType.HOURLY.value:
        base = hours * hourly
    elif reservation_type == ReservationType.WHOLE_DAY.value:
        days = math.ceil(hours / HOURS_PER_DAY)
        base = days * daily
    else:
        raise InvalidPricingInput("reservation_type must be hourly or whole_day")

    discount = base * pct / 100
    tax = (base - discount) * TAX_RATE
    total = (base - discount + tax).quantize(CENTS, rounding=ROUND_HALF_UP)

    return Quote(
        base=base, discount=discount, tax=tax, total=total,
        discount_percent=pct, duration_hours=hours, days=days,
    )
