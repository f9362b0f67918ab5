"""
Booking price calculations.

Rates are per unit of the rate type (hour, day, week, month). Monthly pricing
counts whole calendar months from the start and charges the remainder pro-rata
against the length of the month it falls in.
"""

import calendar
import math
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

HOURLY = "hourly"
DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"

RATE_TYPES = (HOURLY, DAILY, WEEKLY, MONTHLY)

NOTICE_PERIOD = relativedelta(months=1)


def months_between(start: datetime, end: datetime) -> float:
    """Whole months plus the leftover as a fraction of the following month"""
    delta = relativedelta(end, start)
    whole = delta.years * 12 + delta.months
    anchor = start + relativedelta(months=whole)
    days_in_month = calendar.monthrange(anchor.year, anchor.month)[1]
    remaining_days = (end - anchor).total_seconds() / 86400
    return whole + remaining_days / days_in_month


def calculate_total_price(
    start: datetime,
    end: datetime,
    rate: float,
    quantity: int = 1,
    rate_type: str = HOURLY,
) -> float:
    """
    Price of a booking at a flat rate.

    Hourly bookings are charged per fractional hour; daily and weekly bookings
    round up to whole days/weeks; monthly bookings use months_between().

    Raises:
        ValueError: If the range is empty or the rate type is unknown
    """
    if end <= start:
        raise ValueError("End time must be after start time")
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")

    hours = (end - start).total_seconds() / 3600
    if rate_type == HOURLY:
        units = hours
    elif rate_type == DAILY:
        units = math.ceil(hours / 24)
    elif rate_type == WEEKLY:
        units = math.ceil(hours / (24 * 7))
    elif rate_type == MONTHLY:
        units = months_between(start, end)
    else:
        raise ValueError(f"Unknown rate type: {rate_type}")

    return round(units * rate * quantity, 2)


def quantity_multiplier(quantity: int, cost_multiplier: Optional[dict]) -> float:
    """Multiplier of the largest tier not above quantity (1.0 when none applies)"""
    if not cost_multiplier:
        return 1.0
    # JSON columns come back with string keys, literals may use ints
    tiers = {int(k): float(v) for k, v in cost_multiplier.items()}
    eligible = [k for k in tiers if k <= quantity]
    if not eligible:
        return 1.0
    return tiers[max(eligible)]


def apply_quantity_discounts(base_price: float, quantity: int, cost_multiplier: Optional[dict]) -> float:
    return round(base_price * quantity_multiplier(quantity, cost_multiplier), 2)


def rates_for(seating_type) -> dict:
    """Positive rates a seating type offers, keyed by rate type"""
    candidates = {
        HOURLY: seating_type.hourly_rate,
        DAILY: seating_type.daily_rate,
        WEEKLY: seating_type.weekly_rate,
        MONTHLY: seating_type.monthly_rate,
    }
    return {k: v for k, v in candidates.items() if v}


def find_best_rate_type(start: datetime, end: datetime, seating_type, quantity: int = 1) -> Optional[dict]:
    """Cheapest rate type for a range, or None if the seating type has no rates"""
    best = None
    for rate_type, rate in rates_for(seating_type).items():
        price = calculate_total_price(start, end, rate, quantity, rate_type)
        if best is None or price < best["total_price"]:
            best = {"rate_type": rate_type, "rate": rate, "total_price": price}
    return best


def _month_breakdown(start: date, end: date, monthly_rate: float) -> list[dict]:
    """Per calendar month charge for the inclusive range start..end"""
    items = []
    cursor = start
    while cursor <= end:
        days_in_month = calendar.monthrange(cursor.year, cursor.month)[1]
        month_end = date(cursor.year, cursor.month, days_in_month)
        last = min(month_end, end)
        days = (last - cursor).days + 1
        label = cursor.strftime("%B %Y")
        if days == days_in_month:
            description = f"Full month: {label}"
        else:
            description = f"Pro-rata for {label} ({cursor.day}-{last.day})"
        items.append(
            {
                "month": cursor.strftime("%Y-%m"),
                "description": description,
                "days": days,
                "total_days": days_in_month,
                "amount": monthly_rate * days / days_in_month,
            }
        )
        cursor = month_end + relativedelta(days=1)
    return items


def calculate_booking_cost(
    start_date: date,
    end_date: date,
    monthly_rate: float,
    cancellation_date: Optional[date] = None,
) -> dict:
    """
    Pro-rata cost of a monthly booking covering start_date..end_date (inclusive).

    With a cancellation date the customer owes everything up to the end of a
    one month notice period; the rest of the booking is refunded.

    Raises:
        ValueError: If end_date is before start_date or the rate is negative
    """
    if end_date < start_date:
        raise ValueError("End date must not be before start date")
    if monthly_rate < 0:
        raise ValueError("Monthly rate cannot be negative")

    breakdown = _month_breakdown(start_date, end_date, monthly_rate)
    total = sum(item["amount"] for item in breakdown)

    result = {
        "start_date": start_date,
        "end_date": end_date,
        "monthly_rate": monthly_rate,
        "breakdown": [{**item, "amount": round(item["amount"], 2)} for item in breakdown],
        "total_cost": round(total, 2),
        "amount_payable": round(total, 2),
        "refund_amount": 0.0,
    }

    if cancellation_date is not None:
        notice_end = cancellation_date + NOTICE_PERIOD
        result["cancellation_date"] = cancellation_date
        result["notice_end_date"] = notice_end
        if notice_end < end_date:
            used = 0.0
            if notice_end >= start_date:
                used = sum(item["amount"] for item in _month_breakdown(start_date, notice_end, monthly_rate))
            result["amount_payable"] = round(used, 2)
            result["refund_amount"] = round(max(0.0, total - used), 2)

    return result
