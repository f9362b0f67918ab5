"""Shared validation utilities"""

import re
from datetime import date, datetime, timezone
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to digits with an optional leading +.

    Raises:
        ValueError: If the number has fewer than 10 or more than 15 digits
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must have between 10 and 15 digits")

    return f"+{digits}" if has_plus else digits


def validate_password(password: str) -> str:
    if not password or len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    return password


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Optional[str], field: str = "date") -> Optional[date]:
    """
    Parse YYYY-MM-DD (or a full ISO timestamp) into a date.

    Raises:
        ValueError: If the value is not a valid date
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError as e:
        raise ValueError(f"Invalid {field}: expected YYYY-MM-DD") from e


def parse_datetime(value: Optional[str], field: str = "datetime") -> Optional[datetime]:
    """
    Parse an ISO date or timestamp into a naive UTC datetime.
    A bare date is read as midnight.

    Raises:
        ValueError: If the value is not a valid ISO timestamp
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid {field}: expected an ISO 8601 timestamp") from e
    return to_naive_utc(parsed)


def is_bare_date(value: Optional[str]) -> bool:
    """True for a YYYY-MM-DD value with no time part"""
    return bool(value) and len(value.strip()) == 10


def intervals_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap; touching intervals do not overlap"""
    return start_a < end_b and start_b < end_a
