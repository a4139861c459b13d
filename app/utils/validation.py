import re
from datetime import datetime, timezone
from typing import Optional

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def validate_email_format(email: str) -> bool:
    """Validate email format with strict pattern."""
    return bool(EMAIL_PATTERN.match(email)) and len(email) <= 254


def validate_required_text(value: Optional[str], field_name: str, max_length: Optional[int] = None) -> str:
    """Trim a required text field and reject empty or null values."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} is required")

    if max_length is not None and len(value) > max_length:
        raise ValueError(f"{field_name} must be at most {max_length} characters")

    return value


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    """Trim optional text; blank strings count as not provided."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_email(value: Optional[str]) -> str:
    """Validate and normalize a requester email address."""
    value = validate_required_text(value, "Requester email")
    if not validate_email_format(value):
        raise ValueError("Valid email is required")
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetimes to naive UTC so they compare with stored columns."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
