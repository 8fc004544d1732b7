from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from ..errors import ValidationError

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("100000000")


def parse_amount(value, field="amount", allow_zero=False):
    """Coerce ``value`` to a two-decimal Decimal, rejecting non-finite and non-positive input."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be positive")
    # Money columns are Numeric(10, 2)
    if amount >= MAX_AMOUNT:
        raise ValidationError(f"{field} must be less than {MAX_AMOUNT:,}")
    amount = amount.quantize(CENTS)
    if amount == 0 and not allow_zero:
        raise ValidationError(f"{field} must be positive")
    return amount


def parse_date(value, field="date"):
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} is required")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field} format. Use YYYY-MM-DD")


def parse_instant(value, field="as_of"):
    """Parse an ISO-8601 timestamp; a bare date means midnight of that day."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return date_parser.isoparse(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}; expected an ISO-8601 timestamp")


def parse_period(value):
    """Validate a "YYYY-MM" calendar month key and return (year, month)."""
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except (TypeError, ValueError):
        raise ValidationError("Invalid period format. Use YYYY-MM")
    return parsed.year, parsed.month
