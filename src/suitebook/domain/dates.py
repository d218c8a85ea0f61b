"""Stay dates and guest count validation.

Dates travel as ISO strings (YYYY-MM-DD) the way date inputs submit them.
Validation order matters: the first failing rule wins and its message is
shown to the guest verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

MSG_MISSING_DATES = "Please select both check-in and check-out dates."
MSG_INVALID_DATES = "Please select valid dates."
MSG_CHECKOUT_BEFORE_CHECKIN = "Check-out date must be after check-in date."
MSG_INVALID_GUESTS = "Please select at least one guest."

DEFAULT_GUESTS = 2


class DateValidationError(ValueError):
    """Raised when a date pair or guest count fails validation.

    The message is user-facing.
    """

    def __init__(self, message: str, field: str = "dates"):
        self.message = message
        self.field = field
        super().__init__(message)


@dataclass(frozen=True)
class DateRange:
    """Validated stay dates. Invariant: check_out > check_in."""

    check_in: date
    check_out: date

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def starts_in_past(self, today: date) -> bool:
        return self.check_in < today

    def to_query(self) -> dict[str, str]:
        return {"checkIn": self.check_in.isoformat(), "checkOut": self.check_out.isoformat()}


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise DateValidationError(MSG_INVALID_DATES)


def validate_date_range(check_in: str | None, check_out: str | None) -> DateRange:
    """Validate a check-in/check-out pair.

    Raises:
        DateValidationError: on the first failing rule.
    """
    if not check_in or not check_out:
        raise DateValidationError(MSG_MISSING_DATES)

    if check_in.strip() == "" or check_out.strip() == "":
        raise DateValidationError(MSG_INVALID_DATES)

    check_in_date = _parse_iso_date(check_in)
    check_out_date = _parse_iso_date(check_out)

    if check_out_date <= check_in_date:
        raise DateValidationError(MSG_CHECKOUT_BEFORE_CHECKIN)

    return DateRange(check_in=check_in_date, check_out=check_out_date)


def validate_guest_count(guests: int | None) -> int:
    """Guests must be an integer >= 1. No upper bound here, capacity is checked server side."""
    if isinstance(guests, bool) or not isinstance(guests, int) or guests < 1:
        raise DateValidationError(MSG_INVALID_GUESTS, field="guests")
    return guests


def default_date_range(today: date) -> DateRange:
    """Initial widget dates: tonight only."""
    return DateRange(check_in=today, check_out=today + timedelta(days=1))
