"""Checkout handoff: booking context carried in the checkout URL query.

Query parameters:
    room       JSON of the selected room, as returned by the availability API
    checkIn    ISO date
    checkOut   ISO date
    guests     integer
    guestInfo  JSON of the guest data collected or looked up
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping
from urllib.parse import parse_qs, urlencode, urlsplit

from .dates import DateRange
from .rooms import Room, to_decimal

TAX_RATE = Decimal("0.15")
_CENTS = Decimal("0.01")


class CheckoutEncodingError(ValueError):
    """Raised when the booking context cannot be encoded or decoded."""


@dataclass(frozen=True)
class CheckoutRequest:
    room: dict[str, Any]
    date_range: DateRange
    guests: int
    guest_info: dict[str, Any]


def build_checkout_url(
    base_path: str,
    room: Room,
    date_range: DateRange,
    guests: int,
    guest_data: dict[str, Any] | None,
) -> str:
    """Serialise the booking context into a checkout URL.

    Raises:
        CheckoutEncodingError: if room or guest data is not JSON serialisable.
    """
    try:
        params = {
            "room": json.dumps(room.to_api(), separators=(",", ":")),
            "checkIn": date_range.check_in.isoformat(),
            "checkOut": date_range.check_out.isoformat(),
            "guests": str(guests),
            "guestInfo": json.dumps(guest_data or {}, separators=(",", ":")),
        }
    except (TypeError, ValueError) as e:
        raise CheckoutEncodingError(f"cannot encode checkout context: {e}")

    return f"{base_path}?{urlencode(params)}"


def _single(query: Mapping[str, Any], name: str) -> str:
    value = query.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or value == "":
        raise CheckoutEncodingError(f"missing query parameter: {name}")
    return str(value)


def parse_checkout_query(query: Mapping[str, Any] | str) -> CheckoutRequest:
    """Decode checkout query parameters (a mapping or a full URL / query string).

    Raises:
        CheckoutEncodingError: on missing or malformed parameters.
    """
    if isinstance(query, str):
        raw = urlsplit(query).query if "?" in query else query
        query = parse_qs(raw, keep_blank_values=True)

    raw_guest_info = query.get("guestInfo")
    if isinstance(raw_guest_info, list):
        raw_guest_info = raw_guest_info[0] if raw_guest_info else None

    try:
        room = json.loads(_single(query, "room"))
        guest_info = json.loads(raw_guest_info) if raw_guest_info else {}
    except json.JSONDecodeError as e:
        raise CheckoutEncodingError(f"malformed JSON parameter: {e.msg}")
    if not isinstance(room, dict) or not isinstance(guest_info, dict):
        raise CheckoutEncodingError("room and guestInfo must be JSON objects")

    try:
        check_in = date.fromisoformat(_single(query, "checkIn"))
        check_out = date.fromisoformat(_single(query, "checkOut"))
        guests = int(_single(query, "guests"))
    except ValueError:
        raise CheckoutEncodingError("malformed dates or guest count")

    if check_out <= check_in:
        raise CheckoutEncodingError("checkOut must be after checkIn")

    return CheckoutRequest(
        room=room,
        date_range=DateRange(check_in=check_in, check_out=check_out),
        guests=guests,
        guest_info=guest_info,
    )


@dataclass(frozen=True)
class PriceSummary:
    nights: int
    nightly_rate: Decimal
    subtotal: Decimal
    taxes: Decimal
    total: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "nights": self.nights,
            "nightlyRate": str(self.nightly_rate),
            "subtotal": str(self.subtotal),
            "taxes": str(self.taxes),
            "total": str(self.total),
        }


def price_summary(nightly_rate: Any, date_range: DateRange) -> PriceSummary:
    """Rate x nights plus taxes and fees."""
    rate = to_decimal(nightly_rate).quantize(_CENTS, rounding=ROUND_HALF_UP)
    subtotal = (rate * date_range.nights).quantize(_CENTS, rounding=ROUND_HALF_UP)
    taxes = (subtotal * TAX_RATE).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return PriceSummary(
        nights=date_range.nights,
        nightly_rate=rate,
        subtotal=subtotal,
        taxes=taxes,
        total=subtotal + taxes,
    )
