"""Tests for the checkout handoff encoding."""

from datetime import date
from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

import pytest

from helpers import COMPLETE_GUEST, make_room_payload
from suitebook.domain.checkout import (
    CheckoutEncodingError,
    build_checkout_url,
    parse_checkout_query,
    price_summary,
)
from suitebook.domain.dates import DateRange
from suitebook.domain.rooms import Room

DATES = DateRange(date(2025, 3, 10), date(2025, 3, 12))


class TestCheckoutUrl:
    def test_round_trip(self):
        payload = make_room_payload(base_price={"$numberDecimal": "850.00"})
        guest = dict(COMPLETE_GUEST, name="Ahmad Rahimi & Co", address="Street 4, Kabul")
        url = build_checkout_url("/checkout", Room.from_api(payload), DATES, 2, guest)

        decoded = parse_checkout_query(url)

        assert decoded.room == payload
        assert decoded.date_range == DATES
        assert decoded.guests == 2
        assert decoded.guest_info == guest

    def test_parameter_names(self):
        url = build_checkout_url("/checkout", Room.from_api(make_room_payload()), DATES, 3, {})
        parts = urlsplit(url)
        assert parts.path == "/checkout"
        query = parse_qs(parts.query)
        assert set(query) == {"room", "checkIn", "checkOut", "guests", "guestInfo"}
        assert query["checkIn"] == ["2025-03-10"]
        assert query["guests"] == ["3"]

    def test_unserialisable_guest_data(self):
        with pytest.raises(CheckoutEncodingError):
            build_checkout_url("/checkout", Room.from_api(make_room_payload()), DATES, 1, {"x": object()})

    def test_missing_room_param(self):
        with pytest.raises(CheckoutEncodingError):
            parse_checkout_query({"checkIn": "2025-03-10", "checkOut": "2025-03-12", "guests": "2"})

    def test_malformed_json(self):
        with pytest.raises(CheckoutEncodingError):
            parse_checkout_query(
                {"room": "{nope", "checkIn": "2025-03-10", "checkOut": "2025-03-12", "guests": "2"}
            )

    def test_inverted_dates(self):
        with pytest.raises(CheckoutEncodingError):
            parse_checkout_query(
                {"room": "{}", "checkIn": "2025-03-12", "checkOut": "2025-03-10", "guests": "2"}
            )

    def test_guest_info_optional(self):
        decoded = parse_checkout_query(
            {"room": "{}", "checkIn": "2025-03-10", "checkOut": "2025-03-12", "guests": "2"}
        )
        assert decoded.guest_info == {}


class TestPriceSummary:
    def test_rate_times_nights_plus_taxes(self):
        summary = price_summary(850, DATES)
        assert summary.nights == 2
        assert summary.subtotal == Decimal("1700.00")
        assert summary.taxes == Decimal("255.00")
        assert summary.total == Decimal("1955.00")

    def test_decimal128_rate(self):
        summary = price_summary({"$numberDecimal": "99.99"}, DateRange(date(2025, 1, 1), date(2025, 1, 2)))
        assert summary.to_dict() == {
            "nights": 1,
            "nightlyRate": "99.99",
            "subtotal": "99.99",
            "taxes": "15.00",
            "total": "114.99",
        }
