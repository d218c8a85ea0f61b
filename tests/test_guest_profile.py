"""Tests for the required-field completeness rule."""

from suitebook.domain.guest_profile import (
    DEFAULT_REQUIRED_FIELDS,
    GuestProfile,
    compute_missing_fields,
)


class TestComputeMissingFields:
    def test_only_email_blank(self):
        record = {"name": "Ali", "email": "", "phone": "0700", "nationality": "AF", "idNumber": "123"}
        assert compute_missing_fields(record) == ["email"]

    def test_empty_record_missing_everything(self):
        assert compute_missing_fields({}) == list(DEFAULT_REQUIRED_FIELDS)

    def test_whitespace_and_none_are_missing(self):
        record = {"name": "  ", "email": None, "phone": "1", "nationality": "AF", "idNumber": "9"}
        assert compute_missing_fields(record) == ["name", "email"]

    def test_non_string_values_are_present(self):
        record = {"name": "Ali", "email": "a@b.co", "phone": 700, "nationality": "AF", "idNumber": 123}
        assert compute_missing_fields(record) == []

    def test_custom_required_fields(self):
        assert compute_missing_fields({"name": "Ali"}, ("name", "city")) == ["city"]

    def test_optional_fields_ignored(self):
        record = {"name": "Ali", "email": "a@b.co", "phone": "1", "nationality": "AF", "idNumber": "9"}
        assert compute_missing_fields(record) == []


class TestGuestProfile:
    def test_from_record_keeps_raw(self):
        record = {"id": "g1", "name": "Ali", "phone": 700}
        profile = GuestProfile.from_record(record)
        assert profile.phone == "700"
        assert profile.to_dict() == record
        assert profile.missing_fields() == ["email", "nationality", "idNumber"]
