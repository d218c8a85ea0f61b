"""Tests for the availability checker."""

import threading

import pytest

from helpers import FakeBackendClient, failing, make_room_payload
from suitebook.backend.client import BackendUnavailable
from suitebook.services.availability import (
    MSG_AVAILABILITY_FAILED,
    MSG_INVALID_REQUEST,
    MSG_SERVER_ERROR,
    MSG_SIGN_IN_REQUIRED,
    NO_ROOMS_TITLE,
    AvailabilityChecker,
    availability_error_message,
    check_availability,
)


class TestErrorMessage:
    @pytest.mark.parametrize(
        "status,message,expected",
        [
            (401, "whatever", MSG_SIGN_IN_REQUIRED),
            (400, None, MSG_INVALID_REQUEST),
            (500, "boom", MSG_SERVER_ERROR),
            (503, "Maintenance window", "Maintenance window"),
            (None, None, MSG_AVAILABILITY_FAILED),
        ],
    )
    def test_by_status(self, status, message, expected):
        assert availability_error_message(status, message) == expected


class TestCheckAvailability:
    def test_invalid_dates_issue_no_request(self):
        client = FakeBackendClient()

        result = check_availability(client, "2025-03-10", "2025-03-09", 2)

        assert not result.ok
        assert result.error.kind == "validation"
        assert result.error.message == "Check-out date must be after check-in date."
        assert client.calls == []

    @pytest.mark.parametrize("check_in,check_out", [("2025-03-10", "2025-03-10"), ("2025-03-12", "2025-01-01")])
    def test_non_increasing_pairs_rejected(self, check_in, check_out):
        client = FakeBackendClient()
        assert not check_availability(client, check_in, check_out, 1).ok
        assert client.calls == []

    def test_valid_dates_send_exact_query(self):
        client = FakeBackendClient(rooms=[make_room_payload()])

        result = check_availability(client, "2025-03-10", "2025-03-12", 2, token="tok")

        assert result.ok
        assert [r.id for r in result.value] == ["r-101"]
        assert client.calls_to("check_room_availability") == [
            {"check_in": "2025-03-10", "check_out": "2025-03-12", "guests": 2, "token": "tok"}
        ]

    def test_backend_error_becomes_err(self):
        client = FakeBackendClient(rooms=failing(401, "Unauthorized"))

        result = check_availability(client, "2025-03-10", "2025-03-12", 2)

        assert result.to_dict()["ok"] is False
        assert result.error.message == MSG_SIGN_IN_REQUIRED
        assert result.error.status_code == 401

    def test_malformed_payload_becomes_err(self):
        client = FakeBackendClient(rooms=[{"id": "no-room-type"}])
        result = check_availability(client, "2025-03-10", "2025-03-12", 2)
        assert result.error.message == MSG_AVAILABILITY_FAILED


class TestAvailabilityChecker:
    def test_loading_flag_true_only_during_request(self):
        seen = []

        def rooms(**kwargs):
            seen.append(checker.is_loading_rooms)
            return [make_room_payload()]

        checker = AvailabilityChecker(FakeBackendClient(rooms=rooms))
        assert checker.is_loading_rooms is False

        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        assert seen == [True]
        assert checker.is_loading_rooms is False

    def test_loading_flag_cleared_on_failure(self):
        seen = []

        def rooms(**kwargs):
            seen.append(checker.is_loading_rooms)
            raise BackendUnavailable("timeout")

        checker = AvailabilityChecker(FakeBackendClient(rooms=rooms))
        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        assert seen == [True]
        assert checker.is_loading_rooms is False

    def test_unexpected_exception_becomes_notification(self):
        checker = AvailabilityChecker(FakeBackendClient(rooms=RuntimeError("bug")))

        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        assert checker.is_loading_rooms is False
        assert checker.rooms == []
        assert [n.message for n in checker.notifier.drain()] == [MSG_AVAILABILITY_FAILED]

    def test_validation_error_sets_date_error(self):
        client = FakeBackendClient()
        checker = AvailabilityChecker(client)

        applied = checker.handle_check_availability("2025-03-10", "2025-03-09", 2)

        assert applied is False
        assert checker.date_error == "Check-out date must be after check-in date."
        assert client.calls == []
        assert checker.show_rooms_modal is False

    def test_invalid_dates_drop_previous_results(self):
        client = FakeBackendClient(rooms=[make_room_payload()])
        checker = AvailabilityChecker(client)
        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)
        assert checker.find_room("r-101") is not None

        checker.handle_check_availability("2025-03-10", "", 2)

        assert checker.rooms == []
        assert checker.last_search is None
        assert checker.show_rooms_modal is False
        assert checker.find_room("r-101") is None

    def test_success_opens_modal_and_clears_error(self):
        checker = AvailabilityChecker(FakeBackendClient(rooms=[make_room_payload()]))
        checker.date_error = "stale"

        assert checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        assert checker.date_error == ""
        assert checker.show_rooms_modal is True
        assert len(checker.rooms) == 1

    def test_empty_result_shows_no_available_suites(self):
        checker = AvailabilityChecker(FakeBackendClient(rooms=[]))

        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        view = checker.modal_view()
        assert view["open"] is True
        assert view["empty"] is True
        assert view["title"] == NO_ROOMS_TITLE

    def test_failure_resets_rooms_and_notifies(self):
        client = FakeBackendClient(rooms=[make_room_payload()])
        checker = AvailabilityChecker(client)
        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        client.rooms = failing(500, "db down")
        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        assert checker.rooms == []
        assert checker.show_rooms_modal is False
        assert [n.message for n in checker.notifier.drain()] == [MSG_SERVER_ERROR]

    def test_modal_view_prices_rooms(self):
        checker = AvailabilityChecker(FakeBackendClient(rooms=[make_room_payload(base_price=850, max_occupancy=2)]))
        checker.handle_check_availability("2025-03-10", "2025-03-12", 3)

        (room,) = checker.modal_view()["rooms"]
        assert room["price"]["subtotal"] == "1700.00"
        assert room["price"]["total"] == "1955.00"
        assert room["fitsGuests"] is False

    def test_close_modal_discards_rooms(self):
        checker = AvailabilityChecker(FakeBackendClient(rooms=[make_room_payload()]))
        checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        checker.close_modal()

        assert checker.rooms == []
        assert checker.find_room("r-101") is None

    def test_superseded_response_is_discarded(self):
        """A slow earlier search must not overwrite a newer one."""
        first_started = threading.Event()
        release_first = threading.Event()

        def rooms(check_in, **kwargs):
            if check_in == "2025-03-10":
                first_started.set()
                release_first.wait(timeout=5)
                return [make_room_payload("old", "101")]
            return [make_room_payload("new", "202")]

        checker = AvailabilityChecker(FakeBackendClient(rooms=rooms))
        results = {}

        def slow_search():
            results["first"] = checker.handle_check_availability("2025-03-10", "2025-03-12", 2)

        worker = threading.Thread(target=slow_search)
        worker.start()
        assert first_started.wait(timeout=5)

        results["second"] = checker.handle_check_availability("2025-04-01", "2025-04-03", 2)
        assert checker.is_loading_rooms is True  # first search still in flight

        release_first.set()
        worker.join(timeout=5)

        assert results == {"first": False, "second": True}
        assert [r.id for r in checker.rooms] == ["new"]
        assert checker.last_search.date_range.check_in.isoformat() == "2025-04-01"
        assert checker.is_loading_rooms is False
