"""Availability checker and room selection modal.

A search validates the dates locally, then asks the hotel API for candidate
rooms. Searches are not cancelled: if a guest re-submits while an earlier
search is in flight, every search carries a sequence number and only the
latest one issued may update the room list.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from suitebook.backend.client import BackendClient, BackendError
from suitebook.domain.checkout import price_summary
from suitebook.domain.dates import (
    DateRange,
    DateValidationError,
    validate_date_range,
    validate_guest_count,
)
from suitebook.domain.result import Err, Ok, Result
from suitebook.domain.rooms import Room, RoomPayloadError, parse_rooms
from suitebook.observability.logging import get_logger
from suitebook.observability.redaction import safe_log_context

from .notifications import Notifier

logger = get_logger(__name__)

MSG_SIGN_IN_REQUIRED = "Please sign in to check availability."
MSG_INVALID_REQUEST = "Invalid request. Please check your dates and guest count."
MSG_SERVER_ERROR = "Server error. Please try again later."
MSG_AVAILABILITY_FAILED = "Failed to check room availability."

NO_ROOMS_TITLE = "No Available Suites"
NO_ROOMS_HINT = "No suites are available for the selected dates. Please try different dates."


def availability_error_message(status_code: int | None, message: str | None = None) -> str:
    """User-facing message for a failed availability request."""
    if status_code == 401:
        return MSG_SIGN_IN_REQUIRED
    if status_code == 400:
        return MSG_INVALID_REQUEST
    if status_code == 500:
        return MSG_SERVER_ERROR
    return message or MSG_AVAILABILITY_FAILED


@dataclass(frozen=True)
class AvailabilityError:
    kind: Literal["validation", "request"]
    message: str
    field: str | None = None
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "field": self.field,
            "statusCode": self.status_code,
        }


@dataclass(frozen=True)
class AvailabilitySearch:
    date_range: DateRange
    guests: int


def validate_search(
    check_in: str | None,
    check_out: str | None,
    guests: int | None,
) -> Result[AvailabilitySearch, AvailabilityError]:
    """Local validation only, never touches the network."""
    try:
        date_range = validate_date_range(check_in, check_out)
        guest_count = validate_guest_count(guests)
    except DateValidationError as e:
        return Err(AvailabilityError(kind="validation", message=e.message, field=e.field))
    return Ok(AvailabilitySearch(date_range=date_range, guests=guest_count))


def fetch_available_rooms(
    client: BackendClient,
    search: AvailabilitySearch,
    token: str | None = None,
) -> Result[list[Room], AvailabilityError]:
    """Ask the hotel API for rooms. Failures come back as Err, never raised."""
    query = search.date_range.to_query()
    try:
        entries = client.check_room_availability(
            query["checkIn"], query["checkOut"], search.guests, token=token
        )
        rooms = parse_rooms(entries)
    except BackendError as e:
        return Err(
            AvailabilityError(
                kind="request",
                message=availability_error_message(e.status_code, e.message),
                status_code=e.status_code,
            )
        )
    except RoomPayloadError as e:
        logger.error(
            "availability payload unreadable",
            extra={"extra_fields": safe_log_context(error=str(e))},
        )
        return Err(AvailabilityError(kind="request", message=MSG_AVAILABILITY_FAILED))
    return Ok(rooms)


def check_availability(
    client: BackendClient,
    check_in: str | None,
    check_out: str | None,
    guests: int | None,
    token: str | None = None,
) -> Result[list[Room], AvailabilityError]:
    """Validate, then fetch candidate rooms."""
    validated = validate_search(check_in, check_out, guests)
    if not validated.ok:
        return validated
    return fetch_available_rooms(client, validated.value, token=token)


class AvailabilityChecker:
    """Search state for one booking widget.

    Attributes mirror what the widget renders: the loading flag, the inline
    date error, the current room list and whether the room modal is open.
    """

    def __init__(self, client: BackendClient, notifier: Notifier | None = None) -> None:
        self._client = client
        self.notifier = notifier or Notifier()
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._latest_seq = 0
        self._in_flight: set[int] = set()

        self.rooms: list[Room] = []
        self.date_error: str = ""
        self.show_rooms_modal: bool = False
        self.last_search: AvailabilitySearch | None = None

    @property
    def is_loading_rooms(self) -> bool:
        with self._lock:
            return bool(self._in_flight)

    def _begin(self) -> int:
        with self._lock:
            seq = next(self._seq)
            self._latest_seq = seq
            self._in_flight.add(seq)
            return seq

    def _end(self, seq: int) -> None:
        with self._lock:
            self._in_flight.discard(seq)

    def handle_check_availability(
        self,
        check_in: str | None,
        check_out: str | None,
        guests: int | None,
        token: str | None = None,
        today: date | None = None,
    ) -> bool:
        """Run one search.

        Returns:
            True if this search's outcome was applied, False if it failed
            validation or was superseded by a newer search.
        """
        validated = validate_search(check_in, check_out, guests)
        if not validated.ok:
            self.date_error = validated.error.message
            # Rooms from the previous dates must not be bookable, and searches
            # still in flight are superseded
            with self._lock:
                self._latest_seq = next(self._seq)
                self.rooms = []
                self.show_rooms_modal = False
                self.last_search = None
            return False

        self.date_error = ""
        search = validated.value
        if today is not None and search.date_range.starts_in_past(today):
            logger.warning(
                "availability search starts in the past",
                extra={"extra_fields": safe_log_context(nights=search.date_range.nights)},
            )

        seq = self._begin()
        try:
            result = fetch_available_rooms(self._client, search, token=token)
        except Exception:
            logger.exception("availability search crashed")
            result = Err(AvailabilityError(kind="request", message=MSG_AVAILABILITY_FAILED))
        finally:
            self._end(seq)

        with self._lock:
            if seq != self._latest_seq:
                stale = True
            else:
                stale = False
                self.last_search = search
                if result.ok:
                    self.rooms = result.value
                    self.show_rooms_modal = True
                else:
                    self.rooms = []
                    self.show_rooms_modal = False

        if stale:
            logger.info(
                "discarding superseded availability response",
                extra={"extra_fields": safe_log_context(seq=seq, latest_seq=self._latest_seq)},
            )
            return False

        if result.ok:
            logger.info(
                "availability search completed",
                extra={
                    "extra_fields": safe_log_context(
                        rooms=len(result.value),
                        nights=search.date_range.nights,
                        guests=search.guests,
                    )
                },
            )
        else:
            self.notifier.error(result.error.message)
        return True

    def find_room(self, room_id: str) -> Room | None:
        """Rooms can only be picked from the current result list."""
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    def close_modal(self) -> None:
        """Closing the modal discards the query-scoped room list."""
        with self._lock:
            self.show_rooms_modal = False
            self.rooms = []

    def modal_view(self) -> dict[str, Any]:
        """Room selection modal contents."""
        search = self.last_search
        view: dict[str, Any] = {
            "open": self.show_rooms_modal,
            "empty": not self.rooms,
            "rooms": [],
        }
        if self.show_rooms_modal and not self.rooms:
            view["title"] = NO_ROOMS_TITLE
            view["hint"] = NO_ROOMS_HINT

        for room in self.rooms:
            item: dict[str, Any] = {
                "id": room.id,
                "roomNumber": room.room_number,
                "floor": room.floor,
                "name": room.room_type.name,
                "code": room.room_type.code,
                "maxOccupancy": room.room_type.max_occupancy,
                "amenities": list(room.room_type.amenities),
                "nightlyRate": str(room.room_type.base_price),
            }
            if search is not None:
                item["price"] = price_summary(room.room_type.base_price, search.date_range).to_dict()
                item["fitsGuests"] = room.room_type.can_accommodate(search.guests)
            view["rooms"].append(item)
        return view
