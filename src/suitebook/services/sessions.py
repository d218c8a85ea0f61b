"""In-memory booking sessions.

A session is one booking widget on one page: its search state, its booking
flow state and its pending notifications. Nothing here is persisted; idle
sessions are evicted after the configured TTL.
"""

from __future__ import annotations

import threading
import time
import uuid
from datetime import date
from typing import Any, Callable

from suitebook.backend.client import BackendClient
from suitebook.domain.dates import DEFAULT_GUESTS, default_date_range
from suitebook.domain.guest_form import render_fields
from suitebook.observability.logging import get_logger
from suitebook.settings import Settings

from .availability import AvailabilityChecker
from .booking_flow import BookingFlow, WidgetVariant, options_for_variant
from .notifications import Notifier

logger = get_logger(__name__)


class SessionNotFound(Exception):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Booking session not found: {session_id}")


class SessionOwnershipError(Exception):
    """Session already belongs to a different signed-in user."""


class BookingSession:
    def __init__(
        self,
        session_id: str,
        variant: WidgetVariant,
        client: BackendClient,
        settings: Settings,
        today: date,
        now: float,
    ) -> None:
        self.id = session_id
        self.variant = variant
        self.notifier = Notifier()
        self.checker = AvailabilityChecker(client, notifier=self.notifier)
        self.flow = BookingFlow(client, options_for_variant(variant, settings), notifier=self.notifier)
        self.owner_subject: str | None = None
        self.last_seen = now

        initial = default_date_range(today)
        self.default_check_in = initial.check_in.isoformat()
        self.default_check_out = initial.check_out.isoformat()
        self.default_guests = DEFAULT_GUESTS
        self._claim_lock = threading.Lock()

    def claim(self, subject: str | None) -> None:
        """Bind the session to the first signed-in user that uses it.

        Anonymous callers may use a session only until someone owns it.

        Raises:
            SessionOwnershipError: if another user, or an anonymous caller,
                tries to use an owned session.
        """
        with self._claim_lock:
            if not subject:
                if self.owner_subject is not None:
                    raise SessionOwnershipError("Booking session requires its owner to sign in")
                return
            if self.owner_subject is None:
                self.owner_subject = subject
            elif self.owner_subject != subject:
                raise SessionOwnershipError("Booking session belongs to another user")

    def view(self, drain_notifications: bool = True) -> dict[str, Any]:
        """Everything the widget needs to render."""
        notifications = self.notifier.drain() if drain_notifications else self.notifier.pending()
        flow = self.flow
        return {
            "sessionId": self.id,
            "variant": self.variant,
            "defaults": {
                "checkIn": self.default_check_in,
                "checkOut": self.default_check_out,
                "guests": self.default_guests,
            },
            "isLoadingRooms": self.checker.is_loading_rooms,
            "isBooking": flow.is_booking,
            "dateError": self.checker.date_error,
            "roomsModal": self.checker.modal_view(),
            "guestDialog": {
                "open": flow.guest_dialog_open,
                "missingFields": list(flow.missing_fields),
                "fields": [f.to_dict() for f in render_fields(flow.missing_fields)],
            },
            "notifications": [n.to_dict() for n in notifications],
        }


class SessionStore:
    """Thread-safe session registry with idle TTL."""

    def __init__(
        self,
        client: BackendClient,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clock = clock
        self._sessions: dict[str, BookingSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_expired(self, now: float) -> None:
        # Caller holds self._lock
        ttl = self._settings.session_ttl_seconds
        expired = [sid for sid, s in self._sessions.items() if now - s.last_seen > ttl]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("evicted idle booking sessions", extra={"extra_fields": {"count": len(expired)}})

    def create(self, variant: WidgetVariant, today: date | None = None) -> BookingSession:
        now = self._clock()
        session = BookingSession(
            session_id=str(uuid.uuid4()),
            variant=variant,
            client=self._client,
            settings=self._settings,
            today=today or date.today(),
            now=now,
        )
        with self._lock:
            self._evict_expired(now)
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> BookingSession:
        """Fetch a live session and mark it as used.

        Raises:
            SessionNotFound: if unknown or expired.
        """
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            session.last_seen = now
            return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
