"""Room selection to checkout handoff.

Steps, strictly in order:

    unauthenticated          -> redirect to sign-in
    authenticated            -> (optional) sync user record, then check guest info
    guest info complete      -> checkout
    guest info incomplete    -> open the guest info dialog and wait

Both booking widgets run this same implementation. They differ only in
BookingFlowOptions: the quick widget syncs the user record first.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Literal

from suitebook.backend.client import BackendClient, BackendError
from suitebook.domain.checkout import CheckoutEncodingError, build_checkout_url
from suitebook.domain.dates import DateRange
from suitebook.domain.guest_form import (
    clean_guest_form,
    initial_values,
    merge_guest_data,
    render_fields,
    validate_guest_form,
)
from suitebook.domain.guest_profile import DEFAULT_REQUIRED_FIELDS
from suitebook.domain.rooms import Room
from suitebook.observability.logging import get_logger
from suitebook.observability.redaction import safe_log_context
from suitebook.settings import DEFAULT_CHECKOUT_PATH, DEFAULT_SIGN_IN_PATH, Settings

from .guest_info import check_user_guest_info
from .notifications import Notifier

logger = get_logger(__name__)

MSG_SYNC_FAILED = "Failed to sync user data. Please try again."
MSG_BOOKING_FAILED = "Failed to process booking. Please try again."
MSG_CHECKOUT_FAILED = "Failed to proceed to checkout. Please try again."
MSG_NO_PENDING_BOOKING = "No booking in progress. Please select a room again."
MSG_BOOKING_IN_PROGRESS = "A booking is already in progress."

WidgetVariant = Literal["quick", "section"]
Step = Literal["sign_in", "checkout", "collect_guest_info", "invalid", "error", "busy"]

# Only the quick booking widget makes sure the user row exists first
_SYNC_BY_VARIANT: dict[str, bool] = {"quick": True, "section": False}


@dataclass(frozen=True)
class BookingFlowOptions:
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    sync_user_metadata: bool = False
    checkout_path: str = DEFAULT_CHECKOUT_PATH
    sign_in_path: str = DEFAULT_SIGN_IN_PATH


def options_for_variant(variant: WidgetVariant, settings: Settings) -> BookingFlowOptions:
    if variant not in _SYNC_BY_VARIANT:
        raise ValueError(f"Unknown widget variant: {variant}")
    return BookingFlowOptions(
        required_fields=settings.required_fields,
        sync_user_metadata=_SYNC_BY_VARIANT[variant],
        checkout_path=settings.checkout_path,
        sign_in_path=settings.sign_in_path,
    )


@dataclass(frozen=True)
class FlowUser:
    """Signed-in user as seen by the flow: auth subject plus bearer token."""

    subject: str
    token: str | None = None


@dataclass(frozen=True)
class FlowOutcome:
    step: Step
    redirect_url: str | None = None
    missing_fields: list[str] = field(default_factory=list)
    initial_values: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"step": self.step}
        if self.redirect_url is not None:
            data["redirectUrl"] = self.redirect_url
        if self.step == "collect_guest_info":
            data["missingFields"] = list(self.missing_fields)
            data["fields"] = [f.to_dict() for f in render_fields(self.missing_fields)]
            data["initialValues"] = dict(self.initial_values)
        if self.errors:
            data["errors"] = dict(self.errors)
        if self.message is not None:
            data["message"] = self.message
        return data


class BookingFlow:
    """Booking eligibility state for one widget instance."""

    def __init__(
        self,
        client: BackendClient,
        options: BookingFlowOptions | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._client = client
        self.options = options or BookingFlowOptions()
        self.notifier = notifier or Notifier()

        self.is_booking = False
        self.guest_dialog_open = False
        self.missing_fields: list[str] = []
        self.existing_guest_data: dict[str, Any] | None = None
        self.selected_room: Room | None = None
        self.date_range: DateRange | None = None
        self.guests: int | None = None
        self._busy = threading.Lock()

    def _reset_dialog(self) -> None:
        self.guest_dialog_open = False
        self.missing_fields = []
        self.existing_guest_data = None

    def handle_room_select(
        self,
        room: Room,
        date_range: DateRange,
        guests: int,
        user: FlowUser | None,
    ) -> FlowOutcome:
        """Start booking the chosen room."""
        if user is None or not user.subject:
            return FlowOutcome(step="sign_in", redirect_url=self.options.sign_in_path)
        if not self._busy.acquire(blocking=False):
            return self._busy_outcome()
        try:
            return self._select_room(room, date_range, guests, user)
        finally:
            self._busy.release()

    def _busy_outcome(self) -> FlowOutcome:
        return FlowOutcome(step="busy", message=MSG_BOOKING_IN_PROGRESS)

    def _select_room(
        self,
        room: Room,
        date_range: DateRange,
        guests: int,
        user: FlowUser,
    ) -> FlowOutcome:
        self.is_booking = True
        self._reset_dialog()
        self.selected_room = room
        self.date_range = date_range
        self.guests = guests
        try:
            if self.options.sync_user_metadata:
                try:
                    self._client.sync_user_metadata(token=user.token)
                except BackendError as e:
                    logger.error(
                        "user sync failed before booking",
                        extra={"extra_fields": safe_log_context(status=e.status_code)},
                    )
                    self.notifier.error(MSG_SYNC_FAILED)
                    return FlowOutcome(step="error", message=MSG_SYNC_FAILED)

            check = check_user_guest_info(
                self._client,
                user.subject,
                token=user.token,
                required_fields=self.options.required_fields,
            )

            if check.complete:
                return self.proceed_to_checkout(room, check.existing_data or {})

            self.missing_fields = list(check.missing_fields)
            self.existing_guest_data = check.existing_data
            self.guest_dialog_open = True
            return FlowOutcome(
                step="collect_guest_info",
                missing_fields=list(check.missing_fields),
                initial_values=initial_values(check.existing_data),
            )
        except Exception:
            logger.exception(
                "room selection failed",
                extra={"extra_fields": safe_log_context(room_id=room.id)},
            )
            self.notifier.error(MSG_BOOKING_FAILED)
            return FlowOutcome(step="error", message=MSG_BOOKING_FAILED)
        finally:
            self.is_booking = False

    def proceed_to_checkout(self, room: Room, guest_data: dict[str, Any]) -> FlowOutcome:
        """Encode the booking context into the checkout URL. No validation here."""
        if self.date_range is None or self.guests is None:
            self.notifier.error(MSG_CHECKOUT_FAILED)
            return FlowOutcome(step="error", message=MSG_CHECKOUT_FAILED)

        try:
            url = build_checkout_url(
                self.options.checkout_path,
                room,
                self.date_range,
                self.guests,
                guest_data,
            )
        except CheckoutEncodingError:
            logger.exception(
                "checkout handoff failed",
                extra={"extra_fields": safe_log_context(room_id=room.id)},
            )
            self.notifier.error(MSG_CHECKOUT_FAILED)
            return FlowOutcome(step="error", message=MSG_CHECKOUT_FAILED)

        self._reset_dialog()
        logger.info(
            "checkout handoff ready",
            extra={"extra_fields": safe_log_context(room_id=room.id, nights=self.date_range.nights)},
        )
        return FlowOutcome(step="checkout", redirect_url=url)

    def submit_guest_info(self, values: dict[str, Any], user: FlowUser | None) -> FlowOutcome:
        """Validate the dialog; on success merge with the existing record and check out."""
        if user is None or not user.subject:
            return FlowOutcome(step="sign_in", redirect_url=self.options.sign_in_path)
        if not self._busy.acquire(blocking=False):
            return self._busy_outcome()
        try:
            return self._submit(values)
        finally:
            self._busy.release()

    def _submit(self, values: dict[str, Any]) -> FlowOutcome:
        if not self.guest_dialog_open or self.selected_room is None:
            return FlowOutcome(step="error", message=MSG_NO_PENDING_BOOKING)

        errors = validate_guest_form(self.missing_fields, values)
        if errors:
            return FlowOutcome(
                step="invalid",
                missing_fields=list(self.missing_fields),
                errors=errors,
            )

        # Only shown fields are taken from the form
        cleaned = {k: v for k, v in clean_guest_form(values).items() if k in self.missing_fields}
        merged = merge_guest_data(self.existing_guest_data, cleaned)
        self.is_booking = True
        try:
            return self.proceed_to_checkout(self.selected_room, merged)
        finally:
            self.is_booking = False

    def cancel_guest_info(self) -> None:
        """Close the dialog. Nothing is sent, the guest profile is untouched."""
        self._reset_dialog()
