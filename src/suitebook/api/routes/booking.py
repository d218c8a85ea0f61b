"""Booking widget endpoints.

POST /booking/sessions                          -> new widget session
GET  /booking/sessions/{id}                     -> current widget state
POST /booking/sessions/{id}/availability        -> search rooms
POST /booking/sessions/{id}/modal/close         -> close room modal
POST /booking/sessions/{id}/select-room         -> start booking a room
POST /booking/sessions/{id}/guest-info          -> submit missing guest fields
POST /booking/sessions/{id}/guest-info/cancel   -> close guest dialog
GET  /booking/checkout-summary?room=...         -> decode a checkout handoff

Flow failures are reported inside a 200 response as notifications, the same
way the widget shows a toast. Only protocol problems (unknown session,
foreign or owned session used anonymously, bad token) map to HTTP errors.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from pydantic import BaseModel, ConfigDict, Field

from suitebook.api.auth import AuthenticatedUser, get_optional_user
from suitebook.domain.checkout import CheckoutEncodingError, parse_checkout_query, price_summary
from suitebook.domain.rooms import Room
from suitebook.observability.correlation import bind_session_id
from suitebook.services.booking_flow import FlowUser
from suitebook.services.sessions import (
    BookingSession,
    SessionNotFound,
    SessionOwnershipError,
    SessionStore,
)

router = APIRouter(prefix="/booking", tags=["booking"])


# ── Schemas ───────────────────────────────────────────────────────────────────


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    variant: Literal["quick", "section"] = "quick"


class AvailabilityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    check_in: str | None = Field(default=None, alias="checkIn")
    check_out: str | None = Field(default=None, alias="checkOut")
    guests: int | None = None


class SelectRoomRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    room_id: str = Field(alias="roomId")


class GuestInfoRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    values: dict[str, str | None]


# ── Helpers ───────────────────────────────────────────────────────────────────


def _store(request: Request) -> SessionStore:
    return request.app.state.session_store


def _session(
    request: Request,
    session_id: str,
    user: AuthenticatedUser | None,
) -> BookingSession:
    try:
        session = _store(request).get(session_id)
        session.claim(user.subject if user else None)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Booking session not found")
    except SessionOwnershipError:
        raise HTTPException(status_code=403, detail="Booking session belongs to another user")
    bind_session_id(session.id)
    return session


def _flow_user(user: AuthenticatedUser | None) -> FlowUser | None:
    if user is None:
        return None
    return FlowUser(subject=user.subject, token=user.token)


# ── Sessions ──────────────────────────────────────────────────────────────────


@router.post("/sessions", status_code=201)
def create_session(
    request: Request,
    body: CreateSessionRequest | None = None,
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    """Open a booking widget session with default dates (tonight) and 2 guests."""
    body = body or CreateSessionRequest()
    session = _store(request).create(body.variant)
    bind_session_id(session.id)
    session.claim(user.subject if user else None)
    return session.view()


@router.get("/sessions/{session_id}")
def get_session(
    request: Request,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    return _session(request, session_id, user).view()


# ── Availability ──────────────────────────────────────────────────────────────


@router.post("/sessions/{session_id}/availability")
def check_availability(
    request: Request,
    body: AvailabilityRequest,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    """Validate dates and search rooms.

    Date problems come back in `dateError` without contacting the hotel API.
    API failures come back as an error notification with an empty room list.
    """
    session = _session(request, session_id, user)
    applied = session.checker.handle_check_availability(
        body.check_in,
        body.check_out,
        body.guests,
        token=user.token if user else None,
        today=date.today(),
    )
    view = session.view()
    view["applied"] = applied
    return view


@router.post("/sessions/{session_id}/modal/close")
def close_rooms_modal(
    request: Request,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    session = _session(request, session_id, user)
    session.checker.close_modal()
    return session.view()


# ── Room selection and guest info ─────────────────────────────────────────────


def _outcome_response(session: BookingSession, outcome: Any) -> dict:
    if outcome.step == "busy":
        raise HTTPException(status_code=409, detail="Booking already in progress")
    return {"outcome": outcome.to_dict(), "session": session.view()}


@router.post("/sessions/{session_id}/select-room")
def select_room(
    request: Request,
    body: SelectRoomRequest,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    """Start booking a room from the current search results.

    The outcome step is one of: sign_in, checkout, collect_guest_info, error.
    A selection or submission already running for the session gets 409.
    """
    session = _session(request, session_id, user)
    room: Room | None = session.checker.find_room(body.room_id)
    search = session.checker.last_search
    if room is None or search is None:
        raise HTTPException(status_code=409, detail="Room is not in the current search results")

    outcome = session.flow.handle_room_select(
        room,
        search.date_range,
        search.guests,
        _flow_user(user),
    )
    return _outcome_response(session, outcome)


@router.post("/sessions/{session_id}/guest-info")
def submit_guest_info(
    request: Request,
    body: GuestInfoRequest,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    """Submit the guest info dialog. Outcome step is sign_in, checkout, invalid or error."""
    session = _session(request, session_id, user)
    outcome = session.flow.submit_guest_info(body.values, _flow_user(user))
    return _outcome_response(session, outcome)


@router.post("/sessions/{session_id}/guest-info/cancel")
def cancel_guest_info(
    request: Request,
    session_id: str = Path(...),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> dict:
    session = _session(request, session_id, user)
    session.flow.cancel_guest_info()
    return session.view()


# ── Checkout handoff ──────────────────────────────────────────────────────────


@router.get("/checkout-summary")
def checkout_summary(request: Request) -> dict:
    """Decode checkout query parameters and price the stay."""
    try:
        checkout = parse_checkout_query(dict(request.query_params))
    except CheckoutEncodingError as e:
        raise HTTPException(status_code=400, detail=str(e))

    room_type = checkout.room.get("roomType")
    if not isinstance(room_type, dict):
        room_type = {}
    return {
        "room": checkout.room,
        "checkIn": checkout.date_range.check_in.isoformat(),
        "checkOut": checkout.date_range.check_out.isoformat(),
        "guests": checkout.guests,
        "guestInfo": checkout.guest_info,
        "price": price_summary(room_type.get("basePrice"), checkout.date_range).to_dict(),
    }
