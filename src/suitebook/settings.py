"""Runtime configuration loaded from environment variables.

Read on every call (not cached) so tests can patch os.environ freely.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from suitebook.domain.guest_profile import DEFAULT_REQUIRED_FIELDS, GUEST_PROFILE_FIELDS

DEFAULT_HOTEL_API_BASE_URL = "http://localhost:3000"
DEFAULT_HOTEL_API_TIMEOUT = 10
DEFAULT_CHECKOUT_PATH = "/checkout"
DEFAULT_SIGN_IN_PATH = "/sign-in"
DEFAULT_SESSION_TTL_SECONDS = 1800


@dataclass(frozen=True)
class Settings:
    """Service settings.

    Attributes:
        hotel_api_base_url: Base URL of the hotel REST API (rooms, users, auth sync).
        hotel_api_timeout: Per-request timeout in seconds.
        required_fields: Guest fields that must be non-blank before checkout.
        checkout_path: Client route receiving the checkout handoff.
        sign_in_path: Client route for unauthenticated users.
        session_ttl_seconds: Idle lifetime of a booking session.
    """

    hotel_api_base_url: str = DEFAULT_HOTEL_API_BASE_URL
    hotel_api_timeout: int = DEFAULT_HOTEL_API_TIMEOUT
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    checkout_path: str = DEFAULT_CHECKOUT_PATH
    sign_in_path: str = DEFAULT_SIGN_IN_PATH
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS


def parse_required_fields(raw: str) -> tuple[str, ...]:
    """Parse a comma separated field list, rejecting unknown guest fields."""
    fields = tuple(f.strip() for f in raw.split(",") if f.strip())
    if not fields:
        return DEFAULT_REQUIRED_FIELDS

    unknown = [f for f in fields if f not in GUEST_PROFILE_FIELDS]
    if unknown:
        raise ValueError(f"Unknown guest fields in BOOKING_REQUIRED_FIELDS: {', '.join(unknown)}")

    # Keep first occurrence order, drop duplicates
    return tuple(dict.fromkeys(fields))


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def get_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        hotel_api_base_url=os.environ.get("HOTEL_API_BASE_URL", DEFAULT_HOTEL_API_BASE_URL).rstrip("/"),
        hotel_api_timeout=_int_env("HOTEL_API_TIMEOUT", DEFAULT_HOTEL_API_TIMEOUT),
        required_fields=parse_required_fields(os.environ.get("BOOKING_REQUIRED_FIELDS", "")),
        checkout_path=os.environ.get("BOOKING_CHECKOUT_PATH", DEFAULT_CHECKOUT_PATH),
        sign_in_path=os.environ.get("BOOKING_SIGN_IN_PATH", DEFAULT_SIGN_IN_PATH),
        session_ttl_seconds=_int_env("BOOKING_SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS),
    )
