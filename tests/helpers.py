"""Shared test helpers for SuiteBook tests.

Plain functions and classes importable from conftest.py and test modules.
These are NOT fixtures.
"""

from __future__ import annotations

import base64
import time
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from suitebook.backend.client import BackendError

TEST_ISSUER = "https://clerk.example.com"
TEST_AUDIENCE = "suitebook-api"
TEST_JWKS_URL = "https://clerk.example.com/.well-known/jwks.json"


def _generate_rsa_keypair():
    """Generate RSA key pair for test JWT signing."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


def _create_jwks(public_key, kid: str = "test-key-1") -> dict:
    """Create JWKS from public key."""
    public_numbers = public_key.public_numbers()

    def int_to_base64(n: int) -> str:
        byte_length = (n.bit_length() + 7) // 8
        return base64.urlsafe_b64encode(n.to_bytes(byte_length, "big")).rstrip(b"=").decode()

    return {
        "keys": [
            {
                "kty": "RSA",
                "use": "sig",
                "alg": "RS256",
                "kid": kid,
                "n": int_to_base64(public_numbers.n),
                "e": int_to_base64(public_numbers.e),
            }
        ]
    }


def _create_token(
    private_key,
    kid: str = "test-key-1",
    sub: str = "user_abc123",
    iss: str = TEST_ISSUER,
    aud: str = TEST_AUDIENCE,
    exp: int | None = None,
    azp: str | None = None,
) -> str:
    """Create signed JWT for testing."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "iss": iss,
        "aud": aud,
        "exp": exp if exp is not None else now + 3600,
        "iat": now,
    }
    if azp:
        payload["azp"] = azp
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


def make_room_payload(
    room_id: str = "r-101",
    room_number: str = "101",
    name: str = "Presidential Suite",
    base_price: Any = 1200,
    max_occupancy: int = 4,
    floor: int = 1,
) -> dict:
    """Room entry shaped like the availability API `data` array."""
    return {
        "id": room_id,
        "roomNumber": room_number,
        "floor": floor,
        "status": "available",
        "roomType": {
            "id": f"rt-{room_id}",
            "name": name,
            "code": name[:3].upper(),
            "basePrice": base_price,
            "maxOccupancy": max_occupancy,
            "amenities": ["Private Pool", "Butler Service"],
        },
    }


COMPLETE_GUEST = {
    "id": "guest-1",
    "clerkId": "user_abc123",
    "name": "Ali",
    "email": "ali@example.com",
    "phone": "0700",
    "nationality": "AF",
    "idNumber": "123",
}


class FakeBackendClient:
    """In-memory stand-in for BackendClient that records every call.

    Each endpoint returns its configured value, or raises it when it is an
    exception. A callable is invoked with the call arguments.
    """

    def __init__(
        self,
        rooms: Any = None,
        users: Any = None,
        sync: Any = None,
    ) -> None:
        self.rooms = [] if rooms is None else rooms
        self.users = [] if users is None else users
        self.sync = sync
        self.calls: list[tuple[str, dict]] = []

    def _answer(self, value: Any, **kwargs: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(**kwargs)
        return value

    def calls_to(self, name: str) -> list[dict]:
        return [kw for n, kw in self.calls if n == name]

    def check_room_availability(self, check_in, check_out, guests, token=None):
        kwargs = {"check_in": check_in, "check_out": check_out, "guests": guests, "token": token}
        self.calls.append(("check_room_availability", kwargs))
        return self._answer(self.rooms, **kwargs)

    def search_users(self, search, limit=1, token=None):
        kwargs = {"search": search, "limit": limit, "token": token}
        self.calls.append(("search_users", kwargs))
        return self._answer(self.users, **kwargs)

    def sync_user_metadata(self, token=None):
        self.calls.append(("sync_user_metadata", {"token": token}))
        return self._answer(self.sync, token=token)


def failing(status_code: int | None, message: str | None = None) -> BackendError:
    return BackendError(status_code, message)

