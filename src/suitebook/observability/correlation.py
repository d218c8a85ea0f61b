"""Request and booking-session identifiers carried through log records."""

import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Inbound ids are echoed into logs and response headers
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
session_id_var: ContextVar[str] = ContextVar("booking_session_id", default="")


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def accept_correlation_id(raw: str | None) -> str:
    """Use the caller's id when it is a short safe token, else mint one."""
    if raw and _VALID_CORRELATION_ID.match(raw):
        return raw
    return generate_correlation_id()


def get_correlation_id() -> str:
    return correlation_id_var.get()


def get_session_id() -> str:
    return session_id_var.get()


def bind_session_id(session_id: str) -> None:
    """Tag the remaining log lines of this request with a booking session."""
    session_id_var.set(session_id)


@contextmanager
def request_context(correlation_id: str) -> Iterator[str]:
    """Scope a correlation id to one request; clears any session binding."""
    cid_token = correlation_id_var.set(correlation_id)
    sid_token = session_id_var.set("")
    try:
        yield correlation_id
    finally:
        session_id_var.reset(sid_token)
        correlation_id_var.reset(cid_token)
