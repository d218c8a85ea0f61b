"""Guest-data completeness gate.

Decides which required guest fields still need to be collected before
checkout. A failed lookup is treated exactly like a brand new guest: every
required field is asked for, and the error is logged but never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from suitebook.backend.client import BackendClient, BackendError
from suitebook.domain.guest_profile import DEFAULT_REQUIRED_FIELDS, compute_missing_fields
from suitebook.observability.logging import get_logger
from suitebook.observability.redaction import safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class GuestInfoCheck:
    missing_fields: list[str] = field(default_factory=list)
    existing_data: dict[str, Any] | None = None

    @property
    def complete(self) -> bool:
        return not self.missing_fields

    def to_dict(self) -> dict[str, Any]:
        return {"missingFields": list(self.missing_fields), "existingData": self.existing_data}


def check_user_guest_info(
    client: BackendClient,
    user_id: str | None,
    token: str | None = None,
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS,
) -> GuestInfoCheck:
    """Look up the signed-in user's guest record and list missing fields.

    Args:
        client: Hotel API client.
        user_id: Auth subject of the signed-in user. Callers gate on sign-in
                 first; without an id nothing is reported missing.
        token: Bearer token forwarded to the users API.
        required_fields: Fields that must be non-blank.

    Returns:
        GuestInfoCheck with the missing required fields and the full record
        (None when no record was found or the lookup failed).
    """
    if not user_id:
        return GuestInfoCheck(missing_fields=[], existing_data=None)

    try:
        records = client.search_users(user_id, limit=1, token=token)
    except BackendError as e:
        logger.warning(
            "guest lookup failed, collecting all required fields",
            extra={"extra_fields": safe_log_context(status=e.status_code)},
        )
        return GuestInfoCheck(missing_fields=list(required_fields), existing_data=None)

    record = records[0] if records else None
    if not isinstance(record, dict):
        logger.info(
            "no guest record found, collecting all required fields",
            extra={"extra_fields": safe_log_context(results=len(records))},
        )
        return GuestInfoCheck(missing_fields=list(required_fields), existing_data=None)

    missing = compute_missing_fields(record, required_fields)
    logger.info(
        "guest record checked",
        extra={"extra_fields": safe_log_context(missing=missing, record=record)},
    )
    return GuestInfoCheck(missing_fields=missing, existing_data=record)
