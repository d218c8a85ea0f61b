"""Guest profile and the required-field completeness rule."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

GUEST_PROFILE_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "phone",
    "nationality",
    "idType",
    "idNumber",
    "address",
    "city",
    "country",
)

# Fields that must be non-blank before checkout may proceed
DEFAULT_REQUIRED_FIELDS: tuple[str, ...] = ("name", "email", "phone", "nationality", "idNumber")


def is_blank(value: Any) -> bool:
    """Absent, None, or a string that trims to empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def compute_missing_fields(
    record: dict[str, Any],
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS,
) -> list[str]:
    """Return required fields that are blank in record, in required-field order."""
    return [f for f in required_fields if is_blank(record.get(f))]


@dataclass(frozen=True)
class GuestProfile:
    """A guest record as stored by the users service. Every field may be missing."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    nationality: str | None = None
    idType: str | None = None
    idNumber: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "GuestProfile":
        values = {}
        for f in GUEST_PROFILE_FIELDS:
            v = record.get(f)
            values[f] = None if v is None else str(v)
        return cls(**values, raw=dict(record))

    def to_dict(self) -> dict[str, Any]:
        """Full record: the raw lookup result when there is one."""
        if self.raw:
            return dict(self.raw)
        return {f: getattr(self, f) for f in GUEST_PROFILE_FIELDS if getattr(self, f) is not None}

    def missing_fields(self, required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS) -> list[str]:
        return compute_missing_fields(
            {f: getattr(self, f) for f in GUEST_PROFILE_FIELDS},
            required_fields,
        )
