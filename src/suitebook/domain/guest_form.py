"""Guest information collection form.

Only the fields a guest is missing are shown, and only shown fields are
validated. Blank fields outside that set are accepted as is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

from .guest_profile import GUEST_PROFILE_FIELDS, is_blank

Section = Literal["basic", "identification", "address"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ID_TYPES: tuple[str, ...] = ("national_id", "passport", "driving_license", "other")

MSG_NAME_REQUIRED = "Full name is required."
MSG_EMAIL_REQUIRED = "Email is required."
MSG_EMAIL_INVALID = "Please enter a valid email address."
MSG_PHONE_REQUIRED = "Phone number is required."
MSG_ID_NUMBER_REQUIRED = "ID number is required."
MSG_ID_TYPE_INVALID = "Please select a valid ID type."

_REQUIRED_WHEN_MISSING: dict[str, str] = {
    "name": MSG_NAME_REQUIRED,
    "email": MSG_EMAIL_REQUIRED,
    "phone": MSG_PHONE_REQUIRED,
    "idNumber": MSG_ID_NUMBER_REQUIRED,
}


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    input_type: str
    section: Section
    placeholder: str = ""
    options: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.input_type,
            "section": self.section,
            "placeholder": self.placeholder,
        }
        if self.options:
            data["options"] = list(self.options)
        return data


GUEST_FORM_FIELDS: tuple[FormField, ...] = (
    FormField("name", "Full Name", "text", "basic"),
    FormField("email", "Email Address", "email", "basic", "example@email.com"),
    FormField("phone", "Phone Number", "tel", "basic", "09xxxxxxxxx"),
    FormField("nationality", "Nationality", "text", "basic"),
    FormField("idType", "ID Type", "select", "identification", "Select ID type", ID_TYPES),
    FormField("idNumber", "ID Number", "text", "identification", "Enter ID number"),
    FormField("address", "Full Address", "text", "address", "Complete address"),
    FormField("city", "City", "text", "address", "City name"),
    FormField("country", "Country", "text", "address", "Country name"),
)


def render_fields(missing_fields: list[str]) -> list[FormField]:
    """Form fields to show, in form order. Unknown names are ignored."""
    wanted = set(missing_fields)
    return [f for f in GUEST_FORM_FIELDS if f.name in wanted]


def initial_values(existing: dict[str, Any] | None) -> dict[str, str]:
    """Empty form pre-filled with whatever partial data the guest already has."""
    existing = existing or {}
    values = {}
    for name in GUEST_PROFILE_FIELDS:
        v = existing.get(name)
        values[name] = "" if v is None else str(v)
    return values


def validate_guest_form(missing_fields: list[str], values: dict[str, Any]) -> dict[str, str]:
    """Validate submitted values against the shown fields.

    Returns:
        Mapping of field name to error message. Empty when the form is valid.
    """
    errors: dict[str, str] = {}
    shown = set(missing_fields)

    for name, message in _REQUIRED_WHEN_MISSING.items():
        if name in shown and is_blank(values.get(name)):
            errors[name] = message

    if "email" in shown and "email" not in errors:
        # Checked as typed, surrounding spaces included
        if not EMAIL_PATTERN.match(str(values.get("email"))):
            errors["email"] = MSG_EMAIL_INVALID

    if "idType" in shown:
        id_type = values.get("idType")
        if not is_blank(id_type) and str(id_type).strip() not in ID_TYPES:
            errors["idType"] = MSG_ID_TYPE_INVALID

    return errors


def clean_guest_form(values: dict[str, Any]) -> dict[str, str]:
    """Trim every known field; a blank idType is dropped entirely."""
    cleaned: dict[str, str] = {}
    for name in GUEST_PROFILE_FIELDS:
        v = values.get(name)
        text = "" if v is None else str(v).strip()
        if name == "idType" and not text:
            continue
        cleaned[name] = text
    return cleaned


def merge_guest_data(existing: dict[str, Any] | None, cleaned: dict[str, str]) -> dict[str, Any]:
    """Overlay collected non-blank values onto the existing record."""
    merged = dict(existing or {})
    for name, value in cleaned.items():
        if value:
            merged[name] = value
        elif name not in merged:
            merged[name] = value
    return merged
