"""Room and room type as returned by the availability API.

Rooms are read-only and scoped to a single availability query. The raw
payload is kept so the checkout handoff can forward exactly what the API
returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any


class RoomPayloadError(ValueError):
    """Raised when an availability payload entry cannot be read as a room."""


def to_decimal(value: Any) -> Decimal:
    """Normalise a price that may be a number, numeric string or Decimal128 JSON.

    Unreadable and non-finite values (NaN, Infinity) become 0, matching how
    the rooms API serialises missing prices.
    """
    if isinstance(value, dict) and "$numberDecimal" in value:
        value = value["$numberDecimal"]
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return parsed if parsed.is_finite() else Decimal("0")


@dataclass(frozen=True)
class RoomType:
    id: str
    name: str
    code: str
    base_price: Decimal
    max_occupancy: int
    amenities: tuple[str, ...] = ()

    def can_accommodate(self, guests: int) -> bool:
        return self.max_occupancy >= guests


@dataclass(frozen=True)
class Room:
    id: str
    room_number: str
    floor: int
    status: str
    room_type: RoomType
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Room":
        """Build a Room from one entry of the availability `data` array."""
        if not isinstance(data, dict):
            raise RoomPayloadError("room entry is not an object")

        room_id = data.get("id") or data.get("_id")
        room_type_data = data.get("roomType")
        if not room_id or not isinstance(room_type_data, dict):
            raise RoomPayloadError("room entry missing id or roomType")

        try:
            max_occupancy = int(room_type_data.get("maxOccupancy") or 0)
            floor = int(data.get("floor") or 0)
        except (TypeError, ValueError):
            raise RoomPayloadError("room entry has non-numeric floor or maxOccupancy")

        room_type = RoomType(
            id=str(room_type_data.get("id") or room_type_data.get("_id") or ""),
            name=str(room_type_data.get("name") or ""),
            code=str(room_type_data.get("code") or ""),
            base_price=to_decimal(room_type_data.get("basePrice")),
            max_occupancy=max_occupancy,
            amenities=tuple(str(a) for a in room_type_data.get("amenities") or ()),
        )
        return cls(
            id=str(room_id),
            room_number=str(data.get("roomNumber") or ""),
            floor=floor,
            status=str(data.get("status") or ""),
            room_type=room_type,
            raw=dict(data),
        )

    def to_api(self) -> dict[str, Any]:
        """Payload form, as received from the API when available."""
        if self.raw:
            return dict(self.raw)
        return {
            "id": self.id,
            "roomNumber": self.room_number,
            "floor": self.floor,
            "status": self.status,
            "roomType": {
                "id": self.room_type.id,
                "name": self.room_type.name,
                "code": self.room_type.code,
                "basePrice": float(self.room_type.base_price),
                "maxOccupancy": self.room_type.max_occupancy,
                "amenities": list(self.room_type.amenities),
            },
        }


def sort_rooms(rooms: list[Room]) -> list[Room]:
    """Cheapest first, then by room number."""
    return sorted(rooms, key=lambda r: (r.room_type.base_price, r.room_number))


def parse_rooms(entries: list[Any]) -> list[Room]:
    """Parse the availability `data` array.

    Raises:
        RoomPayloadError: if any entry is malformed.
    """
    if not isinstance(entries, list):
        raise RoomPayloadError("availability data is not a list")
    return sort_rooms([Room.from_api(e) for e in entries])
