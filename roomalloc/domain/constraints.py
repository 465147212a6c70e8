"""Domain-level validation rules for rooms and capacity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from roomalloc.domain.models import Room


@dataclass(frozen=True)
class RoomDraft:
    name: str
    capacity: int
    type: str
    building: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = None
    chalet_group: Optional[str] = None


def parse_capacity(value: Any) -> Optional[int]:
    """Accept ints and numeric strings; anything else is missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def validate_room_draft(draft: RoomDraft, room_types: tuple[str, ...]) -> None:
    if not draft.name.strip():
        raise ValueError("Room name and capacity are required")
    if draft.capacity <= 0:
        raise ValueError("capacity must be > 0")
    if draft.type not in room_types:
        raise ValueError(f"type must be one of: {', '.join(room_types)}")
    if draft.bed_count is not None and draft.bed_count <= 0:
        raise ValueError("bed_count must be > 0")


def validate_capacity_change(room: Room, new_capacity: int) -> None:
    if new_capacity <= 0:
        raise ValueError("capacity must be > 0")
    if new_capacity < room.occupied:
        raise ValueError(
            f"capacity cannot drop below current occupancy ({room.occupied})"
        )


def remaining_capacity(room: Room) -> int:
    return room.capacity - room.occupied
