"""Domain models for rooms, people and their allocations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


ROOM_TYPE_CHALET = "Chalet"
ROOM_TYPE_TENT = "Personal tent"
ROOM_TYPE_HOTEL = "Hotel"


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    capacity: int
    occupied: int = 0
    type: str = ROOM_TYPE_CHALET
    building: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = None
    chalet_group: Optional[str] = None

    @property
    def available(self) -> int:
        return max(self.capacity - self.occupied, 0)

    @property
    def is_full(self) -> bool:
        return self.occupied >= self.capacity


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    email: str = ""
    phone: Optional[str] = None
    department: str = ""
    home_church: Optional[str] = None
    special_needs: Optional[str] = None
    import_source: Optional[str] = None
    room_id: Optional[str] = None
    room_name: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return bool(self.room_id)


@dataclass(frozen=True)
class Allocation:
    id: str
    person_id: str
    room_id: str
    person: Person
    room: Room
    date_assigned: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class SaveResult:
    mode: str
    new_count: int
    moved_count: int
    allocation_ids: list[str] = field(default_factory=list)
    message: str = ""


@dataclass(frozen=True)
class OccupancyDrift:
    room_id: str
    room_name: str
    recorded: int
    actual: int
