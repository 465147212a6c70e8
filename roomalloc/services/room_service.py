"""Room, chalet and tent management."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from roomalloc.domain.constraints import (
    RoomDraft,
    parse_capacity,
    validate_capacity_change,
    validate_room_draft,
)
from roomalloc.domain.mappers import filter_rooms, to_room, to_rooms
from roomalloc.domain.models import ROOM_TYPE_CHALET, ROOM_TYPE_TENT, Room
from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.config import Settings, get_settings
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)


class RoomError(Exception):
    """Base exception for room workflow failures."""


class RoomValidationError(RoomError):
    """Raised when room input values are missing or invalid."""


class RoomNotFoundError(RoomError):
    """Raised when a room id does not exist in persisted state."""


class RoomInUseError(RoomError):
    """Raised when deleting a room that still has allocations."""


@dataclass(frozen=True)
class PresetChalet:
    number: str
    bedrooms: int
    bed_setup: tuple[tuple[str, int], ...]


# Chalet catalogue of the venue the application was first built for.
PRESET_CHALETS: tuple[PresetChalet, ...] = (
    PresetChalet("1", 3, (("double", 3),)),
    PresetChalet("2", 3, (("twin", 3),)),
    PresetChalet("3", 4, (("double", 4),)),
    PresetChalet("4", 3, (("double", 3),)),
    PresetChalet("5", 4, (("double", 4),)),
    PresetChalet("6", 3, (("double", 2), ("single", 2))),
    PresetChalet("7", 3, (("double", 1), ("single", 2))),
    PresetChalet("8", 2, (("double", 2),)),
    PresetChalet("9", 3, (("double", 3),)),
    PresetChalet("10", 3, (("double", 2), ("single", 1))),
    PresetChalet("11", 3, (("double", 3),)),
    PresetChalet("14", 4, (("double", 4),)),
    PresetChalet("15", 4, (("double", 4),)),
    PresetChalet("17", 3, (("double", 3),)),
    PresetChalet("18", 4, (("double", 1), ("single", 6))),
    PresetChalet("19", 3, (("double", 1), ("single", 4))),
    PresetChalet("20", 3, (("double", 3),)),
    PresetChalet("21", 3, (("double", 1), ("single", 4))),
    PresetChalet("22", 4, (("single", 8),)),
    PresetChalet("23", 2, (("double", 1), ("single", 2))),
    PresetChalet("25", 3, (("single", 6),)),
)

# Chalets whose single-bed rooms hold two beds each.
_TWO_SINGLE_BED_CHALETS = frozenset({"18", "19", "21"})


def preset_room_layout(chalet: PresetChalet, room_index: int) -> tuple[str, int, int]:
    """Return ``(bed_type, bed_count, capacity)`` for a 1-based bedroom index."""
    setup = dict(chalet.bed_setup)
    if "double" in setup:
        if room_index <= setup["double"]:
            return "double", 1, 2
        if "twin" in setup:
            return "single", 2, 2
        bed_count = 2 if chalet.number in _TWO_SINGLE_BED_CHALETS else 1
        return "single", bed_count, bed_count
    if "twin" in setup:
        return "twin", 1, 2
    if "single" in setup:
        return "single", 2, 2
    return "single", 1, 1


class RoomService:
    """Validates and persists rooms, keeping the shared state in step."""

    def __init__(
        self,
        repository: DataRepository,
        state: AllocationStateStore,
        settings: Optional[Settings] = None,
    ) -> None:
        self._repository = repository
        self._state = state
        self._settings = settings or get_settings()

    def list_rooms(self, query: str = "", room_type: Optional[str] = None) -> list[Room]:
        return filter_rooms(self._state.rooms, query, room_type)

    def get_room(self, room_id: str) -> Room:
        row = self._repository.get_room(room_id)
        if row is None:
            raise RoomNotFoundError(f"Room {room_id} was not found")
        return to_room(row)

    def _draft(self, values: Mapping[str, Any], *, name: Optional[str] = None) -> RoomDraft:
        resolved_name = str(name if name is not None else values.get("name") or "").strip()
        capacity = parse_capacity(values.get("capacity"))
        if not resolved_name or capacity is None:
            raise RoomValidationError("Room name and capacity are required")
        draft = RoomDraft(
            name=resolved_name,
            capacity=capacity,
            type=str(values.get("type") or self._settings.default_room_type),
            building=values.get("building") or self._settings.default_building,
            floor=str(values.get("floor") or self._settings.default_floor),
            description=values.get("description") or "",
            bed_type=values.get("bed_type") or self._settings.default_bed_type,
            bed_count=parse_capacity(values.get("bed_count")) or 1,
            chalet_group=values.get("chalet_group") or None,
        )
        try:
            validate_room_draft(draft, self._settings.room_types)
        except ValueError as exc:
            raise RoomValidationError(str(exc)) from exc
        return draft

    def create_room(self, values: Mapping[str, Any]) -> Room:
        """Insert one room with ``occupied = 0``."""
        draft = self._draft(values)
        room = to_room(self._repository.insert_room(draft))
        self._state.upsert_rooms([room])
        logger.info("Room %s created (%s, capacity %s)", room.id, room.name, room.capacity)
        return room

    def create_chalet(self, values: Mapping[str, Any]) -> list[Room]:
        """Create a chalet as sibling rooms sharing one ``chalet_group`` label.

        ``values`` carries ``chalet_number``, ``type`` and either a ``rooms``
        list of ``{room_number, capacity}`` entries or a single ``capacity``.
        A personal tent is always one room named ``Tent <n>``.
        """
        number = str(values.get("chalet_number") or "").strip()
        room_type = str(values.get("type") or ROOM_TYPE_CHALET)
        sub_rooms = list(values.get("rooms") or [])
        if not sub_rooms:
            sub_rooms = [{"room_number": values.get("room_number"), "capacity": values.get("capacity")}]
        if not number or any(parse_capacity(item.get("capacity")) is None for item in sub_rooms):
            raise RoomValidationError("Chalet/Tent number and capacity are required")

        notes = values.get("notes") or values.get("description") or ""
        if room_type == ROOM_TYPE_TENT:
            drafts = [
                self._draft(
                    {**sub_rooms[0], "type": room_type, "description": notes},
                    name=values.get("name") or f"Tent {number}",
                )
            ]
        else:
            group = f"Chalet {number}"
            drafts = []
            for index, item in enumerate(sub_rooms, start=1):
                room_number = item.get("room_number") or index
                drafts.append(
                    self._draft(
                        {
                            **item,
                            "type": room_type,
                            "description": notes or f"Part of {group}",
                            "chalet_group": group,
                        },
                        name=f"{group} - Room {room_number}",
                    )
                )

        with self._repository.transaction():
            rooms = to_rooms(self._repository.insert_rooms(drafts))
        self._state.upsert_rooms(rooms)
        logger.info("Created %s rooms for %s %s", len(rooms), room_type, number)
        return rooms

    def seed_preset_chalets(self) -> int:
        drafts: list[RoomDraft] = []
        for chalet in PRESET_CHALETS:
            group = f"Chalet {chalet.number}"
            for index in range(1, chalet.bedrooms + 1):
                bed_type, bed_count, capacity = preset_room_layout(chalet, index)
                drafts.append(
                    RoomDraft(
                        name=f"{group} - Room {index}",
                        capacity=capacity,
                        type=ROOM_TYPE_CHALET,
                        description=f"Part of {group}",
                        bed_type=bed_type,
                        bed_count=bed_count,
                        chalet_group=group,
                    )
                )
        with self._repository.transaction():
            rooms = to_rooms(self._repository.insert_rooms(drafts))
        self._state.upsert_rooms(rooms)
        logger.info(
            "Added %s rooms across %s chalets",
            len(rooms),
            len(PRESET_CHALETS),
        )
        return len(rooms)

    def update_room(self, room_id: str, values: Mapping[str, Any]) -> Room:
        fields: dict[str, Any] = {}
        with self._repository.transaction():
            room = self.get_room(room_id)
            if "name" in values:
                name = str(values.get("name") or "").strip()
                if not name:
                    raise RoomValidationError("Room name and capacity are required")
                fields["name"] = name
            if "capacity" in values:
                capacity = parse_capacity(values.get("capacity"))
                if capacity is None:
                    raise RoomValidationError("Room name and capacity are required")
                try:
                    validate_capacity_change(room, capacity)
                except ValueError as exc:
                    raise RoomValidationError(str(exc)) from exc
                fields["capacity"] = capacity
            if "type" in values and values["type"] not in self._settings.room_types:
                raise RoomValidationError(
                    f"type must be one of: {', '.join(self._settings.room_types)}"
                )
            for key in ("type", "description", "building", "floor", "bed_type", "bed_count", "chalet_group"):
                if key in values:
                    fields[key] = values[key]
            updated = to_room(self._repository.update_room(room_id, fields))
        self._state.apply_room_update(updated)
        logger.info("Room %s updated", room_id)
        return updated

    def delete_room(self, room_id: str) -> None:
        with self._repository.transaction():
            room = self.get_room(room_id)
            if self._repository.count_allocations_for_room(room_id) > 0:
                raise RoomInUseError("Cannot delete accommodation with active allocations")
            self._repository.delete_room(room_id)
        self._state.discard_room(room_id)
        logger.info("Room %s (%s) deleted", room_id, room.name)

    def ensure_assignable(self, room_id: str) -> Room:
        room = self.get_room(room_id)
        if room.is_full:
            noun = "tent" if room.type == ROOM_TYPE_TENT else "room"
            raise RoomValidationError(f"This {noun} is already at full capacity")
        return room
