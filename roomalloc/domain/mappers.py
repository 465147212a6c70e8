"""Pure translations from raw store rows into domain models.

Rows arrive as plain mappings shaped like the store's tables. Allocation rows
additionally carry nested ``person`` and ``room`` mappings from the join. None
of these functions raise: missing or malformed fields fall back to defaults so
a half-populated row still renders.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from roomalloc.domain.models import ROOM_TYPE_CHALET, Allocation, Person, Room


Row = Mapping[str, Any]


def _mapping(value: Any) -> Row:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return _int(value)


def to_room(raw: Optional[Row]) -> Room:
    raw = _mapping(raw)
    return Room(
        id=_text(raw.get("id")),
        name=_text(raw.get("name")),
        capacity=_int(raw.get("capacity")),
        occupied=_int(raw.get("occupied")),
        type=_text(raw.get("type")) or ROOM_TYPE_CHALET,
        building=_optional_text(raw.get("building")),
        floor=_optional_text(raw.get("floor")),
        description=_optional_text(raw.get("description")),
        bed_type=_optional_text(raw.get("bed_type")),
        bed_count=_optional_int(raw.get("bed_count")),
        chalet_group=_optional_text(raw.get("chalet_group")),
    )


def _department(raw: Row) -> str:
    return _text(raw.get("department")) or _text(raw.get("home_church"))


def to_person(raw: Optional[Row], allocations: Iterable[Row] = ()) -> Person:
    """Map a people row, resolving the room cache from allocation rows."""
    raw = _mapping(raw)
    person_id = _text(raw.get("id"))
    rows = (_mapping(row) for row in allocations or ())
    allocation = next(
        (row for row in rows if _text(row.get("person_id")) == person_id),
        None,
    )
    room_id: Optional[str] = None
    room_name: Optional[str] = None
    if allocation is not None:
        room_id = _optional_text(allocation.get("room_id"))
        room_name = _optional_text(_mapping(allocation.get("room")).get("name"))
    return Person(
        id=person_id,
        name=_text(raw.get("name")),
        email=_text(raw.get("email")),
        phone=_optional_text(raw.get("phone")),
        department=_department(raw),
        home_church=_optional_text(raw.get("home_church")),
        special_needs=_optional_text(raw.get("special_needs")),
        import_source=_optional_text(raw.get("import_source")),
        room_id=room_id,
        room_name=room_name,
    )


def to_allocation(raw: Optional[Row]) -> Allocation:
    raw = _mapping(raw)
    person_raw = _mapping(raw.get("person"))
    room_raw = _mapping(raw.get("room"))
    room_id = _text(raw.get("room_id"))
    room = to_room({**room_raw, "id": room_id})
    person = Person(
        id=_text(raw.get("person_id")),
        name=_text(person_raw.get("name")),
        email=_text(person_raw.get("email")),
        phone=_optional_text(person_raw.get("phone")),
        department=_department(person_raw),
        home_church=_optional_text(person_raw.get("home_church")),
        special_needs=_optional_text(person_raw.get("special_needs")),
        import_source=_optional_text(person_raw.get("import_source")),
        room_id=room_id or None,
        room_name=room.name or None,
    )
    return Allocation(
        id=_text(raw.get("id")),
        person_id=person.id,
        room_id=room_id,
        person=person,
        room=room,
        date_assigned=_text(raw.get("date_assigned")),
        notes=_optional_text(raw.get("notes")),
    )


def to_rooms(rows: Optional[Sequence[Row]]) -> list[Room]:
    return [to_room(row) for row in rows or ()]


def to_people(rows: Optional[Sequence[Row]], allocations: Optional[Sequence[Row]]) -> list[Person]:
    allocation_rows = list(allocations or ())
    return [to_person(row, allocation_rows) for row in rows or ()]


def to_allocations(rows: Optional[Sequence[Row]]) -> list[Allocation]:
    return [to_allocation(row) for row in rows or ()]


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def filter_allocations(allocations: Sequence[Allocation], query: str) -> list[Allocation]:
    """Case-insensitive search over person and room fields."""
    if not query:
        return list(allocations)
    needle = query.lower()
    return [
        allocation
        for allocation in allocations
        if _contains(allocation.person.name, needle)
        or _contains(allocation.person.email, needle)
        or _contains(allocation.person.department, needle)
        or _contains(allocation.room.name, needle)
        or _contains(allocation.room.building, needle)
    ]


PEOPLE_TABS = ("all", "assigned", "unassigned")


def filter_people(people: Sequence[Person], query: str = "", tab: str = "all") -> list[Person]:
    needle = (query or "").lower()
    matches = [
        person
        for person in people
        if not needle
        or _contains(person.name, needle)
        or _contains(person.email, needle)
        or _contains(person.department, needle)
    ]
    if tab == "assigned":
        return [person for person in matches if person.is_assigned]
    if tab == "unassigned":
        return [person for person in matches if not person.is_assigned]
    return matches


def people_counts(people: Sequence[Person]) -> dict[str, int]:
    assigned = sum(1 for person in people if person.is_assigned)
    return {
        "all": len(people),
        "assigned": assigned,
        "unassigned": len(people) - assigned,
    }


def filter_rooms(rooms: Sequence[Room], query: str = "", room_type: Optional[str] = None) -> list[Room]:
    needle = (query or "").lower()
    return [
        room
        for room in rooms
        if (room_type is None or room.type == room_type)
        and (
            not needle
            or _contains(room.name, needle)
            or _contains(room.description, needle)
            or _contains(room.chalet_group, needle)
        )
    ]
