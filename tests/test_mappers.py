from roomalloc.domain.mappers import (
    filter_allocations,
    filter_people,
    filter_rooms,
    people_counts,
    to_allocation,
    to_person,
    to_room,
    to_rooms,
)
from roomalloc.domain.models import Allocation, Person, Room


def _allocation(allocation_id: str, name: str, email: str, room_name: str, building: str = "Main Building"):
    room = Room(id=f"room-{allocation_id}", name=room_name, capacity=2, building=building)
    person = Person(id=f"person-{allocation_id}", name=name, email=email)
    return Allocation(
        id=allocation_id,
        person_id=person.id,
        room_id=room.id,
        person=person,
        room=room,
        date_assigned="2024-06-01T10:00:00+00:00",
    )


def test_to_room_applies_defaults_for_missing_fields():
    room = to_room({"id": "r1", "name": "Chalet 1 - Room 1", "capacity": "3"})

    assert room.capacity == 3
    assert room.occupied == 0
    assert room.type == "Chalet"
    assert room.building is None
    assert room.available == 3
    assert room.is_full is False


def test_to_room_tolerates_malformed_row():
    room = to_room({"capacity": "lots", "occupied": None, "bed_count": "x"})

    assert room.id == ""
    assert room.capacity == 0
    assert room.occupied == 0
    assert room.bed_count == 0
    assert to_room(None).name == ""

    assert to_room({"capacity": "inf"}).capacity == 0
    assert to_room({"occupied": float("inf")}).occupied == 0
    assert to_room({"capacity": float("nan")}).capacity == 0
    assert to_allocation({"room": {"capacity": "1e999"}}).room.capacity == 0
    assert to_room(["not", "a", "row"]).id == ""


def test_mappers_accept_non_mapping_rows():
    allocation = to_allocation({"id": "a1", "person_id": "p1", "person": "Jane", "room": 7})
    person = to_person("p1", allocations=[None, "junk", {"person_id": "", "room": "x"}])

    assert allocation.person.name == ""
    assert allocation.room.name == ""
    assert person.id == ""
    assert person.room_name is None
    assert to_person({"id": "p1"}, allocations=None).room_id is None


def test_to_person_resolves_room_cache_from_allocation_rows():
    allocations = [
        {"id": "a1", "person_id": "p2", "room_id": "r9", "room": {"name": "Tent 9"}},
        {"id": "a2", "person_id": "p1", "room_id": "r1", "room": {"name": "Chalet 1 - Room 1"}},
    ]

    person = to_person({"id": "p1", "name": "Nyasha", "home_church": "Harare Central"}, allocations)

    assert person.room_id == "r1"
    assert person.room_name == "Chalet 1 - Room 1"
    assert person.department == "Harare Central"
    assert person.email == ""
    assert person.is_assigned is True


def test_to_person_without_allocation_is_unassigned():
    person = to_person({"id": "p3", "name": "Tariro", "department": "Choir"})

    assert person.room_id is None
    assert person.room_name is None
    assert person.department == "Choir"
    assert person.is_assigned is False


def test_to_allocation_maps_nested_person_and_room():
    allocation = to_allocation(
        {
            "id": "a1",
            "person_id": "p1",
            "room_id": "r1",
            "date_assigned": "2024-06-01T10:00:00+00:00",
            "notes": "late arrival",
            "person": {"name": "Jane Smith", "email": "jane@example.com"},
            "room": {"name": "Chalet 4 - Room 2", "capacity": 2, "occupied": 1},
        }
    )

    assert allocation.person.name == "Jane Smith"
    assert allocation.person.room_id == "r1"
    assert allocation.room.id == "r1"
    assert allocation.room.occupied == 1
    assert allocation.notes == "late arrival"


def test_to_allocation_without_nested_rows_still_renders():
    allocation = to_allocation({"id": "a1", "person_id": "p1", "room_id": "r1"})

    assert allocation.person.name == ""
    assert allocation.room.name == ""
    assert allocation.date_assigned == ""


def test_to_rooms_handles_missing_collection():
    assert to_rooms(None) == []


def test_filter_allocations_empty_query_returns_everything():
    allocations = [
        _allocation("a1", "Jane Smith", "jane@example.com", "Chalet 1 - Room 1"),
        _allocation("a2", "Rumbi Dube", "rumbi@example.com", "Tent 3"),
    ]

    result = filter_allocations(allocations, "")

    assert result == allocations
    assert result is not allocations


def test_filter_allocations_matches_case_insensitively():
    allocations = [
        _allocation("a1", "Jane Smith", "jane@example.com", "Chalet 1 - Room 1"),
        _allocation("a2", "Rumbi Dube", "rumbi@example.com", "Tent 3"),
        _allocation("a3", "Sam Moyo", "SMITHS@example.com", "Hotel 2", building="Annex"),
    ]

    assert [item.id for item in filter_allocations(allocations, "smith")] == ["a1", "a3"]
    assert [item.id for item in filter_allocations(allocations, "TENT")] == ["a2"]
    assert [item.id for item in filter_allocations(allocations, "annex")] == ["a3"]
    assert filter_allocations(allocations, "nobody") == []


def test_filter_people_tabs_and_counts():
    people = [
        Person(id="p1", name="Jane Smith", room_id="r1", room_name="Tent 1"),
        Person(id="p2", name="John Smith"),
        Person(id="p3", name="Chipo", department="Smithfield Church"),
    ]

    assert [person.id for person in filter_people(people, "smith")] == ["p1", "p2", "p3"]
    assert [person.id for person in filter_people(people, "smith", "assigned")] == ["p1"]
    assert [person.id for person in filter_people(people, "", "unassigned")] == ["p2", "p3"]
    assert people_counts(people) == {"all": 3, "assigned": 1, "unassigned": 2}


def test_filter_rooms_by_type_and_group():
    rooms = [
        Room(id="r1", name="Chalet 1 - Room 1", capacity=2, chalet_group="Chalet 1"),
        Room(id="r2", name="Tent 5", capacity=1, type="Personal tent"),
        Room(id="r3", name="Chalet 2 - Room 1", capacity=2, chalet_group="Chalet 2"),
    ]

    assert [room.id for room in filter_rooms(rooms, room_type="Personal tent")] == ["r2"]
    assert [room.id for room in filter_rooms(rooms, "chalet 2")] == ["r3"]
    assert len(filter_rooms(rooms)) == 3
