import logging
from dataclasses import replace

import pytest

from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.allocation_service import AllocationService
from roomalloc.services.people_service import PeopleService
from roomalloc.services.room_service import (
    PRESET_CHALETS,
    RoomInUseError,
    RoomNotFoundError,
    RoomService,
    RoomValidationError,
    preset_room_layout,
)
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str, **overrides):
    get_settings.cache_clear()
    base = get_settings()
    overrides.setdefault("owner_id", None)
    return replace(base, database_path=tmp_path / filename, **overrides)


def _build_room_service(tmp_path, filename: str = "rooms.db", **overrides):
    settings = _build_test_settings(tmp_path, filename, **overrides)
    repository = DataRepository(settings)
    repository.initialize_database()
    state = AllocationStateStore(repository)
    return repository, RoomService(repository=repository, state=state, settings=settings)


def _preset(number: str):
    return next(chalet for chalet in PRESET_CHALETS if chalet.number == number)


def test_create_room_applies_defaults(tmp_path):
    _, service = _build_room_service(tmp_path)

    room = service.create_room({"name": "Main Hall Bunk", "capacity": "4"})

    assert room.capacity == 4
    assert room.occupied == 0
    assert room.type == "Chalet"
    assert room.building == "Main Building"
    assert room.floor == "1"
    assert room.bed_type == "single"
    assert service.list_rooms()[0].id == room.id


@pytest.mark.parametrize(
    "values,message",
    [
        ({"name": "", "capacity": 2}, "Room name and capacity are required"),
        ({"name": "No Beds"}, "Room name and capacity are required"),
        ({"name": "Zero", "capacity": 0}, "capacity must be > 0"),
        ({"name": "Castle", "capacity": 2, "type": "Castle"}, "type must be one of"),
    ],
)
def test_create_room_validation(tmp_path, values, message):
    repository, service = _build_room_service(tmp_path)

    with pytest.raises(RoomValidationError, match=message):
        service.create_room(values)
    assert repository.list_rooms() == []


def test_create_chalet_with_sub_rooms(tmp_path):
    _, service = _build_room_service(tmp_path)

    rooms = service.create_chalet(
        {
            "chalet_number": "12",
            "type": "Chalet",
            "rooms": [
                {"room_number": 1, "capacity": 2},
                {"room_number": 2, "capacity": "3"},
            ],
        }
    )

    assert [room.name for room in rooms] == ["Chalet 12 - Room 1", "Chalet 12 - Room 2"]
    assert {room.chalet_group for room in rooms} == {"Chalet 12"}
    assert [room.capacity for room in rooms] == [2, 3]
    assert rooms[0].description == "Part of Chalet 12"


def test_create_tent_is_a_single_room(tmp_path):
    _, service = _build_room_service(tmp_path)

    rooms = service.create_chalet({"chalet_number": "7", "type": "Personal tent", "capacity": 2})

    assert len(rooms) == 1
    assert rooms[0].name == "Tent 7"
    assert rooms[0].type == "Personal tent"
    assert rooms[0].chalet_group is None


def test_create_chalet_requires_number_and_capacity(tmp_path):
    repository, service = _build_room_service(tmp_path)

    with pytest.raises(RoomValidationError, match="Chalet/Tent number and capacity are required"):
        service.create_chalet({"chalet_number": "", "capacity": 2})
    with pytest.raises(RoomValidationError, match="Chalet/Tent number and capacity are required"):
        service.create_chalet(
            {"chalet_number": "3", "rooms": [{"room_number": 1, "capacity": 2}, {"room_number": 2}]}
        )
    assert repository.list_rooms() == []


def test_seed_preset_chalets_creates_full_catalogue(tmp_path):
    repository, service = _build_room_service(tmp_path)

    created = service.seed_preset_chalets()

    assert created == 67
    assert len(repository.list_rooms()) == 67
    names = {room.name for room in service.list_rooms()}
    assert "Chalet 25 - Room 3" in names
    assert "Chalet 12 - Room 1" not in names


def test_preset_room_layouts():
    assert preset_room_layout(_preset("1"), 1) == ("double", 1, 2)
    assert preset_room_layout(_preset("2"), 1) == ("twin", 1, 2)
    assert preset_room_layout(_preset("7"), 1) == ("double", 1, 2)
    assert preset_room_layout(_preset("7"), 2) == ("single", 1, 1)
    assert preset_room_layout(_preset("18"), 2) == ("single", 2, 2)
    assert preset_room_layout(_preset("22"), 4) == ("single", 2, 2)


def test_update_room_rejects_capacity_below_occupancy(tmp_path):
    repository, service = _build_room_service(tmp_path)
    room = service.create_room({"name": "Busy Room", "capacity": 3})
    repository.set_room_occupancy(room.id, 2)

    with pytest.raises(RoomValidationError, match="current occupancy"):
        service.update_room(room.id, {"capacity": 1})

    updated = service.update_room(room.id, {"capacity": 2, "description": "Top floor"})
    assert updated.capacity == 2
    assert updated.description == "Top floor"


def test_update_unknown_room(tmp_path):
    _, service = _build_room_service(tmp_path)

    with pytest.raises(RoomNotFoundError):
        service.update_room("missing", {"name": "Renamed"})


def test_delete_room_guarded_by_allocations(tmp_path):
    repository, service = _build_room_service(tmp_path)
    state = AllocationStateStore(repository)
    allocations = AllocationService(repository=repository, state=state)
    people = PeopleService(repository=repository, state=state, allocation_service=allocations)
    occupied_room = service.create_room({"name": "Occupied", "capacity": 2})
    empty_room = service.create_room({"name": "Empty", "capacity": 2})
    person = people.create_person({"name": "Guest"})
    allocations.save_allocation(person, occupied_room, "")

    with pytest.raises(RoomInUseError, match="active allocations"):
        service.delete_room(occupied_room.id)
    service.delete_room(empty_room.id)

    assert repository.get_room(occupied_room.id) is not None
    assert repository.get_room(empty_room.id) is None
    assert [room.id for room in service.list_rooms()] == [occupied_room.id]


def test_ensure_assignable_reports_full_tent(tmp_path):
    repository, service = _build_room_service(tmp_path)
    tent = service.create_room({"name": "Tent 1", "capacity": 1, "type": "Personal tent"})
    repository.set_room_occupancy(tent.id, 1)

    with pytest.raises(RoomValidationError, match="This tent is already at full capacity"):
        service.ensure_assignable(tent.id)


def test_rooms_are_scoped_to_owner(tmp_path):
    repository_a, service_a = _build_room_service(tmp_path, "shared.db", owner_id="owner-a")
    _, service_b = _build_room_service(tmp_path, "shared.db", owner_id="owner-b")

    service_a.create_room({"name": "Owner A Room", "capacity": 2})

    assert len(repository_a.list_rooms()) == 1
    assert service_b.list_rooms() == []


def test_clamped_occupancy_decrement_is_logged(tmp_path, caplog):
    repository, service = _build_room_service(tmp_path)
    room = service.create_room({"name": "Drifted", "capacity": 2})
    package_logger = logging.getLogger("roomalloc")
    package_logger.addHandler(caplog.handler)
    try:
        with caplog.at_level(logging.WARNING, logger="roomalloc"):
            repository.adjust_room_occupancy(room.id, -1)
    finally:
        package_logger.removeHandler(caplog.handler)

    assert int(repository.get_room(room.id)["occupied"]) == 0
    assert any("clamped to 0" in record.getMessage() for record in caplog.records)
