from dataclasses import replace

import pytest

from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.allocation_service import AllocationService
from roomalloc.services.dashboard_service import DashboardService
from roomalloc.services.import_service import (
    ImportService,
    ImportValidationError,
    parse_import_text,
    parse_line,
)
from roomalloc.services.people_service import (
    PeopleService,
    PersonNotFoundError,
    PersonValidationError,
)
from roomalloc.services.room_service import RoomService
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    base = get_settings()
    return replace(base, database_path=tmp_path / filename, owner_id=None)


def _build_services(tmp_path, filename: str = "people.db"):
    settings = _build_test_settings(tmp_path, filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    state = AllocationStateStore(repository)
    allocations = AllocationService(repository=repository, state=state)
    people = PeopleService(repository=repository, state=state, allocation_service=allocations)
    rooms = RoomService(repository=repository, state=state, settings=settings)
    imports = ImportService(repository=repository, people_service=people)
    dashboard = DashboardService(repository=repository, state=state)
    return repository, allocations, people, rooms, imports, dashboard


def test_create_person_requires_name(tmp_path):
    repository, _, people, _, _, _ = _build_services(tmp_path)

    with pytest.raises(PersonValidationError, match="Name is required"):
        people.create_person({"name": "   ", "email": "ghost@example.com"})
    assert repository.list_people() == []


def test_update_person_keeps_room_cache(tmp_path):
    _, allocations, people, rooms, _, _ = _build_services(tmp_path)
    room = rooms.create_room({"name": "Chalet 3 - Room 2", "capacity": 2})
    person = people.create_person({"name": "Kuda"})
    allocations.save_allocation(person, room, "")

    updated = people.update_person(person.id, {"email": "kuda@example.com", "special_needs": "Nut allergy"})

    assert updated.email == "kuda@example.com"
    assert updated.room_id == room.id
    assert updated.room_name == "Chalet 3 - Room 2"
    assert people.get_person(person.id).special_needs == "Nut allergy"


def test_update_and_delete_unknown_person(tmp_path):
    _, _, people, _, _, _ = _build_services(tmp_path)

    with pytest.raises(PersonNotFoundError):
        people.update_person("missing", {"name": "Nobody"})
    with pytest.raises(PersonNotFoundError):
        people.delete_person("missing")


def test_people_tabs_and_counts_follow_assignments(tmp_path):
    _, allocations, people, rooms, _, _ = _build_services(tmp_path)
    room = rooms.create_room({"name": "Tent 2", "capacity": 1, "type": "Personal tent"})
    assigned = people.create_person({"name": "Assigned Person"})
    people.create_person({"name": "Waiting Person"})
    allocations.save_allocation(assigned, room, "")

    assert [person.name for person in people.list_people(tab="assigned")] == ["Assigned Person"]
    assert [person.name for person in people.list_people(tab="unassigned")] == ["Waiting Person"]
    assert [person.name for person in people.list_people(query="waiting")] == ["Waiting Person"]
    assert people.counts() == {"all": 2, "assigned": 1, "unassigned": 1}


def test_parse_line_with_row_number_and_columns():
    parsed = parse_line("12\tTendai\tMoyo\tChalet 4\tVegetarian\tYes")

    assert parsed.number == "12"
    assert parsed.full_name == "Tendai Moyo"
    assert parsed.room_preference == "Chalet 4"
    assert parsed.dietary == "Vegetarian"
    assert parsed.paid == "Yes"
    assert parsed.valid is True


def test_parse_line_without_row_number():
    parsed = parse_line("  Rudo\tChikore\tTent")

    assert parsed.number is None
    assert parsed.name == "Rudo"
    assert parsed.surname == "Chikore"
    assert parsed.room_preference == "Tent"


def test_parse_line_single_column_is_a_name():
    parsed = parse_line("Farai")

    assert parsed.full_name == "Farai"
    assert parsed.valid is True


def test_parse_import_text_skips_blank_lines_and_flags_missing_names():
    rows = parse_import_text("Anna  Banda\n\n4, ,SurnameOnly\n")

    assert len(rows) == 2
    assert rows[0].full_name == "Anna Banda"
    assert rows[1].valid is False


def test_import_people_creates_attendees(tmp_path):
    repository, _, people, _, imports, _ = _build_services(tmp_path)

    result = imports.import_people("1\tAnna\tBanda\tChalet 1\tHalal\n2\tBen\tPhiri\n")

    assert result.processed == 2
    assert result.failed == 0
    stored = {row["name"]: row for row in repository.list_people()}
    assert stored["Anna Banda"]["import_source"] == "text_import"
    assert stored["Anna Banda"]["special_needs"] == "Halal"
    assert stored["Anna Banda"]["department"] == "Chalet 1"
    assert stored["Anna Banda"]["imported_at"]
    assert people.counts()["all"] == 2


def test_import_rejects_empty_and_invalid_text(tmp_path):
    repository, _, _, _, imports, _ = _build_services(tmp_path)

    with pytest.raises(ImportValidationError, match="Please enter some text"):
        imports.import_people("   \n ")
    with pytest.raises(ImportValidationError, match="Found 1 invalid entries"):
        imports.import_people("Anna\tBanda\n4, ,NoName\n")
    assert repository.list_people() == []


def test_statistics_and_clear_all(tmp_path):
    repository, allocations, people, rooms, _, dashboard = _build_services(tmp_path)
    chalet = rooms.create_chalet(
        {"chalet_number": "1", "rooms": [{"room_number": 1, "capacity": 2}, {"room_number": 2, "capacity": 1}]}
    )
    guest = people.create_person({"name": "Guest", "special_needs": "Wheelchair access"})
    people.create_person({"name": "Other"})
    allocations.save_allocation(guest, chalet[1], "")

    stats = dashboard.get_statistics()

    assert stats["room_count"] == 2
    assert stats["total_capacity"] == 3
    assert stats["total_occupied"] == 1
    assert stats["available_beds"] == 2
    assert stats["chalet_count"] == 1
    assert stats["full_room_count"] == 1
    assert stats["special_needs_count"] == 1
    assert stats["assigned_count"] == 1
    assert stats["unassigned_count"] == 1
    assert stats["allocation_count"] == 1

    dashboard.clear_all_data()

    assert repository.list_rooms() == []
    assert repository.list_people() == []
    assert repository.count_allocations() == 0
    assert dashboard.get_statistics()["room_count"] == 0
