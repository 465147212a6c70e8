"""Attendee registration, editing and removal."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from roomalloc.domain.mappers import filter_people, people_counts, to_person
from roomalloc.domain.models import Person
from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.allocation_service import AllocationService
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)


class PersonError(Exception):
    """Base exception for attendee workflow failures."""


class PersonValidationError(PersonError):
    """Raised when attendee input values are missing or invalid."""


class PersonNotFoundError(PersonError):
    """Raised when a person id does not exist in persisted state."""


_EDITABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "department",
    "home_church",
    "special_needs",
)


def _clean(values: Mapping[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key in _EDITABLE_FIELDS:
        if key not in values:
            continue
        value = values[key]
        cleaned[key] = value.strip() if isinstance(value, str) else value
    return cleaned


class PeopleService:
    def __init__(
        self,
        repository: DataRepository,
        state: AllocationStateStore,
        allocation_service: AllocationService,
    ) -> None:
        self._repository = repository
        self._state = state
        self._allocation_service = allocation_service

    def list_people(self, query: str = "", tab: str = "all") -> list[Person]:
        return filter_people(self._state.people, query, tab)

    def counts(self) -> dict[str, int]:
        return people_counts(self._state.people)

    def create_person(self, values: Mapping[str, Any]) -> Person:
        fields = _clean(values)
        if not fields.get("name"):
            raise PersonValidationError("Name is required")
        fields["import_source"] = values.get("import_source")
        fields["imported_at"] = values.get("imported_at")
        person = to_person(self._repository.insert_person(fields))
        self._state.upsert_person(person)
        logger.info("Person %s registered", person.id)
        return person

    def update_person(self, person_id: str, values: Mapping[str, Any]) -> Person:
        fields = _clean(values)
        if "name" in fields and not fields["name"]:
            raise PersonValidationError("Name is required")
        with self._repository.transaction():
            if self._repository.get_person(person_id) is None:
                raise PersonNotFoundError(f"Person {person_id} was not found")
            row = self._repository.update_person(person_id, fields)
            allocation = self._repository.find_allocation_for_person(person_id)
        person = to_person(row, [allocation] if allocation is not None else [])
        self._state.apply_person_update(person)
        logger.info("Person %s updated", person_id)
        return person

    def delete_person(self, person_id: str) -> None:
        """Delete a person, releasing their bed first so the room stays consistent."""
        with self._repository.transaction():
            if self._repository.get_person(person_id) is None:
                raise PersonNotFoundError(f"Person {person_id} was not found")
            released = self._allocation_service.remove_allocation_for_person(person_id)
            self._repository.delete_person(person_id)
        if released:
            self._state.refresh()
        else:
            self._state.discard_person(person_id)
        logger.info("Person %s deleted (allocation released: %s)", person_id, released)

    def get_person(self, person_id: str) -> Optional[Person]:
        return self._state.find_person(person_id)
