"""In-memory rooms/people/allocations state shared by every workflow."""

from __future__ import annotations

from dataclasses import dataclass, replace
from threading import RLock
from typing import Iterable, Optional

from roomalloc.domain.mappers import to_allocations, to_people, to_rooms
from roomalloc.domain.models import Allocation, Person, Room
from roomalloc.repository.data_repository import DataRepository


@dataclass(frozen=True)
class StateSnapshot:
    rooms: list[Room]
    people: list[Person]
    allocations: list[Allocation]


class AllocationStateStore:
    """Single owner of the cached collections.

    Services patch it after single-row mutations and call ``refresh`` after
    batch mutations, where a full re-fetch is the correctness mechanism.
    """

    def __init__(self, repository: DataRepository) -> None:
        self._repository = repository
        self._lock = RLock()
        self._rooms: list[Room] = []
        self._people: list[Person] = []
        self._allocations: list[Allocation] = []
        self._loaded = False

    def refresh(self) -> StateSnapshot:
        with self._repository.transaction():
            room_rows = self._repository.list_rooms()
            people_rows = self._repository.list_people()
            allocation_rows = self._repository.list_allocations()
        with self._lock:
            self._rooms = to_rooms(room_rows)
            self._people = to_people(people_rows, allocation_rows)
            self._allocations = to_allocations(allocation_rows)
            self._loaded = True
            return self._snapshot()

    def ensure_loaded(self) -> None:
        with self._lock:
            loaded = self._loaded
        if not loaded:
            self.refresh()

    def _snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            rooms=list(self._rooms),
            people=list(self._people),
            allocations=list(self._allocations),
        )

    def snapshot(self) -> StateSnapshot:
        self.ensure_loaded()
        with self._lock:
            return self._snapshot()

    @property
    def rooms(self) -> list[Room]:
        return self.snapshot().rooms

    @property
    def people(self) -> list[Person]:
        return self.snapshot().people

    @property
    def allocations(self) -> list[Allocation]:
        return self.snapshot().allocations

    def find_room(self, room_id: str) -> Optional[Room]:
        return next((room for room in self.rooms if room.id == room_id), None)

    def find_person(self, person_id: str) -> Optional[Person]:
        return next((person for person in self.people if person.id == person_id), None)

    def find_allocation(self, allocation_id: str) -> Optional[Allocation]:
        return next(
            (allocation for allocation in self.allocations if allocation.id == allocation_id),
            None,
        )

    def allocation_for_person(self, person_id: str) -> Optional[Allocation]:
        return next(
            (allocation for allocation in self.allocations if allocation.person_id == person_id),
            None,
        )

    def _adjust_room(self, room_id: str, delta: int) -> None:
        self._rooms = [
            replace(room, occupied=max(room.occupied + delta, 0)) if room.id == room_id else room
            for room in self._rooms
        ]

    def apply_assignment(
        self,
        allocation: Allocation,
        previous_room_id: Optional[str],
    ) -> None:
        """Record a single-person insert or move."""
        with self._lock:
            if previous_room_id is not None and previous_room_id != allocation.room_id:
                self._adjust_room(previous_room_id, -1)
                self._adjust_room(allocation.room_id, 1)
            elif previous_room_id is None:
                self._adjust_room(allocation.room_id, 1)
            self._allocations = [
                item for item in self._allocations if item.id != allocation.id
            ] + [allocation]
            self._people = [
                replace(person, room_id=allocation.room_id, room_name=allocation.room.name)
                if person.id == allocation.person_id
                else person
                for person in self._people
            ]

    def apply_removal(self, allocation: Allocation) -> None:
        with self._lock:
            self._allocations = [item for item in self._allocations if item.id != allocation.id]
            self._adjust_room(allocation.room_id, -1)
            self._people = [
                replace(person, room_id=None, room_name=None)
                if person.id == allocation.person_id
                else person
                for person in self._people
            ]

    def upsert_rooms(self, rooms: Iterable[Room]) -> None:
        with self._lock:
            for room in rooms:
                if any(existing.id == room.id for existing in self._rooms):
                    self._rooms = [room if existing.id == room.id else existing for existing in self._rooms]
                else:
                    self._rooms.append(room)

    def apply_room_update(self, room: Room) -> None:
        """Replace an edited room and the copies of it held by allocations and people."""
        with self._lock:
            self._rooms = [room if existing.id == room.id else existing for existing in self._rooms]
            self._allocations = [
                replace(
                    allocation,
                    room=room,
                    person=replace(allocation.person, room_name=room.name),
                )
                if allocation.room_id == room.id
                else allocation
                for allocation in self._allocations
            ]
            self._people = [
                replace(person, room_name=room.name) if person.room_id == room.id else person
                for person in self._people
            ]

    def apply_person_update(self, person: Person) -> None:
        """Replace an edited person and the copy of them held by their allocation."""
        with self._lock:
            self._people = [person if existing.id == person.id else existing for existing in self._people]
            self._allocations = [
                replace(allocation, person=person)
                if allocation.person_id == person.id
                else allocation
                for allocation in self._allocations
            ]

    def discard_room(self, room_id: str) -> None:
        with self._lock:
            self._rooms = [room for room in self._rooms if room.id != room_id]

    def upsert_person(self, person: Person) -> None:
        with self._lock:
            if any(existing.id == person.id for existing in self._people):
                self._people = [person if existing.id == person.id else existing for existing in self._people]
            else:
                self._people.append(person)

    def discard_person(self, person_id: str) -> None:
        with self._lock:
            self._people = [person for person in self._people if person.id != person_id]
