"""Allocation consistency logic: assign, move and remove people in rooms.

Each room stores a denormalized ``occupied`` counter. Every operation here
keeps that counter equal to the number of allocation rows pointing at the
room, and runs its store writes as one repository transaction so a failure
part way through leaves nothing applied.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from roomalloc.domain.constraints import remaining_capacity
from roomalloc.domain.mappers import filter_allocations, to_allocation, to_room
from roomalloc.domain.models import Allocation, OccupancyDrift, Person, Room, SaveResult
from roomalloc.repository.data_repository import DataRepository, utc_now
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)


class AllocationError(Exception):
    """Base exception for allocation workflow failures."""


class AllocationValidationError(AllocationError):
    """Raised when the requested assignment is incomplete or invalid."""


class CapacityExceededError(AllocationValidationError):
    """Raised when a single assignment targets a full room."""


class InsufficientCapacityError(CapacityExceededError):
    """Raised when a batch does not fit in the room's remaining beds."""


class AllocationTargetNotFoundError(AllocationError):
    """Raised when the person or room no longer exists in the store."""


Target = Union[Person, Sequence[Person], None]


class AllocationService:
    """Creates, moves and removes allocations over the injected repository."""

    def __init__(
        self,
        repository: DataRepository,
        state: Optional[AllocationStateStore] = None,
    ) -> None:
        self._repository = repository
        self._state = state or AllocationStateStore(repository)

    @property
    def state(self) -> AllocationStateStore:
        return self._state

    def filter_allocations(self, query: str) -> list[Allocation]:
        return filter_allocations(self._state.allocations, query)

    def resolve_room(self, room_id: str) -> Room:
        room = self._state.find_room(room_id)
        if room is None:
            raise AllocationTargetNotFoundError(f"Room {room_id} was not found")
        return room

    def resolve_people(self, person_ids: Sequence[str]) -> list[Person]:
        people: list[Person] = []
        for person_id in person_ids:
            person = self._state.find_person(person_id)
            if person is None:
                raise AllocationTargetNotFoundError(f"Person {person_id} was not found")
            people.append(person)
        return people

    def save_allocation(
        self,
        target: Target,
        room: Optional[Room],
        notes: Optional[str] = "",
    ) -> SaveResult:
        """Assign one person, or a batch of people, to ``room``."""
        if target is None or isinstance(target, Person):
            return self._save_single(target, room, notes)
        return self._save_batch(list(target), room, notes)

    def _load_room(self, room_id: str) -> Room:
        row = self._repository.get_room(room_id)
        if row is None:
            raise AllocationTargetNotFoundError(f"Room {room_id} was not found")
        return to_room(row)

    def _ensure_person(self, person: Person) -> None:
        if self._repository.get_person(person.id) is None:
            raise AllocationTargetNotFoundError(f"Person {person.id} was not found")

    def _save_single(
        self,
        person: Optional[Person],
        room: Optional[Room],
        notes: Optional[str],
    ) -> SaveResult:
        if person is None or room is None:
            raise AllocationValidationError("Please select both a person and a room")

        new_count = 0
        moved_count = 0
        with self._repository.transaction():
            current = self._load_room(room.id)
            self._ensure_person(person)
            existing = self._repository.find_allocation_for_person(person.id)
            previous_room_id = existing["room_id"] if existing is not None else None

            if existing is not None and previous_room_id == current.id:
                allocation_id = existing["id"]
                self._repository.update_allocation(
                    allocation_id, current.id, notes, existing["date_assigned"]
                )
                message = f"Updated allocation notes for {person.name}"
            else:
                if current.is_full:
                    raise CapacityExceededError("This room is already at full capacity")
                if existing is not None:
                    allocation_id = existing["id"]
                    self._repository.update_allocation(allocation_id, current.id, notes, utc_now())
                    self._repository.adjust_room_occupancy(previous_room_id, -1)
                    moved_count = 1
                    message = f"{person.name} has been moved to {current.name}"
                else:
                    allocation_id = self._repository.insert_allocation(
                        person.id, current.id, notes, utc_now()
                    )
                    new_count = 1
                    message = f"{person.name} has been assigned to {current.name}"
                self._repository.adjust_room_occupancy(current.id, 1)

            allocation_row = self._repository.get_allocation(allocation_id)

        allocation = to_allocation(allocation_row)
        self._state.apply_assignment(allocation, previous_room_id)
        logger.info(
            "Allocation %s saved: person=%s room=%s new=%s moved=%s",
            allocation_id,
            person.id,
            current.id,
            new_count,
            moved_count,
        )
        return SaveResult(
            mode="single",
            new_count=new_count,
            moved_count=moved_count,
            allocation_ids=[allocation_id],
            message=message,
        )

    def _save_batch(
        self,
        people: list[Person],
        room: Optional[Room],
        notes: Optional[str],
    ) -> SaveResult:
        if not people or room is None:
            raise AllocationValidationError("Please select both people and a room")

        unique_people = list({person.id: person for person in people}.values())
        new_count = 0
        moved_count = 0
        allocation_ids: list[str] = []
        with self._repository.transaction():
            current = self._load_room(room.id)
            available = remaining_capacity(current)
            if len(unique_people) > available:
                raise InsufficientCapacityError(
                    f"This room only has space for {max(available, 0)} more people"
                )

            assigned_at = utc_now()
            for person in unique_people:
                self._ensure_person(person)
                existing = self._repository.find_allocation_for_person(person.id)
                if existing is not None:
                    self._repository.update_allocation(existing["id"], current.id, notes, assigned_at)
                    if existing["room_id"] != current.id:
                        self._repository.adjust_room_occupancy(existing["room_id"], -1)
                        moved_count += 1
                    allocation_ids.append(existing["id"])
                else:
                    allocation_ids.append(
                        self._repository.insert_allocation(person.id, current.id, notes, assigned_at)
                    )
                    new_count += 1

            if new_count + moved_count:
                self._repository.adjust_room_occupancy(current.id, new_count + moved_count)

        self._state.refresh()

        if new_count and moved_count:
            message = (
                f"Assigned {new_count} new and updated {moved_count} existing "
                f"allocations to {current.name}"
            )
        elif new_count:
            message = f"Assigned {new_count} attendees to {current.name}"
        else:
            message = f"Updated room assignments to {current.name}"

        logger.info(
            "Batch allocation to room %s: new=%s moved=%s",
            current.id,
            new_count,
            moved_count,
        )
        return SaveResult(
            mode="batch",
            new_count=new_count,
            moved_count=moved_count,
            allocation_ids=allocation_ids,
            message=message,
        )

    def remove_allocation(self, allocation_id: str) -> bool:
        """Delete an allocation; unknown ids are ignored without a store call."""
        allocation = self._state.find_allocation(allocation_id)
        if allocation is None:
            logger.debug("Allocation %s not in state; nothing to remove", allocation_id)
            return False

        with self._repository.transaction():
            deleted = self._repository.delete_allocation(allocation_id)
            if deleted:
                self._repository.adjust_room_occupancy(allocation.room_id, -1)

        if not deleted:
            logger.warning("Allocation %s was already gone from the store", allocation_id)
            self._state.refresh()
            return False

        self._state.apply_removal(allocation)
        logger.info(
            "Allocation %s removed: person=%s room=%s",
            allocation_id,
            allocation.person_id,
            allocation.room_id,
        )
        return True

    def remove_allocation_for_person(self, person_id: str) -> bool:
        """Release the person's bed; joins the caller's transaction when one is open."""
        existing = self._repository.find_allocation_for_person(person_id)
        if existing is None:
            return False
        with self._repository.transaction():
            self._repository.delete_allocation(existing["id"])
            self._repository.adjust_room_occupancy(existing["room_id"], -1)
        return True

    def find_occupancy_drift(self) -> list[OccupancyDrift]:
        """Rooms whose stored counter differs from their allocation count."""
        with self._repository.transaction():
            counts = self._repository.count_allocations_by_room()
            rooms = self._repository.list_rooms()
        drift: list[OccupancyDrift] = []
        for row in rooms:
            room = to_room(row)
            actual = counts.get(room.id, 0)
            if room.occupied != actual:
                drift.append(
                    OccupancyDrift(
                        room_id=room.id,
                        room_name=room.name,
                        recorded=room.occupied,
                        actual=actual,
                    )
                )
        return drift

    def reconcile_occupancy(self) -> list[OccupancyDrift]:
        """Reset every drifted counter to the true allocation count."""
        with self._repository.transaction():
            drift = self.find_occupancy_drift()
            for item in drift:
                self._repository.set_room_occupancy(item.room_id, item.actual)
        if drift:
            logger.warning("Reconciled occupancy for %s rooms", len(drift))
        self._state.refresh()
        return drift
