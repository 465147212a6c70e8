"""Overview statistics and data reset for the operator dashboard."""

from __future__ import annotations

from typing import Any

from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.state_store import AllocationStateStore


class DashboardService:
    def __init__(self, repository: DataRepository, state: AllocationStateStore) -> None:
        self._repository = repository
        self._state = state

    def get_statistics(self) -> dict[str, Any]:
        snapshot = self._state.snapshot()
        total_capacity = sum(room.capacity for room in snapshot.rooms)
        total_occupied = sum(room.occupied for room in snapshot.rooms)
        buildings = {room.building for room in snapshot.rooms if room.building}
        chalets = {room.chalet_group for room in snapshot.rooms if room.chalet_group}
        assigned = sum(1 for person in snapshot.people if person.is_assigned)
        return {
            "room_count": len(snapshot.rooms),
            "total_capacity": total_capacity,
            "total_occupied": total_occupied,
            "available_beds": max(total_capacity - total_occupied, 0),
            "occupancy_rate": (total_occupied / total_capacity) if total_capacity else 0.0,
            "building_count": len(buildings),
            "chalet_count": len(chalets),
            "full_room_count": sum(1 for room in snapshot.rooms if room.is_full),
            "people_count": len(snapshot.people),
            "special_needs_count": sum(1 for person in snapshot.people if person.special_needs),
            "assigned_count": assigned,
            "unassigned_count": len(snapshot.people) - assigned,
            "allocation_count": len(snapshot.allocations),
        }

    def clear_all_data(self) -> None:
        self._repository.clear_all()
        self._state.refresh()
