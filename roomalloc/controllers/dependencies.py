"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status

from roomalloc.services.allocation_service import AllocationService
from roomalloc.services.dashboard_service import DashboardService
from roomalloc.services.import_service import ImportService
from roomalloc.services.people_service import PeopleService
from roomalloc.services.room_service import RoomService


def _service(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_allocation_service(request: Request) -> AllocationService:
    return _service(request, "allocation_service", "Allocation")


def get_room_service(request: Request) -> RoomService:
    return _service(request, "room_service", "Room")


def get_people_service(request: Request) -> PeopleService:
    return _service(request, "people_service", "People")


def get_import_service(request: Request) -> ImportService:
    return _service(request, "import_service", "Import")


def get_dashboard_service(request: Request) -> DashboardService:
    return _service(request, "dashboard_service", "Dashboard")
