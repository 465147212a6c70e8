"""HTTP controller layer for room allocations."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from roomalloc.controllers.dependencies import get_allocation_service
from roomalloc.controllers.people_controller import PersonResponse
from roomalloc.controllers.room_controller import RoomResponse
from roomalloc.domain.models import Allocation, OccupancyDrift
from roomalloc.repository.data_repository import StoreError
from roomalloc.services.allocation_service import (
    AllocationService,
    AllocationTargetNotFoundError,
    AllocationValidationError,
    CapacityExceededError,
)
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/allocations", tags=["allocations"])


class AllocationResponse(BaseModel):
    id: str
    person_id: str
    room_id: str
    person: PersonResponse
    room: RoomResponse
    date_assigned: str
    notes: Optional[str] = None

    @classmethod
    def from_allocation(cls, allocation: Allocation) -> "AllocationResponse":
        return cls(**asdict(allocation))


class SaveAllocationRequest(BaseModel):
    """Single mode sends ``person_id``; batch mode sends ``person_ids``."""

    room_id: str = Field(min_length=1)
    person_id: Optional[str] = None
    person_ids: Optional[list[str]] = None
    notes: str = ""

    @model_validator(mode="after")
    def validate_target(self) -> "SaveAllocationRequest":
        if (self.person_id is None) == (self.person_ids is None):
            raise ValueError("Provide exactly one of person_id or person_ids")
        return self


class SaveAllocationResponse(BaseModel):
    mode: str
    new_count: int = Field(ge=0)
    moved_count: int = Field(ge=0)
    allocation_ids: list[str]
    message: str


class RemoveAllocationResponse(BaseModel):
    removed: bool


class OccupancyDriftResponse(BaseModel):
    room_id: str
    room_name: str
    recorded: int
    actual: int

    @classmethod
    def from_drift(cls, drift: OccupancyDrift) -> "OccupancyDriftResponse":
        return cls(**asdict(drift))


@router.get("", response_model=list[AllocationResponse])
async def list_allocations(
    q: str = Query(default=""),
    service: AllocationService = Depends(get_allocation_service),
) -> list[AllocationResponse]:
    try:
        return [
            AllocationResponse.from_allocation(allocation)
            for allocation in service.filter_allocations(q)
        ]
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.post("", response_model=SaveAllocationResponse, status_code=status.HTTP_200_OK)
async def save_allocation(
    payload: SaveAllocationRequest,
    service: AllocationService = Depends(get_allocation_service),
) -> SaveAllocationResponse:
    """Assign one person, or a batch of people, to a room."""
    try:
        room = service.resolve_room(payload.room_id)
        if payload.person_ids is not None:
            target = service.resolve_people(payload.person_ids)
        else:
            target = service.resolve_people([payload.person_id])[0]
        result = service.save_allocation(target, room, payload.notes)
        return SaveAllocationResponse(**asdict(result))
    except AllocationTargetNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except CapacityExceededError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        logger.error("Failed to save room allocation: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to save room allocation",
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save room allocation",
        ) from exc


@router.get("/drift", response_model=list[OccupancyDriftResponse])
async def occupancy_drift(
    service: AllocationService = Depends(get_allocation_service),
) -> list[OccupancyDriftResponse]:
    try:
        return [OccupancyDriftResponse.from_drift(item) for item in service.find_occupancy_drift()]
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.post("/reconcile", response_model=list[OccupancyDriftResponse])
async def reconcile_occupancy(
    service: AllocationService = Depends(get_allocation_service),
) -> list[OccupancyDriftResponse]:
    try:
        return [OccupancyDriftResponse.from_drift(item) for item in service.reconcile_occupancy()]
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.delete("/{allocation_id}", response_model=RemoveAllocationResponse)
async def remove_allocation(
    allocation_id: str,
    service: AllocationService = Depends(get_allocation_service),
) -> RemoveAllocationResponse:
    try:
        return RemoveAllocationResponse(removed=service.remove_allocation(allocation_id))
    except StoreError as exc:
        logger.error("Failed to remove allocation %s: %s", allocation_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to remove allocation",
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation removal failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove allocation",
        ) from exc
