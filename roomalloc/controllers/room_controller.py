"""HTTP controller layer for rooms, chalets and tents."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from roomalloc.controllers.dependencies import get_room_service
from roomalloc.domain.models import Room
from roomalloc.repository.data_repository import StoreError
from roomalloc.services.room_service import (
    RoomInUseError,
    RoomNotFoundError,
    RoomService,
    RoomValidationError,
)
from roomalloc.utils.config import get_settings
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/rooms", tags=["rooms"])


class RoomResponse(BaseModel):
    id: str
    name: str
    capacity: int = Field(ge=0)
    occupied: int = Field(ge=0)
    type: str
    building: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = None
    chalet_group: Optional[str] = None

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(**asdict(room))


class CreateRoomRequest(BaseModel):
    """Loose on purpose: missing name/capacity is reported by the service."""

    name: Optional[str] = None
    capacity: Optional[int | str] = None
    type: Optional[str] = None
    building: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = Field(default=None, gt=0)
    chalet_group: Optional[str] = None


class ChaletRoomRequest(BaseModel):
    room_number: Optional[str] = None
    capacity: Optional[int | str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = Field(default=None, gt=0)


class CreateChaletRequest(BaseModel):
    chalet_number: Optional[str] = None
    type: str = "Chalet"
    name: Optional[str] = None
    capacity: Optional[int | str] = None
    notes: Optional[str] = None
    rooms: list[ChaletRoomRequest] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        if value not in settings.room_types:
            raise ValueError(f"type must be one of: {', '.join(settings.room_types)}")
        return value


class UpdateRoomRequest(BaseModel):
    name: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    type: Optional[str] = None
    building: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    bed_type: Optional[str] = None
    bed_count: Optional[int] = Field(default=None, gt=0)
    chalet_group: Optional[str] = None


class SeedPresetsResponse(BaseModel):
    rooms_created: int = Field(ge=0)


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


@router.get("", response_model=list[RoomResponse])
async def list_rooms(
    q: str = Query(default=""),
    room_type: Optional[str] = Query(default=None, alias="type"),
    service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    try:
        return [RoomResponse.from_room(room) for room in service.list_rooms(q, room_type)]
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.create_room(payload.model_dump(exclude_none=True))
        return RoomResponse.from_room(room)
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create room",
        ) from exc


@router.post("/chalet", response_model=list[RoomResponse], status_code=status.HTTP_201_CREATED)
async def create_chalet(
    payload: CreateChaletRequest,
    service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    try:
        values = payload.model_dump(exclude_none=True)
        values["rooms"] = [item.model_dump(exclude_none=True) for item in payload.rooms]
        rooms = service.create_chalet(values)
        return [RoomResponse.from_room(room) for room in rooms]
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected chalet creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create accommodation",
        ) from exc


@router.post("/presets", response_model=SeedPresetsResponse, status_code=status.HTTP_201_CREATED)
async def seed_presets(
    service: RoomService = Depends(get_room_service),
) -> SeedPresetsResponse:
    try:
        return SeedPresetsResponse(rooms_created=service.seed_preset_chalets())
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get("/{room_id}/availability", response_model=RoomResponse)
async def room_availability(
    room_id: str,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return RoomResponse.from_room(service.ensure_assignable(room_id))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    payload: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.update_room(room_id, payload.model_dump(exclude_unset=True))
        return RoomResponse.from_room(room)
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save room",
        ) from exc


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    service: RoomService = Depends(get_room_service),
) -> None:
    try:
        service.delete_room(room_id)
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RoomInUseError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete accommodation",
        ) from exc
