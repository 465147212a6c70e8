"""Controller layer for dashboard overview endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from roomalloc.controllers.dependencies import get_dashboard_service
from roomalloc.repository.data_repository import StoreError
from roomalloc.services.dashboard_service import DashboardService
from roomalloc.utils.config import get_settings
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["dashboard"])


class StatisticsResponse(BaseModel):
    room_count: int = Field(ge=0)
    total_capacity: int = Field(ge=0)
    total_occupied: int = Field(ge=0)
    available_beds: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0)
    building_count: int = Field(ge=0)
    chalet_count: int = Field(ge=0)
    full_room_count: int = Field(ge=0)
    people_count: int = Field(ge=0)
    special_needs_count: int = Field(ge=0)
    assigned_count: int = Field(ge=0)
    unassigned_count: int = Field(ge=0)
    allocation_count: int = Field(ge=0)


class ClearDataResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


@router.get("/statistics", response_model=StatisticsResponse, status_code=status.HTTP_200_OK)
async def statistics(
    service: DashboardService = Depends(get_dashboard_service),
) -> StatisticsResponse:
    try:
        return StatisticsResponse(**service.get_statistics())
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected statistics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load data",
        ) from exc


@router.post("/clear", response_model=ClearDataResponse, status_code=status.HTTP_200_OK)
async def clear_all_data(
    service: DashboardService = Depends(get_dashboard_service),
) -> ClearDataResponse:
    try:
        service.clear_all_data()
        return ClearDataResponse(status="CLEARED")
    except StoreError as exc:
        logger.error("Failed to clear all data: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to clear all data",
        ) from exc
