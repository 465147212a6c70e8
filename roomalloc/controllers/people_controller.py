"""HTTP controller layer for attendees and text imports."""

from __future__ import annotations

from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from roomalloc.controllers.dependencies import get_import_service, get_people_service
from roomalloc.domain.models import Person
from roomalloc.repository.data_repository import StoreError
from roomalloc.services.import_service import ImportService, ImportValidationError
from roomalloc.services.people_service import (
    PeopleService,
    PersonNotFoundError,
    PersonValidationError,
)
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/people", tags=["people"])


class PersonResponse(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: Optional[str] = None
    department: str = ""
    home_church: Optional[str] = None
    special_needs: Optional[str] = None
    import_source: Optional[str] = None
    room_id: Optional[str] = None
    room_name: Optional[str] = None

    @classmethod
    def from_person(cls, person: Person) -> "PersonResponse":
        return cls(**asdict(person))


class PersonRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    home_church: Optional[str] = None
    special_needs: Optional[str] = None


class PeopleCountsResponse(BaseModel):
    all: int = Field(ge=0)
    assigned: int = Field(ge=0)
    unassigned: int = Field(ge=0)


class TextImportRequest(BaseModel):
    text: str = ""


class TextImportResponse(BaseModel):
    processed: int = Field(ge=0)
    failed: int = Field(ge=0)


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


@router.get("", response_model=list[PersonResponse])
async def list_people(
    q: str = Query(default=""),
    tab: Literal["all", "assigned", "unassigned"] = Query(default="all"),
    service: PeopleService = Depends(get_people_service),
) -> list[PersonResponse]:
    try:
        return [PersonResponse.from_person(person) for person in service.list_people(q, tab)]
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get("/counts", response_model=PeopleCountsResponse)
async def people_counts(
    service: PeopleService = Depends(get_people_service),
) -> PeopleCountsResponse:
    try:
        return PeopleCountsResponse(**service.counts())
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.post("", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(
    payload: PersonRequest,
    service: PeopleService = Depends(get_people_service),
) -> PersonResponse:
    try:
        person = service.create_person(payload.model_dump(exclude_none=True))
        return PersonResponse.from_person(person)
    except PersonValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected attendee creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add attendee",
        ) from exc


@router.post("/import", response_model=TextImportResponse)
async def import_people(
    payload: TextImportRequest,
    service: ImportService = Depends(get_import_service),
) -> TextImportResponse:
    try:
        result = service.import_people(payload.text)
        return TextImportResponse(processed=result.processed, failed=result.failed)
    except ImportValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected text import failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import attendees",
        ) from exc


@router.put("/{person_id}", response_model=PersonResponse)
async def update_person(
    person_id: str,
    payload: PersonRequest,
    service: PeopleService = Depends(get_people_service),
) -> PersonResponse:
    try:
        person = service.update_person(person_id, payload.model_dump(exclude_unset=True))
        return PersonResponse.from_person(person)
    except PersonNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except PersonValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected attendee update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to edit attendee",
        ) from exc


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(
    person_id: str,
    service: PeopleService = Depends(get_people_service),
) -> None:
    try:
        service.delete_person(person_id)
    except PersonNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected attendee deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete person",
        ) from exc
