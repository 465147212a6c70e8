"""
app.py — RoomAlloc ASGI application.

Builds one repository and one shared state store, hands both to the room,
people, import, allocation and dashboard services, and exposes them through
the routers. The schema is created and the state loaded before the first
request is served.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from roomalloc.controllers.allocation_controller import router as allocation_router
from roomalloc.controllers.dashboard_controller import router as dashboard_router
from roomalloc.controllers.people_controller import router as people_router
from roomalloc.controllers.room_controller import router as room_router
from roomalloc.repository.data_repository import DataRepository
from roomalloc.services.allocation_service import AllocationService
from roomalloc.services.dashboard_service import DashboardService
from roomalloc.services.import_service import ImportService
from roomalloc.services.people_service import PeopleService
from roomalloc.services.room_service import RoomService
from roomalloc.services.state_store import AllocationStateStore
from roomalloc.utils.config import Settings, get_settings
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Assemble the API around ``settings`` (environment settings by default).

    Services are published on ``app.state`` where the controller dependency
    getters look them up. Every service shares one repository and one state
    store.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite connection factory + unit of work) ---
    repository = DataRepository(settings)
    state = AllocationStateStore(repository)

    # --- Services (business logic, no direct SQL) ---
    allocation_service = AllocationService(repository=repository, state=state)
    room_service = RoomService(repository=repository, state=state, settings=settings)
    people_service = PeopleService(
        repository=repository,
        state=state,
        allocation_service=allocation_service,
    )
    import_service = ImportService(repository=repository, people_service=people_service)
    dashboard_service = DashboardService(repository=repository, state=state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the schema and load state, then serve."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(room_router)
    app.include_router(people_router)
    app.include_router(allocation_router)
    app.include_router(dashboard_router)

    # --- Services looked up by roomalloc.controllers.dependencies ---
    app.state.repository = repository
    app.state.state_store = state
    app.state.allocation_service = allocation_service
    app.state.room_service = room_service
    app.state.people_service = people_service
    app.state.import_service = import_service
    app.state.dashboard_service = dashboard_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Create missing tables, then load rooms, people and allocations.

    Re-running against an existing database leaves its rows untouched.
    """
    repository: DataRepository = app.state.repository
    state: AllocationStateStore = app.state.state_store

    logger.info("Startup: ensuring schema at %s", repository.database_path)
    repository.initialize_database()

    logger.info("Startup: loading rooms, people and allocations")
    snapshot = state.refresh()

    logger.info(
        "Startup complete — %s rooms, %s people, %s allocations",
        len(snapshot.rooms),
        len(snapshot.people),
        len(snapshot.allocations),
    )


# Imported by uvicorn as "app:app"
app = create_app()
