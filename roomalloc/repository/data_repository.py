"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional

from roomalloc.domain.constraints import RoomDraft
from roomalloc.utils.config import Settings, get_settings
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)


Row = dict[str, Any]

_ROOM_COLUMNS = (
    "name",
    "capacity",
    "occupied",
    "type",
    "description",
    "building",
    "floor",
    "bed_type",
    "bed_count",
    "chalet_group",
)

_PERSON_COLUMNS = (
    "name",
    "email",
    "phone",
    "department",
    "home_church",
    "special_needs",
    "import_source",
    "imported_at",
)


class StoreError(RuntimeError):
    """Raised when the persistent store rejects or fails an operation."""


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic.

    Every public method runs inside the caller's ``transaction()`` when one is
    open on the current thread, otherwise inside its own short transaction.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._owner_id = self._settings.owner_id
        self._local = threading.local()

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed store calls as one unit of work.

        Nested calls join the outermost transaction. Any exception rolls back
        every write issued inside the block; ``sqlite3.Error`` is re-raised as
        ``StoreError``.
        """
        if getattr(self._local, "connection", None) is not None:
            yield
            return

        connection = self._connect()
        self._local.connection = connection
        try:
            connection.execute("BEGIN IMMEDIATE;")
            yield
            connection.execute("COMMIT;")
        except sqlite3.Error as exc:
            self._rollback(connection)
            logger.error("Store transaction failed: %s", exc)
            raise StoreError(f"Store operation failed: {exc}") from exc
        except BaseException:
            self._rollback(connection)
            raise
        finally:
            self._local.connection = None
            connection.close()

    @staticmethod
    def _rollback(connection: sqlite3.Connection) -> None:
        if connection.in_transaction:
            connection.execute("ROLLBACK;")

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        with self.transaction():
            yield self._local.connection

    def _scope(self, alias: str = "") -> tuple[str, tuple[Any, ...]]:
        if self._owner_id is None:
            return "", ()
        prefix = f"{alias}." if alias else ""
        return f" AND {prefix}user_id = ?", (self._owner_id,)

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._session() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS rooms (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        occupied INTEGER NOT NULL DEFAULT 0 CHECK (occupied >= 0),
                        type TEXT NOT NULL DEFAULT 'Chalet',
                        description TEXT,
                        building TEXT,
                        floor TEXT,
                        bed_type TEXT,
                        bed_count INTEGER,
                        chalet_group TEXT,
                        user_id TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS people (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        email TEXT,
                        phone TEXT,
                        department TEXT,
                        home_church TEXT,
                        special_needs TEXT,
                        import_source TEXT,
                        imported_at TEXT,
                        user_id TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS allocations (
                        id TEXT PRIMARY KEY,
                        person_id TEXT NOT NULL,
                        room_id TEXT NOT NULL,
                        date_assigned TEXT NOT NULL,
                        notes TEXT,
                        user_id TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (person_id) REFERENCES people(id),
                        FOREIGN KEY (room_id) REFERENCES rooms(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE UNIQUE INDEX IF NOT EXISTS idx_allocations_person
                    ON allocations(person_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_allocations_room
                    ON allocations(room_id);
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except StoreError as exc:
            raise StoreError(f"Database initialization failed: {exc}") from exc

    # Rooms

    def list_rooms(self) -> list[Row]:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"SELECT * FROM rooms WHERE 1 = 1{scope} ORDER BY created_at ASC, name ASC;",
                params,
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_room(self, room_id: str) -> Optional[Row]:
        scope, params = self._scope()
        with self._session() as conn:
            row = conn.execute(
                f"SELECT * FROM rooms WHERE id = ?{scope};",
                (room_id, *params),
            ).fetchone()
            return dict(row) if row is not None else None

    def insert_room(self, draft: RoomDraft) -> Row:
        return self.insert_rooms([draft])[0]

    def insert_rooms(self, drafts: Iterable[RoomDraft]) -> list[Row]:
        """Insert rooms with ``occupied = 0`` and return the stored rows."""
        created: list[Row] = []
        with self._session() as conn:
            for draft in drafts:
                room_id = new_id()
                conn.execute(
                    """
                    INSERT INTO rooms (
                        id, name, capacity, occupied, type, description,
                        building, floor, bed_type, bed_count, chalet_group, user_id
                    )
                    VALUES (?, ?, ?, 0, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        room_id,
                        draft.name,
                        draft.capacity,
                        draft.type,
                        draft.description,
                        draft.building,
                        draft.floor,
                        draft.bed_type,
                        draft.bed_count,
                        draft.chalet_group,
                        self._owner_id,
                    ),
                )
                row = conn.execute("SELECT * FROM rooms WHERE id = ?;", (room_id,)).fetchone()
                created.append(dict(row))
        return created

    def update_room(self, room_id: str, fields: Mapping[str, Any]) -> Optional[Row]:
        assignments = {key: value for key, value in fields.items() if key in _ROOM_COLUMNS}
        if assignments:
            scope, params = self._scope()
            columns = ", ".join(f"{key} = ?" for key in assignments)
            with self._session() as conn:
                conn.execute(
                    f"UPDATE rooms SET {columns} WHERE id = ?{scope};",
                    (*assignments.values(), room_id, *params),
                )
        return self.get_room(room_id)

    def delete_room(self, room_id: str) -> bool:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"DELETE FROM rooms WHERE id = ?{scope};",
                (room_id, *params),
            )
            return cursor.rowcount > 0

    def adjust_room_occupancy(self, room_id: str, delta: int) -> None:
        """Apply a relative change to the denormalized occupied counter."""
        scope, params = self._scope()
        with self._session() as conn:
            if delta < 0:
                row = conn.execute(
                    f"SELECT occupied FROM rooms WHERE id = ?{scope};",
                    (room_id, *params),
                ).fetchone()
                if row is not None and row["occupied"] + delta < 0:
                    logger.warning(
                        "Occupancy for room %s would drop below zero (%s%+d); clamped to 0",
                        room_id,
                        row["occupied"],
                        delta,
                    )
            conn.execute(
                f"UPDATE rooms SET occupied = MAX(occupied + ?, 0) WHERE id = ?{scope};",
                (delta, room_id, *params),
            )

    def set_room_occupancy(self, room_id: str, occupied: int) -> None:
        scope, params = self._scope()
        with self._session() as conn:
            conn.execute(
                f"UPDATE rooms SET occupied = ? WHERE id = ?{scope};",
                (occupied, room_id, *params),
            )

    # People

    def list_people(self) -> list[Row]:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"SELECT * FROM people WHERE 1 = 1{scope} ORDER BY created_at ASC, name ASC;",
                params,
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_person(self, person_id: str) -> Optional[Row]:
        scope, params = self._scope()
        with self._session() as conn:
            row = conn.execute(
                f"SELECT * FROM people WHERE id = ?{scope};",
                (person_id, *params),
            ).fetchone()
            return dict(row) if row is not None else None

    def insert_person(self, fields: Mapping[str, Any]) -> Row:
        values = {key: fields.get(key) for key in _PERSON_COLUMNS}
        person_id = new_id()
        with self._session() as conn:
            conn.execute(
                f"""
                INSERT INTO people (id, {", ".join(_PERSON_COLUMNS)}, user_id)
                VALUES (?, {", ".join("?" for _ in _PERSON_COLUMNS)}, ?);
                """,
                (person_id, *values.values(), self._owner_id),
            )
            row = conn.execute("SELECT * FROM people WHERE id = ?;", (person_id,)).fetchone()
            return dict(row)

    def update_person(self, person_id: str, fields: Mapping[str, Any]) -> Optional[Row]:
        assignments = {key: value for key, value in fields.items() if key in _PERSON_COLUMNS}
        if assignments:
            scope, params = self._scope()
            columns = ", ".join(f"{key} = ?" for key in assignments)
            with self._session() as conn:
                conn.execute(
                    f"UPDATE people SET {columns} WHERE id = ?{scope};",
                    (*assignments.values(), person_id, *params),
                )
        return self.get_person(person_id)

    def delete_person(self, person_id: str) -> bool:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"DELETE FROM people WHERE id = ?{scope};",
                (person_id, *params),
            )
            return cursor.rowcount > 0

    # Allocations

    _ALLOCATION_SELECT = """
        SELECT
            a.id,
            a.person_id,
            a.room_id,
            a.date_assigned,
            a.notes,
            p.name AS person_name,
            p.email AS person_email,
            p.phone AS person_phone,
            p.department AS person_department,
            p.home_church AS person_home_church,
            r.name AS room_name,
            r.capacity AS room_capacity,
            r.occupied AS room_occupied,
            r.type AS room_type,
            r.floor AS room_floor,
            r.building AS room_building
        FROM allocations AS a
        INNER JOIN people AS p ON p.id = a.person_id
        INNER JOIN rooms AS r ON r.id = a.room_id
    """

    @staticmethod
    def _nest_allocation(row: sqlite3.Row) -> Row:
        """Shape a joined row like the store's nested allocation rows."""
        return {
            "id": row["id"],
            "person_id": row["person_id"],
            "room_id": row["room_id"],
            "date_assigned": row["date_assigned"],
            "notes": row["notes"],
            "person": {
                "id": row["person_id"],
                "name": row["person_name"],
                "email": row["person_email"],
                "phone": row["person_phone"],
                "department": row["person_department"],
                "home_church": row["person_home_church"],
            },
            "room": {
                "id": row["room_id"],
                "name": row["room_name"],
                "capacity": row["room_capacity"],
                "occupied": row["room_occupied"],
                "type": row["room_type"],
                "floor": row["room_floor"],
                "building": row["room_building"],
            },
        }

    def list_allocations(self) -> list[Row]:
        scope, params = self._scope("a")
        with self._session() as conn:
            cursor = conn.execute(
                f"{self._ALLOCATION_SELECT} WHERE 1 = 1{scope} ORDER BY a.date_assigned ASC, a.id ASC;",
                params,
            )
            return [self._nest_allocation(row) for row in cursor.fetchall()]

    def get_allocation(self, allocation_id: str) -> Optional[Row]:
        scope, params = self._scope("a")
        with self._session() as conn:
            row = conn.execute(
                f"{self._ALLOCATION_SELECT} WHERE a.id = ?{scope};",
                (allocation_id, *params),
            ).fetchone()
            return self._nest_allocation(row) if row is not None else None

    def find_allocation_for_person(self, person_id: str) -> Optional[Row]:
        scope, params = self._scope("a")
        with self._session() as conn:
            row = conn.execute(
                f"{self._ALLOCATION_SELECT} WHERE a.person_id = ?{scope};",
                (person_id, *params),
            ).fetchone()
            return self._nest_allocation(row) if row is not None else None

    def insert_allocation(
        self,
        person_id: str,
        room_id: str,
        notes: Optional[str],
        date_assigned: Optional[str] = None,
    ) -> str:
        """Insert an allocation row and return the created id."""
        allocation_id = new_id()
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO allocations (id, person_id, room_id, date_assigned, notes, user_id)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    allocation_id,
                    person_id,
                    room_id,
                    date_assigned or utc_now(),
                    notes,
                    self._owner_id,
                ),
            )
        return allocation_id

    def update_allocation(
        self,
        allocation_id: str,
        room_id: str,
        notes: Optional[str],
        date_assigned: Optional[str] = None,
    ) -> None:
        scope, params = self._scope()
        with self._session() as conn:
            conn.execute(
                f"""
                UPDATE allocations
                SET room_id = ?, notes = ?, date_assigned = ?
                WHERE id = ?{scope};
                """,
                (room_id, notes, date_assigned or utc_now(), allocation_id, *params),
            )

    def delete_allocation(self, allocation_id: str) -> bool:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"DELETE FROM allocations WHERE id = ?{scope};",
                (allocation_id, *params),
            )
            return cursor.rowcount > 0

    def count_allocations_by_room(self) -> dict[str, int]:
        scope, params = self._scope()
        with self._session() as conn:
            cursor = conn.execute(
                f"""
                SELECT room_id, COUNT(*) AS count
                FROM allocations
                WHERE 1 = 1{scope}
                GROUP BY room_id;
                """,
                params,
            )
            return {str(row["room_id"]): int(row["count"]) for row in cursor.fetchall()}

    def count_allocations_for_room(self, room_id: str) -> int:
        return self.count_allocations_by_room().get(room_id, 0)

    def count_allocations(self) -> int:
        return sum(self.count_allocations_by_room().values())

    def clear_all(self) -> None:
        """Delete every allocation, room and person in foreign-key order."""
        scope, params = self._scope()
        with self.transaction():
            conn = self._local.connection
            conn.execute(f"DELETE FROM allocations WHERE 1 = 1{scope};", params)
            conn.execute(f"UPDATE rooms SET occupied = 0 WHERE 1 = 1{scope};", params)
            conn.execute(f"DELETE FROM rooms WHERE 1 = 1{scope};", params)
            conn.execute(f"DELETE FROM people WHERE 1 = 1{scope};", params)
        logger.info("All rooms, people and allocations cleared")
