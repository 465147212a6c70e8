"""Bulk attendee import from pasted text lists."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from roomalloc.repository.data_repository import DataRepository, StoreError, utc_now
from roomalloc.services.people_service import PeopleService, PersonValidationError
from roomalloc.utils.logger import get_logger


logger = get_logger(__name__)

TEXT_IMPORT_SOURCE = "text_import"

# Tabs, commas, or two or more spaces separate columns.
_COLUMN_SPLIT = re.compile(r"[\t,]+|\s{2,}")


class ImportValidationError(Exception):
    """Raised when pasted text cannot be imported as a whole."""


@dataclass(frozen=True)
class ParsedPerson:
    name: str
    surname: str = ""
    number: Optional[str] = None
    room_preference: str = ""
    dietary: str = ""
    paid: str = ""
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.error is None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip() if self.surname else self.name.strip()


@dataclass(frozen=True)
class ImportResult:
    processed: int
    failed: int


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def parse_line(line: str) -> ParsedPerson:
    parts = [part.strip() for part in _COLUMN_SPLIT.split(line.strip())]
    if len(parts) < 2:
        return ParsedPerson(name=line.strip())

    padded = parts + [""] * 6
    if _is_number(parts[0]):
        number, name, surname, preference, dietary, paid = padded[:6]
    else:
        number = None
        name, surname, preference, dietary, paid = padded[:5]
    return ParsedPerson(
        name=name,
        surname=surname,
        number=number,
        room_preference=preference,
        dietary=dietary,
        paid=paid,
        error=None if name else "Name is required",
    )


def parse_import_text(text: str) -> list[ParsedPerson]:
    """Parse one attendee per non-blank line.

    A leading numeric column is taken as a row number; the remaining columns
    are name, surname, room preference, dietary requirement and paid status.
    """
    return [parse_line(line) for line in text.splitlines() if line.strip()]


class ImportService:
    def __init__(self, repository: DataRepository, people_service: PeopleService) -> None:
        self._repository = repository
        self._people_service = people_service

    def import_people(self, text: str) -> ImportResult:
        if not text.strip():
            raise ImportValidationError("Please enter some text to import")
        parsed = parse_import_text(text)
        if not parsed:
            raise ImportValidationError("No valid data found to import")
        invalid = [row for row in parsed if not row.valid]
        if invalid:
            raise ImportValidationError(
                f"Found {len(invalid)} invalid entries. Please fix them before importing."
            )

        processed = 0
        failed = 0
        imported_at = utc_now()
        for row in parsed:
            try:
                self._people_service.create_person(
                    {
                        "name": row.full_name,
                        "department": row.room_preference,
                        "special_needs": row.dietary,
                        "import_source": TEXT_IMPORT_SOURCE,
                        "imported_at": imported_at,
                    }
                )
                processed += 1
            except (PersonValidationError, StoreError) as exc:
                logger.warning("Skipping imported row %r: %s", row.full_name, exc)
                failed += 1
        logger.info("Text import finished: processed=%s failed=%s", processed, failed)
        return ImportResult(processed=processed, failed=failed)
