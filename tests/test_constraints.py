import pytest

from roomalloc.domain.constraints import (
    RoomDraft,
    parse_capacity,
    remaining_capacity,
    validate_capacity_change,
    validate_room_draft,
)
from roomalloc.domain.models import Room


ROOM_TYPES = ("Chalet", "Personal tent", "Hotel")


def test_parse_capacity_accepts_numeric_text():
    assert parse_capacity(4) == 4
    assert parse_capacity(" 3 ") == 3
    assert parse_capacity("") is None
    assert parse_capacity("two") is None
    assert parse_capacity(None) is None
    assert parse_capacity(True) is None


def test_valid_draft_passes():
    validate_room_draft(RoomDraft(name="Chalet 1 - Room 1", capacity=2, type="Chalet"), ROOM_TYPES)


@pytest.mark.parametrize(
    "draft,message",
    [
        (RoomDraft(name="  ", capacity=2, type="Chalet"), "Room name and capacity are required"),
        (RoomDraft(name="Room", capacity=0, type="Chalet"), "capacity must be > 0"),
        (RoomDraft(name="Room", capacity=2, type="Castle"), "type must be one of"),
        (RoomDraft(name="Room", capacity=2, type="Hotel", bed_count=0), "bed_count must be > 0"),
    ],
)
def test_invalid_drafts_are_rejected(draft, message):
    with pytest.raises(ValueError, match=message):
        validate_room_draft(draft, ROOM_TYPES)


def test_capacity_cannot_drop_below_occupancy():
    room = Room(id="r1", name="Busy", capacity=4, occupied=3)

    validate_capacity_change(room, 3)
    with pytest.raises(ValueError, match="current occupancy"):
        validate_capacity_change(room, 2)


def test_remaining_capacity():
    assert remaining_capacity(Room(id="r1", name="Room", capacity=4, occupied=1)) == 3
    assert remaining_capacity(Room(id="r2", name="Full", capacity=2, occupied=2)) == 0
