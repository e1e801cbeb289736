from datetime import timedelta

import pytest

from models.position import Position
from models.rack import Rack
from models.room import Room
from services.errors import BlockedDeletionError, ConflictError, NotFoundError, ValidationError
from services.item_service import ItemService
from services.placement_service import PlacementCoordinator
from services.rack_service import RackService
from services.room_service import RoomService
from services.safety_service import SafetyAnalyzer


def test_room_name_unique_among_active(db, room):
    with pytest.raises(ConflictError):
        RoomService.create_room(db, "Garagem")


def test_room_with_rack_is_blocked_until_rack_deleted(db, room, rack):
    report = SafetyAnalyzer.analyze(db, "room", room.id)
    assert not report["can_delete"]
    assert report["counts"] == {"items": 0, "boxes": 0, "racks": 1, "total": 1}
    assert report["blockers"] == ["1 estante"]

    with pytest.raises(BlockedDeletionError) as exc:
        RoomService.delete_room(db, room.id)
    assert exc.value.report["counts"]["racks"] == 1

    RackService.delete_rack(db, rack.id)
    deleted = RoomService.delete_room(db, room.id)
    assert not deleted.is_active
    assert deleted.deleted_at is not None


def test_invalid_entity_type(db):
    with pytest.raises(ValidationError):
        SafetyAnalyzer.analyze(db, "shelf", 1)


def test_restore_within_window(db, room):
    RoomService.delete_room(db, room.id)
    now = room.deleted_at + timedelta(days=3)

    listed = RoomService.list_deleted(db, now=now)
    assert [e["room"].id for e in listed] == [room.id]
    assert listed[0]["recovery_status"]["days_remaining"] == RoomService.RECOVERY_WINDOW_DAYS - 3

    result = RoomService.restore_room(db, room.id, now=now)
    assert result["room"].is_active
    assert not result["name_changed"]


def test_restore_renames_on_name_clash(db, room):
    RoomService.delete_room(db, room.id)
    RoomService.create_room(db, "Garagem")
    now = room.deleted_at + timedelta(days=1)

    result = RoomService.restore_room(db, room.id, now=now)
    assert result["name_changed"]
    assert result["original_name"] == "Garagem"
    assert result["room"].name == f"Garagem (Restored {now.date().isoformat()})"


def test_expired_room_cannot_be_restored_and_is_purged(db, room):
    RoomService.delete_room(db, room.id)
    later = room.deleted_at + timedelta(days=RoomService.RECOVERY_WINDOW_DAYS + 1)

    assert RoomService.list_deleted(db, now=later) == []
    assert len(RoomService.list_deleted(db, include_expired=True, now=later)) == 1

    with pytest.raises(ValidationError):
        RoomService.restore_room(db, room.id, now=later)

    assert RoomService.purge_expired(db, now=later) == 1
    assert db.query(Room).count() == 0


def test_rack_with_empty_placed_box_cannot_be_deleted(db, room, rack):
    box = PlacementCoordinator.create_box(db, room.id)
    PlacementCoordinator.place_box(db, box.id, rack.id, 3, 2)

    with pytest.raises(BlockedDeletionError) as exc:
        RackService.delete_rack(db, rack.id)
    assert exc.value.report["counts"]["boxes"] == 1
    assert exc.value.report["counts"]["occupied_positions"] == 1

    PlacementCoordinator.move_to_staging(db, box.id)
    RackService.delete_rack(db, rack.id)

    assert db.query(Rack).count() == 0
    assert db.query(Position).count() == 0


def test_bulk_delete_empty_rooms(db, room):
    attic = RoomService.create_room(db, "Sótão")

    result = RoomService.bulk_delete(db, [room.id, attic.id, 999])

    assert sorted(result["deleted"]) == sorted([room.id, attic.id])
    assert result["not_found"] == [999]
    assert result["analysis"]["can_delete_all"]
    assert RoomService.list_rooms(db) == []


def test_bulk_delete_is_all_or_nothing(db, room, rack):
    attic = RoomService.create_room(db, "Sótão")
    box = PlacementCoordinator.create_box(db, attic.id)
    ItemService.create_item(db, attic.id, "Bicicleta", box.id, value=800.0)

    with pytest.raises(BlockedDeletionError) as exc:
        RoomService.bulk_delete(db, [room.id, attic.id])

    analysis = exc.value.report
    assert analysis["blocked_from_deletion"] == [room.id, attic.id]
    assert analysis["totals"]["racks"] == 1
    assert analysis["totals"]["boxes"] == 1
    assert analysis["totals"]["items"] == 1
    assert analysis["totals"]["total_value"] == 800.0
    assert analysis["warnings"]
    assert len(RoomService.list_rooms(db)) == 2


def test_bulk_delete_limits(db, room):
    with pytest.raises(ValidationError):
        RoomService.bulk_delete(db, [])
    with pytest.raises(ValidationError):
        RoomService.bulk_delete(db, list(range(1, 12)))
    with pytest.raises(NotFoundError):
        RoomService.bulk_delete(db, [998, 999])
