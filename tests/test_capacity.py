import threading

import pytest

from models.box import Box
from models.position import Position
from services.capacity_ledger import CapacityLedger
from services.errors import CapacityExceededError, NotFoundError, ValidationError
from services.placement_service import PlacementCoordinator
from services.rack_service import RackService


def position_at(db, rack, shelf, pos):
    return db.query(Position).filter(
        Position.rack_id == rack.id,
        Position.shelf_number == shelf,
        Position.position_number == pos
    ).one()


def test_position_fills_up_and_staging_frees_space(db, room, rack, make_boxes):
    boxes = make_boxes(room.id, 6)
    for box in boxes[:4]:
        PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)

    position = position_at(db, rack, 1, 1)
    assert CapacityLedger.occupancy(db, position) == 4
    assert not CapacityLedger.has_space(db, position)

    with pytest.raises(CapacityExceededError) as exc:
        PlacementCoordinator.place_box(db, boxes[4].id, rack.id, 1, 1)
    assert exc.value.occupancy == 4
    assert exc.value.capacity == 4

    db.refresh(boxes[4])
    assert boxes[4].is_staging
    assert boxes[4].position_id is None

    PlacementCoordinator.move_to_staging(db, boxes[0].id)
    PlacementCoordinator.place_box(db, boxes[5].id, rack.id, 1, 1)
    assert CapacityLedger.occupancy(db, position) == 4


def test_move_between_positions_releases_old_one(db, room, rack, make_boxes):
    box = make_boxes(room.id, 1)[0]
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)
    PlacementCoordinator.place_box(db, box.id, rack.id, 2, 3)

    assert CapacityLedger.occupancy(db, position_at(db, rack, 1, 1)) == 0
    assert CapacityLedger.occupancy(db, position_at(db, rack, 2, 3)) == 1
    assert box.position_id == position_at(db, rack, 2, 3).id


def test_failed_move_leaves_box_in_staging(db, room, rack, make_boxes):
    boxes = make_boxes(room.id, 5)
    for box in boxes[:4]:
        PlacementCoordinator.place_box(db, box.id, rack.id, 1, 2)
    mover = boxes[4]
    PlacementCoordinator.place_box(db, mover.id, rack.id, 1, 1)

    with pytest.raises(CapacityExceededError):
        PlacementCoordinator.place_box(db, mover.id, rack.id, 1, 2)

    db.refresh(mover)
    assert mover.is_staging
    assert mover.position_id is None
    assert CapacityLedger.occupancy(db, position_at(db, rack, 1, 1)) == 0


def test_unknown_target_keeps_current_position(db, room, rack, make_boxes):
    box = make_boxes(room.id, 1)[0]
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)

    with pytest.raises(NotFoundError):
        PlacementCoordinator.place_box(db, box.id, rack.id, 9, 9)

    db.refresh(box)
    assert box.position_id == position_at(db, rack, 1, 1).id


def test_rack_from_other_room_is_rejected(db, room, rack):
    from services.room_service import RoomService

    other = RoomService.create_room(db, "Sótão")
    box = PlacementCoordinator.create_box(db, other.id)
    with pytest.raises(ValidationError):
        PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)


def test_batch_capacity_update_is_all_or_nothing(db, room, rack, make_boxes):
    p1 = position_at(db, rack, 1, 1)
    p2 = position_at(db, rack, 1, 2)
    for box in make_boxes(room.id, 2):
        PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)

    with pytest.raises(ValidationError):
        RackService.update_position_capacities(db, rack.id, {p2.id: 2, p1.id: 1})
    db.refresh(p2)
    assert p2.capacity == 4

    with pytest.raises(ValidationError):
        RackService.update_position_capacities(db, rack.id, {p2.id: 5})

    RackService.update_position_capacities(db, rack.id, {p1.id: 2, p2.id: 1})
    db.refresh(p1)
    db.refresh(p2)
    assert (p1.capacity, p2.capacity) == (2, 1)


def test_capacity_update_rejects_foreign_position(db, room, rack):
    other = RackService.create_rack(db, room.id, "Outra", max_shelves=1, positions_per_shelf=1)
    foreign = other.positions[0]
    with pytest.raises(NotFoundError):
        RackService.update_position_capacities(db, rack.id, {foreign.id: 2})


def test_reduced_capacity_is_enforced(db, room, rack, make_boxes):
    p1 = position_at(db, rack, 1, 1)
    RackService.update_position_capacities(db, rack.id, {p1.id: 1})
    boxes = make_boxes(room.id, 2)

    PlacementCoordinator.place_box(db, boxes[0].id, rack.id, 1, 1)
    with pytest.raises(CapacityExceededError):
        PlacementCoordinator.place_box(db, boxes[1].id, rack.id, 1, 1)


def test_concurrent_placements_never_overfill(db, session_factory, room, rack, make_boxes):
    box_ids = [b.id for b in make_boxes(room.id, 6)]
    rack_id = rack.id
    barrier = threading.Barrier(len(box_ids))
    placed, rejected, unexpected = [], [], []

    def worker(box_id):
        session = session_factory()
        try:
            barrier.wait()
            PlacementCoordinator.place_box(session, box_id, rack_id, 3, 3)
            placed.append(box_id)
        except CapacityExceededError:
            rejected.append(box_id)
        except Exception as e:
            unexpected.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(box_id,)) for box_id in box_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert unexpected == []
    assert len(placed) == 4
    assert len(rejected) == 2

    check = session_factory()
    try:
        position = position_at(check, rack, 3, 3)
        assert CapacityLedger.occupancy(check, position) == 4
        staged = check.query(Box).filter(Box.id.in_(rejected)).all()
        assert all(b.is_staging and b.position_id is None for b in staged)
    finally:
        check.close()
