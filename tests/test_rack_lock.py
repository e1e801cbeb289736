import pytest

from services import item_service
from services.errors import ConflictError, LockedConfigError
from services.item_service import ItemService
from services.placement_service import PlacementCoordinator
from services.rack_config_guard import RackConfigGuard
from services.rack_service import RackService


@pytest.fixture
def loaded_rack(db, room, rack):
    box = PlacementCoordinator.create_box(db, room.id, name="Ferramentas")
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)
    item = ItemService.create_item(db, room.id, "Furadeira", box.id)
    db.refresh(rack)
    return rack, box, item


def test_rack_locks_when_placed_box_has_items(db, loaded_rack):
    rack, _, _ = loaded_rack
    assert rack.config_locked
    assert RackConfigGuard.is_locked(db, rack)


def test_empty_box_does_not_lock(db, room, rack):
    box = PlacementCoordinator.create_box(db, room.id)
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)
    db.refresh(rack)
    assert not rack.config_locked


@pytest.mark.parametrize(
    "patch",
    [
        {"max_shelves": 6},
        {"positions_per_shelf": 4},
        {"shelf_config": [{"shelf_number": i, "position_count": 2} for i in range(1, 6)]},
    ],
)
def test_structural_change_blocked(db, loaded_rack, patch):
    rack, _, _ = loaded_rack
    with pytest.raises(LockedConfigError) as exc:
        RackService.update_rack(db, rack.id, patch)
    assert exc.value.status_code == 423
    db.refresh(rack)
    assert len(rack.positions) == 30


def test_name_and_number_still_editable(db, loaded_rack):
    rack, _, _ = loaded_rack
    rack = RackService.update_rack(db, rack.id, {"name": "Estante azul", "rack_number": 7})
    assert rack.name == "Estante azul"
    assert rack.rack_number == 7
    assert rack.config_locked


def test_resubmitting_current_layout_is_not_a_change(db, loaded_rack):
    rack, _, _ = loaded_rack
    rack = RackService.update_rack(db, rack.id, {"max_shelves": 5, "positions_per_shelf": 6, "name": "Nova"})
    assert rack.name == "Nova"


def test_rack_number_conflict(db, room, loaded_rack):
    rack, _, _ = loaded_rack
    RackService.create_rack(db, room.id, "Outra", rack_number=2, max_shelves=1, positions_per_shelf=1)
    with pytest.raises(ConflictError):
        RackService.update_rack(db, rack.id, {"rack_number": 2})


def test_removing_last_item_unlocks(db, loaded_rack):
    rack, box, item = loaded_rack
    ItemService.delete_item(db, item.id)
    db.refresh(rack)
    assert not rack.config_locked

    rack = RackService.update_rack(db, rack.id, {"positions_per_shelf": 4})
    assert len(rack.positions) == 20
    db.refresh(box)
    assert box.is_staging


def test_staging_the_box_unlocks(db, loaded_rack):
    rack, box, _ = loaded_rack
    PlacementCoordinator.move_to_staging(db, box.id)
    db.refresh(rack)
    assert not rack.config_locked


def test_item_moved_out_unlocks(db, room, loaded_rack):
    rack, _, item = loaded_rack
    ItemService.move_item(db, item.id, None)
    db.refresh(rack)
    assert not rack.config_locked


def test_item_landing_after_lock_check_blocks_restructure(db, room, rack, monkeypatch):
    box = PlacementCoordinator.create_box(db, room.id)
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)
    ItemService.create_item(db, room.id, "Serrote", box.id)

    # checagem de bloqueio feita antes do item chegar
    monkeypatch.setattr(RackConfigGuard, "ensure_mutable", staticmethod(lambda db, rack, fields: False))

    with pytest.raises(LockedConfigError):
        RackService.update_rack(db, rack.id, {"positions_per_shelf": 4})

    db.refresh(box)
    db.refresh(rack)
    assert box.position_id is not None
    assert not box.is_staging
    assert len(rack.positions) == 30


def test_item_writes_take_the_rack_lock(db, room, rack, monkeypatch):
    box = PlacementCoordinator.create_box(db, room.id)
    PlacementCoordinator.place_box(db, box.id, rack.id, 1, 1)
    loose = PlacementCoordinator.create_box(db, room.id)

    seen = []
    real = item_service.rack_locks

    def recording(rack_ids):
        rack_ids = list(rack_ids)
        seen.append(rack_ids)
        return real(rack_ids)

    monkeypatch.setattr(item_service, "rack_locks", recording)

    item = ItemService.create_item(db, room.id, "Serrote", box.id)
    ItemService.move_item(db, item.id, loose.id)
    ItemService.delete_item(db, item.id)

    assert seen == [[rack.id], [rack.id], []]
