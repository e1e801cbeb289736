"""
Serviço de ciclo de vida das estantes: criação, reconfiguração,
capacidades e exclusão
"""
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.box import Box
from models.movement import MovementType
from models.position import Position
from models.rack import Rack
from services.audit_service import AuditService
from services.capacity_ledger import CapacityLedger
from services.errors import ConflictError, NotFoundError, ValidationError
from services.locks import discard_rack_lock, rack_lock
from services.number_allocator import NumberAllocator
from services.placement_service import PlacementCoordinator
from services.position_grid import PositionGrid
from services.rack_config_guard import RackConfigGuard
from services.safety_service import SafetyAnalyzer

load_dotenv()

logger = logging.getLogger(__name__)


class RackService:
    """Gerencia estantes e o grid de posições"""

    MAX_RACK_NUMBER = int(os.getenv("MAX_RACK_NUMBER", "100"))

    @staticmethod
    def get_rack(db: Session, rack_id: int) -> Rack:
        rack = db.query(Rack).filter(Rack.id == rack_id).first()
        if not rack:
            raise NotFoundError("Estante", rack_id)
        return rack

    @staticmethod
    def list_racks(db: Session, room_id: Optional[int] = None) -> List[Rack]:
        query = db.query(Rack)
        if room_id is not None:
            query = query.filter(Rack.room_id == room_id)
        return query.order_by(Rack.room_id, Rack.rack_number).all()

    @staticmethod
    def existing_rack_numbers(db: Session, room_id: int, exclude_rack_id: Optional[int] = None) -> List[int]:
        query = db.query(Rack.rack_number).filter(Rack.room_id == room_id)
        if exclude_rack_id is not None:
            query = query.filter(Rack.id != exclude_rack_id)
        return [row[0] for row in query.all()]

    @staticmethod
    def suggest_next_rack_number(db: Session, room_id: int) -> int:
        """Menor número livre de estante no cômodo (sugestão, revalidada na criação)"""
        PlacementCoordinator.get_active_room(db, room_id)
        number = NumberAllocator.next_available(RackService.existing_rack_numbers(db, room_id))
        logger.info("rack number suggested", extra={"room_id": room_id, "number": number})
        return number

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Nome da estante é obrigatório", {"field": "name"})
        return cleaned

    @staticmethod
    def create_rack(
        db: Session,
        room_id: int,
        name: str,
        rack_number: Optional[int] = None,
        max_shelves: int = 5,
        positions_per_shelf: int = 6,
        shelf_config: Optional[List[dict]] = None,
        actor: str = "anonymous"
    ) -> Rack:
        """
        Cria a estante e todas as posições dela.
        Layout uniforme (max_shelves × positions_per_shelf) ou avançado (shelf_config).
        """
        cleaned_name = RackService._clean_name(name)
        PositionGrid.validate_uniform(max_shelves, positions_per_shelf)
        if shelf_config is not None:
            shelf_config = PositionGrid.validate_shelf_config(shelf_config, max_shelves)

        PlacementCoordinator.get_active_room(db, room_id)
        number = NumberAllocator.allocate(
            RackService.existing_rack_numbers(db, room_id),
            requested=rack_number,
            upper=RackService.MAX_RACK_NUMBER,
            kind="rack"
        )

        try:
            rack = Rack(
                room_id=room_id,
                name=cleaned_name,
                rack_number=number,
                max_shelves=max_shelves,
                positions_per_shelf=positions_per_shelf,
                shelf_config=shelf_config,
                config_locked=False,
                created_by=actor
            )
            db.add(rack)
            db.flush()

            positions = PositionGrid.create_positions(db, rack)
            AuditService.record(
                db,
                MovementType.CREATE,
                actor,
                rack_id=rack.id,
                meta={"room_id": room_id, "rack_number": number, "positions": len(positions)}
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Estante {number} já existe neste cômodo", value=number, details={"kind": "rack"})
        except Exception:
            db.rollback()
            raise

        db.refresh(rack)
        logger.info(
            "rack created",
            extra={"rack_id": rack.id, "room_id": room_id, "rack_number": number, "positions": len(positions)}
        )
        return rack

    @staticmethod
    def _resolve_layout(rack: Rack, patch: dict):
        """
        Calcula o layout pedido (max_shelves, positions_per_shelf, shelf_config)
        e os campos estruturais que de fato mudam.
        """
        new_max = patch.get("max_shelves") if patch.get("max_shelves") is not None else rack.max_shelves
        new_pps = (
            patch.get("positions_per_shelf")
            if patch.get("positions_per_shelf") is not None
            else rack.positions_per_shelf
        )

        use_advanced = patch.get("use_advanced_config")
        if use_advanced is None:
            use_advanced = patch.get("shelf_config") is not None or rack.shelf_config is not None

        if use_advanced:
            new_config = patch.get("shelf_config")
            if new_config is None:
                new_config = rack.shelf_config
            if new_config is None:
                raise ValidationError(
                    "Configuração avançada exige shelf_config",
                    {"field": "shelf_config"}
                )
        else:
            new_config = None

        if new_config is not None:
            # No modo avançado positions_per_shelf não participa do grid
            new_pps = rack.positions_per_shelf

        changed = set()
        if new_max != rack.max_shelves:
            changed.add("max_shelves")
        if new_pps != rack.positions_per_shelf:
            changed.add("positions_per_shelf")
        if new_config != rack.shelf_config:
            changed.add("shelf_config")
        if (new_config is None) != (rack.shelf_config is None):
            changed.add("use_advanced_config")

        return new_max, new_pps, new_config, changed

    @staticmethod
    def update_rack(db: Session, rack_id: int, patch: dict, actor: str = "anonymous") -> Rack:
        """
        Atualiza a estante. Mudanças estruturais só passam com a estante
        desbloqueada e regeneram todas as posições; nome e número sempre podem mudar.
        """
        rack = RackService.get_rack(db, rack_id)

        with rack_lock(rack.id):
            try:
                new_max, new_pps, new_config, changed = RackService._resolve_layout(rack, patch)
                RackConfigGuard.ensure_mutable(db, rack, changed)

                if changed:
                    PositionGrid.validate_uniform(new_max, new_pps)
                    if new_config is not None:
                        new_config = PositionGrid.validate_shelf_config(new_config, new_max)

                new_name = RackService._clean_name(patch["name"]) if patch.get("name") is not None else None

                new_number = patch.get("rack_number")
                if new_number is not None and new_number != rack.rack_number:
                    NumberAllocator.allocate(
                        RackService.existing_rack_numbers(db, rack.room_id, exclude_rack_id=rack.id),
                        requested=new_number,
                        upper=RackService.MAX_RACK_NUMBER,
                        kind="rack"
                    )
                    rack.rack_number = new_number

                if new_name is not None:
                    rack.name = new_name

                if changed:
                    evicted = PlacementCoordinator.evict_rack_to_staging(db, rack, actor, fields=changed)
                    old_layout = {
                        "max_shelves": rack.max_shelves,
                        "positions_per_shelf": rack.positions_per_shelf,
                        "shelf_config": rack.shelf_config,
                    }
                    rack.max_shelves = new_max
                    rack.positions_per_shelf = new_pps
                    rack.shelf_config = new_config
                    positions = PositionGrid.regenerate(db, rack)

                    AuditService.record(
                        db,
                        MovementType.RACK_RESTRUCTURE,
                        actor,
                        rack_id=rack.id,
                        meta={
                            "fields": sorted(changed),
                            "old": old_layout,
                            "positions": len(positions),
                            "evicted_boxes": evicted,
                        }
                    )

                RackConfigGuard.refresh_flag(db, rack)
                db.commit()
            except IntegrityError:
                db.rollback()
                raise ConflictError(
                    f"Estante {patch.get('rack_number')} já existe neste cômodo",
                    value=patch.get("rack_number"),
                    details={"kind": "rack"}
                )
            except Exception:
                db.rollback()
                raise

        db.refresh(rack)
        logger.info("rack updated", extra={"rack_id": rack.id, "structural": sorted(changed)})
        return rack

    @staticmethod
    def update_position_capacities(db: Session, rack_id: int, capacities: dict, actor: str = "anonymous") -> Rack:
        """Edição em lote das capacidades (1-4); não regenera o grid"""
        rack = RackService.get_rack(db, rack_id)

        with rack_lock(rack.id):
            try:
                CapacityLedger.update_capacities(db, rack, capacities)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(rack)
        return rack

    @staticmethod
    def delete_rack(db: Session, rack_id: int, actor: str = "anonymous") -> None:
        """Exclusão definitiva da estante vazia junto com as posições"""
        rack = RackService.get_rack(db, rack_id)

        with rack_lock(rack.id):
            SafetyAnalyzer.ensure_deletable(db, "rack", rack_id)
            try:
                AuditService.record(
                    db,
                    MovementType.DELETE,
                    actor,
                    rack_id=rack.id,
                    meta={"room_id": rack.room_id, "rack_number": rack.rack_number}
                )
                db.delete(rack)
                db.commit()
            except Exception:
                db.rollback()
                raise

        discard_rack_lock(rack_id)
        logger.info("rack deleted", extra={"rack_id": rack_id})

    @staticmethod
    def positions_with_occupancy(db: Session, rack: Rack) -> List[dict]:
        """Posições da estante com ocupação e caixas, ordenadas por prateleira/posição"""
        db.flush()
        boxes = db.query(Box).join(Position, Box.position_id == Position.id).filter(
            Position.rack_id == rack.id
        ).order_by(Box.box_number).all()

        by_position = {}
        for box in boxes:
            by_position.setdefault(box.position_id, []).append(box)

        result = []
        for position in sorted(rack.positions, key=lambda p: (p.shelf_number, p.position_number)):
            placed = by_position.get(position.id, [])
            result.append({
                "id": position.id,
                "rack_id": rack.id,
                "shelf_number": position.shelf_number,
                "position_number": position.position_number,
                "code": position.code,
                "capacity": position.capacity,
                "occupancy": len(placed),
                "available": position.capacity - len(placed),
                "box_ids": [b.id for b in placed],
            })
        return result
