"""
Serviço que coordena o ciclo de vida das caixas:
criação, colocação em posição, staging, troca de cômodo e exclusão
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.box import Box
from models.item import Item
from models.movement import MovementType
from models.position import Position
from models.rack import Rack
from models.room import Room
from services.audit_service import AuditService
from services.capacity_ledger import CapacityLedger
from services.errors import ConflictError, LockedConfigError, NotFoundError, ValidationError
from services.locks import rack_lock
from services.number_allocator import NumberAllocator
from services.rack_config_guard import RackConfigGuard
from services.safety_service import SafetyAnalyzer

logger = logging.getLogger(__name__)

BOX_FIELDS = ("name", "description", "size")


class PlacementCoordinator:
    """Máquina de estados por caixa: Staging <-> Placed(estante, prateleira, posição)"""

    @staticmethod
    def get_box(db: Session, box_id: int) -> Box:
        box = db.query(Box).filter(Box.id == box_id, Box.is_active == True).first()
        if not box:
            raise NotFoundError("Caixa", box_id)
        return box

    @staticmethod
    def get_active_room(db: Session, room_id: int) -> Room:
        room = db.query(Room).filter(Room.id == room_id, Room.is_active == True).first()
        if not room:
            raise NotFoundError("Cômodo", room_id)
        return room

    @staticmethod
    def list_boxes(
        db: Session,
        room_id: Optional[int] = None,
        staging: Optional[bool] = None
    ) -> List[Box]:
        query = db.query(Box).filter(Box.is_active == True)
        if room_id is not None:
            query = query.filter(Box.room_id == room_id)
        if staging is not None:
            query = query.filter(Box.is_staging == staging)
        return query.order_by(Box.room_id, Box.box_number).all()

    @staticmethod
    def existing_box_numbers(db: Session, room_id: int, exclude_box_id: Optional[int] = None) -> List[int]:
        """Números das caixas ativas do cômodo"""
        query = db.query(Box.box_number).filter(Box.room_id == room_id, Box.is_active == True)
        if exclude_box_id is not None:
            query = query.filter(Box.id != exclude_box_id)
        return [row[0] for row in query.all()]

    @staticmethod
    def create_box(
        db: Session,
        room_id: int,
        box_number: Optional[int] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        size: str = "S",
        type: str = "standard",
        actor: str = "anonymous"
    ) -> Box:
        """Cria caixa no staging do cômodo; sem número usa a primeira lacuna"""
        PlacementCoordinator.get_active_room(db, room_id)

        number = NumberAllocator.allocate(
            PlacementCoordinator.existing_box_numbers(db, room_id),
            requested=box_number,
            kind="box"
        )

        try:
            box = Box(
                room_id=room_id,
                box_number=number,
                name=(name or "").strip() or None,
                description=(description or "").strip() or None,
                size=size,
                type=type,
                is_staging=True,
                created_by=actor
            )
            db.add(box)
            db.flush()

            AuditService.record(db, MovementType.CREATE, actor, box_id=box.id, meta={"room_id": room_id})
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Caixa {number} já existe neste cômodo", value=number)
        except Exception:
            db.rollback()
            raise

        db.refresh(box)
        logger.info("box created", extra={"box_id": box.id, "room_id": room_id, "box_number": number})
        return box

    @staticmethod
    def _resolve_position(db: Session, rack_id: int, shelf_number: int, position_number: int) -> Position:
        position = db.query(Position).filter(
            Position.rack_id == rack_id,
            Position.shelf_number == shelf_number,
            Position.position_number == position_number
        ).with_for_update().first()
        if not position:
            raise NotFoundError(
                "Posição",
                f"{rack_id}/S{shelf_number}-P{position_number}",
                f"Posição S{shelf_number}-P{position_number} não encontrada na estante {rack_id}"
            )
        return position

    @staticmethod
    def _release_position(db: Session, box: Box) -> Optional[Position]:
        """Remove o vínculo atual da caixa (se houver) e a coloca em staging"""
        previous = None
        if box.position_id is not None:
            previous = db.query(Position).filter(Position.id == box.position_id).first()
        box.position_id = None
        box.is_staging = True
        if previous is not None:
            RackConfigGuard.refresh_flag(db, previous.rack)
        return previous

    @staticmethod
    def move_to_staging(db: Session, box_id: int, actor: str = "anonymous") -> Box:
        """Qualquer estado -> Staging (staging tem espaço ilimitado)"""
        box = PlacementCoordinator.get_box(db, box_id)
        try:
            previous = PlacementCoordinator._release_position(db, box)
            AuditService.record(
                db,
                MovementType.STAGE,
                actor,
                box_id=box.id,
                rack_id=previous.rack_id if previous else None,
                from_position_id=previous.id if previous else None
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(box)
        logger.info(
            "box moved to staging",
            extra={"box_id": box.id, "from_position_id": previous.id if previous else None}
        )
        return box

    @staticmethod
    def place_box(
        db: Session,
        box_id: int,
        rack_id: int,
        shelf_number: int,
        position_number: int,
        actor: str = "anonymous"
    ) -> Box:
        """
        Staging -> Placed ou Placed -> Placed.

        A movimentação é destrutiva-depois-construtiva: o vínculo anterior é
        removido e confirmado primeiro; se o destino não tiver espaço a caixa
        fica em staging e o erro é propagado (sem voltar à posição anterior).
        """
        box = PlacementCoordinator.get_box(db, box_id)

        rack = db.query(Rack).filter(Rack.id == rack_id).first()
        if not rack:
            raise NotFoundError("Estante", rack_id)
        if rack.room_id != box.room_id:
            raise ValidationError(
                "A estante pertence a outro cômodo. Troque o cômodo da caixa antes.",
                {"box_room_id": box.room_id, "rack_room_id": rack.room_id}
            )

        # Destino precisa existir antes de mexer na posição atual
        PlacementCoordinator._resolve_position(db, rack_id, shelf_number, position_number)

        previous = None
        if box.position_id is not None:
            try:
                previous = PlacementCoordinator._release_position(db, box)
                db.commit()
            except Exception:
                db.rollback()
                raise

        with rack_lock(rack_id):
            try:
                position = PlacementCoordinator._resolve_position(db, rack_id, shelf_number, position_number)
                CapacityLedger.authorize_placement(db, position)

                box.position_id = position.id
                box.is_staging = False
                CapacityLedger.verify_committable(db, position)

                AuditService.record(
                    db,
                    MovementType.MOVE if previous is not None else MovementType.PLACE,
                    actor,
                    box_id=box.id,
                    rack_id=rack_id,
                    from_position_id=previous.id if previous else None,
                    to_position_id=position.id,
                    meta={"shelf_number": shelf_number, "position_number": position_number}
                )
                RackConfigGuard.refresh_flag(db, rack)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(box)
        logger.info(
            "box placed",
            extra={
                "box_id": box.id,
                "rack_id": rack_id,
                "position_id": box.position_id,
                "from_position_id": previous.id if previous else None,
            }
        )
        return box

    @staticmethod
    def update_box(db: Session, box_id: int, patch: dict, actor: str = "anonymous") -> Box:
        """
        Atualiza a caixa. Troca de cômodo leva junto os itens ativos, remove
        o vínculo de posição e força staging, tudo na mesma transação.
        Conflito de número não aplica nenhum campo.
        """
        box = PlacementCoordinator.get_box(db, box_id)

        room_change = "room_id" in patch and patch["room_id"] is not None and patch["room_id"] != box.room_id
        target_room_id = patch["room_id"] if room_change else box.room_id
        if room_change:
            PlacementCoordinator.get_active_room(db, target_room_id)

        new_number = patch.get("box_number")
        number_change = new_number is not None and new_number != box.box_number
        if number_change or room_change:
            NumberAllocator.allocate(
                PlacementCoordinator.existing_box_numbers(db, target_room_id, exclude_box_id=box.id),
                requested=new_number if number_change else box.box_number,
                kind="box"
            )

        try:
            for field in BOX_FIELDS:
                if field in patch and patch[field] is not None:
                    value = patch[field]
                    if field in ("name", "description"):
                        value = value.strip() or None
                    setattr(box, field, value)

            if room_change:
                old_room_id = box.room_id
                items = db.query(Item).filter(Item.box_id == box.id, Item.is_active == True).all()
                for item in items:
                    item.room_id = target_room_id

                previous = PlacementCoordinator._release_position(db, box)
                box.room_id = target_room_id

                AuditService.record(
                    db,
                    MovementType.ROOM_CHANGE,
                    actor,
                    box_id=box.id,
                    rack_id=previous.rack_id if previous else None,
                    from_position_id=previous.id if previous else None,
                    meta={"from_room_id": old_room_id, "to_room_id": target_room_id, "items_moved": len(items)}
                )
                logger.info(
                    "box room changed",
                    extra={
                        "box_id": box.id,
                        "from_room_id": old_room_id,
                        "to_room_id": target_room_id,
                        "items_moved": len(items),
                    }
                )

            if number_change:
                box.box_number = new_number

            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(
                f"Número de caixa {new_number or box.box_number} já está em uso no cômodo",
                value=new_number or box.box_number
            )
        except Exception:
            db.rollback()
            raise

        db.refresh(box)
        return box

    @staticmethod
    def delete_box(db: Session, box_id: int, actor: str = "anonymous") -> None:
        """Exclui (logicamente) uma caixa vazia, removendo o vínculo de posição"""
        box = PlacementCoordinator.get_box(db, box_id)
        SafetyAnalyzer.ensure_deletable(db, "box", box_id)

        try:
            previous = PlacementCoordinator._release_position(db, box)
            box.is_active = False
            AuditService.record(
                db,
                MovementType.DELETE,
                actor,
                box_id=box.id,
                rack_id=previous.rack_id if previous else None,
                from_position_id=previous.id if previous else None
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("box deleted", extra={"box_id": box_id})

    @staticmethod
    def evict_rack_to_staging(db: Session, rack: Rack, actor: str = "anonymous", fields=()) -> int:
        """
        Move para staging todas as caixas posicionadas na estante.
        Só caixas vazias podem sair: se alguma ganhou item depois da checagem
        de bloqueio, levanta LockedConfigError e nada é movido.
        Não faz commit: usado dentro da transação de regeneração do grid.
        """
        db.flush()
        boxes = db.query(Box).join(Position, Box.position_id == Position.id).filter(
            Position.rack_id == rack.id
        ).all()

        holding = db.query(Item.box_id).filter(
            Item.box_id.in_([b.id for b in boxes]),
            Item.is_active == True
        ).distinct().all() if boxes else []
        if holding:
            logger.warning(
                "rack eviction blocked",
                extra={"rack_id": rack.id, "boxes_with_items": [row[0] for row in holding]}
            )
            raise LockedConfigError(rack.id, fields or ["positions"])

        for box in boxes:
            from_position_id = box.position_id
            box.position_id = None
            box.is_staging = True
            AuditService.record(
                db,
                MovementType.STAGE,
                actor,
                box_id=box.id,
                rack_id=rack.id,
                from_position_id=from_position_id,
                meta={"reason": "rack_restructure"}
            )
        db.flush()
        if boxes:
            logger.info("rack evicted to staging", extra={"rack_id": rack.id, "boxes": len(boxes)})
        return len(boxes)

    @staticmethod
    def suggest_box_number(db: Session, room_id: int) -> dict:
        """Sugestão de número para nova caixa, com lacunas e análise da numeração"""
        PlacementCoordinator.get_active_room(db, room_id)
        used = sorted(PlacementCoordinator.existing_box_numbers(db, room_id))
        gaps = NumberAllocator.gaps(used)

        return {
            "suggested_number": NumberAllocator.next_available(used),
            "suggestions": NumberAllocator.suggestions(used),
            "gaps": gaps,
            "used_numbers": used,
            "analytics": {
                "total_boxes": len(used),
                "has_gaps": bool(gaps),
                "largest_gap": (max(gaps) - min(gaps)) if gaps else 0,
                "pattern": NumberAllocator.detect_pattern(used),
            },
        }

    @staticmethod
    def validate_box_number(db: Session, room_id: int, box_number: int) -> dict:
        """Verifica se o número está livre; se não, sugere alternativas"""
        if box_number < 1:
            raise ValidationError("Número de caixa inválido", {"value": box_number})
        PlacementCoordinator.get_active_room(db, room_id)

        conflicting = db.query(Box).filter(
            Box.room_id == room_id,
            Box.box_number == box_number,
            Box.is_active == True
        ).first()
        if not conflicting:
            return {"is_available": True, "suggestion": None, "alternatives": [], "reason": None}

        used = PlacementCoordinator.existing_box_numbers(db, room_id)
        alternatives = NumberAllocator.alternatives(used, box_number)
        if conflicting.name:
            reason = f'Caixa {box_number} já é usada por "{conflicting.name}"'
        else:
            reason = f"Caixa {box_number} já está em uso neste cômodo"

        return {
            "is_available": False,
            "suggestion": alternatives[0] if alternatives else box_number + 1,
            "alternatives": alternatives,
            "reason": reason,
        }
