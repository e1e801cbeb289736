"""
Análise de segurança para exclusão de cômodos, estantes e caixas
"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.box import Box
from models.item import Item, ItemStatus
from models.position import Position
from models.rack import Rack
from models.room import Room
from services.errors import BlockedDeletionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

HIGH_VALUE_THRESHOLD = 100


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


class SafetyAnalyzer:
    """Decide se uma entidade pode ser excluída e explica o porquê"""

    ENTITY_TYPES = ("room", "rack", "box")

    @staticmethod
    def analyze(db: Session, entity_type: str, entity_id: int) -> dict:
        if entity_type == "room":
            return SafetyAnalyzer.analyze_room(db, entity_id)
        if entity_type == "rack":
            return SafetyAnalyzer.analyze_rack(db, entity_id)
        if entity_type == "box":
            return SafetyAnalyzer.analyze_box(db, entity_id)
        raise ValidationError(
            f"Tipo de entidade inválido: {entity_type}",
            {"entity_type": entity_type, "allowed": list(SafetyAnalyzer.ENTITY_TYPES)}
        )

    @staticmethod
    def analyze_room(db: Session, room_id: int) -> dict:
        """
        Cômodo bloqueado se tiver item ativo, caixa ativa ou estante.
        Retorna contagens, bloqueios, avisos e a lista de dependências.
        """
        room = db.query(Room).filter(Room.id == room_id, Room.is_active == True).first()
        if not room:
            raise NotFoundError("Cômodo", room_id)

        items = db.query(Item).filter(Item.room_id == room_id, Item.is_active == True).all()
        boxes = db.query(Box).filter(Box.room_id == room_id, Box.is_active == True).order_by(Box.box_number).all()
        racks = db.query(Rack).filter(Rack.room_id == room_id).order_by(Rack.rack_number).all()

        counts = {
            "items": len(items),
            "boxes": len(boxes),
            "racks": len(racks),
        }
        counts["total"] = counts["items"] + counts["boxes"] + counts["racks"]

        blockers = []
        if counts["items"]:
            blockers.append(_plural(counts["items"], "item ativo", "itens ativos"))
        if counts["boxes"]:
            blockers.append(_plural(counts["boxes"], "caixa", "caixas"))
        if counts["racks"]:
            blockers.append(_plural(counts["racks"], "estante", "estantes"))

        warnings = []
        if any(item.value and item.value > HIGH_VALUE_THRESHOLD for item in items):
            warnings.append("Cômodo contém itens de alto valor")
        if any(item.status == ItemStatus.CHECKED_OUT for item in items):
            warnings.append("Cômodo contém itens emprestados no momento")

        report = {
            "entity_type": "room",
            "entity_id": room_id,
            "can_delete": counts["total"] == 0,
            "blockers": blockers,
            "warnings": warnings,
            "counts": counts,
            "dependencies": {
                "items": [
                    {"id": i.id, "name": i.name, "status": i.status.value, "value": i.value}
                    for i in items
                ],
                "boxes": [{"id": b.id, "box_number": b.box_number, "name": b.name} for b in boxes],
                "racks": [{"id": r.id, "rack_number": r.rack_number, "name": r.name} for r in racks],
            },
        }
        SafetyAnalyzer._log(report)
        return report

    @staticmethod
    def analyze_rack(db: Session, rack_id: int) -> dict:
        """Estante bloqueada se qualquer posição tiver caixa (com ou sem itens)"""
        rack = db.query(Rack).filter(Rack.id == rack_id).first()
        if not rack:
            raise NotFoundError("Estante", rack_id)

        db.flush()
        boxes = db.query(Box).join(Position, Box.position_id == Position.id).filter(
            Position.rack_id == rack_id
        ).order_by(Box.box_number).all()
        occupied_positions = len({b.position_id for b in boxes})

        counts = {
            "positions": len(rack.positions),
            "occupied_positions": occupied_positions,
            "boxes": len(boxes),
        }
        blockers = []
        if boxes:
            blockers.append(_plural(len(boxes), "caixa posicionada", "caixas posicionadas"))

        report = {
            "entity_type": "rack",
            "entity_id": rack_id,
            "can_delete": not boxes,
            "blockers": blockers,
            "warnings": [],
            "counts": counts,
            "dependencies": {
                "boxes": [{"id": b.id, "box_number": b.box_number, "name": b.name} for b in boxes],
            },
        }
        SafetyAnalyzer._log(report)
        return report

    @staticmethod
    def analyze_box(db: Session, box_id: int) -> dict:
        """Caixa bloqueada se tiver item ativo; posição não importa"""
        box = db.query(Box).filter(Box.id == box_id, Box.is_active == True).first()
        if not box:
            raise NotFoundError("Caixa", box_id)

        item_count = db.query(func.count(Item.id)).filter(
            Item.box_id == box_id,
            Item.is_active == True
        ).scalar() or 0

        blockers = []
        if item_count:
            blockers.append(_plural(item_count, "item ativo", "itens ativos"))

        report = {
            "entity_type": "box",
            "entity_id": box_id,
            "can_delete": item_count == 0,
            "blockers": blockers,
            "warnings": [],
            "counts": {"items": item_count},
            "dependencies": {},
        }
        SafetyAnalyzer._log(report)
        return report

    @staticmethod
    def ensure_deletable(db: Session, entity_type: str, entity_id: int) -> dict:
        """Levanta BlockedDeletionError com o relatório se a exclusão não é segura"""
        report = SafetyAnalyzer.analyze(db, entity_type, entity_id)
        if not report["can_delete"]:
            raise BlockedDeletionError(report)
        return report

    @staticmethod
    def _log(report: dict) -> None:
        level = logging.INFO if report["can_delete"] else logging.WARNING
        logger.log(
            level,
            "safety analysis",
            extra={
                "entity_type": report["entity_type"],
                "entity_id": report["entity_id"],
                "can_delete": report["can_delete"],
                "counts": report["counts"],
            }
        )
