"""
Serviço de itens (apenas o necessário para ocupação: criar, mover entre
caixas e excluir)

Itens em caixas posicionadas decidem o bloqueio da estante, então toda
escrita segura o lock das estantes envolvidas, como a reconfiguração.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from models.box import Box
from models.item import Item
from models.position import Position
from services.errors import NotFoundError, ValidationError
from services.locks import rack_locks
from services.placement_service import PlacementCoordinator
from services.rack_config_guard import RackConfigGuard

logger = logging.getLogger(__name__)

ITEM_FIELDS = ("category", "value", "condition", "expiration_date", "status")


class ItemService:

    @staticmethod
    def get_item(db: Session, item_id: int) -> Item:
        item = db.query(Item).filter(Item.id == item_id, Item.is_active == True).first()
        if not item:
            raise NotFoundError("Item", item_id)
        return item

    @staticmethod
    def list_items(db: Session, room_id: Optional[int] = None, box_id: Optional[int] = None) -> List[Item]:
        query = db.query(Item).filter(Item.is_active == True)
        if room_id is not None:
            query = query.filter(Item.room_id == room_id)
        if box_id is not None:
            query = query.filter(Item.box_id == box_id)
        return query.order_by(Item.id).all()

    @staticmethod
    def _rack_ids(db: Session, *boxes: Optional[Box]) -> List[int]:
        """Estantes onde as caixas estão posicionadas"""
        position_ids = [b.position_id for b in boxes if b is not None and b.position_id is not None]
        if not position_ids:
            return []
        rows = db.query(Position.rack_id).filter(Position.id.in_(position_ids)).distinct().all()
        return [row[0] for row in rows]

    @staticmethod
    def create_item(db: Session, room_id: int, name: str, box_id: Optional[int] = None, **fields) -> Item:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Nome do item é obrigatório", {"field": "name"})
        PlacementCoordinator.get_active_room(db, room_id)

        box = None
        if box_id is not None:
            box = PlacementCoordinator.get_box(db, box_id)
            if box.room_id != room_id:
                raise ValidationError(
                    "A caixa pertence a outro cômodo",
                    {"room_id": room_id, "box_room_id": box.room_id}
                )

        with rack_locks(ItemService._rack_ids(db, box)):
            try:
                item = Item(room_id=room_id, box_id=box_id, name=cleaned)
                for field in ITEM_FIELDS:
                    if fields.get(field) is not None:
                        setattr(item, field, fields[field])
                db.add(item)
                if box is not None:
                    RackConfigGuard.refresh_for_box(db, box)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(item)
        logger.info("item created", extra={"item_id": item.id, "room_id": room_id, "box_id": box_id})
        return item

    @staticmethod
    def move_item(db: Session, item_id: int, box_id: Optional[int]) -> Item:
        """
        Coloca o item numa caixa (ou tira, com box_id=None).
        Caixa de outro cômodo leva o item para o cômodo dela.
        """
        item = ItemService.get_item(db, item_id)
        old_box = db.query(Box).filter(Box.id == item.box_id).first() if item.box_id else None
        new_box = PlacementCoordinator.get_box(db, box_id) if box_id is not None else None

        with rack_locks(ItemService._rack_ids(db, old_box, new_box)):
            try:
                item.box_id = box_id
                if new_box is not None and new_box.room_id != item.room_id:
                    item.room_id = new_box.room_id
                for box in (old_box, new_box):
                    if box is not None:
                        RackConfigGuard.refresh_for_box(db, box)
                db.commit()
            except Exception:
                db.rollback()
                raise

        db.refresh(item)
        logger.info(
            "item moved",
            extra={
                "item_id": item.id,
                "from_box_id": old_box.id if old_box else None,
                "to_box_id": box_id,
            }
        )
        return item

    @staticmethod
    def delete_item(db: Session, item_id: int) -> None:
        item = ItemService.get_item(db, item_id)
        box = db.query(Box).filter(Box.id == item.box_id).first() if item.box_id else None

        with rack_locks(ItemService._rack_ids(db, box)):
            try:
                item.is_active = False
                if box is not None:
                    RackConfigGuard.refresh_for_box(db, box)
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info("item deleted", extra={"item_id": item_id})
