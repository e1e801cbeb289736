"""
Serviço que decide se a configuração estrutural de uma estante pode mudar
"""
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from models.box import Box
from models.item import Item
from models.position import Position
from models.rack import Rack
from services.errors import LockedConfigError

logger = logging.getLogger(__name__)

STRUCTURAL_FIELDS = frozenset({"max_shelves", "positions_per_shelf", "shelf_config", "use_advanced_config"})


class RackConfigGuard:
    """Estante bloqueada = alguma posição tem caixa com pelo menos um item ativo"""

    @staticmethod
    def is_locked(db: Session, rack: Rack) -> bool:
        # flush para enxergar vínculos pendentes na sessão
        db.flush()
        locked = db.query(Item.id).join(
            Box, Item.box_id == Box.id
        ).join(
            Position, Box.position_id == Position.id
        ).filter(
            Position.rack_id == rack.id,
            Box.is_active == True,
            Item.is_active == True
        ).first() is not None

        logger.debug("rack lock check", extra={"rack_id": rack.id, "locked": locked})
        return locked

    @staticmethod
    def ensure_mutable(db: Session, rack: Rack, changed_fields: Iterable[str]) -> bool:
        """
        Levanta LockedConfigError se a estante está bloqueada e a alteração
        toca campos estruturais. Retorna o estado do bloqueio.
        """
        structural = STRUCTURAL_FIELDS.intersection(changed_fields)
        locked = RackConfigGuard.is_locked(db, rack)

        if locked and structural:
            logger.warning(
                "structural change blocked",
                extra={"rack_id": rack.id, "fields": sorted(structural)}
            )
            raise LockedConfigError(rack.id, structural)

        return locked

    @staticmethod
    def refresh_flag(db: Session, rack: Rack) -> bool:
        """Recalcula e grava config_locked para as rotas de leitura"""
        locked = RackConfigGuard.is_locked(db, rack)
        if rack.config_locked != locked:
            logger.info("rack lock flag changed", extra={"rack_id": rack.id, "locked": locked})
        rack.config_locked = locked
        return locked

    @staticmethod
    def refresh_for_box(db: Session, box: Box) -> None:
        """Recalcula o flag da estante onde a caixa está (se estiver)"""
        if box.position_id is None:
            return
        position = db.query(Position).filter(Position.id == box.position_id).first()
        if position:
            RackConfigGuard.refresh_flag(db, position.rack)
