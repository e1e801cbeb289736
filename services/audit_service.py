"""
Registro de auditoria: quem fez cada colocação/mudança estrutural
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from models.movement import Movement, MovementType

logger = logging.getLogger(__name__)


class AuditService:

    @staticmethod
    def record(
        db: Session,
        type: MovementType,
        actor: str,
        box_id: Optional[int] = None,
        rack_id: Optional[int] = None,
        from_position_id: Optional[int] = None,
        to_position_id: Optional[int] = None,
        meta: Optional[dict] = None
    ) -> Movement:
        movement = Movement(
            box_id=box_id,
            rack_id=rack_id,
            from_position_id=from_position_id,
            to_position_id=to_position_id,
            type=type,
            actor=actor or "anonymous",
            meta_json=meta
        )
        db.add(movement)
        logger.debug(
            "audit event",
            extra={
                "event": type.value,
                "actor": movement.actor,
                "box_id": box_id,
                "rack_id": rack_id,
                "from_position_id": from_position_id,
                "to_position_id": to_position_id,
            }
        )
        return movement
