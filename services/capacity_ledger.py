"""
Serviço de controle de ocupação das posições (caixas ocupando vs capacidade)
"""
import logging
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.box import Box
from models.position import Position
from models.rack import Rack
from services.errors import CapacityExceededError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CapacityLedger:
    """Ocupação por posição e autorização de colocação"""

    MIN_CAPACITY = 1
    MAX_CAPACITY = 4

    @staticmethod
    def occupancy(db: Session, position: Position) -> int:
        """Quantidade de caixas ocupando a posição"""
        db.flush()
        return db.query(func.count(Box.id)).filter(
            Box.position_id == position.id
        ).scalar() or 0

    @staticmethod
    def occupancy_by_position(db: Session, rack_id: int) -> Dict[int, int]:
        """Mapa position_id -> ocupação para todas as posições da estante"""
        db.flush()
        rows = db.query(Box.position_id, func.count(Box.id)).join(
            Position, Box.position_id == Position.id
        ).filter(
            Position.rack_id == rack_id
        ).group_by(Box.position_id).all()
        return {position_id: count for position_id, count in rows}

    @staticmethod
    def has_space(db: Session, position: Position) -> bool:
        return CapacityLedger.occupancy(db, position) < position.capacity

    @staticmethod
    def authorize_placement(db: Session, position: Position) -> int:
        """
        Autoriza a colocação de mais uma caixa na posição.
        Retorna a ocupação observada; levanta CapacityExceededError se cheia.
        """
        current = CapacityLedger.occupancy(db, position)
        if current >= position.capacity:
            logger.warning(
                "placement rejected",
                extra={
                    "position_id": position.id,
                    "rack_id": position.rack_id,
                    "occupancy": current,
                    "capacity": position.capacity,
                }
            )
            raise CapacityExceededError(position.id, current, position.capacity)

        logger.info(
            "placement authorized",
            extra={
                "position_id": position.id,
                "rack_id": position.rack_id,
                "occupancy": current,
                "capacity": position.capacity,
            }
        )
        return current

    @staticmethod
    def verify_committable(db: Session, position: Position) -> None:
        """
        Reavalia a ocupação depois do flush do vínculo, antes do commit.
        Nunca deixa occupancy > capacity ser persistido.
        """
        current = CapacityLedger.occupancy(db, position)
        if current > position.capacity:
            logger.warning(
                "placement rejected at commit",
                extra={
                    "position_id": position.id,
                    "occupancy": current,
                    "capacity": position.capacity,
                }
            )
            raise CapacityExceededError(position.id, current - 1, position.capacity)

    @staticmethod
    def validate_capacity(value) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Capacidade inválida: {value}", {"value": value})
        if not CapacityLedger.MIN_CAPACITY <= value <= CapacityLedger.MAX_CAPACITY:
            raise ValidationError(
                f"Capacidade inválida: {value}. Deve ser entre "
                f"{CapacityLedger.MIN_CAPACITY} e {CapacityLedger.MAX_CAPACITY}.",
                {"value": value}
            )
        return value

    @staticmethod
    def update_capacities(db: Session, rack: Rack, capacities: Dict[int, int]) -> None:
        """
        Atualiza capacidades em lote (tudo ou nada).
        Valida todo o lote antes de aplicar qualquer valor.
        """
        if not capacities:
            raise ValidationError("Nenhuma capacidade informada", {})

        positions = {p.id: p for p in rack.positions}
        occupancy = CapacityLedger.occupancy_by_position(db, rack.id)

        validated = {}
        for raw_id, raw_capacity in capacities.items():
            try:
                position_id = int(raw_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Posição inválida: {raw_id}", {"position_id": raw_id})

            if position_id not in positions:
                raise NotFoundError("Posição", position_id, f"Posição {position_id} não pertence à estante {rack.id}")

            capacity = CapacityLedger.validate_capacity(raw_capacity)
            current = occupancy.get(position_id, 0)
            if capacity < current:
                raise ValidationError(
                    f"Capacidade {capacity} menor que a ocupação atual ({current})",
                    {"position_id": position_id, "value": capacity, "occupancy": current}
                )
            validated[position_id] = capacity

        for position_id, capacity in validated.items():
            positions[position_id].capacity = capacity

        logger.info(
            "position capacities updated",
            extra={"rack_id": rack.id, "updated": len(validated)}
        )
