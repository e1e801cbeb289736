"""
Serviço para gerar/regenerar as posições de uma estante
a partir da configuração uniforme ou por prateleira
"""
import logging
import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.box import Box
from models.position import Position
from models.rack import Rack
from services.errors import LockedConfigError, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)


class PositionGrid:
    """Deriva o conjunto completo de posições de uma estante"""

    DEFAULT_CAPACITY = int(os.getenv("DEFAULT_POSITION_CAPACITY", "4"))
    MAX_SHELVES = 20
    MIN_POSITIONS = 1
    MAX_POSITIONS = 15

    @staticmethod
    def validate_uniform(max_shelves: int, positions_per_shelf: int) -> None:
        if not isinstance(max_shelves, int) or not 1 <= max_shelves <= PositionGrid.MAX_SHELVES:
            raise ValidationError(
                f"Número de prateleiras inválido ({max_shelves}). Deve ser 1-{PositionGrid.MAX_SHELVES}.",
                {"field": "max_shelves", "value": max_shelves}
            )
        if (
            not isinstance(positions_per_shelf, int)
            or not PositionGrid.MIN_POSITIONS <= positions_per_shelf <= PositionGrid.MAX_POSITIONS
        ):
            raise ValidationError(
                f"Posições por prateleira inválido ({positions_per_shelf}). "
                f"Deve ser {PositionGrid.MIN_POSITIONS}-{PositionGrid.MAX_POSITIONS}.",
                {"field": "positions_per_shelf", "value": positions_per_shelf}
            )

    @staticmethod
    def validate_shelf_config(shelf_config: List[dict], max_shelves: int) -> List[dict]:
        """
        Valida a configuração avançada e devolve a lista normalizada
        [{"shelf_number": int, "position_count": int}, ...]
        """
        if not isinstance(shelf_config, list):
            raise ValidationError("Configuração de prateleiras deve ser uma lista", {"field": "shelf_config"})

        if len(shelf_config) != max_shelves:
            raise ValidationError(
                f"Tamanho da configuração ({len(shelf_config)}) diferente do número de prateleiras ({max_shelves})",
                {"field": "shelf_config", "length": len(shelf_config), "max_shelves": max_shelves}
            )

        normalized = []
        seen = set()
        for idx, entry in enumerate(shelf_config, start=1):
            shelf_number = entry.get("shelf_number")
            position_count = entry.get("position_count")

            if (
                isinstance(shelf_number, bool)
                or not isinstance(shelf_number, int)
                or not 1 <= shelf_number <= max_shelves
            ):
                raise ValidationError(
                    f"Prateleira {idx}: número de prateleira inválido ({shelf_number}). Deve ser 1-{max_shelves}.",
                    {"field": "shelf_number", "index": idx, "value": shelf_number}
                )
            if shelf_number in seen:
                raise ValidationError(
                    f"Prateleira {shelf_number} repetida",
                    {"field": "shelf_number", "index": idx, "value": shelf_number}
                )
            if (
                isinstance(position_count, bool)
                or not isinstance(position_count, int)
                or not PositionGrid.MIN_POSITIONS <= position_count <= PositionGrid.MAX_POSITIONS
            ):
                raise ValidationError(
                    f"Prateleira {shelf_number}: quantidade de posições inválida ({position_count}). "
                    f"Deve ser {PositionGrid.MIN_POSITIONS}-{PositionGrid.MAX_POSITIONS}.",
                    {"field": "position_count", "shelf_number": shelf_number, "value": position_count}
                )

            seen.add(shelf_number)
            normalized.append({"shelf_number": shelf_number, "position_count": position_count})

        return normalized

    @staticmethod
    def build_layout(
        max_shelves: int,
        positions_per_shelf: int,
        shelf_config: Optional[List[dict]] = None
    ) -> List[Tuple[int, int]]:
        """Lista de pares (prateleira, posição) da configuração"""
        if shelf_config is not None:
            return [
                (entry["shelf_number"], position)
                for entry in shelf_config
                for position in range(1, entry["position_count"] + 1)
            ]

        return [
            (shelf, position)
            for shelf in range(1, max_shelves + 1)
            for position in range(1, positions_per_shelf + 1)
        ]

    @staticmethod
    def create_positions(db: Session, rack: Rack) -> List[Position]:
        """Cria as posições da estante conforme a configuração atual dela"""
        layout = PositionGrid.build_layout(rack.max_shelves, rack.positions_per_shelf, rack.shelf_config)
        positions = [
            Position(
                shelf_number=shelf,
                position_number=position,
                capacity=PositionGrid.DEFAULT_CAPACITY
            )
            for shelf, position in layout
        ]
        rack.positions.extend(positions)
        db.flush()
        return positions

    @staticmethod
    def regenerate(db: Session, rack: Rack) -> List[Position]:
        """
        Apaga todas as posições da estante e recria a partir da configuração.
        Exige que nenhuma caixa esteja vinculada às posições atuais
        (o chamador move as caixas para staging antes).
        """
        db.flush()
        linked = db.query(func.count(Box.id)).join(Position, Box.position_id == Position.id).filter(
            Position.rack_id == rack.id
        ).scalar() or 0
        if linked:
            raise LockedConfigError(
                rack.id,
                ["positions"],
                f"Regeneração bloqueada: {linked} caixa(s) ainda posicionada(s) na estante"
            )

        old_count = len(rack.positions)
        rack.positions.clear()
        # Flush antes de inserir para não violar uq_rack_shelf_position
        db.flush()

        positions = PositionGrid.create_positions(db, rack)
        logger.info(
            "rack grid regenerated",
            extra={
                "rack_id": rack.id,
                "old_positions": old_count,
                "new_positions": len(positions),
                "advanced": rack.shelf_config is not None,
            }
        )
        return positions
