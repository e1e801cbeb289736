from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from models.movement import MovementType


class MovementResponse(BaseModel):
    """Evento de auditoria"""
    id: int
    box_id: Optional[int] = None
    rack_id: Optional[int] = None
    from_position_id: Optional[int] = None
    to_position_id: Optional[int] = None
    type: MovementType
    actor: str
    ts: datetime
    meta_json: Optional[dict] = None

    class Config:
        from_attributes = True
