from pydantic import BaseModel
from typing import Optional
from datetime import date
from models.item import ItemStatus


class ItemCreateRequest(BaseModel):
    """Request para criar item (solto no cômodo ou dentro de uma caixa)"""
    room_id: int
    name: str
    box_id: Optional[int] = None
    category: Optional[str] = None
    value: Optional[float] = None
    condition: Optional[str] = None
    expiration_date: Optional[date] = None
    status: ItemStatus = ItemStatus.AVAILABLE


class ItemMoveRequest(BaseModel):
    """Caixa de destino (None tira o item da caixa)"""
    box_id: Optional[int] = None


class ItemResponse(BaseModel):
    """Response de um item"""
    id: int
    room_id: int
    box_id: Optional[int] = None
    name: str
    category: Optional[str] = None
    value: Optional[float] = None
    condition: Optional[str] = None
    expiration_date: Optional[date] = None
    status: ItemStatus
    is_active: bool

    class Config:
        from_attributes = True
