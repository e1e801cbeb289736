from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class ShelfConfigEntry(BaseModel):
    """Configuração de uma prateleira (modo avançado)"""
    shelf_number: int
    position_count: int


class RackCreateRequest(BaseModel):
    """
    Request para criar estante
    - Uniforme: max_shelves + positions_per_shelf
    - Avançado: shelf_config (um item por prateleira)
    """
    room_id: int
    name: str
    rack_number: Optional[int] = None
    max_shelves: int = 5
    positions_per_shelf: int = 6
    shelf_config: Optional[List[ShelfConfigEntry]] = None


class RackUpdateRequest(BaseModel):
    """Request para atualizar estante (campos ausentes não mudam)"""
    name: Optional[str] = None
    rack_number: Optional[int] = None
    max_shelves: Optional[int] = None
    positions_per_shelf: Optional[int] = None
    shelf_config: Optional[List[ShelfConfigEntry]] = None
    use_advanced_config: Optional[bool] = None


class CapacityUpdateRequest(BaseModel):
    """Capacidades por position_id (1-4), aplicadas tudo ou nada"""
    capacities: Dict[int, int]


class PositionResponse(BaseModel):
    """Posição com ocupação"""
    id: int
    rack_id: int
    shelf_number: int
    position_number: int
    code: str
    capacity: int
    occupancy: int
    available: int
    box_ids: List[int] = Field(default_factory=list)


class RackResponse(BaseModel):
    """Response de uma estante"""
    id: int
    room_id: int
    name: str
    rack_number: int
    max_shelves: int
    positions_per_shelf: int
    shelf_config: Optional[List[ShelfConfigEntry]] = None
    use_advanced_config: bool
    config_locked: bool
    position_count: int
    positions: List[PositionResponse] = Field(default_factory=list)


class NextRackNumberResponse(BaseModel):
    next_available_rack_number: int
