from pydantic import BaseModel
from typing import List, Optional


class BoxCreateRequest(BaseModel):
    """Request para criar caixa (sem número usa a primeira lacuna do cômodo)"""
    room_id: int
    box_number: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    size: str = "S"
    type: str = "standard"


class BoxUpdateRequest(BaseModel):
    """Request para atualizar caixa; room_id diferente dispara a troca de cômodo"""
    name: Optional[str] = None
    description: Optional[str] = None
    size: Optional[str] = None
    room_id: Optional[int] = None
    box_number: Optional[int] = None


class PlacementRequest(BaseModel):
    """Destino da caixa: staging ou (estante, prateleira, posição)"""
    to_staging: bool = False
    rack_id: Optional[int] = None
    shelf_number: Optional[int] = None
    position_number: Optional[int] = None


class BoxLocation(BaseModel):
    rack_id: int
    rack_number: int
    rack_name: str
    position_id: int
    shelf_number: int
    position_number: int
    code: str


class BoxResponse(BaseModel):
    """Response de uma caixa"""
    id: int
    room_id: int
    box_number: int
    name: Optional[str] = None
    description: Optional[str] = None
    size: str
    type: str
    is_staging: bool
    position_id: Optional[int] = None
    location: Optional[BoxLocation] = None
    item_count: int = 0


class BoxNumberAnalytics(BaseModel):
    total_boxes: int
    has_gaps: bool
    largest_gap: int
    pattern: str


class BoxNumberSuggestionResponse(BaseModel):
    suggested_number: int
    suggestions: List[int]
    gaps: List[int]
    used_numbers: List[int]
    analytics: BoxNumberAnalytics


class BoxNumberValidationResponse(BaseModel):
    is_available: bool
    suggestion: Optional[int] = None
    alternatives: List[int]
    reason: Optional[str] = None
