from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from schemas.safety_schemas import SafetyReport


class RoomCreateRequest(BaseModel):
    """Request para criar cômodo"""
    name: str
    description: Optional[str] = None
    color: str = "#3B82F6"


class RoomUpdateRequest(BaseModel):
    """Request para atualizar cômodo (campos ausentes não mudam)"""
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class RoomCounts(BaseModel):
    items: int
    boxes: int
    racks: int


class RoomResponse(BaseModel):
    """Response de um cômodo"""
    id: int
    name: str
    description: Optional[str] = None
    color: str
    is_active: bool
    deleted_at: Optional[datetime] = None
    counts: Optional[RoomCounts] = None

    class Config:
        from_attributes = True


class RecoveryStatus(BaseModel):
    is_recoverable: bool
    days_since_deletion: int
    days_remaining: int
    expires_at: datetime


class DeletedRoomResponse(BaseModel):
    """Cômodo excluído e status de recuperação"""
    room: RoomResponse
    recovery_status: RecoveryStatus


class DeletedRoomsResponse(BaseModel):
    deleted_rooms: List[DeletedRoomResponse]
    recovery_window_days: int


class RoomRestoreResponse(BaseModel):
    room: RoomResponse
    name_changed: bool
    original_name: str


class PurgeResponse(BaseModel):
    purged: int


class BulkDeleteRequest(BaseModel):
    """Até 10 cômodos por vez"""
    room_ids: List[int]


class BulkTotals(BaseModel):
    items: int
    boxes: int
    racks: int
    total: int
    total_value: float


class BulkSafetyAnalysis(BaseModel):
    requested_rooms: int
    found_rooms: int
    not_found: List[int]
    can_delete_all: bool
    blockers: List[str]
    warnings: List[str]
    totals: BulkTotals
    room_analysis: List[SafetyReport]
    safe_to_delete: List[int]
    blocked_from_deletion: List[int]


class BulkDeleteResponse(BaseModel):
    deleted: List[int]
    not_found: List[int]
    analysis: BulkSafetyAnalysis
