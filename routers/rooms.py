"""
Rotas para cômodos (inclui exclusão lógica, recuperação e expurgo)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from models.database import get_db
from models.room import Room
from schemas.room_schemas import (
    RoomCreateRequest,
    RoomUpdateRequest,
    RoomResponse,
    RoomCounts,
    DeletedRoomResponse,
    DeletedRoomsResponse,
    RoomRestoreResponse,
    PurgeResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
)
from services.room_service import RoomService

router = APIRouter(prefix="/rooms", tags=["rooms"])


def room_response(db: Session, room: Room, include_counts: bool = True) -> RoomResponse:
    response = RoomResponse.model_validate(room)
    if include_counts and room.is_active:
        response.counts = RoomCounts(**RoomService.counts(db, room.id))
    return response


@router.get("", response_model=List[RoomResponse])
async def list_rooms(db: Session = Depends(get_db)):
    return [room_response(db, r) for r in RoomService.list_rooms(db)]


@router.post("", response_model=RoomResponse, status_code=201)
async def create_room(request: RoomCreateRequest, db: Session = Depends(get_db)):
    room = RoomService.create_room(db, request.name, request.description, request.color)
    return room_response(db, room)


@router.get("/deleted", response_model=DeletedRoomsResponse)
async def list_deleted_rooms(
    include_expired: bool = Query(False),
    db: Session = Depends(get_db)
):
    """Cômodos excluídos ainda recuperáveis (ou todos, com include_expired)"""
    entries = RoomService.list_deleted(db, include_expired)
    return DeletedRoomsResponse(
        deleted_rooms=[
            DeletedRoomResponse(
                room=room_response(db, e["room"], include_counts=False),
                recovery_status=e["recovery_status"]
            )
            for e in entries
        ],
        recovery_window_days=RoomService.RECOVERY_WINDOW_DAYS
    )


@router.post("/purge-expired", response_model=PurgeResponse)
async def purge_expired_rooms(db: Session = Depends(get_db)):
    """Apaga definitivamente cômodos fora da janela de recuperação"""
    return PurgeResponse(purged=RoomService.purge_expired(db))


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_rooms(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    """
    Exclui até 10 cômodos de uma vez, com análise de segurança combinada.
    Se algum estiver bloqueado, nenhum é excluído (409 com a análise).
    """
    return RoomService.bulk_delete(db, request.room_ids)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: int, db: Session = Depends(get_db)):
    return room_response(db, RoomService.get_room(db, room_id))


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(room_id: int, request: RoomUpdateRequest, db: Session = Depends(get_db)):
    room = RoomService.update_room(db, room_id, request.model_dump(exclude_unset=True))
    return room_response(db, room)


@router.delete("/{room_id}", response_model=RoomResponse)
async def delete_room(room_id: int, db: Session = Depends(get_db)):
    """
    Exclusão lógica; bloqueada se houver itens, caixas ou estantes
    """
    room = RoomService.delete_room(db, room_id)
    return room_response(db, room, include_counts=False)


@router.post("/{room_id}/restore", response_model=RoomRestoreResponse)
async def restore_room(room_id: int, db: Session = Depends(get_db)):
    result = RoomService.restore_room(db, room_id)
    return RoomRestoreResponse(
        room=room_response(db, result["room"]),
        name_changed=result["name_changed"],
        original_name=result["original_name"]
    )
