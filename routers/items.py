"""
Rotas para itens (criar, mover entre caixas, excluir)
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from models.database import get_db
from schemas.item_schemas import ItemCreateRequest, ItemMoveRequest, ItemResponse
from services.item_service import ItemService

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=List[ItemResponse])
async def list_items(
    room_id: Optional[int] = Query(None),
    box_id: Optional[int] = Query(None),
    db: Session = Depends(get_db)
):
    return ItemService.list_items(db, room_id, box_id)


@router.post("", response_model=ItemResponse, status_code=201)
async def create_item(request: ItemCreateRequest, db: Session = Depends(get_db)):
    fields = request.model_dump(exclude={"room_id", "name", "box_id"})
    return ItemService.create_item(db, request.room_id, request.name, request.box_id, **fields)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: int, db: Session = Depends(get_db)):
    return ItemService.get_item(db, item_id)


@router.post("/{item_id}/move", response_model=ItemResponse)
async def move_item(item_id: int, request: ItemMoveRequest, db: Session = Depends(get_db)):
    """Coloca o item numa caixa (ou tira, com box_id nulo)"""
    return ItemService.move_item(db, item_id, request.box_id)


@router.delete("/{item_id}", status_code=204)
async def delete_item(item_id: int, db: Session = Depends(get_db)):
    ItemService.delete_item(db, item_id)
    return Response(status_code=204)
