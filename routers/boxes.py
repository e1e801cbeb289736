"""
Rotas para caixas: criação, numeração, colocação/staging e exclusão
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from models.database import get_db
from models.box import Box
from models.item import Item
from models.position import Position
from schemas.box_schemas import (
    BoxCreateRequest,
    BoxUpdateRequest,
    PlacementRequest,
    BoxLocation,
    BoxResponse,
    BoxNumberSuggestionResponse,
    BoxNumberValidationResponse,
)
from services.errors import ValidationError
from services.placement_service import PlacementCoordinator
from routers.dependencies import get_actor

router = APIRouter(prefix="/boxes", tags=["boxes"])


def box_response(db: Session, box: Box) -> BoxResponse:
    location = None
    if box.position_id:
        position = db.query(Position).filter(Position.id == box.position_id).first()
        if position:
            location = BoxLocation(
                rack_id=position.rack_id,
                rack_number=position.rack.rack_number,
                rack_name=position.rack.name,
                position_id=position.id,
                shelf_number=position.shelf_number,
                position_number=position.position_number,
                code=position.code
            )

    item_count = db.query(func.count(Item.id)).filter(
        Item.box_id == box.id,
        Item.is_active == True
    ).scalar() or 0

    return BoxResponse(
        id=box.id,
        room_id=box.room_id,
        box_number=box.box_number,
        name=box.name,
        description=box.description,
        size=box.size,
        type=box.type,
        is_staging=box.is_staging,
        position_id=box.position_id,
        location=location,
        item_count=item_count
    )


@router.get("", response_model=List[BoxResponse])
async def list_boxes(
    room_id: Optional[int] = Query(None),
    staging: Optional[bool] = Query(None),
    db: Session = Depends(get_db)
):
    """Lista caixas ativas (filtros por cômodo e staging)"""
    boxes = PlacementCoordinator.list_boxes(db, room_id, staging)
    return [box_response(db, b) for b in boxes]


@router.get("/suggest-number", response_model=BoxNumberSuggestionResponse)
async def suggest_box_number(
    room_id: int = Query(...),
    db: Session = Depends(get_db)
):
    """Sugere número para nova caixa no cômodo"""
    return PlacementCoordinator.suggest_box_number(db, room_id)


@router.get("/validate-number", response_model=BoxNumberValidationResponse)
async def validate_box_number(
    room_id: int = Query(...),
    box_number: int = Query(...),
    db: Session = Depends(get_db)
):
    """Verifica se o número de caixa está livre no cômodo"""
    return PlacementCoordinator.validate_box_number(db, room_id, box_number)


@router.post("", response_model=BoxResponse, status_code=201)
async def create_box(
    request: BoxCreateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """Cria caixa (começa em staging)"""
    box = PlacementCoordinator.create_box(
        db,
        room_id=request.room_id,
        box_number=request.box_number,
        name=request.name,
        description=request.description,
        size=request.size,
        type=request.type,
        actor=actor
    )
    return box_response(db, box)


@router.get("/{box_id}", response_model=BoxResponse)
async def get_box(box_id: int, db: Session = Depends(get_db)):
    box = PlacementCoordinator.get_box(db, box_id)
    return box_response(db, box)


@router.put("/{box_id}", response_model=BoxResponse)
async def update_box(
    box_id: int,
    request: BoxUpdateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """
    Atualiza caixa. Troca de cômodo move os itens, tira a caixa da estante
    e coloca em staging no novo cômodo.
    """
    box = PlacementCoordinator.update_box(db, box_id, request.model_dump(exclude_unset=True), actor)
    return box_response(db, box)


@router.post("/{box_id}/place", response_model=BoxResponse)
async def place_box(
    box_id: int,
    request: PlacementRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """
    Move a caixa para staging ou para (estante, prateleira, posição)
    """
    if request.to_staging:
        box = PlacementCoordinator.move_to_staging(db, box_id, actor)
        return box_response(db, box)

    if request.rack_id is None or request.shelf_number is None or request.position_number is None:
        raise ValidationError(
            "Estante, prateleira e posição são obrigatórios para posicionar a caixa",
            {"rack_id": request.rack_id, "shelf_number": request.shelf_number, "position_number": request.position_number}
        )

    box = PlacementCoordinator.place_box(
        db,
        box_id,
        rack_id=request.rack_id,
        shelf_number=request.shelf_number,
        position_number=request.position_number,
        actor=actor
    )
    return box_response(db, box)


@router.delete("/{box_id}", status_code=204)
async def delete_box(
    box_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """Exclui caixa vazia (remove também o vínculo de posição)"""
    PlacementCoordinator.delete_box(db, box_id, actor)
    return Response(status_code=204)
