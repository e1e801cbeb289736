"""
Rotas para estantes e grid de posições
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from models.database import get_db
from models.rack import Rack
from schemas.rack_schemas import (
    RackCreateRequest,
    RackUpdateRequest,
    CapacityUpdateRequest,
    RackResponse,
    PositionResponse,
    NextRackNumberResponse,
)
from services.rack_service import RackService
from routers.dependencies import get_actor

router = APIRouter(prefix="/racks", tags=["racks"])


def rack_response(db: Session, rack: Rack, include_positions: bool = True) -> RackResponse:
    positions = RackService.positions_with_occupancy(db, rack) if include_positions else []
    return RackResponse(
        id=rack.id,
        room_id=rack.room_id,
        name=rack.name,
        rack_number=rack.rack_number,
        max_shelves=rack.max_shelves,
        positions_per_shelf=rack.positions_per_shelf,
        shelf_config=rack.shelf_config,
        use_advanced_config=rack.uses_advanced_config,
        config_locked=rack.config_locked,
        position_count=len(rack.positions),
        positions=[PositionResponse(**p) for p in positions]
    )


@router.get("", response_model=List[RackResponse])
async def list_racks(
    room_id: Optional[int] = Query(None),
    include_positions: bool = Query(False),
    db: Session = Depends(get_db)
):
    """Lista estantes (opcionalmente de um cômodo)"""
    racks = RackService.list_racks(db, room_id)
    return [rack_response(db, r, include_positions) for r in racks]


@router.get("/next-number", response_model=NextRackNumberResponse)
async def suggest_next_rack_number(
    room_id: int = Query(...),
    db: Session = Depends(get_db)
):
    """Próximo número de estante disponível no cômodo (primeira lacuna)"""
    number = RackService.suggest_next_rack_number(db, room_id)
    return NextRackNumberResponse(next_available_rack_number=number)


@router.post("", response_model=RackResponse, status_code=201)
async def create_rack(
    request: RackCreateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """
    Cria estante com layout uniforme ou por prateleira.
    Sem rack_number usa o próximo disponível.
    """
    rack = RackService.create_rack(
        db,
        room_id=request.room_id,
        name=request.name,
        rack_number=request.rack_number,
        max_shelves=request.max_shelves,
        positions_per_shelf=request.positions_per_shelf,
        shelf_config=[e.model_dump() for e in request.shelf_config] if request.shelf_config is not None else None,
        actor=actor
    )
    return rack_response(db, rack)


@router.get("/{rack_id}", response_model=RackResponse)
async def get_rack(rack_id: int, db: Session = Depends(get_db)):
    rack = RackService.get_rack(db, rack_id)
    return rack_response(db, rack)


@router.get("/{rack_id}/positions", response_model=List[PositionResponse])
async def get_rack_positions(rack_id: int, db: Session = Depends(get_db)):
    """Posições da estante com ocupação"""
    rack = RackService.get_rack(db, rack_id)
    return [PositionResponse(**p) for p in RackService.positions_with_occupancy(db, rack)]


@router.put("/{rack_id}", response_model=RackResponse)
async def update_rack(
    rack_id: int,
    request: RackUpdateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """
    Atualiza estante. Com itens nas caixas posicionadas só nome e número mudam.
    """
    patch = request.model_dump(exclude_unset=True)
    rack = RackService.update_rack(db, rack_id, patch, actor)
    return rack_response(db, rack)


@router.patch("/{rack_id}/capacities", response_model=RackResponse)
async def update_position_capacities(
    rack_id: int,
    request: CapacityUpdateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """Atualiza capacidades das posições (1-4) em lote, tudo ou nada"""
    rack = RackService.update_position_capacities(db, rack_id, request.capacities, actor)
    return rack_response(db, rack)


@router.delete("/{rack_id}", status_code=204)
async def delete_rack(
    rack_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor)
):
    """Exclui estante vazia (sem caixas posicionadas) junto com as posições"""
    RackService.delete_rack(db, rack_id, actor)
    return Response(status_code=204)
