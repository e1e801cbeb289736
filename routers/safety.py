"""
Rotas de análise de segurança e auditoria
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from models.database import get_db
from models.movement import Movement
from schemas.safety_schemas import SafetyReport
from schemas.movement_schemas import MovementResponse
from services.safety_service import SafetyAnalyzer

router = APIRouter(tags=["safety"])


@router.get("/safety/{entity_type}/{entity_id}", response_model=SafetyReport)
async def analyze_safety(entity_type: str, entity_id: int, db: Session = Depends(get_db)):
    """
    Diz se room/rack/box pode ser excluído e o que bloqueia
    """
    return SafetyAnalyzer.analyze(db, entity_type, entity_id)


@router.get("/movements", response_model=List[MovementResponse])
async def list_movements(
    box_id: Optional[int] = Query(None),
    rack_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Últimos eventos de auditoria"""
    query = db.query(Movement)
    if box_id is not None:
        query = query.filter(Movement.box_id == box_id)
    if rack_id is not None:
        query = query.filter(Movement.rack_id == rack_id)
    return query.order_by(Movement.ts.desc(), Movement.id.desc()).limit(limit).all()
