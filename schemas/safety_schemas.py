from pydantic import BaseModel
from typing import Dict, List


class SafetyReport(BaseModel):
    """Resultado da análise de segurança para exclusão"""
    entity_type: str
    entity_id: int
    can_delete: bool
    blockers: List[str]
    warnings: List[str]
    counts: Dict[str, int]
    dependencies: Dict[str, List[dict]]
