"""
Dependências compartilhadas pelas rotas
"""
from typing import Optional
from fastapi import Header


async def get_actor(x_user: Optional[str] = Header(None)) -> str:
    """Identidade de quem faz a operação (gravada na auditoria)"""
    return (x_user or "").strip() or "anonymous"
