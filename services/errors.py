"""
Exceções tipadas do motor de alocação

Cada exceção tem um código legível por máquina, o status HTTP correspondente
e dados estruturados (contagens, valor conflitante) para montar a mensagem.
"""
from typing import Any, Dict, Optional


class StorageError(Exception):
    """Base de todos os erros do motor de alocação"""

    code = "STORAGE_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(StorageError):
    """Entrada malformada ou fora do intervalo"""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(StorageError):
    """Cômodo, estante, posição, caixa ou item inexistente ou inativo"""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{entity} {entity_id} não encontrado",
            {"entity": entity, "id": entity_id}
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(StorageError):
    """Número de estante/caixa (ou nome de cômodo) já em uso no escopo"""

    code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str, value: Any = None, details: Optional[Dict[str, Any]] = None):
        merged = {"value": value}
        merged.update(details or {})
        super().__init__(message, merged)
        self.value = value


class CapacityExceededError(StorageError):
    """Posição cheia no momento da autorização ou do commit"""

    code = "CAPACITY_EXCEEDED"
    status_code = 409

    def __init__(self, position_id: int, occupancy: int, capacity: int):
        super().__init__(
            f"Posição com capacidade esgotada ({occupancy}/{capacity} caixas)",
            {"position_id": position_id, "occupancy": occupancy, "capacity": capacity}
        )
        self.position_id = position_id
        self.occupancy = occupancy
        self.capacity = capacity


class LockedConfigError(StorageError):
    """Mudança estrutural em estante que contém itens"""

    code = "CONFIG_LOCKED"
    status_code = 423

    def __init__(self, rack_id: int, fields, message: Optional[str] = None):
        super().__init__(
            message or "Configuração da estante bloqueada: contém itens. "
            "Apenas nome e número podem ser alterados.",
            {"rack_id": rack_id, "fields": sorted(fields)}
        )
        self.rack_id = rack_id
        self.fields = sorted(fields)


class BlockedDeletionError(StorageError):
    """Exclusão de cômodo/estante/caixa não vazio"""

    code = "DELETION_BLOCKED"
    status_code = 409

    def __init__(self, report: dict):
        blockers = ", ".join(report.get("blockers", []))
        super().__init__(
            f"Exclusão bloqueada: {blockers}" if blockers else "Exclusão bloqueada",
            report
        )
        self.report = report
