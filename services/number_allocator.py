"""
Serviço para alocação de números de estantes e caixas dentro de um cômodo
(menor inteiro positivo livre, com sugestões e alternativas)
"""
import logging
from typing import Iterable, List, Optional

from services.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

ROUND_NUMBERS = (5, 10, 15, 20, 25, 30, 50)


class NumberAllocator:
    """Cálculos puros sobre um snapshot dos números já usados no escopo"""

    @staticmethod
    def next_available(existing: Iterable[int]) -> int:
        """
        Menor inteiro positivo fora do conjunto.
        Varre a partir de 1; sem lacunas devolve max + 1.
        """
        used = set(existing)
        candidate = 1
        while candidate in used:
            candidate += 1
        return candidate

    @staticmethod
    def allocate(
        existing: Iterable[int],
        requested: Optional[int] = None,
        upper: Optional[int] = None,
        kind: str = "number"
    ) -> int:
        """
        Retorna o número a atribuir.
        - Sem pedido: primeira lacuna
        - Com pedido: aceita se positivo, dentro do limite e livre
        """
        used = set(existing)

        if requested is None:
            number = NumberAllocator.next_available(used)
            logger.info(
                "number allocated",
                extra={"kind": kind, "number": number, "requested": None, "in_use": len(used)}
            )
            return number

        if isinstance(requested, bool) or not isinstance(requested, int) or requested < 1:
            raise ValidationError(
                f"Número inválido: {requested}",
                {"kind": kind, "value": requested}
            )
        if upper is not None and requested > upper:
            raise ValidationError(
                f"Número {requested} fora do intervalo 1-{upper}",
                {"kind": kind, "value": requested, "max": upper}
            )
        if requested in used:
            logger.warning(
                "number conflict",
                extra={"kind": kind, "number": requested}
            )
            raise ConflictError(
                f"Número {requested} já está em uso neste cômodo",
                value=requested,
                details={"kind": kind, "suggestion": NumberAllocator.next_available(used)}
            )

        logger.info(
            "number allocated",
            extra={"kind": kind, "number": requested, "requested": requested, "in_use": len(used)}
        )
        return requested

    @staticmethod
    def gaps(existing: Iterable[int]) -> List[int]:
        """Números livres abaixo do maior número usado"""
        used = set(existing)
        if not used:
            return []
        return [n for n in range(1, max(used) + 1) if n not in used]

    @staticmethod
    def suggestions(existing: Iterable[int], limit: int = 5) -> List[int]:
        """
        Sugestões rápidas:
        primeira lacuna (ou próximo), mais duas lacunas, sequenciais livres
        e um número "redondo" livre
        """
        used = set(existing)
        gaps = NumberAllocator.gaps(used)
        primary = NumberAllocator.next_available(used)

        picks = [primary]
        picks.extend(g for g in gaps[1:3] if g not in picks)

        while len(picks) < 4:
            candidate = max(picks) + 1
            if candidate in used:
                break
            picks.append(candidate)

        round_free = [n for n in ROUND_NUMBERS if n not in used and n not in picks]
        if round_free and len(picks) < limit:
            picks.append(round_free[0])

        return sorted(set(picks))[:limit]

    @staticmethod
    def alternatives(existing: Iterable[int], requested: int, limit: int = 6) -> List[int]:
        """Alternativas livres para um número em conflito (lacunas primeiro)"""
        used = set(existing)
        gaps = NumberAllocator.gaps(used)

        candidates = list(gaps[:3])
        for delta in range(1, 6):
            candidate = requested + delta
            if candidate not in used and candidate not in candidates:
                candidates.append(candidate)
        for delta in range(1, 4):
            candidate = requested - delta
            if candidate > 0 and candidate not in used and candidate not in candidates:
                candidates.append(candidate)
        candidates.extend(
            [n for n in ROUND_NUMBERS if n not in used and n not in candidates][:2]
        )

        gap_set = set(gaps)
        # Lacunas primeiro, depois ordem crescente
        ordered = sorted(set(candidates), key=lambda n: (n not in gap_set, n))
        return ordered[:limit]

    @staticmethod
    def detect_pattern(existing: Iterable[int]) -> str:
        """Classifica a numeração: sequential, spaced, mostly-sequential ou mixed"""
        numbers = sorted(set(existing))
        if len(numbers) < 2:
            return "sequential"

        steps = {b - a for a, b in zip(numbers, numbers[1:])}
        if steps == {1}:
            return "sequential"
        if len(steps) == 1:
            return "spaced"
        if len(steps) <= 2:
            return "mostly-sequential"
        return "mixed"
