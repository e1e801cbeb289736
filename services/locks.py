"""
Locks por estante: regeneração do grid, edição de capacidade, colocação
de caixas e escrita de itens em caixas posicionadas na mesma estante nunca
se intercalam dentro do processo
"""
import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable

_registry_guard = threading.Lock()
_rack_locks: Dict[int, threading.Lock] = {}


def _lock_for(rack_id: int) -> threading.Lock:
    with _registry_guard:
        lock = _rack_locks.get(rack_id)
        if lock is None:
            lock = threading.Lock()
            _rack_locks[rack_id] = lock
        return lock


@contextmanager
def rack_lock(rack_id: int):
    """Segura o lock da estante do check de capacidade até o commit"""
    lock = _lock_for(rack_id)
    with lock:
        yield


@contextmanager
def rack_locks(rack_ids: Iterable[int]):
    """Vários locks de estante, sempre na mesma ordem (crescente)"""
    with ExitStack() as stack:
        for rack_id in sorted(set(rack_ids)):
            stack.enter_context(rack_lock(rack_id))
        yield


def discard_rack_lock(rack_id: int) -> None:
    """Remove o lock de uma estante excluída"""
    with _registry_guard:
        _rack_locks.pop(rack_id, None)
