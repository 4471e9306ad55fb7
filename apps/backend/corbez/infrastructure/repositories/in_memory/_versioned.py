"""
============================================================
TARJETA CRC — in_memory/_versioned.py
============================================================
Class: VersionedInMemoryStore

Responsibilities:
  - "Tabla" en memoria (UUID -> entidad) protegida por Lock.
  - Escritura condicional por versión (optimistic concurrency), igual que
    `UPDATE ... WHERE version = %s` en Postgres.
  - Copias defensivas (deepcopy) en lectura y escritura: ningún caller
    comparte referencias mutables con el store.

Notes:
  - Base de los repositorios in-memory con `save(expected_version=...)`.
============================================================
"""

from __future__ import annotations

from copy import deepcopy
from threading import RLock
from typing import Callable, Dict, Generic, List, Optional, TypeVar
from uuid import UUID

T = TypeVar("T")


class VersionedInMemoryStore(Generic[T]):
    def __init__(self) -> None:
        self._lock = RLock()
        self._rows: Dict[UUID, T] = {}

    def get(self, entity_id: UUID) -> Optional[T]:
        with self._lock:
            row = self._rows.get(entity_id)
            return deepcopy(row) if row is not None else None

    def add(self, entity: T) -> None:
        with self._lock:
            self._rows[entity.id] = deepcopy(entity)

    def save(self, entity: T, *, expected_version: int) -> bool:
        """R: Aplica solo si la versión guardada coincide; bump in place."""
        with self._lock:
            stored = self._rows.get(entity.id)
            if stored is None or stored.version != expected_version:
                return False
            entity.version = expected_version + 1
            self._rows[entity.id] = deepcopy(entity)
            return True

    def _select(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [deepcopy(r) for r in self._rows.values() if predicate(r)]

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
