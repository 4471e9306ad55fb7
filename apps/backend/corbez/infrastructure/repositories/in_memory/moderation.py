"""
In-memory ModerationActionRepository (append-only).

- Las acciones son inmutables: set_appeal_status reemplaza el registro por
  una copia con el nuevo appeal_status (dataclasses.replace).
"""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional
from uuid import UUID

from ....domain.entities import AppealStatus, ModerationAction, ModerationTargetType


class InMemoryModerationActionRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._actions: Dict[UUID, ModerationAction] = {}

    def append(self, action: ModerationAction) -> None:
        with self._lock:
            if action.id in self._actions:
                raise ValueError(f"Moderation action {action.id} already recorded")
            self._actions[action.id] = action

    def get(self, action_id: UUID) -> Optional[ModerationAction]:
        with self._lock:
            return self._actions.get(action_id)

    def list_for_target(
        self, target_type: ModerationTargetType, target_id: UUID
    ) -> List[ModerationAction]:
        with self._lock:
            matches = [
                a
                for a in self._actions.values()
                if a.target_type == target_type and a.target_id == target_id
            ]
        # R: Estable por inserción ante created_at iguales (reloj fijo en tests).
        ordered = list(enumerate(matches))
        ordered.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [action for _, action in ordered]

    def list_by_appeal_status(self, status: AppealStatus) -> List[ModerationAction]:
        with self._lock:
            return [a for a in self._actions.values() if a.appeal_status == status]

    def set_appeal_status(
        self,
        action_id: UUID,
        *,
        expected: AppealStatus,
        new: AppealStatus,
    ) -> Optional[ModerationAction]:
        with self._lock:
            current = self._actions.get(action_id)
            if current is None or current.appeal_status != expected:
                return None
            updated = replace(current, appeal_status=new)
            self._actions[action_id] = updated
            return updated
