"""
USE CASES: Moderation history / pending appeals (lectura)

- Historial por target: más reciente primero, acotado por `limit`.
- Apelaciones pendientes: más antigua primero (FIFO de revisión).
"""

from __future__ import annotations

from uuid import UUID

from ....domain.entities import AppealStatus, ModerationTargetType
from ....domain.repositories import ModerationActionRepository
from .moderation_results import ModerationListResult

DEFAULT_HISTORY_LIMIT = 50


class GetModerationHistoryUseCase:
    def __init__(self, action_repository: ModerationActionRepository) -> None:
        self._actions = action_repository

    def execute(
        self,
        target_type: ModerationTargetType,
        target_id: UUID,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> ModerationListResult:
        actions = self._actions.list_for_target(target_type, target_id)
        return ModerationListResult(actions=actions[: max(limit, 0)])


class ListPendingAppealsUseCase:
    def __init__(self, action_repository: ModerationActionRepository) -> None:
        self._actions = action_repository

    def execute(self, *, limit: int = DEFAULT_HISTORY_LIMIT) -> ModerationListResult:
        pending = sorted(
            self._actions.list_by_appeal_status(AppealStatus.PENDING),
            key=lambda action: (action.created_at, str(action.id)),
        )
        return ModerationListResult(actions=pending[: max(limit, 0)])
