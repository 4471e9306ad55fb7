"""
===============================================================================
USE CASES: Submit / Resolve Appeal
===============================================================================

Responsibilities:
    - submit: NONE -> PENDING, solo si la acción es apelable y el plazo
      (appeal_deadline) no venció.
    - resolve: PENDING -> APPROVED | REJECTED.

Notes:
    - La transición del appeal_status es condicional en el repositorio
      (expected -> new): dos submits concurrentes no se pisan.
    - Resolver NO revierte el estado del target: una apelación aprobada se
      ejecuta con una acción explícita (unsuspend / reactivate).
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....domain.entities import AppealStatus
from ....domain.repositories import ModerationActionRepository
from ...clock import Clock, utcnow
from .moderation_results import (
    ModerationErrorCode,
    ModerationResult,
    moderation_error,
)

ACTION_NOT_FOUND = "Moderation action not found"


class SubmitAppealUseCase:
    def __init__(
        self,
        action_repository: ModerationActionRepository,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._actions = action_repository
        self._clock = clock

    def execute(self, action_id: UUID) -> ModerationResult:
        action = self._actions.get(action_id)
        if action is None:
            return moderation_error(ModerationErrorCode.NOT_FOUND, ACTION_NOT_FOUND)
        if not action.is_appealable:
            return moderation_error(
                ModerationErrorCode.APPEAL_NOT_ALLOWED, "Action is not appealable"
            )
        if action.appeal_deadline is not None and self._clock() > action.appeal_deadline:
            return moderation_error(
                ModerationErrorCode.APPEAL_NOT_ALLOWED, "Appeal window has closed"
            )

        updated = self._actions.set_appeal_status(
            action_id, expected=AppealStatus.NONE, new=AppealStatus.PENDING
        )
        if updated is None:
            return moderation_error(
                ModerationErrorCode.APPEAL_NOT_ALLOWED, "Appeal already submitted"
            )
        return ModerationResult(action=updated)


class ResolveAppealUseCase:
    def __init__(self, action_repository: ModerationActionRepository) -> None:
        self._actions = action_repository

    def execute(self, action_id: UUID, *, approved: bool) -> ModerationResult:
        if self._actions.get(action_id) is None:
            return moderation_error(ModerationErrorCode.NOT_FOUND, ACTION_NOT_FOUND)
        updated = self._actions.set_appeal_status(
            action_id,
            expected=AppealStatus.PENDING,
            new=AppealStatus.APPROVED if approved else AppealStatus.REJECTED,
        )
        if updated is None:
            return moderation_error(
                ModerationErrorCode.INVALID_TRANSITION, "Appeal is not pending"
            )
        return ModerationResult(action=updated)
