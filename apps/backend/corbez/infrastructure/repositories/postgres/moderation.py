"""
============================================================
TARJETA CRC — repositories/postgres/moderation.py
============================================================
Class: PostgresModerationActionRepository (tabla moderation_actions)

Responsibilities:
  - Append-only: INSERT y lectura; el único UPDATE permitido es la
    transición condicional de appeal_status.
  - previous_state / new_state / duration como JSONB.
============================================================
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from psycopg.types.json import Jsonb

from ....domain.entities import (
    AppealStatus,
    Duration,
    DurationUnit,
    ModerationAction,
    ModerationActionType,
    ModerationReason,
    ModerationTargetType,
)
from ._base import PostgresRepository


class PostgresModerationActionRepository(PostgresRepository):
    _COLUMNS = """
        id, target_type, target_id, action, actor_id, reason, previous_state,
        new_state, notes, duration, is_appealable, appeal_deadline,
        appeal_status, created_at
    """

    @staticmethod
    def _row_to_action(row: tuple) -> ModerationAction:
        (
            action_id,
            target_type,
            target_id,
            action,
            actor_id,
            reason,
            previous_state,
            new_state,
            notes,
            duration,
            is_appealable,
            appeal_deadline,
            appeal_status,
            created_at,
        ) = row
        return ModerationAction(
            id=action_id,
            target_type=ModerationTargetType(target_type),
            target_id=target_id,
            action=ModerationActionType(action),
            actor_id=actor_id,
            reason=ModerationReason(reason),
            previous_state=dict(previous_state or {}),
            new_state=dict(new_state or {}),
            notes=notes,
            duration=(
                Duration(value=int(duration["value"]), unit=DurationUnit(duration["unit"]))
                if duration
                else None
            ),
            is_appealable=is_appealable,
            appeal_deadline=appeal_deadline,
            appeal_status=AppealStatus(appeal_status),
            created_at=created_at,
        )

    def append(self, action: ModerationAction) -> None:
        self._execute_rowcount(
            """
            INSERT INTO moderation_actions (
                id, target_type, target_id, action, actor_id, reason,
                previous_state, new_state, notes, duration, is_appealable,
                appeal_deadline, appeal_status, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            [
                action.id,
                action.target_type.value,
                action.target_id,
                action.action.value,
                action.actor_id,
                action.reason.value,
                Jsonb(action.previous_state),
                Jsonb(action.new_state),
                action.notes,
                Jsonb(action.duration.to_dict()) if action.duration else None,
                action.is_appealable,
                action.appeal_deadline,
                action.appeal_status.value,
                action.created_at,
            ],
            error_message="PostgresModerationActionRepository: Failed to append action",
            extra={"action_id": str(action.id), "target_id": str(action.target_id)},
        )

    def get(self, action_id: UUID) -> Optional[ModerationAction]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM moderation_actions WHERE id = %s",
            [action_id],
            error_message="PostgresModerationActionRepository: Failed to get action",
            extra={"action_id": str(action_id)},
        )
        return self._row_to_action(row) if row else None

    def list_for_target(
        self, target_type: ModerationTargetType, target_id: UUID
    ) -> List[ModerationAction]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM moderation_actions "
            "WHERE target_type = %s AND target_id = %s ORDER BY created_at DESC",
            [target_type.value, target_id],
            error_message="PostgresModerationActionRepository: Failed to list history",
            extra={"target_id": str(target_id)},
        )
        return [self._row_to_action(r) for r in rows]

    def list_by_appeal_status(self, status: AppealStatus) -> List[ModerationAction]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM moderation_actions "
            "WHERE appeal_status = %s ORDER BY created_at ASC",
            [status.value],
            error_message="PostgresModerationActionRepository: Failed to list appeals",
            extra={"appeal_status": status.value},
        )
        return [self._row_to_action(r) for r in rows]

    def set_appeal_status(
        self,
        action_id: UUID,
        *,
        expected: AppealStatus,
        new: AppealStatus,
    ) -> Optional[ModerationAction]:
        row = self._fetchone(
            f"""
            UPDATE moderation_actions SET appeal_status = %s
            WHERE id = %s AND appeal_status = %s
            RETURNING {self._COLUMNS}
            """,
            [new.value, action_id, expected.value],
            error_message="PostgresModerationActionRepository: Failed to set appeal status",
            extra={"action_id": str(action_id)},
        )
        return self._row_to_action(row) if row else None
