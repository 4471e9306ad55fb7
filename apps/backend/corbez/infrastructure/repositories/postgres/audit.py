"""
PostgresAuditEventRepository (tabla audit_events, append-only).

- Si falla, se propaga DatabaseError; el dispatcher aísla la falla del
  handler de auditoría (log + métrica) sin afectar al productor.
"""

from __future__ import annotations

from typing import List

from psycopg.types.json import Jsonb

from ....domain.audit import AuditEvent
from ._base import PostgresRepository


class PostgresAuditEventRepository(PostgresRepository):
    def record_event(self, event: AuditEvent) -> None:
        self._execute_rowcount(
            """
            INSERT INTO audit_events (
                id, actor, action, target_id, correlation_id, metadata, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
            """,
            [
                event.id,
                event.actor,
                event.action,
                event.target_id,
                event.correlation_id,
                Jsonb(event.metadata or {}),
                event.created_at,
            ],
            error_message="PostgresAuditEventRepository: Failed to record audit event",
            extra={"event_id": str(event.id), "action": event.action},
        )

    def list_events(
        self, *, action_prefix: str | None = None, limit: int = 100
    ) -> List[AuditEvent]:
        where = ""
        params: list = []
        if action_prefix:
            where = "WHERE action LIKE %s"
            params.append(f"{action_prefix}%")
        params.append(max(int(limit), 0))
        rows = self._fetchall(
            f"""
            SELECT id, actor, action, target_id, correlation_id, metadata, created_at
            FROM audit_events {where}
            ORDER BY created_at DESC, id DESC
            LIMIT %s
            """,
            params,
            error_message="PostgresAuditEventRepository: Failed to list audit events",
            extra={"action_prefix": action_prefix},
        )
        return [
            AuditEvent(
                id=r[0],
                actor=r[1],
                action=r[2],
                target_id=r[3],
                correlation_id=r[4] or "",
                metadata=dict(r[5] or {}),
                created_at=r[6],
            )
            for r in rows
        ]
