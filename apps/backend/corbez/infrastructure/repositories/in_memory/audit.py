"""
In-Memory Audit Event Repository for testing and development.

NOT FOR PRODUCTION USE - data is lost on restart.
"""

from __future__ import annotations

from threading import Lock
from typing import List

from ....domain.audit import AuditEvent


class InMemoryAuditEventRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[AuditEvent] = []

    def record_event(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_events(
        self, *, action_prefix: str | None = None, limit: int = 100
    ) -> List[AuditEvent]:
        with self._lock:
            events = [
                e
                for e in self._events
                if action_prefix is None or e.action.startswith(action_prefix)
            ]
        # R: Más recientes primero.
        return list(reversed(events))[:limit]
