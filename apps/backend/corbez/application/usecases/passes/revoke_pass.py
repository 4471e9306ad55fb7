"""
USE CASE: Revoke Employee Pass

- ACTIVE -> REVOKED (condicional en el repositorio).
- Se invoca directo o como cascada de suspensión/ban.
- Limpia `pass:{pass_id}` y publica pass.revoked.
"""

from __future__ import annotations

from uuid import UUID

from ....domain.events import DomainEvent, EventType
from ....domain.repositories import EmployeePassRepository
from ....domain.services import EventPublisher, KeyValueCache
from ...cache_keys import pass_key
from ...clock import Clock, utcnow
from .pass_results import RevokePassResult


class RevokeEmployeePassUseCase:
    def __init__(
        self,
        pass_repository: EmployeePassRepository,
        cache: KeyValueCache,
        events: EventPublisher,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._passes = pass_repository
        self._cache = cache
        self._events = events
        self._clock = clock

    def execute(
        self,
        employee_id: UUID,
        *,
        reason: str = "REVOKED",
        actor_id: str | None = None,
    ) -> RevokePassResult:
        active = self._passes.get_active_for_employee(employee_id)
        revoked = self._passes.revoke_for_employee(employee_id, self._clock())
        if not revoked:
            return RevokePassResult(revoked=0)

        pass_id = active.pass_id if active is not None else None
        if pass_id:
            self._cache.delete(pass_key(pass_id))
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.PASS_REVOKED,
                payload={
                    "pass_id": pass_id,
                    "employee_id": str(employee_id),
                    "reason": reason,
                },
                actor_id=actor_id,
            )
        )
        return RevokePassResult(revoked=revoked, pass_id=pass_id)
