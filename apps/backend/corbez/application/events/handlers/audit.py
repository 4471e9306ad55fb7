"""
===============================================================================
TARJETA CRC — application/events/handlers/audit.py
===============================================================================

Responsabilidades:
  - Traducir DomainEvent -> AuditEvent (actor/action/target/metadata).
  - Persistir vía AuditEventRepository.

Colaboradores:
  - domain.audit.AuditEvent
  - domain.repositories.AuditEventRepository
  - application.events.dispatcher (aísla y loguea las fallas de este handler)

Decisiones:
  - Sin PII innecesaria: los emails no pasan a metadata.
  - Metadata sanitizada a valores serializables.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Callable
from uuid import uuid4

from ....domain.audit import AuditEvent
from ....domain.entities import SYSTEM_ACTOR
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import AuditEventRepository

# R: Orden de preferencia para elegir el target de la auditoría.
_TARGET_KEYS = (
    "coupon_id",
    "pass_id",
    "discount_id",
    "target_id",
    "referrer_id",
    "merchant_id",
    "company_id",
    "employee_id",
)
_PII_KEYS = frozenset({"email", "to"})


def _sanitize(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    return str(value)


def build_audit_event(event: DomainEvent) -> AuditEvent:
    target_id = next(
        (str(event.payload[k]) for k in _TARGET_KEYS if event.payload.get(k)),
        None,
    )
    metadata = {
        k: v for k, v in event.payload.items() if k not in _PII_KEYS
    }
    metadata["event_id"] = event.event_id
    return AuditEvent(
        id=uuid4(),
        actor=event.actor_id or SYSTEM_ACTOR,
        action=event.type.value,
        target_id=target_id,
        correlation_id=event.correlation_id,
        metadata=_sanitize(metadata),
        created_at=event.occurred_at,
    )


AUDITED_EVENTS = tuple(EventType)


def make_audit_handler(
    repository: AuditEventRepository,
) -> Callable[[DomainEvent], None]:
    def handle_audit(event: DomainEvent) -> None:
        repository.record_event(build_audit_event(event))

    return handle_audit
