"""
===============================================================================
TARJETA CRC — usecases/moderation/moderation_base.py
===============================================================================

Responsabilidades:
  - ModerationPolicy: constantes de negocio (umbral de warnings, ventanas de
    apelación, duración de la auto-suspensión).
  - ModerationRecorder: registrar la ModerationAction inmutable y publicar
    moderation.action (única vía de escritura del log de moderación).
  - apply_transition(): read-modify-write con versión + reintento ante conflicto.

Colaboradores:
  - ModerationActionRepository, EventPublisher
  - application.concurrency
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union
from uuid import UUID, uuid4

from ....crosscutting.config import Settings
from ....domain.entities import (
    AppealStatus,
    Duration,
    ModerationAction,
    ModerationActionType,
    ModerationReason,
    ModerationTargetType,
)
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import ModerationActionRepository
from ....domain.services import EventPublisher
from ...clock import Clock
from ...concurrency import conflict, run_with_conflict_retry
from .moderation_results import ModerationError, ModerationErrorCode


@dataclass(frozen=True)
class ModerationPolicy:
    warning_threshold: int = 3
    auto_suspend_days: int = 7
    suspend_appeal_days: int = 14
    ban_appeal_days: int = 30

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModerationPolicy":
        return cls(
            warning_threshold=settings.warning_threshold,
            auto_suspend_days=settings.auto_suspend_days,
            suspend_appeal_days=settings.suspend_appeal_days,
            ban_appeal_days=settings.ban_appeal_days,
        )


@dataclass
class Transition:
    entity: Any
    previous_state: Dict[str, Any]


Mutation = Callable[[Any], Optional[ModerationError]]


def apply_transition(
    store: Any,
    target_id: UUID,
    mutate: Mutation,
    *,
    operation: str,
    not_found_message: str,
) -> Union[Transition, ModerationError]:
    """
    R: Aplica `mutate` sobre una lectura fresca y guarda con versión esperada.

    `mutate` devuelve un ModerationError para abortar sin escribir.
    Cada reintento relee el target (el estado puede haber cambiado).
    """

    def _attempt() -> Union[Transition, ModerationError]:
        entity = store.get(target_id)
        if entity is None:
            return ModerationError(ModerationErrorCode.NOT_FOUND, not_found_message)
        previous = entity.snapshot()
        expected_version = entity.version
        problem = mutate(entity)
        if problem is not None:
            return problem
        if not store.save(entity, expected_version=expected_version):
            raise conflict(operation)
        return Transition(entity=entity, previous_state=previous)

    return run_with_conflict_retry(operation, _attempt)


def invalid_transition(message: str) -> ModerationError:
    return ModerationError(ModerationErrorCode.INVALID_TRANSITION, message)


class ModerationRecorder:
    """Escribe el log append-only y emite moderation.action."""

    def __init__(
        self,
        action_repository: ModerationActionRepository,
        events: EventPublisher,
        clock: Clock,
    ) -> None:
        self._actions = action_repository
        self._events = events
        self._clock = clock

    @property
    def events(self) -> EventPublisher:
        return self._events

    @property
    def clock(self) -> Clock:
        return self._clock

    def record(
        self,
        *,
        target_type: ModerationTargetType,
        target_id: UUID,
        action: ModerationActionType,
        actor_id: str,
        reason: ModerationReason,
        transition: Transition,
        notes: str | None = None,
        duration: Duration | None = None,
        appeal_days: int | None = None,
    ) -> ModerationAction:
        now = self._clock()
        new_state = transition.entity.snapshot()
        record = ModerationAction(
            id=uuid4(),
            target_type=target_type,
            target_id=target_id,
            action=action,
            actor_id=actor_id,
            reason=reason,
            previous_state=transition.previous_state,
            new_state=new_state,
            notes=notes,
            duration=duration,
            is_appealable=appeal_days is not None,
            appeal_deadline=(
                now + timedelta(days=appeal_days) if appeal_days is not None else None
            ),
            appeal_status=AppealStatus.NONE,
            created_at=now,
        )
        self._actions.append(record)
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.MODERATION_ACTION,
                payload={
                    "action_id": str(record.id),
                    "target_type": target_type.value,
                    "target_id": str(target_id),
                    "action": action.value,
                    "reason": reason.value,
                    "previous_status": transition.previous_state.get("status"),
                    "new_status": new_state.get("status"),
                },
                actor_id=actor_id,
                occurred_at=now,
            )
        )
        return record
