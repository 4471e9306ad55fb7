"""
===============================================================================
USE CASES: Warn / Suspend / Unsuspend / Ban Employee
===============================================================================

Business Goal:
    Aplicar la máquina de estados de moderación sobre empleados, dejando un
    registro inmutable por transición y cortando el acceso en cascada
    (cupones y pase) cuando corresponde.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    WarnEmployeeUseCase, SuspendEmployeeUseCase, UnsuspendEmployeeUseCase,
    BanEmployeeUseCase

Responsibilities:
    - Transiciones con versión (apply_transition + reintento).
    - WARN: +1 warning; al llegar al umbral => suspensión automática (SYSTEM).
    - SUSPEND: cancela cupones ACTIVE, revoca el pase, apelable 14 días.
    - BAN: cancela TODOS los cupones, revoca el pase, apelable 30 días.
    - UNSUSPEND: solo desde SUSPENDED (un BAN no se revierte por acá).

Collaborators:
    - EmployeeRepository, CouponRepository
    - RevokeEmployeePassUseCase (cascada)
    - ModerationRecorder (log + moderation.action)

State Diagram:
    ACTIVE/PENDING/INACTIVE --SUSPEND--> SUSPENDED --UNSUSPEND/expiry--> ACTIVE
    any (except BANNED)     --BAN------> BANNED (terminal)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List
from uuid import UUID

from ....domain.entities import (
    SYSTEM_ACTOR,
    ClaimedCoupon,
    Duration,
    DurationUnit,
    Employee,
    EmployeeStatus,
    ModerationActionType,
    ModerationReason,
    ModerationTargetType,
)
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import CouponRepository, EmployeeRepository
from ...clock import Clock
from ..passes.revoke_pass import RevokeEmployeePassUseCase
from .moderation_base import (
    ModerationPolicy,
    ModerationRecorder,
    apply_transition,
    invalid_transition,
)
from .moderation_results import ModerationError, ModerationResult

EMPLOYEE_NOT_FOUND = "Employee not found"
AUTO_SUSPENSION_NOTES = "Automatic suspension after {count} warnings"


@dataclass(frozen=True)
class ModerationCommand:
    """Input común: quién actúa, por qué y notas libres."""

    actor_id: str
    reason: ModerationReason
    notes: str | None = None


@dataclass(frozen=True)
class SuspendCommand(ModerationCommand):
    # R: None => suspensión indefinida (sin expiración).
    duration: Duration | None = None


def _publish_cancellations(
    recorder: ModerationRecorder,
    coupons: List[ClaimedCoupon],
    *,
    reason: str,
    actor_id: str,
) -> None:
    for coupon in coupons:
        recorder.events.publish_nowait(
            DomainEvent(
                type=EventType.COUPON_CANCELLED,
                payload={
                    "coupon_id": str(coupon.id),
                    "code": coupon.unique_code,
                    "employee_id": str(coupon.employee_id),
                    "merchant_id": str(coupon.merchant_id),
                    "reason": reason,
                },
                actor_id=actor_id,
            )
        )


class _EmployeeModeration:
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        self._employees = employee_repository
        self._recorder = recorder
        self._policy = policy

    @property
    def _clock(self) -> Clock:
        return self._recorder.clock

    def _transition(self, employee_id: UUID, mutate, operation: str):
        return apply_transition(
            self._employees,
            employee_id,
            mutate,
            operation=operation,
            not_found_message=EMPLOYEE_NOT_FOUND,
        )


class SuspendEmployeeUseCase(_EmployeeModeration):
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        coupon_repository: CouponRepository,
        revoke_pass: RevokeEmployeePassUseCase,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        super().__init__(employee_repository, recorder, policy)
        self._coupons = coupon_repository
        self._revoke_pass = revoke_pass

    def execute(self, employee_id: UUID, command: SuspendCommand) -> ModerationResult:
        now = self._clock()
        duration = command.duration

        def _suspend(employee: Employee) -> ModerationError | None:
            if employee.status == EmployeeStatus.BANNED:
                return invalid_transition("Cannot suspend a banned employee")
            employee.status = EmployeeStatus.SUSPENDED
            employee.suspended_until = duration.expires_from(now) if duration else None
            employee.suspended_reason = command.notes or command.reason.value
            return None

        outcome = self._transition(employee_id, _suspend, "suspend_employee")
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        cancelled = self._coupons.cancel_active_for_employee(employee_id, now)
        _publish_cancellations(
            self._recorder, cancelled, reason="SUSPENDED", actor_id=command.actor_id
        )
        revoked = self._revoke_pass.execute(
            employee_id, reason="SUSPENDED", actor_id=command.actor_id
        )

        action = self._recorder.record(
            target_type=ModerationTargetType.EMPLOYEE,
            target_id=employee_id,
            action=ModerationActionType.SUSPEND,
            actor_id=command.actor_id,
            reason=command.reason,
            transition=outcome,
            notes=command.notes,
            duration=duration,
            appeal_days=self._policy.suspend_appeal_days,
        )
        return ModerationResult(
            action=action,
            cancelled_coupons=len(cancelled),
            revoked_passes=revoked.revoked,
        )


class WarnEmployeeUseCase(_EmployeeModeration):
    """
    Incrementa warning_count. Al alcanzar el umbral dispara una suspensión
    automática de `auto_suspend_days` días con actor SYSTEM.
    """

    def __init__(
        self,
        employee_repository: EmployeeRepository,
        suspend: SuspendEmployeeUseCase,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        super().__init__(employee_repository, recorder, policy)
        self._suspend = suspend

    def execute(self, employee_id: UUID, command: ModerationCommand) -> ModerationResult:
        def _warn(employee: Employee) -> ModerationError | None:
            employee.warning_count += 1
            return None

        outcome = self._transition(employee_id, _warn, "warn_employee")
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        action = self._recorder.record(
            target_type=ModerationTargetType.EMPLOYEE,
            target_id=employee_id,
            action=ModerationActionType.WARN,
            actor_id=command.actor_id,
            reason=command.reason,
            transition=outcome,
            notes=command.notes,
        )
        result = ModerationResult(action=action)

        employee: Employee = outcome.entity
        if (
            employee.warning_count >= self._policy.warning_threshold
            and employee.status != EmployeeStatus.BANNED
        ):
            auto = self._suspend.execute(
                employee_id,
                SuspendCommand(
                    actor_id=SYSTEM_ACTOR,
                    reason=ModerationReason.AUTO_WARNINGS,
                    notes=AUTO_SUSPENSION_NOTES.format(count=employee.warning_count),
                    duration=Duration(
                        value=self._policy.auto_suspend_days, unit=DurationUnit.DAYS
                    ),
                ),
            )
            if auto.error is None:
                result.auto_suspension = auto.action
                result.cancelled_coupons = auto.cancelled_coupons
                result.revoked_passes = auto.revoked_passes
        return result


class UnsuspendEmployeeUseCase(_EmployeeModeration):
    def execute(
        self,
        employee_id: UUID,
        *,
        actor_id: str,
        notes: str | None = None,
        reason: ModerationReason = ModerationReason.OTHER,
    ) -> ModerationResult:
        def _unsuspend(employee: Employee) -> ModerationError | None:
            if employee.status != EmployeeStatus.SUSPENDED:
                return invalid_transition("Employee is not suspended")
            employee.status = EmployeeStatus.ACTIVE
            employee.clear_suspension()
            return None

        outcome = self._transition(employee_id, _unsuspend, "unsuspend_employee")
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        action = self._recorder.record(
            target_type=ModerationTargetType.EMPLOYEE,
            target_id=employee_id,
            action=ModerationActionType.UNSUSPEND,
            actor_id=actor_id,
            reason=reason,
            transition=outcome,
            notes=notes,
        )
        return ModerationResult(action=action)


class BanEmployeeUseCase(_EmployeeModeration):
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        coupon_repository: CouponRepository,
        revoke_pass: RevokeEmployeePassUseCase,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        super().__init__(employee_repository, recorder, policy)
        self._coupons = coupon_repository
        self._revoke_pass = revoke_pass

    def execute(self, employee_id: UUID, command: ModerationCommand) -> ModerationResult:
        now = self._clock()

        def _ban(employee: Employee) -> ModerationError | None:
            if employee.status == EmployeeStatus.BANNED:
                return invalid_transition("Employee is already banned")
            employee.status = EmployeeStatus.BANNED
            employee.suspended_until = None
            employee.suspended_reason = command.notes or command.reason.value
            return None

        outcome = self._transition(employee_id, _ban, "ban_employee")
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        # R: BAN cancela cupones en cualquier estado (no solo ACTIVE).
        cancelled = self._coupons.cancel_all_for_employee(employee_id, now)
        _publish_cancellations(
            self._recorder, cancelled, reason="BANNED", actor_id=command.actor_id
        )
        revoked = self._revoke_pass.execute(
            employee_id, reason="BANNED", actor_id=command.actor_id
        )

        action = self._recorder.record(
            target_type=ModerationTargetType.EMPLOYEE,
            target_id=employee_id,
            action=ModerationActionType.BAN,
            actor_id=command.actor_id,
            reason=command.reason,
            transition=outcome,
            notes=command.notes,
            duration=Duration.permanent(),
            appeal_days=self._policy.ban_appeal_days,
        )
        return ModerationResult(
            action=action,
            cancelled_coupons=len(cancelled),
            revoked_passes=revoked.revoked,
        )
