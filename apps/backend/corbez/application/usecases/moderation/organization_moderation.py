"""
===============================================================================
USE CASES: Merchant / Company moderation
===============================================================================

Business Goal:
    Suspender o reactivar comercios y empresas. Una empresa suspendida deja
    a todos sus empleados ACTIVE en INACTIVE.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    SuspendMerchantUseCase, ReactivateMerchantUseCase,
    SuspendCompanyUseCase, ReactivateCompanyUseCase

Collaborators:
    - MerchantRepository, CompanyRepository, EmployeeRepository
    - ModerationRecorder
    - EventPublisher (merchant.updated invalida la caché de descuentos)

Notes:
    - Reactivar una empresa NO restaura a los empleados INACTIVE: la
      reactivación de cada empleado es una decisión explícita.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.entities import (
    Company,
    CompanyStatus,
    Employee,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
    ModerationActionType,
    ModerationReason,
    ModerationTargetType,
)
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import (
    CompanyRepository,
    EmployeeRepository,
    MerchantRepository,
)
from .employee_moderation import SuspendCommand
from .moderation_base import (
    ModerationPolicy,
    ModerationRecorder,
    Transition,
    apply_transition,
    invalid_transition,
)
from .moderation_results import ModerationError, ModerationResult

MERCHANT_NOT_FOUND = "Merchant not found"
COMPANY_NOT_FOUND = "Company not found"


def _publish_status(
    recorder: ModerationRecorder,
    event_type: EventType,
    key: str,
    target_id: UUID,
    transition: Transition,
    actor_id: str,
) -> None:
    recorder.events.publish_nowait(
        DomainEvent(
            type=event_type,
            payload={key: str(target_id), "status": transition.entity.status.value},
            actor_id=actor_id,
        )
    )


# =============================================================================
# Merchant
# =============================================================================


class SuspendMerchantUseCase:
    def __init__(
        self,
        merchant_repository: MerchantRepository,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        self._merchants = merchant_repository
        self._recorder = recorder
        self._policy = policy

    def execute(self, merchant_id: UUID, command: SuspendCommand) -> ModerationResult:
        now = self._recorder.clock()

        def _suspend(merchant: Merchant) -> ModerationError | None:
            merchant.status = MerchantStatus.SUSPENDED
            merchant.suspended_until = (
                command.duration.expires_from(now) if command.duration else None
            )
            merchant.suspended_reason = command.notes or command.reason.value
            return None

        outcome = apply_transition(
            self._merchants,
            merchant_id,
            _suspend,
            operation="suspend_merchant",
            not_found_message=MERCHANT_NOT_FOUND,
        )
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        _publish_status(
            self._recorder,
            EventType.MERCHANT_UPDATED,
            "merchant_id",
            merchant_id,
            outcome,
            command.actor_id,
        )
        action = self._recorder.record(
            target_type=ModerationTargetType.MERCHANT,
            target_id=merchant_id,
            action=ModerationActionType.SUSPEND,
            actor_id=command.actor_id,
            reason=command.reason,
            transition=outcome,
            notes=command.notes,
            duration=command.duration,
            appeal_days=self._policy.suspend_appeal_days,
        )
        return ModerationResult(action=action)


class ReactivateMerchantUseCase:
    def __init__(
        self, merchant_repository: MerchantRepository, recorder: ModerationRecorder
    ) -> None:
        self._merchants = merchant_repository
        self._recorder = recorder

    def execute(
        self,
        merchant_id: UUID,
        *,
        actor_id: str,
        notes: str | None = None,
        reason: ModerationReason = ModerationReason.OTHER,
    ) -> ModerationResult:
        def _reactivate(merchant: Merchant) -> ModerationError | None:
            if merchant.status == MerchantStatus.ACTIVE:
                return invalid_transition("Merchant is already active")
            merchant.status = MerchantStatus.ACTIVE
            merchant.clear_suspension()
            return None

        outcome = apply_transition(
            self._merchants,
            merchant_id,
            _reactivate,
            operation="reactivate_merchant",
            not_found_message=MERCHANT_NOT_FOUND,
        )
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        _publish_status(
            self._recorder,
            EventType.MERCHANT_UPDATED,
            "merchant_id",
            merchant_id,
            outcome,
            actor_id,
        )
        action = self._recorder.record(
            target_type=ModerationTargetType.MERCHANT,
            target_id=merchant_id,
            action=ModerationActionType.REACTIVATE,
            actor_id=actor_id,
            reason=reason,
            transition=outcome,
            notes=notes,
        )
        return ModerationResult(action=action)


# =============================================================================
# Company
# =============================================================================


class SuspendCompanyUseCase:
    def __init__(
        self,
        company_repository: CompanyRepository,
        employee_repository: EmployeeRepository,
        recorder: ModerationRecorder,
        policy: ModerationPolicy,
    ) -> None:
        self._companies = company_repository
        self._employees = employee_repository
        self._recorder = recorder
        self._policy = policy

    def _deactivate(self, employee_id: UUID) -> bool:
        def _mutate(employee: Employee) -> ModerationError | None:
            # R: Solo ACTIVE pasa a INACTIVE (suspendidos/baneados conservan su estado).
            if employee.status != EmployeeStatus.ACTIVE:
                return invalid_transition("Employee is not active")
            employee.status = EmployeeStatus.INACTIVE
            return None

        outcome = apply_transition(
            self._employees,
            employee_id,
            _mutate,
            operation="deactivate_employee",
            not_found_message="Employee not found",
        )
        return not isinstance(outcome, ModerationError)

    def execute(self, company_id: UUID, command: SuspendCommand) -> ModerationResult:
        now = self._recorder.clock()

        def _suspend(company: Company) -> ModerationError | None:
            company.status = CompanyStatus.SUSPENDED
            company.suspended_until = (
                command.duration.expires_from(now) if command.duration else None
            )
            company.suspended_reason = command.notes or command.reason.value
            return None

        outcome = apply_transition(
            self._companies,
            company_id,
            _suspend,
            operation="suspend_company",
            not_found_message=COMPANY_NOT_FOUND,
        )
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        active = self._employees.list_by_company(
            company_id, status=EmployeeStatus.ACTIVE
        )
        deactivated = sum(1 for employee in active if self._deactivate(employee.id))
        logger.info(
            "Company suspended",
            extra={
                "company_id": str(company_id),
                "deactivated_employees": deactivated,
            },
        )

        _publish_status(
            self._recorder,
            EventType.COMPANY_UPDATED,
            "company_id",
            company_id,
            outcome,
            command.actor_id,
        )
        action = self._recorder.record(
            target_type=ModerationTargetType.COMPANY,
            target_id=company_id,
            action=ModerationActionType.SUSPEND,
            actor_id=command.actor_id,
            reason=command.reason,
            transition=outcome,
            notes=command.notes,
            duration=command.duration,
            appeal_days=self._policy.suspend_appeal_days,
        )
        return ModerationResult(action=action, deactivated_employees=deactivated)


class ReactivateCompanyUseCase:
    def __init__(
        self, company_repository: CompanyRepository, recorder: ModerationRecorder
    ) -> None:
        self._companies = company_repository
        self._recorder = recorder

    def execute(
        self,
        company_id: UUID,
        *,
        actor_id: str,
        notes: str | None = None,
        reason: ModerationReason = ModerationReason.OTHER,
    ) -> ModerationResult:
        def _reactivate(company: Company) -> ModerationError | None:
            if company.status == CompanyStatus.ACTIVE:
                return invalid_transition("Company is already active")
            company.status = CompanyStatus.ACTIVE
            company.clear_suspension()
            return None

        outcome = apply_transition(
            self._companies,
            company_id,
            _reactivate,
            operation="reactivate_company",
            not_found_message=COMPANY_NOT_FOUND,
        )
        if isinstance(outcome, ModerationError):
            return ModerationResult(error=outcome)

        _publish_status(
            self._recorder,
            EventType.COMPANY_UPDATED,
            "company_id",
            company_id,
            outcome,
            actor_id,
        )
        action = self._recorder.record(
            target_type=ModerationTargetType.COMPANY,
            target_id=company_id,
            action=ModerationActionType.REACTIVATE,
            actor_id=actor_id,
            reason=reason,
            transition=outcome,
            notes=notes,
        )
        return ModerationResult(action=action)
