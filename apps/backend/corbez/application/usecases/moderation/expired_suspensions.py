"""
USE CASE: Process Expired Suspensions (job recurrente)

- Empleados / comercios / empresas SUSPENDED con suspended_until <= now
  vuelven a ACTIVE con una acción SYSTEM (reason EXPIRED).
- Cada target se re-chequea dentro de su transición condicional: si otro
  actor ya lo reactivó (o extendió la suspensión) se omite sin error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, List, Optional
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.entities import (
    SYSTEM_ACTOR,
    CompanyStatus,
    EmployeeStatus,
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
from .moderation_base import ModerationRecorder, apply_transition, invalid_transition
from .moderation_results import ExpiredSuspensionsResult, ModerationError

EXPIRED_NOTES = "Suspension period expired"


class ProcessExpiredSuspensionsUseCase:
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        merchant_repository: MerchantRepository,
        company_repository: CompanyRepository,
        recorder: ModerationRecorder,
    ) -> None:
        self._employees = employee_repository
        self._merchants = merchant_repository
        self._companies = company_repository
        self._recorder = recorder

    def _expire(
        self,
        store: Any,
        target_type: ModerationTargetType,
        target_id: UUID,
        suspended: Any,
        active: Any,
        now: datetime,
    ) -> bool:
        def _mutate(entity: Any) -> ModerationError | None:
            if (
                entity.status != suspended
                or entity.suspended_until is None
                or entity.suspended_until > now
            ):
                return invalid_transition("Suspension is not expired")
            entity.status = active
            entity.clear_suspension()
            return None

        outcome = apply_transition(
            store,
            target_id,
            _mutate,
            operation=f"expire_{target_type.value.lower()}_suspension",
            not_found_message=f"{target_type.value.title()} not found",
        )
        if isinstance(outcome, ModerationError):
            return False

        self._recorder.record(
            target_type=target_type,
            target_id=target_id,
            action=ModerationActionType.UNSUSPEND,
            actor_id=SYSTEM_ACTOR,
            reason=ModerationReason.EXPIRED,
            transition=outcome,
            notes=EXPIRED_NOTES,
        )
        return True

    def _sweep(
        self,
        store: Any,
        target_type: ModerationTargetType,
        suspended: Any,
        active: Any,
        now: datetime,
        on_expired: Optional[Callable[[UUID], None]] = None,
    ) -> int:
        count = 0
        candidates: List[Any] = store.list_expired_suspensions(now)
        for entity in candidates:
            if self._expire(store, target_type, entity.id, suspended, active, now):
                count += 1
                if on_expired is not None:
                    on_expired(entity.id)
        return count

    def _merchant_updated(self, merchant_id: UUID) -> None:
        self._recorder.events.publish_nowait(
            DomainEvent(
                type=EventType.MERCHANT_UPDATED,
                payload={
                    "merchant_id": str(merchant_id),
                    "status": MerchantStatus.ACTIVE.value,
                },
                actor_id=SYSTEM_ACTOR,
            )
        )

    def execute(self, now: datetime | None = None) -> ExpiredSuspensionsResult:
        now = now or self._recorder.clock()
        result = ExpiredSuspensionsResult(
            employees=self._sweep(
                self._employees,
                ModerationTargetType.EMPLOYEE,
                EmployeeStatus.SUSPENDED,
                EmployeeStatus.ACTIVE,
                now,
            ),
            merchants=self._sweep(
                self._merchants,
                ModerationTargetType.MERCHANT,
                MerchantStatus.SUSPENDED,
                MerchantStatus.ACTIVE,
                now,
                on_expired=self._merchant_updated,
            ),
            companies=self._sweep(
                self._companies,
                ModerationTargetType.COMPANY,
                CompanyStatus.SUSPENDED,
                CompanyStatus.ACTIVE,
                now,
            ),
        )
        logger.info(
            "Expired suspensions processed",
            extra={
                "employees": result.employees,
                "merchants": result.merchants,
                "companies": result.companies,
            },
        )
        return result
