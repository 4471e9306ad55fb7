"""
===============================================================================
TARJETA CRC — application/access_policy.py
===============================================================================

Responsabilidades:
  - Responder "¿este empleado puede usar features?" (claim, redeem, pases).
  - Responder "¿este comercio puede operar?".
  - Dar una razón legible y específica por estado.

Colaboradores:
  - EmployeeRepository / MerchantRepository (siempre el store, nunca la caché)
  - usecases/coupons, usecases/passes, usecases/moderation

Reglas:
  - Solo ACTIVE tiene acceso.
  - La fecha de suspensión se muestra como YYYY-MM-DD (UTC);
    sin fecha => "indefinitely".
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ..domain.entities import Employee, EmployeeStatus, Merchant, MerchantStatus
from ..domain.repositories import EmployeeRepository, MerchantRepository

DEFAULT_SUSPENSION_REASON = "Policy violation"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None
    status: Optional[str] = None


def describe_employee_access(employee: Optional[Employee]) -> AccessDecision:
    """Decisión pura a partir del estado del empleado."""
    if employee is None:
        return AccessDecision(allowed=False, reason="Employee not found")

    status = employee.status
    if status == EmployeeStatus.ACTIVE:
        return AccessDecision(allowed=True, status=status.value)

    if status == EmployeeStatus.PENDING:
        reason = "Account pending activation"
    elif status == EmployeeStatus.SUSPENDED:
        until = (
            employee.suspended_until.date().isoformat()
            if employee.suspended_until
            else "indefinitely"
        )
        reason = (
            f"Account suspended until {until}. "
            f"Reason: {employee.suspended_reason or DEFAULT_SUSPENSION_REASON}"
        )
    elif status == EmployeeStatus.BANNED:
        reason = "Account permanently banned"
    else:
        reason = "Account inactive"
    return AccessDecision(allowed=False, reason=reason, status=status.value)


def describe_merchant_operation(merchant: Optional[Merchant]) -> AccessDecision:
    if merchant is None:
        return AccessDecision(allowed=False, reason="Merchant not found")
    if merchant.status == MerchantStatus.ACTIVE:
        return AccessDecision(allowed=True, status=merchant.status.value)
    return AccessDecision(
        allowed=False,
        reason=f"Merchant is {merchant.status.value.lower()}",
        status=merchant.status.value,
    )


class AccessPolicy:
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        merchant_repository: MerchantRepository,
    ) -> None:
        self._employees = employee_repository
        self._merchants = merchant_repository

    def can_employee_access(self, employee_id: UUID) -> AccessDecision:
        return describe_employee_access(self._employees.get(employee_id))

    def can_merchant_operate(self, merchant_id: UUID) -> AccessDecision:
        return describe_merchant_operation(self._merchants.get(merchant_id))
