"""
============================================================
TARJETA CRC — in_memory/organizations.py
============================================================
Classes:
  - InMemoryEmployeeRepository
  - InMemoryMerchantRepository
  - InMemoryCompanyRepository

Responsibilities:
  - Implementar los puertos de domain.repositories para tests / APP_ENV=test.
  - Operaciones atómicas bajo lock: gate de primera redención e incremento
    de puntos de referido (mismas garantías que los UPDATE condicionales).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from ....domain.entities import (
    Company,
    CompanyStatus,
    Employee,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
)
from ._versioned import VersionedInMemoryStore


def _suspension_expired(entity, suspended_status, now: datetime) -> bool:
    return (
        entity.status == suspended_status
        and entity.suspended_until is not None
        and entity.suspended_until <= now
    )


class InMemoryEmployeeRepository(VersionedInMemoryStore[Employee]):
    def list_by_company(
        self, company_id: UUID, *, status: EmployeeStatus | None = None
    ) -> List[Employee]:
        rows = self._select(
            lambda e: e.company_id == company_id
            and (status is None or e.status == status)
        )
        return sorted(rows, key=lambda e: str(e.id))

    def list_expired_suspensions(self, now: datetime) -> List[Employee]:
        return self._select(
            lambda e: _suspension_expired(e, EmployeeStatus.SUSPENDED, now)
        )

    def mark_first_redemption(self, employee_id: UUID, at: datetime) -> bool:
        with self._lock:
            stored = self._rows.get(employee_id)
            if stored is None or stored.first_redeemed_at is not None:
                return False
            stored.first_redeemed_at = at
            stored.version += 1
            return True

    def credit_referral_points(self, employee_id: UUID, points: int) -> bool:
        with self._lock:
            stored = self._rows.get(employee_id)
            if stored is None:
                return False
            stored.referral_points += points
            stored.version += 1
            return True


class InMemoryMerchantRepository(VersionedInMemoryStore[Merchant]):
    def list_expired_suspensions(self, now: datetime) -> List[Merchant]:
        return self._select(
            lambda m: _suspension_expired(m, MerchantStatus.SUSPENDED, now)
        )


class InMemoryCompanyRepository(VersionedInMemoryStore[Company]):
    def list_expired_suspensions(self, now: datetime) -> List[Company]:
        return self._select(
            lambda c: _suspension_expired(c, CompanyStatus.SUSPENDED, now)
        )
