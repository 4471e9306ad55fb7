"""
============================================================
TARJETA CRC — repositories/postgres/organizations.py
============================================================
Classes:
  - PostgresEmployeeRepository (tabla employees)
  - PostgresMerchantRepository (tabla merchants)
  - PostgresCompanyRepository (tabla companies)

Responsibilities:
  - Mapping fila <-> entidad.
  - save(): `UPDATE ... WHERE id = %s AND version = %s` (optimistic concurrency).
  - mark_first_redemption: `UPDATE ... WHERE first_redeemed_at IS NULL`
    (gate atómico del bonus de primer uso).
  - credit_referral_points: incremento atómico en SQL.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from psycopg.types.json import Jsonb

from ....domain.entities import (
    Company,
    CompanyStatus,
    Employee,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
)
from ._base import PostgresRepository


class PostgresEmployeeRepository(PostgresRepository):
    _COLUMNS = """
        id, company_id, user_id, email, status, warning_count, suspended_until,
        suspended_reason, referred_by, referral_points, first_redeemed_at,
        created_at, version
    """

    @staticmethod
    def _row_to_employee(row: tuple) -> Employee:
        (
            employee_id,
            company_id,
            user_id,
            email,
            status,
            warning_count,
            suspended_until,
            suspended_reason,
            referred_by,
            referral_points,
            first_redeemed_at,
            created_at,
            version,
        ) = row
        return Employee(
            id=employee_id,
            company_id=company_id,
            user_id=user_id,
            email=email or "",
            status=EmployeeStatus(status),
            warning_count=warning_count,
            suspended_until=suspended_until,
            suspended_reason=suspended_reason,
            referred_by=referred_by,
            referral_points=referral_points,
            first_redeemed_at=first_redeemed_at,
            created_at=created_at,
            version=version,
        )

    def get(self, employee_id: UUID) -> Optional[Employee]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM employees WHERE id = %s",
            [employee_id],
            error_message="PostgresEmployeeRepository: Failed to get employee",
            extra={"employee_id": str(employee_id)},
        )
        return self._row_to_employee(row) if row else None

    def add(self, employee: Employee) -> None:
        self._execute_rowcount(
            """
            INSERT INTO employees (
                id, company_id, user_id, email, status, warning_count,
                suspended_until, suspended_reason, referred_by, referral_points,
                first_redeemed_at, created_at, version
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()), %s)
            """,
            [
                employee.id,
                employee.company_id,
                employee.user_id,
                employee.email,
                employee.status.value,
                employee.warning_count,
                employee.suspended_until,
                employee.suspended_reason,
                employee.referred_by,
                employee.referral_points,
                employee.first_redeemed_at,
                employee.created_at,
                employee.version,
            ],
            error_message="PostgresEmployeeRepository: Failed to add employee",
            extra={"employee_id": str(employee.id)},
        )

    def save(self, employee: Employee, *, expected_version: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE employees
            SET status = %s, warning_count = %s, suspended_until = %s,
                suspended_reason = %s, version = version + 1
            WHERE id = %s AND version = %s
            """,
            [
                employee.status.value,
                employee.warning_count,
                employee.suspended_until,
                employee.suspended_reason,
                employee.id,
                expected_version,
            ],
            error_message="PostgresEmployeeRepository: Failed to save employee",
            extra={"employee_id": str(employee.id)},
        )
        if updated != 1:
            return False
        employee.version = expected_version + 1
        return True

    def list_by_company(
        self, company_id: UUID, *, status: EmployeeStatus | None = None
    ) -> List[Employee]:
        conditions = ["company_id = %s"]
        params: list[object] = [company_id]
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM employees "
            f"WHERE {' AND '.join(conditions)} ORDER BY id",
            params,
            error_message="PostgresEmployeeRepository: Failed to list employees",
            extra={"company_id": str(company_id)},
        )
        return [self._row_to_employee(r) for r in rows]

    def list_expired_suspensions(self, now: datetime) -> List[Employee]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM employees "
            "WHERE status = 'SUSPENDED' AND suspended_until IS NOT NULL "
            "AND suspended_until <= %s ORDER BY suspended_until",
            [now],
            error_message="PostgresEmployeeRepository: Failed to list expired suspensions",
            extra={},
        )
        return [self._row_to_employee(r) for r in rows]

    def mark_first_redemption(self, employee_id: UUID, at: datetime) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE employees
            SET first_redeemed_at = %s, version = version + 1
            WHERE id = %s AND first_redeemed_at IS NULL
            """,
            [at, employee_id],
            error_message="PostgresEmployeeRepository: Failed to mark first redemption",
            extra={"employee_id": str(employee_id)},
        )
        return updated == 1

    def credit_referral_points(self, employee_id: UUID, points: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE employees
            SET referral_points = referral_points + %s, version = version + 1
            WHERE id = %s
            """,
            [points, employee_id],
            error_message="PostgresEmployeeRepository: Failed to credit referral points",
            extra={"employee_id": str(employee_id)},
        )
        return updated == 1


class PostgresMerchantRepository(PostgresRepository):
    _COLUMNS = """
        id, business_name, status, locations, avg_order_value, price_tier,
        suspended_until, suspended_reason, version
    """

    @staticmethod
    def _row_to_merchant(row: tuple) -> Merchant:
        (
            merchant_id,
            business_name,
            status,
            locations,
            avg_order_value,
            price_tier,
            suspended_until,
            suspended_reason,
            version,
        ) = row
        return Merchant(
            id=merchant_id,
            business_name=business_name,
            status=MerchantStatus(status),
            locations=list(locations or []),
            avg_order_value=float(avg_order_value) if avg_order_value is not None else None,
            price_tier=price_tier,
            suspended_until=suspended_until,
            suspended_reason=suspended_reason,
            version=version,
        )

    def get(self, merchant_id: UUID) -> Optional[Merchant]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM merchants WHERE id = %s",
            [merchant_id],
            error_message="PostgresMerchantRepository: Failed to get merchant",
            extra={"merchant_id": str(merchant_id)},
        )
        return self._row_to_merchant(row) if row else None

    def add(self, merchant: Merchant) -> None:
        self._execute_rowcount(
            """
            INSERT INTO merchants (
                id, business_name, status, locations, avg_order_value, price_tier,
                suspended_until, suspended_reason, version
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            [
                merchant.id,
                merchant.business_name,
                merchant.status.value,
                Jsonb(list(merchant.locations)),
                merchant.avg_order_value,
                merchant.price_tier,
                merchant.suspended_until,
                merchant.suspended_reason,
                merchant.version,
            ],
            error_message="PostgresMerchantRepository: Failed to add merchant",
            extra={"merchant_id": str(merchant.id)},
        )

    def save(self, merchant: Merchant, *, expected_version: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE merchants
            SET status = %s, suspended_until = %s, suspended_reason = %s,
                version = version + 1
            WHERE id = %s AND version = %s
            """,
            [
                merchant.status.value,
                merchant.suspended_until,
                merchant.suspended_reason,
                merchant.id,
                expected_version,
            ],
            error_message="PostgresMerchantRepository: Failed to save merchant",
            extra={"merchant_id": str(merchant.id)},
        )
        if updated != 1:
            return False
        merchant.version = expected_version + 1
        return True

    def list_expired_suspensions(self, now: datetime) -> List[Merchant]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM merchants "
            "WHERE status = 'SUSPENDED' AND suspended_until IS NOT NULL "
            "AND suspended_until <= %s ORDER BY suspended_until",
            [now],
            error_message="PostgresMerchantRepository: Failed to list expired suspensions",
            extra={},
        )
        return [self._row_to_merchant(r) for r in rows]


class PostgresCompanyRepository(PostgresRepository):
    _COLUMNS = "id, name, status, suspended_until, suspended_reason, version"

    @staticmethod
    def _row_to_company(row: tuple) -> Company:
        company_id, name, status, suspended_until, suspended_reason, version = row
        return Company(
            id=company_id,
            name=name,
            status=CompanyStatus(status),
            suspended_until=suspended_until,
            suspended_reason=suspended_reason,
            version=version,
        )

    def get(self, company_id: UUID) -> Optional[Company]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM companies WHERE id = %s",
            [company_id],
            error_message="PostgresCompanyRepository: Failed to get company",
            extra={"company_id": str(company_id)},
        )
        return self._row_to_company(row) if row else None

    def add(self, company: Company) -> None:
        self._execute_rowcount(
            """
            INSERT INTO companies (id, name, status, suspended_until, suspended_reason, version)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            [
                company.id,
                company.name,
                company.status.value,
                company.suspended_until,
                company.suspended_reason,
                company.version,
            ],
            error_message="PostgresCompanyRepository: Failed to add company",
            extra={"company_id": str(company.id)},
        )

    def save(self, company: Company, *, expected_version: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE companies
            SET status = %s, suspended_until = %s, suspended_reason = %s,
                version = version + 1
            WHERE id = %s AND version = %s
            """,
            [
                company.status.value,
                company.suspended_until,
                company.suspended_reason,
                company.id,
                expected_version,
            ],
            error_message="PostgresCompanyRepository: Failed to save company",
            extra={"company_id": str(company.id)},
        )
        if updated != 1:
            return False
        company.version = expected_version + 1
        return True

    def list_expired_suspensions(self, now: datetime) -> List[Company]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM companies "
            "WHERE status = 'SUSPENDED' AND suspended_until IS NOT NULL "
            "AND suspended_until <= %s ORDER BY suspended_until",
            [now],
            error_message="PostgresCompanyRepository: Failed to list expired suspensions",
            extra={},
        )
        return [self._row_to_company(r) for r in rows]
