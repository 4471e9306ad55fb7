"""
PostgresEmployeePassRepository (tabla employee_passes).

- create_if_no_active: `ON CONFLICT DO NOTHING` contra el índice único
  parcial `ux_employee_passes_active` (employee_id) WHERE ACTIVE.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from psycopg.types.json import Jsonb

from ....domain.entities import EmployeePass, PassStatus
from ._base import PostgresRepository


class PostgresEmployeePassRepository(PostgresRepository):
    _COLUMNS = """
        id, pass_id, employee_id, user_id, company_id, status, signature,
        signed_payload, issued_at, revoked_at
    """

    @staticmethod
    def _row_to_pass(row: tuple) -> EmployeePass:
        (
            row_id,
            pass_id,
            employee_id,
            user_id,
            company_id,
            status,
            signature,
            signed_payload,
            issued_at,
            revoked_at,
        ) = row
        return EmployeePass(
            id=row_id,
            pass_id=pass_id,
            employee_id=employee_id,
            user_id=user_id,
            company_id=company_id,
            status=PassStatus(status),
            signature=signature,
            signed_payload=dict(signed_payload or {}),
            issued_at=issued_at,
            revoked_at=revoked_at,
        )

    def get_by_pass_id(self, pass_id: str) -> Optional[EmployeePass]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM employee_passes WHERE pass_id = %s",
            [pass_id],
            error_message="PostgresEmployeePassRepository: Failed to get pass",
            extra={"pass_id": pass_id},
        )
        return self._row_to_pass(row) if row else None

    def get_active_for_employee(self, employee_id: UUID) -> Optional[EmployeePass]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM employee_passes "
            "WHERE employee_id = %s AND status = 'ACTIVE'",
            [employee_id],
            error_message="PostgresEmployeePassRepository: Failed to get active pass",
            extra={"employee_id": str(employee_id)},
        )
        return self._row_to_pass(row) if row else None

    def create_if_no_active(self, employee_pass: EmployeePass) -> bool:
        inserted = self._execute_rowcount(
            """
            INSERT INTO employee_passes (
                id, pass_id, employee_id, user_id, company_id, status, signature,
                signed_payload, issued_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
            ON CONFLICT (employee_id) WHERE status = 'ACTIVE' DO NOTHING
            """,
            [
                employee_pass.id,
                employee_pass.pass_id,
                employee_pass.employee_id,
                employee_pass.user_id,
                employee_pass.company_id,
                employee_pass.status.value,
                employee_pass.signature,
                Jsonb(employee_pass.signed_payload),
                employee_pass.issued_at,
            ],
            error_message="PostgresEmployeePassRepository: Failed to create pass",
            extra={"employee_id": str(employee_pass.employee_id)},
        )
        return inserted == 1

    def revoke_for_employee(self, employee_id: UUID, at: datetime) -> int:
        return self._execute_rowcount(
            """
            UPDATE employee_passes
            SET status = 'REVOKED', revoked_at = %s
            WHERE employee_id = %s AND status = 'ACTIVE'
            """,
            [at, employee_id],
            error_message="PostgresEmployeePassRepository: Failed to revoke pass",
            extra={"employee_id": str(employee_id)},
        )
