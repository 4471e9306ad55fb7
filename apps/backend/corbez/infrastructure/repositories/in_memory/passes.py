"""In-memory EmployeePassRepository (un único pase ACTIVE por empleado)."""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from threading import Lock
from typing import Dict, Optional

from ....domain.entities import EmployeePass, PassStatus


class InMemoryEmployeePassRepository:
    def __init__(self) -> None:
        self._lock = Lock()
        self._passes: Dict[str, EmployeePass] = {}

    def get_by_pass_id(self, pass_id: str) -> Optional[EmployeePass]:
        with self._lock:
            found = self._passes.get(pass_id)
            return deepcopy(found) if found is not None else None

    def get_active_for_employee(self, employee_id) -> Optional[EmployeePass]:
        with self._lock:
            for employee_pass in self._passes.values():
                if employee_pass.employee_id == employee_id and employee_pass.is_active:
                    return deepcopy(employee_pass)
        return None

    def create_if_no_active(self, employee_pass: EmployeePass) -> bool:
        with self._lock:
            if any(
                p.employee_id == employee_pass.employee_id and p.is_active
                for p in self._passes.values()
            ):
                return False
            self._passes[employee_pass.pass_id] = deepcopy(employee_pass)
            return True

    def revoke_for_employee(self, employee_id, at: datetime) -> int:
        revoked = 0
        with self._lock:
            for employee_pass in self._passes.values():
                if employee_pass.employee_id == employee_id and employee_pass.is_active:
                    employee_pass.status = PassStatus.REVOKED
                    employee_pass.revoked_at = at
                    revoked += 1
        return revoked
