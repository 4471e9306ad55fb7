"""
===============================================================================
EMPLOYEE PASS USE CASE RESULTS
===============================================================================

Responsibilities:
    - PassErrorCode: razones de falla distintas y estables
      (firma inválida != no encontrado != revocado).
    - Resultados de emisión, verificación y revocación.

Collaborators:
    - domain.entities.EmployeePass
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from ....domain.entities import EmployeePass


class PassErrorCode(str, Enum):
    ACCESS_DENIED = "ACCESS_DENIED"
    INVALID_DATA = "INVALID_DATA"
    NOT_FOUND = "NOT_FOUND"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    EMPLOYEE_INACTIVE = "EMPLOYEE_INACTIVE"


@dataclass(frozen=True)
class PassError:
    code: PassErrorCode
    message: str


@dataclass
class PassResult:
    employee_pass: EmployeePass | None = None
    verification_url: str | None = None
    created: bool = False
    error: PassError | None = None


@dataclass
class PassVerificationResult:
    summary: Dict[str, Any] = field(default_factory=dict)
    error: PassError | None = None

    @property
    def valid(self) -> bool:
        return self.error is None


@dataclass
class RevokePassResult:
    revoked: int = 0
    pass_id: str | None = None


def pass_error(code: PassErrorCode, message: str) -> PassError:
    return PassError(code=code, message=message)
