"""
===============================================================================
MODERATION USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Contrato estable para las transiciones de moderación (empleados,
    comercios, empresas), consultas de historial y apelaciones.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Responsibilities:
    - ModerationErrorCode / ModerationError.
    - ModerationResult: acción registrada + efectos de cascada.
    - ModerationListResult, ExpiredSuspensionsResult.

Collaborators:
    - domain.entities.ModerationAction
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ....domain.entities import ModerationAction


class ModerationErrorCode(str, Enum):
    """
    Códigos:
      - NOT_FOUND: target o acción inexistente.
      - INVALID_TRANSITION: el estado actual no admite la transición.
      - APPEAL_NOT_ALLOWED: no apelable, fuera de plazo o ya apelada.
    """

    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    APPEAL_NOT_ALLOWED = "APPEAL_NOT_ALLOWED"


@dataclass(frozen=True)
class ModerationError:
    code: ModerationErrorCode
    message: str


@dataclass
class ModerationResult:
    """
    Contrato:
      - action: la ModerationAction registrada (éxito).
      - auto_suspension: acción de suspensión automática disparada por WARN.
      - cancelled_coupons / revoked_passes / deactivated_employees: cascadas.
    """

    action: ModerationAction | None = None
    auto_suspension: ModerationAction | None = None
    cancelled_coupons: int = 0
    revoked_passes: int = 0
    deactivated_employees: int = 0
    error: ModerationError | None = None


@dataclass
class ModerationListResult:
    actions: List[ModerationAction] = field(default_factory=list)
    error: ModerationError | None = None


@dataclass
class ExpiredSuspensionsResult:
    employees: int = 0
    merchants: int = 0
    companies: int = 0

    @property
    def total(self) -> int:
        return self.employees + self.merchants + self.companies


def moderation_error(code: ModerationErrorCode, message: str) -> ModerationResult:
    return ModerationResult(error=ModerationError(code=code, message=message))
