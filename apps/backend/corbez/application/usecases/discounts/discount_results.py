"""
===============================================================================
DISCOUNT USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Contrato estable de resultados y errores para los casos de uso de
    descuentos (alta, edición, toggle, borrado, listados, ahorro estimado).

Why:
    - Los use cases devuelven resultados tipados en lugar de lanzar excepciones,
      lo que simplifica el mapeo a HTTP y los tests de flujo.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
    discount_results models (module)

Responsibilities:
    - DiscountErrorCode: categorías estables de error.
    - DiscountError (code + message).
    - DiscountResult / DiscountListResult / DeleteDiscountResult /
      CompanySavingsResult.

Collaborators:
    - domain.entities.Discount
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List
from uuid import UUID

from ....domain.entities import Discount


class DiscountErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: campos inválidos para el tipo de descuento.
      - NOT_FOUND: descuento/comercio inexistente o de otro comercio.
      - CONFLICT: segundo BASE para el mismo comercio.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class DiscountError:
    code: DiscountErrorCode
    message: str


@dataclass
class DiscountResult:
    discount: Discount | None = None
    error: DiscountError | None = None


@dataclass
class DiscountListResult:
    discounts: List[Discount]
    error: DiscountError | None = None


@dataclass
class DeleteDiscountResult:
    deleted: bool
    error: DiscountError | None = None


@dataclass(frozen=True)
class MerchantSavings:
    merchant_id: UUID
    merchant_name: str
    discount_id: UUID
    discount_percentage: int
    estimated_savings: float


@dataclass
class CompanySavingsResult:
    total_monthly_savings: float = 0.0
    employee_count: int = 0
    breakdown: List[MerchantSavings] = field(default_factory=list)
    error: DiscountError | None = None


def validation_error(message: str) -> DiscountError:
    return DiscountError(code=DiscountErrorCode.VALIDATION_ERROR, message=message)


def not_found(message: str = "Discount not found") -> DiscountError:
    return DiscountError(code=DiscountErrorCode.NOT_FOUND, message=message)


def conflict(message: str) -> DiscountError:
    return DiscountError(code=DiscountErrorCode.CONFLICT, message=message)
