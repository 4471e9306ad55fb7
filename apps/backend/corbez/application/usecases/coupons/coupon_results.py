"""
===============================================================================
COUPON USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Contrato estable entre los casos de uso de cupones y sus callers
    (HTTP verify, jobs, tests).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Responsibilities:
    - CouponErrorCode: razones de falla distintas (nunca un "false" genérico).
    - UsageStatus: uso del mes con rollover aplicado.
    - Resultados de claim, redeem, listado, verificación y regeneración.

Collaborators:
    - domain.entities.ClaimedCoupon
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ....domain.entities import ClaimedCoupon


class CouponErrorCode(str, Enum):
    ACCESS_DENIED = "ACCESS_DENIED"
    NOT_FOUND = "NOT_FOUND"
    WRONG_MERCHANT = "WRONG_MERCHANT"
    NOT_ACTIVE = "NOT_ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_DATA = "INVALID_DATA"
    MONTHLY_LIMIT_REACHED = "MONTHLY_LIMIT_REACHED"
    DUPLICATE_ACTIVE_COUPON = "DUPLICATE_ACTIVE_COUPON"
    DISCOUNT_UNAVAILABLE = "DISCOUNT_UNAVAILABLE"
    MERCHANT_UNAVAILABLE = "MERCHANT_UNAVAILABLE"
    EMPLOYEE_INACTIVE = "EMPLOYEE_INACTIVE"


@dataclass(frozen=True)
class CouponError:
    code: CouponErrorCode
    message: str


def coupon_error(code: CouponErrorCode, message: str) -> CouponError:
    return CouponError(code=code, message=message)


@dataclass(frozen=True)
class UsageStatus:
    """
    Uso del mes calendario actual.

    limit None => ilimitado (remaining None, can_use siempre True).
    resets_on: primer día del mes siguiente, solo si el límite está agotado.
    """

    used_this_month: int
    limit: Optional[int]
    remaining: Optional[int]
    can_use: bool
    resets_on: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used_this_month": self.used_this_month,
            "limit": self.limit,
            "remaining": self.remaining,
            "can_use": self.can_use,
            "resets_on": self.resets_on,
        }


@dataclass
class ClaimResult:
    coupon: ClaimedCoupon | None = None
    verification_url: str | None = None
    error: CouponError | None = None


@dataclass
class RedeemResult:
    """
    remaining_uses: None cuando el descuento no tiene límite mensual.
    total_discount: base + bonus (tope 100) o base si no aplica bonus.
    """

    coupon: ClaimedCoupon | None = None
    remaining_uses: Optional[int] = None
    bonus_applied: bool = False
    bonus_percentage: int = 0
    total_discount: int = 0
    error: CouponError | None = None


@dataclass
class CouponView:
    coupon: ClaimedCoupon
    usage: UsageStatus
    verification_url: str


@dataclass
class CouponListResult:
    coupons: List[CouponView] = field(default_factory=list)
    error: CouponError | None = None


@dataclass
class CouponVerificationResult:
    summary: Dict[str, Any] = field(default_factory=dict)
    error: CouponError | None = None

    @property
    def valid(self) -> bool:
        return self.error is None


@dataclass
class ExpireCouponsResult:
    expired: int = 0
