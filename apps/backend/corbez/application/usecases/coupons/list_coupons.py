"""
USE CASES: consultas de cupones del empleado

- ListEmployeeCouponsUseCase: cupones con estado de uso del mes (rollover
  aplicado en lectura), más recientes primero.
- CouponLookupUseCase: por código, ¿tiene cupón activo en el comercio?,
  ids de comercios ya reclamados (filtro de exploración).
"""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from ....domain.entities import ClaimedCoupon, CouponStatus
from ....domain.repositories import CouponRepository, DiscountRepository
from ....domain.tokens import coupon_verification_url
from ...access_policy import AccessPolicy
from ...clock import Clock, utcnow
from .coupon_results import (
    CouponErrorCode,
    CouponListResult,
    CouponView,
    coupon_error,
)
from .coupon_usage import usage_status


class ListEmployeeCouponsUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        discount_repository: DiscountRepository,
        access_policy: AccessPolicy,
        *,
        public_base_url: str,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._discounts = discount_repository
        self._access = access_policy
        self._public_base_url = public_base_url
        self._clock = clock

    def execute(
        self, employee_id: UUID, *, status: CouponStatus | None = CouponStatus.ACTIVE
    ) -> CouponListResult:
        decision = self._access.can_employee_access(employee_id)
        if not decision.allowed:
            return CouponListResult(
                error=coupon_error(CouponErrorCode.ACCESS_DENIED, decision.reason or "")
            )

        now = self._clock()
        coupons = self._coupons.list_by_employee(employee_id, status=status)
        if status == CouponStatus.ACTIVE:
            coupons = [c for c in coupons if not c.is_expired(now)]

        limits: Dict[UUID, Optional[int]] = {}
        views: List[CouponView] = []
        for coupon in coupons:
            if coupon.discount_id not in limits:
                discount = self._discounts.get(coupon.discount_id)
                limits[coupon.discount_id] = (
                    discount.monthly_usage_limit if discount else None
                )
            views.append(
                CouponView(
                    coupon=coupon,
                    usage=usage_status(coupon, limits[coupon.discount_id], now),
                    verification_url=coupon_verification_url(
                        self._public_base_url, coupon.unique_code, coupon.signature
                    ),
                )
            )
        views.sort(key=lambda v: v.coupon.claimed_at or now, reverse=True)
        return CouponListResult(coupons=views)


class CouponLookupUseCase:
    def __init__(
        self, coupon_repository: CouponRepository, *, clock: Clock = utcnow
    ) -> None:
        self._coupons = coupon_repository
        self._clock = clock

    def by_code(self, code: str) -> Optional[ClaimedCoupon]:
        return self._coupons.get_by_code(code)

    def has_active_coupon_for_merchant(self, employee_id: UUID, merchant_id: UUID) -> bool:
        coupon = self._coupons.find_active(employee_id, merchant_id)
        return coupon is not None and not coupon.is_expired(self._clock())

    def claimed_merchant_ids(self, employee_id: UUID) -> List[UUID]:
        now = self._clock()
        active = self._coupons.list_by_employee(employee_id, status=CouponStatus.ACTIVE)
        return sorted(
            {c.merchant_id for c in active if not c.is_expired(now)}, key=str
        )
