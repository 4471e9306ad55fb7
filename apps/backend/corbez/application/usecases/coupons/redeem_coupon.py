"""
===============================================================================
USE CASE: Redeem Coupon
===============================================================================

Business Goal:
    El comercio registra un uso del cupón. El cupón sigue ACTIVE (es
    reutilizable); solo se limita por el tope mensual del descuento.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    RedeemCouponUseCase

Responsibilities:
    - Validar código, comercio (debe poder operar), estado, expiración y
      acceso del empleado.
    - Rollover lazy del contador mensual y chequeo del límite.
    - Persistir el uso con escritura condicional (reintento ante conflicto):
      dos redenciones concurrentes nunca superan el límite.
    - Bonus de primer uso + puntos de referido, UNA vez en la vida del
      empleado (gate atómico `first_redeemed_at IS NULL`).
    - Invalidar `coupon:code:{code}` y publicar coupon.redeemed.

Collaborators:
    - CouponRepository, DiscountRepository, EmployeeRepository
    - AccessPolicy, KeyValueCache, EventPublisher
    - application.concurrency.run_with_conflict_retry
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_coupon_redemption
from ....domain.discount_policy import effective_percentage
from ....domain.entities import (
    ClaimedCoupon,
    CouponStatus,
    Discount,
    UsageEntry,
)
from ....domain.events import DomainEvent, EventType
from ....domain.periods import period_key
from ....domain.repositories import (
    CouponRepository,
    DiscountRepository,
    EmployeeRepository,
)
from ....domain.services import EventPublisher, KeyValueCache
from ...access_policy import AccessPolicy
from ...cache_keys import coupon_key
from ...clock import Clock, utcnow
from ...concurrency import conflict, run_with_conflict_retry
from .coupon_results import CouponError, CouponErrorCode, RedeemResult, coupon_error


@dataclass
class _Redeemed:
    coupon: ClaimedCoupon
    discount: Optional[Discount]
    limit: Optional[int]


class RedeemCouponUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        discount_repository: DiscountRepository,
        employee_repository: EmployeeRepository,
        access_policy: AccessPolicy,
        cache: KeyValueCache,
        events: EventPublisher,
        *,
        referral_points: int = 100,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._discounts = discount_repository
        self._employees = employee_repository
        self._access = access_policy
        self._cache = cache
        self._events = events
        self._referral_points = referral_points
        self._clock = clock

    def _fail(self, error: CouponError, **extra) -> RedeemResult:
        record_coupon_redemption(error.code.value.lower())
        return RedeemResult(error=error, **extra)

    def _expire(self, coupon: ClaimedCoupon, now: datetime) -> None:
        expected_version = coupon.version
        coupon.status = CouponStatus.EXPIRED
        coupon.updated_at = now
        if not self._coupons.save(coupon, expected_version=expected_version):
            raise conflict("expire_coupon")
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.COUPON_EXPIRED,
                payload={
                    "coupon_id": str(coupon.id),
                    "code": coupon.unique_code,
                    "employee_id": str(coupon.employee_id),
                    "merchant_id": str(coupon.merchant_id),
                },
                occurred_at=now,
            )
        )

    def _record_use(
        self, code: str, merchant_id: UUID, notes: str | None, now: datetime
    ) -> Union[_Redeemed, CouponError]:
        coupon = self._coupons.get_by_code(code)
        if coupon is None:
            return coupon_error(CouponErrorCode.NOT_FOUND, "Coupon not found")
        if coupon.merchant_id != merchant_id:
            return coupon_error(
                CouponErrorCode.WRONG_MERCHANT, "This coupon is not for your restaurant"
            )
        operation = self._access.can_merchant_operate(merchant_id)
        if not operation.allowed:
            return coupon_error(
                CouponErrorCode.MERCHANT_UNAVAILABLE, operation.reason or ""
            )
        if coupon.status != CouponStatus.ACTIVE:
            return coupon_error(
                CouponErrorCode.NOT_ACTIVE, f"Coupon is {coupon.status.value.lower()}"
            )
        if coupon.is_expired(now):
            self._expire(coupon, now)
            return coupon_error(CouponErrorCode.EXPIRED, "Coupon has expired")

        decision = self._access.can_employee_access(coupon.employee_id)
        if not decision.allowed:
            return coupon_error(CouponErrorCode.ACCESS_DENIED, decision.reason or "")

        discount = self._discounts.get(coupon.discount_id)
        limit = discount.monthly_usage_limit if discount is not None else None

        current = period_key(now)
        coupon.roll_period(current)
        if limit is not None and coupon.usage_this_month >= limit:
            return coupon_error(
                CouponErrorCode.MONTHLY_LIMIT_REACHED,
                f"Monthly limit reached ({limit} uses). Resets next month.",
            )

        expected_version = coupon.version
        coupon.record_use(UsageEntry(redeemed_at=now, period_key=current, notes=notes))
        if not self._coupons.save(coupon, expected_version=expected_version):
            raise conflict("redeem_coupon")
        return _Redeemed(coupon=coupon, discount=discount, limit=limit)

    def _credit_referrer(self, employee_id: UUID, now: datetime) -> None:
        employee = self._employees.get(employee_id)
        if employee is None or employee.referred_by is None:
            return
        referrer_id = employee.referred_by
        if not self._employees.credit_referral_points(referrer_id, self._referral_points):
            logger.warning(
                "Referrer not found, referral points not credited",
                extra={"employee_id": str(employee_id), "referrer_id": str(referrer_id)},
            )
            return
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.REFERRAL_POINTS_EARNED,
                payload={
                    "referrer_id": str(referrer_id),
                    "referred_employee_id": str(employee_id),
                    "points": self._referral_points,
                },
                occurred_at=now,
            )
        )

    def execute(
        self, code: str, merchant_id: UUID, *, notes: str | None = None
    ) -> RedeemResult:
        now = self._clock()
        outcome = run_with_conflict_retry(
            "redeem_coupon", lambda: self._record_use(code, merchant_id, notes, now)
        )
        if isinstance(outcome, CouponError):
            if outcome.code == CouponErrorCode.MONTHLY_LIMIT_REACHED:
                return self._fail(outcome, remaining_uses=0)
            return self._fail(outcome)

        coupon, discount = outcome.coupon, outcome.discount
        base = discount.percentage if discount is not None else 0
        bonus = 0
        # R: Gate de por vida: solo el primer uso del empleado gana (una vez).
        if self._employees.mark_first_redemption(coupon.employee_id, now):
            if discount is not None and discount.first_time_bonus_percentage:
                bonus = discount.first_time_bonus_percentage
            self._credit_referrer(coupon.employee_id, now)

        total = effective_percentage(base, bonus)
        remaining = (
            None if outcome.limit is None else max(outcome.limit - coupon.usage_this_month, 0)
        )

        self._cache.delete(coupon_key(code))
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.COUPON_REDEEMED,
                payload={
                    "coupon_id": str(coupon.id),
                    "employee_id": str(coupon.employee_id),
                    "merchant_id": str(coupon.merchant_id),
                    "discount_id": str(coupon.discount_id),
                    "bonus_applied": bonus > 0,
                    "total_discount": total,
                },
                occurred_at=now,
            )
        )
        return RedeemResult(
            coupon=coupon,
            remaining_uses=remaining,
            bonus_applied=bonus > 0,
            bonus_percentage=bonus,
            total_discount=total,
        )
