"""
USE CASE: Expire Coupons (sweep del worker)

- ACTIVE con expires_at < now -> EXPIRED, un coupon.expired por cupón.
- Escritura condicional por cupón: si otro proceso lo tocó se relee y se
  re-chequea (puede haber sido cancelado o regenerado en el medio).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.entities import CouponStatus
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import CouponRepository
from ....domain.services import EventPublisher
from ...clock import Clock, utcnow
from ...concurrency import conflict, run_with_conflict_retry
from .coupon_results import ExpireCouponsResult


class ExpireCouponsUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        events: EventPublisher,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._events = events
        self._clock = clock

    def _expire_one(self, coupon_id: UUID, now: datetime) -> bool:
        def _attempt() -> bool:
            coupon = self._coupons.get(coupon_id)
            if coupon is None or coupon.status != CouponStatus.ACTIVE:
                return False
            if not coupon.is_expired(now):
                return False
            expected_version = coupon.version
            coupon.status = CouponStatus.EXPIRED
            coupon.updated_at = now
            if not self._coupons.save(coupon, expected_version=expected_version):
                raise conflict("expire_coupons")
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
            return True

        return run_with_conflict_retry("expire_coupons", _attempt)

    def execute(self, now: datetime | None = None) -> ExpireCouponsResult:
        now = now or self._clock()
        candidates = self._coupons.list_expired_active(now)
        expired = sum(1 for coupon in candidates if self._expire_one(coupon.id, now))
        logger.info(
            "Expired coupons swept",
            extra={"candidates": len(candidates), "expired": expired},
        )
        return ExpireCouponsResult(expired=expired)
