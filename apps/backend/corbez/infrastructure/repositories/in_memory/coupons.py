"""
============================================================
TARJETA CRC — in_memory/coupons.py
============================================================
Class: InMemoryCouponRepository

Responsibilities:
  - create_if_no_active: insert condicional atómico (a lo sumo un ACTIVE
    por (employee_id, merchant_id)), como el índice único parcial.
  - Cancelaciones en bloque para las cascadas de moderación.
  - Índice secundario por código (get_by_code).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ....domain.entities import ClaimedCoupon, CouponStatus
from ._versioned import VersionedInMemoryStore


class InMemoryCouponRepository(VersionedInMemoryStore[ClaimedCoupon]):
    def _active_for(self, employee_id: UUID, merchant_id: UUID) -> Optional[ClaimedCoupon]:
        # R: Llamar con el lock tomado.
        for coupon in self._rows.values():
            if (
                coupon.employee_id == employee_id
                and coupon.merchant_id == merchant_id
                and coupon.status == CouponStatus.ACTIVE
            ):
                return coupon
        return None

    def get_by_code(self, code: str) -> Optional[ClaimedCoupon]:
        matches = self._select(lambda c: c.unique_code == code)
        return matches[0] if matches else None

    def create_if_no_active(self, coupon: ClaimedCoupon) -> bool:
        with self._lock:
            if self._active_for(coupon.employee_id, coupon.merchant_id) is not None:
                return False
            self.add(coupon)
            return True

    def find_active(
        self, employee_id: UUID, merchant_id: UUID
    ) -> Optional[ClaimedCoupon]:
        matches = self._select(
            lambda c: c.employee_id == employee_id
            and c.merchant_id == merchant_id
            and c.status == CouponStatus.ACTIVE
        )
        return matches[0] if matches else None

    def list_by_employee(
        self, employee_id: UUID, *, status: CouponStatus | None = None
    ) -> List[ClaimedCoupon]:
        return self._select(
            lambda c: c.employee_id == employee_id
            and (status is None or c.status == status)
        )

    def _cancel(self, employee_id: UUID, at: datetime, *, only_active: bool) -> List[ClaimedCoupon]:
        cancelled: List[ClaimedCoupon] = []
        with self._lock:
            for coupon in self._rows.values():
                if coupon.employee_id != employee_id:
                    continue
                if coupon.status == CouponStatus.CANCELLED:
                    continue
                if only_active and coupon.status != CouponStatus.ACTIVE:
                    continue
                coupon.status = CouponStatus.CANCELLED
                coupon.updated_at = at
                coupon.version += 1
                cancelled.append(coupon)
            return [self.get(c.id) for c in cancelled]

    def cancel_active_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        return self._cancel(employee_id, at, only_active=True)

    def cancel_all_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        return self._cancel(employee_id, at, only_active=False)

    def list_expired_active(self, now: datetime) -> List[ClaimedCoupon]:
        return self._select(
            lambda c: c.status == CouponStatus.ACTIVE and c.is_expired(now)
        )
