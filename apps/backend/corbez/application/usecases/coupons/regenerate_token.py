"""
USE CASE: Regenerate Coupon Token

- Nuevo código + firma para un cupón ACTIVE del propio empleado
  (ej. QR filtrado). El historial de uso se conserva.
- La entrada de caché del código viejo se elimina; el token viejo deja de
  verificar (NOT_FOUND).
"""

from __future__ import annotations

from typing import Union
from uuid import UUID

from ....domain.entities import ClaimedCoupon, CouponStatus
from ....domain.repositories import CouponRepository
from ....domain.services import KeyValueCache, TokenSigner
from ....domain.tokens import (
    build_coupon_payload,
    coupon_verification_url,
    generate_coupon_code,
)
from ...cache_keys import coupon_key
from ...clock import Clock, utcnow
from ...concurrency import conflict, run_with_conflict_retry
from .coupon_results import ClaimResult, CouponError, CouponErrorCode, coupon_error
from .coupon_usage import coupon_cache_entry


class RegenerateCouponTokenUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        signer: TokenSigner,
        cache: KeyValueCache,
        *,
        public_base_url: str,
        cache_ttl_seconds: int = 86400 * 7,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._signer = signer
        self._cache = cache
        self._public_base_url = public_base_url
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    def execute(self, coupon_id: UUID, employee_id: UUID) -> ClaimResult:
        old_code: list[str] = []

        def _attempt() -> Union[ClaimedCoupon, CouponError]:
            coupon = self._coupons.get(coupon_id)
            # R: Cupón ajeno se reporta como inexistente.
            if coupon is None or coupon.employee_id != employee_id:
                return coupon_error(CouponErrorCode.NOT_FOUND, "Coupon not found")
            if coupon.status != CouponStatus.ACTIVE:
                return coupon_error(CouponErrorCode.NOT_ACTIVE, "Coupon is not active")

            old_code[:] = [coupon.unique_code]
            code = generate_coupon_code()
            payload = build_coupon_payload(
                coupon_id=coupon.id,
                code=code,
                employee_id=coupon.employee_id,
                merchant_id=coupon.merchant_id,
                discount_id=coupon.discount_id,
                expires_at=coupon.expires_at,
            )
            expected_version = coupon.version
            coupon.unique_code = code
            coupon.signed_payload = payload
            coupon.signature = self._signer.sign(payload)
            coupon.updated_at = self._clock()
            if not self._coupons.save(coupon, expected_version=expected_version):
                raise conflict("regenerate_coupon_token")
            return coupon

        outcome = run_with_conflict_retry("regenerate_coupon_token", _attempt)
        if isinstance(outcome, CouponError):
            return ClaimResult(error=outcome)

        if old_code:
            self._cache.delete(coupon_key(old_code[0]))
        self._cache.set(
            coupon_key(outcome.unique_code),
            coupon_cache_entry(outcome),
            self._cache_ttl_seconds,
        )
        return ClaimResult(
            coupon=outcome,
            verification_url=coupon_verification_url(
                self._public_base_url, outcome.unique_code, outcome.signature
            ),
        )
