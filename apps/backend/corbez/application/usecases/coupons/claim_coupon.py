"""
===============================================================================
USE CASE: Claim Coupon
===============================================================================

Business Goal:
    Un empleado reclama un descuento de un comercio y recibe un cupón
    reutilizable con token firmado (QR).

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    ClaimCouponUseCase

Responsibilities:
    - Exigir acceso del empleado (AccessPolicy) => ACCESS_DENIED + razón.
    - Validar descuento (existe, es del comercio, activo) y comercio ACTIVE.
    - Generar código + firma y crear el cupón con insert condicional:
      a lo sumo UN cupón ACTIVE por (empleado, comercio).
    - Cachear `coupon:code:{code}` y publicar coupon.claimed.

Collaborators:
    - CouponRepository, DiscountRepository, MerchantRepository
    - AccessPolicy, TokenSigner, KeyValueCache, EventPublisher

Error Mapping:
    - DUPLICATE_ACTIVE_COUPON: el insert condicional perdió (o ya existía).
===============================================================================
"""

from __future__ import annotations

from uuid import UUID, uuid4

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_coupon_claim
from ....domain.entities import ClaimedCoupon, CouponStatus
from ....domain.events import DomainEvent, EventType
from ....domain.periods import period_key
from ....domain.repositories import (
    CouponRepository,
    DiscountRepository,
    MerchantRepository,
)
from ....domain.services import EventPublisher, KeyValueCache, TokenSigner
from ....domain.tokens import (
    build_coupon_payload,
    coupon_verification_url,
    generate_coupon_code,
)
from ...access_policy import AccessPolicy, describe_merchant_operation
from ...cache_keys import coupon_key
from ...clock import Clock, utcnow
from .coupon_results import ClaimResult, CouponErrorCode, coupon_error
from .coupon_usage import coupon_cache_entry

DUPLICATE_MESSAGE = "You already have an active coupon for this restaurant"


class ClaimCouponUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        discount_repository: DiscountRepository,
        merchant_repository: MerchantRepository,
        access_policy: AccessPolicy,
        signer: TokenSigner,
        cache: KeyValueCache,
        events: EventPublisher,
        *,
        public_base_url: str,
        cache_ttl_seconds: int = 86400 * 7,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._discounts = discount_repository
        self._merchants = merchant_repository
        self._access = access_policy
        self._signer = signer
        self._cache = cache
        self._events = events
        self._public_base_url = public_base_url
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    def _fail(self, code: CouponErrorCode, message: str) -> ClaimResult:
        record_coupon_claim(code.value.lower())
        return ClaimResult(error=coupon_error(code, message))

    def execute(
        self, employee_id: UUID, merchant_id: UUID, discount_id: UUID
    ) -> ClaimResult:
        decision = self._access.can_employee_access(employee_id)
        if not decision.allowed:
            return self._fail(CouponErrorCode.ACCESS_DENIED, decision.reason or "")

        discount = self._discounts.get(discount_id)
        if (
            discount is None
            or discount.merchant_id != merchant_id
            or not discount.is_active
        ):
            return self._fail(
                CouponErrorCode.DISCOUNT_UNAVAILABLE, "Discount not available"
            )

        merchant = self._merchants.get(merchant_id)
        operation = describe_merchant_operation(merchant)
        if not operation.allowed:
            return self._fail(
                CouponErrorCode.MERCHANT_UNAVAILABLE, operation.reason or ""
            )

        # R: Chequeo barato previo; la garantía real es el insert condicional.
        if self._coupons.find_active(employee_id, merchant_id) is not None:
            return self._fail(CouponErrorCode.DUPLICATE_ACTIVE_COUPON, DUPLICATE_MESSAGE)

        now = self._clock()
        coupon_id = uuid4()
        code = generate_coupon_code()
        payload = build_coupon_payload(
            coupon_id=coupon_id,
            code=code,
            employee_id=employee_id,
            merchant_id=merchant_id,
            discount_id=discount_id,
            expires_at=None,
        )
        coupon = ClaimedCoupon(
            id=coupon_id,
            employee_id=employee_id,
            merchant_id=merchant_id,
            discount_id=discount_id,
            unique_code=code,
            signature=self._signer.sign(payload),
            signed_payload=payload,
            status=CouponStatus.ACTIVE,
            expires_at=None,
            usage_history=[],
            usage_this_month=0,
            last_reset_period=period_key(now),
            claimed_at=now,
            updated_at=now,
        )

        if not self._coupons.create_if_no_active(coupon):
            logger.info(
                "Concurrent claim lost the conditional insert",
                extra={"employee_id": str(employee_id), "merchant_id": str(merchant_id)},
            )
            return self._fail(CouponErrorCode.DUPLICATE_ACTIVE_COUPON, DUPLICATE_MESSAGE)

        self._cache.set(coupon_key(code), coupon_cache_entry(coupon), self._cache_ttl_seconds)
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.COUPON_CLAIMED,
                payload={
                    "coupon_id": str(coupon.id),
                    "employee_id": str(employee_id),
                    "merchant_id": str(merchant_id),
                    "discount_id": str(discount_id),
                    "merchant_name": merchant.business_name,
                    "discount_percentage": discount.percentage,
                },
                actor_id=str(employee_id),
                occurred_at=now,
            )
        )
        return ClaimResult(
            coupon=coupon,
            verification_url=coupon_verification_url(
                self._public_base_url, code, coupon.signature
            ),
        )
