"""
===============================================================================
USE CASE: Verify Coupon
===============================================================================

Business Goal:
    El comercio escanea un QR de cupón y necesita saber si es auténtico y
    utilizable AHORA, con el motivo exacto si no lo es.

Flow:
    1) Firma ausente -> INVALID_DATA.
    2) Registro: caché `coupon:code:{code}` primero; el store decide.
    3) Firma sobre el payload guardado -> INVALID_SIGNATURE.
    4) Estado: CANCELLED / EXPIRED (o expiración vencida) / NOT_ACTIVE.
    5) Empleado no ACTIVE -> EMPLOYEE_INACTIVE.
    6) OK: resumen de empleado / comercio / descuento + uso del mes.

Notes:
    - Solo lectura: verificar no redime ni transiciona el cupón.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ....crosscutting.metrics import record_token_verification
from ....domain.entities import ClaimedCoupon, CouponStatus, Discount, Employee, Merchant
from ....domain.repositories import (
    CouponRepository,
    DiscountRepository,
    EmployeeRepository,
    MerchantRepository,
)
from ....domain.services import KeyValueCache, TokenSigner
from ...access_policy import describe_employee_access
from ...cache_keys import coupon_key
from ...clock import Clock, utcnow
from .coupon_results import (
    CouponErrorCode,
    CouponVerificationResult,
    UsageStatus,
    coupon_error,
)
from .coupon_usage import coupon_cache_entry, usage_status


def _summary(
    coupon: ClaimedCoupon,
    employee: Employee,
    merchant: Optional[Merchant],
    discount: Optional[Discount],
    usage: UsageStatus,
) -> Dict[str, Any]:
    return {
        "coupon": {
            "code": coupon.unique_code,
            "status": coupon.status.value,
            "claimed_at": coupon.claimed_at.isoformat() if coupon.claimed_at else None,
            "expires_at": coupon.expires_at.isoformat() if coupon.expires_at else None,
        },
        "employee": {
            "id": str(employee.id),
            "company_id": str(employee.company_id),
            "status": employee.status.value,
        },
        "merchant": {
            "id": str(coupon.merchant_id),
            "business_name": merchant.business_name if merchant else None,
        },
        "discount": (
            {
                "id": str(discount.id),
                "type": discount.type.value,
                "percentage": discount.percentage,
                "perk_description": discount.perk_description,
            }
            if discount
            else None
        ),
        "usage": usage.to_dict(),
    }


class VerifyCouponUseCase:
    def __init__(
        self,
        coupon_repository: CouponRepository,
        employee_repository: EmployeeRepository,
        merchant_repository: MerchantRepository,
        discount_repository: DiscountRepository,
        signer: TokenSigner,
        cache: KeyValueCache,
        *,
        cache_ttl_seconds: int = 86400 * 7,
        clock: Clock = utcnow,
    ) -> None:
        self._coupons = coupon_repository
        self._employees = employee_repository
        self._merchants = merchant_repository
        self._discounts = discount_repository
        self._signer = signer
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    def _fail(self, code: CouponErrorCode, message: str) -> CouponVerificationResult:
        record_token_verification("coupon", code.value.lower())
        return CouponVerificationResult(error=coupon_error(code, message))

    def execute(self, code: str, signature: str | None) -> CouponVerificationResult:
        if not signature:
            return self._fail(CouponErrorCode.INVALID_DATA, "Signature is required")

        cached = self._cache.get(coupon_key(code))
        if isinstance(cached, dict) and cached.get("signed_payload"):
            if not self._signer.verify(cached["signed_payload"], signature):
                return self._fail(CouponErrorCode.INVALID_SIGNATURE, "Invalid signature")

        coupon = self._coupons.get_by_code(code)
        if coupon is None:
            return self._fail(CouponErrorCode.NOT_FOUND, "Coupon not found")
        if cached is None:
            self._cache.set(
                coupon_key(code), coupon_cache_entry(coupon), self._cache_ttl_seconds
            )

        if not self._signer.verify(coupon.signed_payload, signature):
            return self._fail(CouponErrorCode.INVALID_SIGNATURE, "Invalid signature")

        now = self._clock()
        if coupon.status == CouponStatus.CANCELLED:
            return self._fail(CouponErrorCode.CANCELLED, "Coupon has been cancelled")
        if coupon.status == CouponStatus.EXPIRED or coupon.is_expired(now):
            return self._fail(CouponErrorCode.EXPIRED, "Coupon has expired")
        if coupon.status != CouponStatus.ACTIVE:
            return self._fail(
                CouponErrorCode.NOT_ACTIVE, f"Coupon is {coupon.status.value.lower()}"
            )

        employee = self._employees.get(coupon.employee_id)
        decision = describe_employee_access(employee)
        if not decision.allowed or employee is None:
            return self._fail(
                CouponErrorCode.EMPLOYEE_INACTIVE,
                decision.reason or "Employee account is not active",
            )

        discount = self._discounts.get(coupon.discount_id)
        merchant = self._merchants.get(coupon.merchant_id)
        limit = discount.monthly_usage_limit if discount else None
        record_token_verification("coupon", "valid")
        return CouponVerificationResult(
            summary=_summary(coupon, employee, merchant, discount, usage_status(coupon, limit, now))
        )
