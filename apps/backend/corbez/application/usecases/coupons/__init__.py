"""Coupon lifecycle use cases (public API)."""

from __future__ import annotations

from .claim_coupon import ClaimCouponUseCase
from .coupon_results import (
    ClaimResult,
    CouponError,
    CouponErrorCode,
    CouponListResult,
    CouponVerificationResult,
    CouponView,
    ExpireCouponsResult,
    RedeemResult,
    UsageStatus,
)
from .expire_coupons import ExpireCouponsUseCase
from .list_coupons import CouponLookupUseCase, ListEmployeeCouponsUseCase
from .redeem_coupon import RedeemCouponUseCase
from .regenerate_token import RegenerateCouponTokenUseCase
from .savings_report import GenerateSavingsReportUseCase, SavingsReport
from .verify_coupon import VerifyCouponUseCase

__all__ = [
    "ClaimCouponUseCase",
    "ClaimResult",
    "CouponError",
    "CouponErrorCode",
    "CouponListResult",
    "CouponLookupUseCase",
    "CouponVerificationResult",
    "CouponView",
    "ExpireCouponsResult",
    "ExpireCouponsUseCase",
    "GenerateSavingsReportUseCase",
    "ListEmployeeCouponsUseCase",
    "RedeemCouponUseCase",
    "RedeemResult",
    "RegenerateCouponTokenUseCase",
    "SavingsReport",
    "UsageStatus",
    "VerifyCouponUseCase",
]
