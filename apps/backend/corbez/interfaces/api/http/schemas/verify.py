"""
===============================================================================
TARJETA CRC — schemas/verify.py
===============================================================================

Responsabilidades:
  - DTOs de respuesta de los endpoints públicos de verificación.
  - Documentar el contrato en OpenAPI (los errores van como RFC7807).
===============================================================================
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class EmployeeSummary(BaseModel):
    id: str
    company_id: str
    status: str


class CouponSummary(BaseModel):
    code: str
    status: str
    claimed_at: Optional[str] = None
    expires_at: Optional[str] = None


class MerchantSummary(BaseModel):
    id: str
    business_name: Optional[str] = None


class UsageSummary(BaseModel):
    used_this_month: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    can_use: bool
    resets_on: Optional[str] = None


class CouponVerificationResponse(BaseModel):
    valid: bool = True
    coupon: CouponSummary
    employee: EmployeeSummary
    merchant: MerchantSummary
    discount: Optional[dict[str, Any]] = None
    usage: UsageSummary


class PassVerificationResponse(BaseModel):
    valid: bool = True
    pass_id: str
    employee: EmployeeSummary
    issued_at: Optional[str] = None
