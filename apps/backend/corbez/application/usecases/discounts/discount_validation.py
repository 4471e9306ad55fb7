"""
Name: Discount Validation

Responsibilities:
  - Validar invariantes de una regla de descuento antes de persistirla.

Rules:
  - percentage en 0..100; COMPANY_PERK siempre 0 y con perk_description.
  - COMPANY / COMPANY_PERK requieren company_id.
  - SPEND_THRESHOLD requiere min_spend > 0.
  - monthly_usage_limit en 1..100 (None = ilimitado).
  - first_time_bonus_percentage en 0..100.
"""

from __future__ import annotations

from typing import Optional

from ....domain.entities import Discount, DiscountType

MAX_MONTHLY_USAGE_LIMIT = 100


def validate_discount(discount: Discount) -> Optional[str]:
    """Devuelve el mensaje del primer error, o None si el descuento es válido."""
    if not 0 <= discount.percentage <= 100:
        return "percentage must be between 0 and 100"

    if discount.type in (DiscountType.COMPANY, DiscountType.COMPANY_PERK):
        if discount.company_id is None:
            return f"company_id is required for {discount.type.value} discounts"

    if discount.type == DiscountType.COMPANY_PERK:
        if discount.percentage != 0:
            return "COMPANY_PERK discounts must have percentage 0"
        if not (discount.perk_description or "").strip():
            return "perk_description is required for COMPANY_PERK discounts"
    elif discount.percentage == 0:
        return "percentage must be greater than 0"

    if discount.type == DiscountType.SPEND_THRESHOLD:
        if discount.min_spend is None or discount.min_spend <= 0:
            return "min_spend is required for SPEND_THRESHOLD discounts"

    limit = discount.monthly_usage_limit
    if limit is not None and not 1 <= limit <= MAX_MONTHLY_USAGE_LIMIT:
        return f"monthly_usage_limit must be between 1 and {MAX_MONTHLY_USAGE_LIMIT}"

    bonus = discount.first_time_bonus_percentage
    if bonus is not None and not 0 <= bonus <= 100:
        return "first_time_bonus_percentage must be between 0 and 100"

    return None
