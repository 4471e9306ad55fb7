"""
Name: Cache Key Conventions

Responsibilities:
  - Única fuente de los nombres de claves de caché (use cases + handlers).

Notes:
  - Los patrones usan glob estilo Redis (`*`).
"""

from __future__ import annotations

from typing import Any


def coupon_key(code: str) -> str:
    return f"coupon:code:{code}"


def pass_key(pass_id: str) -> str:
    return f"pass:{pass_id}"


def discounts_key(merchant_id: Any, variant: str = "active") -> str:
    return f"discounts:{merchant_id}:{variant}"


def discounts_pattern(merchant_id: Any) -> str:
    return f"discounts:{merchant_id}:*"


def savings_report_key(company_id: Any, period: str) -> str:
    return f"report:savings:{company_id}:{period}"
