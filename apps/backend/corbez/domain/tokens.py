"""
===============================================================================
TARJETA CRC — domain/tokens.py
===============================================================================

Responsabilidades:
    - Definir la forma de los payloads firmados (cupón y pase de empleado).
    - Generar identificadores de token (código de cupón, pass id).
    - Construir las URLs de verificación (identificador + firma).

Colaboradores:
    - domain.services.TokenSigner (firma estos payloads)
    - application/usecases/coupons, passes

Reglas:
    - Fechas en ISO-8601 UTC.
    - Código de cupón: 8 chars sin caracteres ambiguos (sin 0/O, 1/I).
    - Generación con `secrets` (CSPRNG).
===============================================================================
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

COUPON_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
COUPON_CODE_LENGTH = 8
COUPON_TOKEN_TYPE = "coupon"
PASS_TOKEN_TYPE = "employee_pass"


def iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def generate_coupon_code() -> str:
    return "".join(
        secrets.choice(COUPON_CODE_ALPHABET) for _ in range(COUPON_CODE_LENGTH)
    )


def generate_pass_id() -> str:
    return f"PASS-{secrets.token_hex(6).upper()}"


def build_coupon_payload(
    *,
    coupon_id: UUID,
    code: str,
    employee_id: UUID,
    merchant_id: UUID,
    discount_id: UUID,
    expires_at: datetime | None,
) -> dict[str, Any]:
    return {
        "type": COUPON_TOKEN_TYPE,
        "couponId": str(coupon_id),
        "code": code,
        "employeeId": str(employee_id),
        "merchantId": str(merchant_id),
        "discountId": str(discount_id),
        "expiresAt": iso_utc(expires_at) if expires_at else None,
    }


def build_pass_payload(
    *,
    pass_id: str,
    user_id: UUID,
    employee_id: UUID,
    company_id: UUID,
    issued_at: datetime,
) -> dict[str, Any]:
    return {
        "type": PASS_TOKEN_TYPE,
        "passId": pass_id,
        "userId": str(user_id),
        "employeeId": str(employee_id),
        "companyId": str(company_id),
        "issuedAt": iso_utc(issued_at),
    }


def coupon_verification_url(base_url: str, code: str, signature: str) -> str:
    return f"{base_url.rstrip('/')}/verify/coupon/{code}?s={signature}"


def pass_verification_url(base_url: str, pass_id: str, signature: str) -> str:
    return f"{base_url.rstrip('/')}/verify/employee/{pass_id}?s={signature}"
