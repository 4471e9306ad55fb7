"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .entities import (
    ClaimedCoupon,
    Company,
    CouponStatus,
    Discount,
    DiscountType,
    Duration,
    DurationUnit,
    Employee,
    EmployeePass,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
    ModerationAction,
    UsageEntry,
)
from .events import DomainEvent, EventType
from .periods import period_key

__all__ = [
    "ClaimedCoupon",
    "Company",
    "CouponStatus",
    "Discount",
    "DiscountType",
    "DomainEvent",
    "Duration",
    "DurationUnit",
    "Employee",
    "EmployeePass",
    "EmployeeStatus",
    "EventType",
    "Merchant",
    "MerchantStatus",
    "ModerationAction",
    "UsageEntry",
    "period_key",
]
