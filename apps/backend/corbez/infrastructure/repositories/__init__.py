"""
============================================================
TARJETA CRC — infrastructure/repositories/__init__.py
============================================================
Responsibilities:
  - Superficie pública de repositorios (Postgres primero, luego InMemory).

Policy:
  - Solo re-exporta símbolos; sin side effects.
============================================================
"""

from .in_memory import (
    InMemoryAuditEventRepository,
    InMemoryCompanyRepository,
    InMemoryCouponRepository,
    InMemoryDiscountRepository,
    InMemoryEmployeePassRepository,
    InMemoryEmployeeRepository,
    InMemoryMerchantRepository,
    InMemoryModerationActionRepository,
)
from .postgres import (
    PostgresAuditEventRepository,
    PostgresCompanyRepository,
    PostgresCouponRepository,
    PostgresDiscountRepository,
    PostgresEmployeePassRepository,
    PostgresEmployeeRepository,
    PostgresMerchantRepository,
    PostgresModerationActionRepository,
)

__all__ = [
    "InMemoryAuditEventRepository",
    "InMemoryCompanyRepository",
    "InMemoryCouponRepository",
    "InMemoryDiscountRepository",
    "InMemoryEmployeePassRepository",
    "InMemoryEmployeeRepository",
    "InMemoryMerchantRepository",
    "InMemoryModerationActionRepository",
    "PostgresAuditEventRepository",
    "PostgresCompanyRepository",
    "PostgresCouponRepository",
    "PostgresDiscountRepository",
    "PostgresEmployeePassRepository",
    "PostgresEmployeeRepository",
    "PostgresMerchantRepository",
    "PostgresModerationActionRepository",
]
