"""
In-memory repositories (tests / APP_ENV=test / local dev sin DATABASE_URL).

Thread-safe y con copias defensivas; mismas garantías de escritura
condicional que las implementaciones Postgres.
"""

from .audit import InMemoryAuditEventRepository
from .coupons import InMemoryCouponRepository
from .discounts import InMemoryDiscountRepository
from .moderation import InMemoryModerationActionRepository
from .organizations import (
    InMemoryCompanyRepository,
    InMemoryEmployeeRepository,
    InMemoryMerchantRepository,
)
from .passes import InMemoryEmployeePassRepository

__all__ = [
    "InMemoryAuditEventRepository",
    "InMemoryCompanyRepository",
    "InMemoryCouponRepository",
    "InMemoryDiscountRepository",
    "InMemoryEmployeePassRepository",
    "InMemoryEmployeeRepository",
    "InMemoryMerchantRepository",
    "InMemoryModerationActionRepository",
]
