"""PostgreSQL repositories (psycopg + psycopg_pool, SQL crudo parametrizado)."""

from .audit import PostgresAuditEventRepository
from .coupons import PostgresCouponRepository
from .discounts import PostgresDiscountRepository
from .moderation import PostgresModerationActionRepository
from .organizations import (
    PostgresCompanyRepository,
    PostgresEmployeeRepository,
    PostgresMerchantRepository,
)
from .passes import PostgresEmployeePassRepository

__all__ = [
    "PostgresAuditEventRepository",
    "PostgresCompanyRepository",
    "PostgresCouponRepository",
    "PostgresDiscountRepository",
    "PostgresEmployeePassRepository",
    "PostgresEmployeeRepository",
    "PostgresMerchantRepository",
    "PostgresModerationActionRepository",
]
