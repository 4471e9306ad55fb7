"""
USE CASES: List Merchant Discounts / List Company Discounts

- Merchant: todas (o solo activas) ordenadas por priority DESC.
- Company: COMPANY y COMPANY_PERK activas de la empresa, en todos los comercios,
  ordenadas por porcentaje DESC.
"""

from __future__ import annotations

from uuid import UUID

from ....domain.discount_policy import sort_by_priority
from ....domain.entities import DiscountType
from ....domain.repositories import DiscountRepository
from .discount_results import DiscountListResult

_COMPANY_TYPES = (DiscountType.COMPANY, DiscountType.COMPANY_PERK)


class ListMerchantDiscountsUseCase:
    def __init__(self, discount_repository: DiscountRepository) -> None:
        self._discounts = discount_repository

    def execute(self, merchant_id: UUID, *, active_only: bool = False) -> DiscountListResult:
        discounts = self._discounts.list_by_merchant(merchant_id, active_only=active_only)
        return DiscountListResult(discounts=sort_by_priority(discounts))


class ListCompanyDiscountsUseCase:
    def __init__(self, discount_repository: DiscountRepository) -> None:
        self._discounts = discount_repository

    def execute(self, company_id: UUID) -> DiscountListResult:
        discounts = [
            d
            for d in self._discounts.list_by_company(company_id, active_only=True)
            if d.type in _COMPANY_TYPES
        ]
        discounts.sort(key=lambda d: (-d.percentage, str(d.id)))
        return DiscountListResult(discounts=discounts)
