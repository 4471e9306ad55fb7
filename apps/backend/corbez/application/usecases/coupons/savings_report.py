"""
USE CASE: Generate Savings Report (job `generate-savings-report`)

- Agrega las redenciones de un mes calendario para la plantilla de una
  empresa, agrupadas por comercio.
- Ahorro estimado por redención: avg_order_value (default 15.0) * % / 100.
- El reporte se cachea en `report:savings:{company}:{YYYY-MM}`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.periods import period_label
from ....domain.repositories import (
    CouponRepository,
    DiscountRepository,
    EmployeeRepository,
    MerchantRepository,
)
from ....domain.services import KeyValueCache
from ...cache_keys import savings_report_key
from ...clock import Clock, utcnow

DEFAULT_AVG_ORDER_VALUE = 15.0
REPORT_TTL_SECONDS = 86400 * 30


@dataclass
class MerchantRedemptions:
    merchant_id: UUID
    redemptions: int = 0
    estimated_savings: float = 0.0


@dataclass
class SavingsReport:
    company_id: UUID
    period: str
    total_redemptions: int = 0
    total_savings: float = 0.0
    merchants: List[MerchantRedemptions] = field(default_factory=list)
    generated_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_id": str(self.company_id),
            "period": self.period,
            "total_redemptions": self.total_redemptions,
            "total_savings": self.total_savings,
            "merchants": [
                {
                    "merchant_id": str(item.merchant_id),
                    "redemptions": item.redemptions,
                    "estimated_savings": item.estimated_savings,
                }
                for item in self.merchants
            ],
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


class GenerateSavingsReportUseCase:
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        coupon_repository: CouponRepository,
        discount_repository: DiscountRepository,
        merchant_repository: MerchantRepository,
        cache: KeyValueCache,
        *,
        report_ttl_seconds: int = REPORT_TTL_SECONDS,
        clock: Clock = utcnow,
    ) -> None:
        self._employees = employee_repository
        self._coupons = coupon_repository
        self._discounts = discount_repository
        self._merchants = merchant_repository
        self._cache = cache
        self._ttl = report_ttl_seconds
        self._clock = clock

    def _order_value(self, merchant_id: UUID) -> float:
        merchant = self._merchants.get(merchant_id)
        if merchant is None or not merchant.avg_order_value:
            return DEFAULT_AVG_ORDER_VALUE
        return float(merchant.avg_order_value)

    def execute(self, company_id: UUID, period_key: int) -> SavingsReport:
        by_merchant: Dict[UUID, MerchantRedemptions] = {}
        percentages: Dict[UUID, int] = {}

        for employee in self._employees.list_by_company(company_id):
            for coupon in self._coupons.list_by_employee(employee.id):
                uses = coupon.history_uses_in_period(period_key)
                if not uses:
                    continue
                if coupon.discount_id not in percentages:
                    discount = self._discounts.get(coupon.discount_id)
                    percentages[coupon.discount_id] = discount.percentage if discount else 0
                bucket = by_merchant.setdefault(
                    coupon.merchant_id, MerchantRedemptions(merchant_id=coupon.merchant_id)
                )
                bucket.redemptions += uses
                bucket.estimated_savings += (
                    self._order_value(coupon.merchant_id)
                    * percentages[coupon.discount_id]
                    / 100
                    * uses
                )

        merchants = sorted(
            by_merchant.values(), key=lambda item: item.redemptions, reverse=True
        )
        for item in merchants:
            item.estimated_savings = round(item.estimated_savings, 2)

        report = SavingsReport(
            company_id=company_id,
            period=period_label(period_key),
            total_redemptions=sum(item.redemptions for item in merchants),
            total_savings=round(sum(item.estimated_savings for item in merchants), 2),
            merchants=merchants,
            generated_at=self._clock(),
        )
        self._cache.set(
            savings_report_key(company_id, report.period), report.to_dict(), self._ttl
        )
        logger.info(
            "Savings report generated",
            extra={
                "company_id": str(company_id),
                "period": report.period,
                "total_redemptions": report.total_redemptions,
            },
        )
        return report
