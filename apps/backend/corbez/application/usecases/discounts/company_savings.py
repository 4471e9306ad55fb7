"""
===============================================================================
USE CASE: Calculate Company Savings
===============================================================================

Business Goal:
    Estimar el ahorro mensual que los descuentos COMPANY de una empresa
    generan para su plantilla activa (argumento de venta para la empresa).

Formula (por descuento):
    avg_order_value(comercio, default 15.0) * percentage/100
        * empleados_activos * visits_per_month

    Redondeo a 2 decimales por descuento y en el total.

Collaborators:
    - DiscountRepository.list_by_company
    - MerchantRepository.get (avg_order_value, business_name)
    - EmployeeRepository.list_by_company (ACTIVE)
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....domain.entities import DiscountType, EmployeeStatus
from ....domain.repositories import (
    CompanyRepository,
    DiscountRepository,
    EmployeeRepository,
    MerchantRepository,
)
from .discount_results import CompanySavingsResult, MerchantSavings, not_found

DEFAULT_AVG_ORDER_VALUE = 15.0
DEFAULT_VISITS_PER_MONTH = 2


class CalculateCompanySavingsUseCase:
    def __init__(
        self,
        company_repository: CompanyRepository,
        discount_repository: DiscountRepository,
        merchant_repository: MerchantRepository,
        employee_repository: EmployeeRepository,
    ) -> None:
        self._companies = company_repository
        self._discounts = discount_repository
        self._merchants = merchant_repository
        self._employees = employee_repository

    def execute(
        self,
        company_id: UUID,
        *,
        avg_order_value: float = DEFAULT_AVG_ORDER_VALUE,
        visits_per_month: int = DEFAULT_VISITS_PER_MONTH,
    ) -> CompanySavingsResult:
        if self._companies.get(company_id) is None:
            return CompanySavingsResult(error=not_found("Company not found"))

        employee_count = len(
            self._employees.list_by_company(company_id, status=EmployeeStatus.ACTIVE)
        )

        breakdown: list[MerchantSavings] = []
        total = 0.0
        for discount in self._discounts.list_by_company(company_id, active_only=True):
            if discount.type != DiscountType.COMPANY:
                continue
            merchant = self._merchants.get(discount.merchant_id)
            if merchant is None:
                continue
            order_value = merchant.avg_order_value or avg_order_value
            savings = (
                order_value
                * (discount.percentage / 100)
                * employee_count
                * visits_per_month
            )
            total += savings
            breakdown.append(
                MerchantSavings(
                    merchant_id=merchant.id,
                    merchant_name=merchant.business_name,
                    discount_id=discount.id,
                    discount_percentage=discount.percentage,
                    estimated_savings=round(savings, 2),
                )
            )

        breakdown.sort(key=lambda item: item.estimated_savings, reverse=True)
        return CompanySavingsResult(
            total_monthly_savings=round(total, 2),
            employee_count=employee_count,
            breakdown=breakdown,
        )
