"""
===============================================================================
USE CASE: Resolve Discount
===============================================================================

Business Goal:
    Elegir EL descuento a aplicar para un empleado en un comercio (y monto
    de orden opcional). Los descuentos nunca se acumulan.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    ResolveDiscountUseCase

Responsibilities:
    - Leer los descuentos activos del comercio (lista cacheada, TTL 300s).
    - Delegar aplicabilidad y selección a domain.discount_policy.

Collaborators:
    - MerchantDiscountCache (cache-aside sobre DiscountRepository)
    - domain.discount_policy: select_best_discount / is_discount_applicable

Rules:
    - Mayor porcentaje gana; empate => menor id (texto del UUID).
    - COMPANY_PERK nunca gana por porcentaje.
===============================================================================
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from ....domain.discount_policy import is_discount_applicable, select_best_discount
from ....domain.entities import Discount
from .discount_cache import MerchantDiscountCache


class ResolveDiscountUseCase:
    def __init__(self, discount_cache: MerchantDiscountCache) -> None:
        self._discount_cache = discount_cache

    def execute(
        self,
        merchant_id: UUID,
        *,
        employee_company_id: UUID | None = None,
        order_amount: float | None = None,
    ) -> Optional[Discount]:
        candidates = self._discount_cache.active_for_merchant(merchant_id)
        return select_best_discount(
            candidates,
            employee_company_id=employee_company_id,
            order_amount=order_amount,
        )

    @staticmethod
    def is_applicable(
        discount: Discount,
        *,
        employee_company_id: UUID | None = None,
        order_amount: float | None = None,
    ) -> bool:
        return is_discount_applicable(
            discount,
            employee_company_id=employee_company_id,
            order_amount=order_amount,
        )
