"""
===============================================================================
TARJETA CRC — domain/discount_policy.py
===============================================================================

Módulo:
    Política de resolución de descuentos (pura, sin IO)

Responsabilidades:
    - Decidir si un descuento aplica a un contexto (empresa, monto).
    - Elegir EL descuento a aplicar entre varios candidatos.

Reglas:
    - BASE aplica siempre.
    - COMPANY aplica si la empresa del empleado coincide.
    - SPEND_THRESHOLD aplica si hay monto y es >= min_spend.
    - COMPANY_PERK no compite por porcentaje (es un beneficio, no un %).
    - Se elige el mayor porcentaje (priority solo ordena la evaluación).
    - Empate de porcentaje: menor id (determinístico, no depende del store).
    - Los descuentos NUNCA se acumulan.
===============================================================================
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from .entities import Discount, DiscountType


def is_discount_applicable(
    discount: Discount,
    *,
    employee_company_id: UUID | None = None,
    order_amount: float | None = None,
) -> bool:
    """True si el descuento aplica al contexto dado."""
    if not discount.is_active:
        return False

    if discount.type == DiscountType.BASE:
        return True

    if discount.type == DiscountType.COMPANY:
        return (
            employee_company_id is not None
            and discount.company_id == employee_company_id
        )

    if discount.type == DiscountType.SPEND_THRESHOLD:
        return (
            order_amount is not None
            and discount.min_spend is not None
            and order_amount >= discount.min_spend
        )

    return False


def _selection_key(discount: Discount) -> tuple[int, str]:
    # Mayor porcentaje primero; a igual porcentaje, menor id.
    return (-discount.percentage, str(discount.id))


def select_best_discount(
    discounts: Iterable[Discount],
    *,
    employee_company_id: UUID | None = None,
    order_amount: float | None = None,
) -> Optional[Discount]:
    """Devuelve el descuento aplicable de mayor porcentaje, o None."""
    applicable = [
        d
        for d in discounts
        if is_discount_applicable(
            d, employee_company_id=employee_company_id, order_amount=order_amount
        )
    ]
    if not applicable:
        return None
    return min(applicable, key=_selection_key)


def sort_by_priority(discounts: Iterable[Discount]) -> list[Discount]:
    """Orden de evaluación/listado: priority DESC, luego id."""
    return sorted(discounts, key=lambda d: (-d.priority, str(d.id)))


def effective_percentage(base: int, bonus: int | None) -> int:
    """Porcentaje total con bonus de primer uso, con tope 100."""
    if not bonus:
        return base
    return min(base + bonus, 100)
