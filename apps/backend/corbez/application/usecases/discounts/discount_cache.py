"""
Name: Merchant Discount List Cache

Responsibilities:
  - Cachear la lista de descuentos ACTIVOS de un comercio (TTL corto).
  - Mapear Discount <-> dict JSON para el backend de caché.
  - Invalidar por patrón `discounts:{merchant_id}:*`.

Collaborators:
  - domain.services.KeyValueCache
  - domain.repositories.DiscountRepository (loader en miss)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from ....domain.discount_policy import sort_by_priority
from ....domain.entities import Discount, DiscountType
from ....domain.repositories import DiscountRepository
from ....domain.services import KeyValueCache
from ...cache_keys import discounts_key, discounts_pattern


def discount_to_dict(discount: Discount) -> Dict[str, Any]:
    return {
        "id": str(discount.id),
        "merchant_id": str(discount.merchant_id),
        "type": discount.type.value,
        "percentage": discount.percentage,
        "company_id": str(discount.company_id) if discount.company_id else None,
        "min_spend": discount.min_spend,
        "monthly_usage_limit": discount.monthly_usage_limit,
        "first_time_bonus_percentage": discount.first_time_bonus_percentage,
        "is_active": discount.is_active,
        "priority": discount.priority,
        "description": discount.description,
        "perk_description": discount.perk_description,
        "created_at": discount.created_at.isoformat() if discount.created_at else None,
        "updated_at": discount.updated_at.isoformat() if discount.updated_at else None,
        "version": discount.version,
    }


def _parse_dt(raw: Any) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


def discount_from_dict(data: Dict[str, Any]) -> Discount:
    return Discount(
        id=UUID(data["id"]),
        merchant_id=UUID(data["merchant_id"]),
        type=DiscountType(data["type"]),
        percentage=int(data["percentage"]),
        company_id=UUID(data["company_id"]) if data.get("company_id") else None,
        min_spend=data.get("min_spend"),
        monthly_usage_limit=data.get("monthly_usage_limit"),
        first_time_bonus_percentage=data.get("first_time_bonus_percentage"),
        is_active=bool(data.get("is_active", True)),
        priority=int(data.get("priority", 0)),
        description=data.get("description"),
        perk_description=data.get("perk_description"),
        created_at=_parse_dt(data.get("created_at")),
        updated_at=_parse_dt(data.get("updated_at")),
        version=int(data.get("version", 0)),
    )


class MerchantDiscountCache:
    def __init__(
        self,
        discounts: DiscountRepository,
        cache: KeyValueCache,
        *,
        ttl_seconds: int = 300,
    ) -> None:
        self._discounts = discounts
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def active_for_merchant(self, merchant_id: UUID) -> List[Discount]:
        """Descuentos activos ordenados por priority DESC (cache-aside)."""
        key = discounts_key(merchant_id)
        cached = self._cache.get(key)
        if isinstance(cached, list):
            return [discount_from_dict(item) for item in cached]

        discounts = sort_by_priority(
            self._discounts.list_by_merchant(merchant_id, active_only=True)
        )
        self._cache.set(
            key, [discount_to_dict(d) for d in discounts], self._ttl_seconds
        )
        return discounts

    def invalidate(self, merchant_id: UUID) -> None:
        self._cache.delete_pattern(discounts_pattern(merchant_id))
