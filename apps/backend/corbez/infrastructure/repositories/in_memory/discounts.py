"""
In-memory DiscountRepository.

- `add` rechaza un segundo BASE por comercio (mismo efecto que el índice
  único parcial de Postgres).
- Listados ordenados igual que Postgres: priority DESC, id.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from ....domain.discount_policy import sort_by_priority
from ....domain.entities import Discount, DiscountType
from ._versioned import VersionedInMemoryStore

_COMPANY_TYPES = (DiscountType.COMPANY, DiscountType.COMPANY_PERK)


class InMemoryDiscountRepository(VersionedInMemoryStore[Discount]):
    def add(self, discount: Discount) -> bool:  # type: ignore[override]
        with self._lock:
            if discount.type == DiscountType.BASE and any(
                d.merchant_id == discount.merchant_id and d.type == DiscountType.BASE
                for d in self._rows.values()
            ):
                return False
            super().add(discount)
            return True

    def delete(self, discount_id: UUID) -> bool:
        with self._lock:
            return self._rows.pop(discount_id, None) is not None

    def list_by_merchant(
        self, merchant_id: UUID, *, active_only: bool = False
    ) -> List[Discount]:
        return sort_by_priority(
            self._select(
                lambda d: d.merchant_id == merchant_id
                and (d.is_active or not active_only)
            )
        )

    def list_by_company(
        self, company_id: UUID, *, active_only: bool = True
    ) -> List[Discount]:
        return sort_by_priority(
            self._select(
                lambda d: d.company_id == company_id
                and d.type in _COMPANY_TYPES
                and (d.is_active or not active_only)
            )
        )
