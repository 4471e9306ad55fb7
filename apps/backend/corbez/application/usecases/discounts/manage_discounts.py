"""
===============================================================================
USE CASES: Create / Update / Toggle / Delete Discount
===============================================================================

Business Goal:
    Mantener las reglas de descuento de un comercio respetando sus invariantes
    y manteniendo coherente la caché de resolución.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Classes:
    CreateDiscountUseCase, UpdateDiscountUseCase, ToggleDiscountUseCase,
    DeleteDiscountUseCase

Responsibilities:
    - Validar campos según el tipo (discount_validation).
    - Garantizar un único BASE por comercio (insert condicional del repo).
    - Escrituras con versión (reintento ante conflicto).
    - Invalidar `discounts:{merchant_id}:*` y publicar discount.*.

Collaborators:
    - DiscountRepository, MerchantRepository
    - MerchantDiscountCache (invalidate)
    - EventPublisher
    - application.concurrency.run_with_conflict_retry

Error Mapping:
    - NOT_FOUND: comercio inexistente; descuento inexistente o de otro comercio.
    - VALIDATION_ERROR: invariantes de tipo/rangos.
    - CONFLICT: segundo BASE.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from ....domain.entities import Discount, DiscountType
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import DiscountRepository, MerchantRepository
from ....domain.services import EventPublisher
from ...concurrency import conflict as conflict_error
from ...concurrency import run_with_conflict_retry
from .discount_cache import MerchantDiscountCache
from .discount_results import (
    DeleteDiscountResult,
    DiscountResult,
    conflict,
    not_found,
    validation_error,
)
from .discount_validation import validate_discount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CreateDiscountInput:
    merchant_id: UUID
    type: DiscountType
    percentage: int
    company_id: UUID | None = None
    min_spend: float | None = None
    monthly_usage_limit: int | None = None
    first_time_bonus_percentage: int | None = None
    priority: int = 0
    description: str | None = None
    perk_description: str | None = None
    actor_id: str | None = None


@dataclass(frozen=True)
class UpdateDiscountInput:
    """None => campo sin cambios. El tipo no es editable."""

    percentage: int | None = None
    min_spend: float | None = None
    monthly_usage_limit: int | None = None
    first_time_bonus_percentage: int | None = None
    priority: int | None = None
    description: str | None = None
    perk_description: str | None = None
    is_active: bool | None = None

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


class _DiscountCommand:
    def __init__(
        self,
        discount_repository: DiscountRepository,
        merchant_repository: MerchantRepository,
        discount_cache: MerchantDiscountCache,
        events: EventPublisher,
    ) -> None:
        self._discounts = discount_repository
        self._merchants = merchant_repository
        self._discount_cache = discount_cache
        self._events = events

    def _publish(
        self,
        event_type: EventType,
        discount: Discount,
        actor_id: str | None,
        **extra: Any,
    ) -> None:
        payload = {
            "discount_id": str(discount.id),
            "merchant_id": str(discount.merchant_id),
            "type": discount.type.value,
            "percentage": discount.percentage,
            **extra,
        }
        self._events.publish_nowait(
            DomainEvent(type=event_type, payload=payload, actor_id=actor_id)
        )

    def _owned(self, discount_id: UUID, merchant_id: UUID) -> Optional[Discount]:
        discount = self._discounts.get(discount_id)
        if discount is None or discount.merchant_id != merchant_id:
            return None
        return discount


class CreateDiscountUseCase(_DiscountCommand):
    def execute(self, input_data: CreateDiscountInput) -> DiscountResult:
        merchant = self._merchants.get(input_data.merchant_id)
        if merchant is None:
            return DiscountResult(error=not_found("Merchant not found"))

        now = _utcnow()
        discount = Discount(
            id=uuid4(),
            merchant_id=input_data.merchant_id,
            type=input_data.type,
            percentage=input_data.percentage,
            company_id=input_data.company_id,
            min_spend=input_data.min_spend,
            monthly_usage_limit=input_data.monthly_usage_limit,
            first_time_bonus_percentage=input_data.first_time_bonus_percentage,
            priority=input_data.priority,
            description=input_data.description,
            perk_description=input_data.perk_description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

        problem = validate_discount(discount)
        if problem:
            return DiscountResult(error=validation_error(problem))

        if not self._discounts.add(discount):
            return DiscountResult(
                error=conflict("Merchant already has a BASE discount")
            )

        self._discount_cache.invalidate(discount.merchant_id)
        self._publish(
            EventType.DISCOUNT_CREATED,
            discount,
            input_data.actor_id,
            merchant_name=merchant.business_name,
        )
        return DiscountResult(discount=discount)


class UpdateDiscountUseCase(_DiscountCommand):
    def execute(
        self,
        discount_id: UUID,
        merchant_id: UUID,
        input_data: UpdateDiscountInput,
        *,
        actor_id: str | None = None,
    ) -> DiscountResult:
        changes = input_data.changes()

        def _attempt() -> DiscountResult:
            current = self._owned(discount_id, merchant_id)
            if current is None:
                return DiscountResult(error=not_found())

            updated = replace(current, **changes, updated_at=_utcnow())
            problem = validate_discount(updated)
            if problem:
                return DiscountResult(error=validation_error(problem))

            if not self._discounts.save(updated, expected_version=current.version):
                raise conflict_error("discount")
            return DiscountResult(discount=updated)

        result = run_with_conflict_retry("update_discount", _attempt)
        if result.discount is not None:
            self._discount_cache.invalidate(merchant_id)
            self._publish(
                EventType.DISCOUNT_UPDATED,
                result.discount,
                actor_id,
                changes=sorted(changes),
            )
        return result


class ToggleDiscountUseCase(_DiscountCommand):
    def execute(
        self,
        discount_id: UUID,
        merchant_id: UUID,
        *,
        actor_id: str | None = None,
    ) -> DiscountResult:
        def _attempt() -> DiscountResult:
            current = self._owned(discount_id, merchant_id)
            if current is None:
                return DiscountResult(error=not_found())
            updated = replace(
                current, is_active=not current.is_active, updated_at=_utcnow()
            )
            if not self._discounts.save(updated, expected_version=current.version):
                raise conflict_error("discount")
            return DiscountResult(discount=updated)

        result = run_with_conflict_retry("toggle_discount", _attempt)
        if result.discount is not None:
            self._discount_cache.invalidate(merchant_id)
            self._publish(
                EventType.DISCOUNT_UPDATED,
                result.discount,
                actor_id,
                changes=["is_active"],
                is_active=result.discount.is_active,
            )
        return result


class DeleteDiscountUseCase(_DiscountCommand):
    def execute(
        self,
        discount_id: UUID,
        merchant_id: UUID,
        *,
        actor_id: str | None = None,
    ) -> DeleteDiscountResult:
        current = self._owned(discount_id, merchant_id)
        if current is None:
            return DeleteDiscountResult(deleted=False, error=not_found())

        if not self._discounts.delete(discount_id):
            return DeleteDiscountResult(deleted=False, error=not_found())

        self._discount_cache.invalidate(merchant_id)
        self._publish(EventType.DISCOUNT_DELETED, current, actor_id)
        return DeleteDiscountResult(deleted=True)
