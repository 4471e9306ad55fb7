"""
===============================================================================
TARJETA CRC — application/events/handlers/cache_invalidation.py
===============================================================================

Responsabilidades:
  - Invalidar claves derivadas cuando cambia el estado de origen:
      - discount.* / merchant.updated -> discounts:{merchant_id}:*
      - coupon.expired / coupon.cancelled -> coupon:code:{code}
      - pass.revoked -> pass:{pass_id}

Colaboradores:
  - domain.services.KeyValueCache
  - application.cache_keys

Nota:
  - Los use cases ya invalidan en línea las claves críticas; este handler
    cubre productores que no conocen la caché (worker, cascadas).
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from ....domain.events import DomainEvent, EventType
from ....domain.services import KeyValueCache
from ...cache_keys import coupon_key, discounts_pattern, pass_key

CACHE_INVALIDATION_EVENTS = (
    EventType.DISCOUNT_CREATED,
    EventType.DISCOUNT_UPDATED,
    EventType.DISCOUNT_DELETED,
    EventType.MERCHANT_UPDATED,
    EventType.COUPON_EXPIRED,
    EventType.COUPON_CANCELLED,
    EventType.PASS_REVOKED,
)


def make_cache_invalidation_handler(
    cache: KeyValueCache,
) -> Callable[[DomainEvent], None]:
    def handle_cache_invalidation(event: DomainEvent) -> None:
        payload = event.payload
        if event.type in (
            EventType.DISCOUNT_CREATED,
            EventType.DISCOUNT_UPDATED,
            EventType.DISCOUNT_DELETED,
            EventType.MERCHANT_UPDATED,
        ):
            merchant_id = payload.get("merchant_id")
            if merchant_id:
                cache.delete_pattern(discounts_pattern(merchant_id))
            return

        if event.type in (EventType.COUPON_EXPIRED, EventType.COUPON_CANCELLED):
            code = payload.get("code")
            if code:
                cache.delete(coupon_key(code))
            return

        if event.type == EventType.PASS_REVOKED:
            pass_id = payload.get("pass_id")
            if pass_id:
                cache.delete(pass_key(pass_id))

    return handle_cache_invalidation
