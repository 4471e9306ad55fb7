"""
===============================================================================
TARJETA CRC — application/events/handlers/analytics.py
===============================================================================

Responsabilidades:
  - Contadores diarios en caché para stats en tiempo real
    (stats:coupons:claimed:{date}, stats:merchant:{id}:redemptions:{date}, ...).
  - Métricas Prometheus de baja cardinalidad (claims, redenciones, moderación).

Colaboradores:
  - domain.services.KeyValueCache (incr con TTL)
  - crosscutting.metrics
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from ....crosscutting.metrics import (
    record_coupon_claim,
    record_coupon_redemption,
    record_moderation_action,
)
from ....domain.events import DomainEvent, EventType
from ....domain.services import KeyValueCache

COUNTER_TTL_SECONDS = 86400 * 2

ANALYTICS_EVENTS = (
    EventType.DISCOUNT_CREATED,
    EventType.COUPON_CLAIMED,
    EventType.COUPON_REDEEMED,
    EventType.COUPON_EXPIRED,
    EventType.REFERRAL_POINTS_EARNED,
    EventType.MODERATION_ACTION,
)


def counter_keys(event: DomainEvent) -> list[str]:
    """Claves de contadores a incrementar para el evento (fecha UTC del evento)."""
    day = event.occurred_at.date().isoformat()
    payload = event.payload

    if event.type == EventType.DISCOUNT_CREATED:
        return [f"stats:discounts:{day}"]
    if event.type == EventType.COUPON_CLAIMED:
        return [
            f"stats:coupons:claimed:{day}",
            f"stats:merchant:{payload.get('merchant_id')}:coupons:{day}",
        ]
    if event.type == EventType.COUPON_REDEEMED:
        return [
            f"stats:coupons:redeemed:{day}",
            f"stats:merchant:{payload.get('merchant_id')}:redemptions:{day}",
        ]
    if event.type == EventType.COUPON_EXPIRED:
        return [f"stats:coupons:expired:{day}"]
    if event.type == EventType.REFERRAL_POINTS_EARNED:
        return [f"stats:referrals:points:{day}"]
    if event.type == EventType.MODERATION_ACTION:
        return [f"stats:moderation:{str(payload.get('action', '')).lower()}:{day}"]
    return []


def make_analytics_handler(cache: KeyValueCache) -> Callable[[DomainEvent], None]:
    def handle_analytics(event: DomainEvent) -> None:
        if event.type == EventType.COUPON_CLAIMED:
            record_coupon_claim("success")
        elif event.type == EventType.COUPON_REDEEMED:
            record_coupon_redemption(
                "bonus" if event.payload.get("bonus_applied") else "success"
            )
        elif event.type == EventType.MODERATION_ACTION:
            record_moderation_action(
                str(event.payload.get("target_type", "")),
                str(event.payload.get("action", "")),
            )

        for key in counter_keys(event):
            cache.incr(key, COUNTER_TTL_SECONDS)

    return handle_analytics
