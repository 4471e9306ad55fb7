"""
===============================================================================
TARJETA CRC — domain/events.py
===============================================================================

Módulo:
    Eventos de dominio (tipos + envelope)

Responsabilidades:
    - Catálogo estable de tipos de evento (EventType).
    - Envelope inmutable (DomainEvent) con payload, timestamp y correlación.

Colaboradores:
    - application.events.dispatcher.EventDispatcher (entrega)
    - application/usecases/* (productores)
    - application/events/handlers/* (consumidores: audit, analytics, ...)

Notas:
    - El payload usa claves snake_case y valores serializables (str/int/float).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4


class EventType(str, Enum):
    # Discounts
    DISCOUNT_CREATED = "discount.created"
    DISCOUNT_UPDATED = "discount.updated"
    DISCOUNT_DELETED = "discount.deleted"

    # Coupons
    COUPON_CLAIMED = "coupon.claimed"
    COUPON_REDEEMED = "coupon.redeemed"
    COUPON_EXPIRED = "coupon.expired"
    COUPON_CANCELLED = "coupon.cancelled"

    # Passes
    PASS_ISSUED = "pass.issued"
    PASS_REVOKED = "pass.revoked"

    # Referrals
    REFERRAL_POINTS_EARNED = "referral.points_earned"

    # Moderation
    MODERATION_ACTION = "moderation.action"
    MERCHANT_UPDATED = "merchant.updated"
    COMPANY_UPDATED = "company.updated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Envelope de evento publicado en el dispatcher."""

    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=_utcnow)
    correlation_id: str = ""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    actor_id: str | None = None
