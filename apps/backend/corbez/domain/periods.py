"""
===============================================================================
TARJETA CRC — domain/periods.py
===============================================================================

Responsabilidades:
    - Representar el mes calendario como entero comparable (period key).
    - Evitar tags "YYYY-MM" como string (ambigüedad de formato).

Colaboradores:
    - domain.entities.ClaimedCoupon (last_reset_period, UsageEntry.period_key)
    - application/usecases/coupons (rollover lazy al redimir)

Regla:
    period_key(dt) = year * 12 + (month - 1), siempre en UTC.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timezone


def period_key(moment: datetime) -> int:
    """Period key del mes calendario (UTC) de `moment`."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.year * 12 + (moment.month - 1)


def period_label(key: int) -> str:
    """Etiqueta legible 'YYYY-MM' (solo para logs/respuestas)."""
    year, month_index = divmod(key, 12)
    return f"{year:04d}-{month_index + 1:02d}"
