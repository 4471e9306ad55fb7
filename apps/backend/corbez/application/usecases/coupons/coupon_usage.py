"""
Helpers de uso mensual y de la entrada de caché de cupones.

- El contador mensual se lee con rollover lazy (uses_in_period): un
  contador de otro mes cuenta como 0 sin escribir nada.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from ....domain.entities import ClaimedCoupon, add_months
from ....domain.periods import period_key
from .coupon_results import UsageStatus


def next_period_start(now: datetime) -> datetime:
    first = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return add_months(first, 1)


def usage_status(
    coupon: ClaimedCoupon, limit: Optional[int], now: datetime
) -> UsageStatus:
    used = coupon.uses_in_period(period_key(now))
    if limit is None:
        return UsageStatus(used_this_month=used, limit=None, remaining=None, can_use=True)
    remaining = max(limit - used, 0)
    can_use = used < limit
    return UsageStatus(
        used_this_month=used,
        limit=limit,
        remaining=remaining,
        can_use=can_use,
        resets_on=None if can_use else next_period_start(now).date().isoformat(),
    )


def coupon_cache_entry(coupon: ClaimedCoupon) -> Dict[str, Any]:
    return {
        "coupon_id": str(coupon.id),
        "code": coupon.unique_code,
        "signature": coupon.signature,
        "signed_payload": coupon.signed_payload,
    }
