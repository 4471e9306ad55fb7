"""
============================================================
TARJETA CRC — repositories/postgres/coupons.py
============================================================
Class: PostgresCouponRepository (tabla claimed_coupons)

Responsibilities:
  - create_if_no_active(): `INSERT ... ON CONFLICT DO NOTHING` contra
    `ux_claimed_coupons_active_pair` (employee_id, merchant_id) WHERE ACTIVE.
  - save(): escritura condicional por versión; usage_history como JSONB.
  - Cancelaciones en bloque con `UPDATE ... RETURNING`.

Notes:
  - usage_history: lista de {redeemed_at (ISO), period_key, notes}.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from psycopg.types.json import Jsonb

from ....domain.entities import ClaimedCoupon, CouponStatus, UsageEntry
from ._base import PostgresRepository


def _entry_to_json(entry: UsageEntry) -> Dict[str, Any]:
    return {
        "redeemed_at": entry.redeemed_at.isoformat(),
        "period_key": entry.period_key,
        "notes": entry.notes,
    }


def _entry_from_json(raw: Dict[str, Any]) -> UsageEntry:
    return UsageEntry(
        redeemed_at=datetime.fromisoformat(raw["redeemed_at"]),
        period_key=int(raw["period_key"]),
        notes=raw.get("notes"),
    )


class PostgresCouponRepository(PostgresRepository):
    _COLUMNS = """
        id, employee_id, merchant_id, discount_id, unique_code, signature,
        signed_payload, status, expires_at, usage_history, usage_this_month,
        last_reset_period, claimed_at, updated_at, version
    """

    @staticmethod
    def _row_to_coupon(row: tuple) -> ClaimedCoupon:
        (
            coupon_id,
            employee_id,
            merchant_id,
            discount_id,
            unique_code,
            signature,
            signed_payload,
            status,
            expires_at,
            usage_history,
            usage_this_month,
            last_reset_period,
            claimed_at,
            updated_at,
            version,
        ) = row
        return ClaimedCoupon(
            id=coupon_id,
            employee_id=employee_id,
            merchant_id=merchant_id,
            discount_id=discount_id,
            unique_code=unique_code,
            signature=signature,
            signed_payload=dict(signed_payload or {}),
            status=CouponStatus(status),
            expires_at=expires_at,
            usage_history=[_entry_from_json(e) for e in (usage_history or [])],
            usage_this_month=usage_this_month,
            last_reset_period=last_reset_period,
            claimed_at=claimed_at,
            updated_at=updated_at,
            version=version,
        )

    def _select(self, where: str, params: list, *, order_by: str = "") -> List[ClaimedCoupon]:
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM claimed_coupons {where} {order_by}",
            params,
            error_message="PostgresCouponRepository: Failed to select coupons",
            extra={"where": where},
        )
        return [self._row_to_coupon(r) for r in rows]

    def get(self, coupon_id: UUID) -> Optional[ClaimedCoupon]:
        found = self._select("WHERE id = %s", [coupon_id])
        return found[0] if found else None

    def get_by_code(self, code: str) -> Optional[ClaimedCoupon]:
        found = self._select("WHERE unique_code = %s", [code])
        return found[0] if found else None

    def create_if_no_active(self, coupon: ClaimedCoupon) -> bool:
        inserted = self._execute_rowcount(
            """
            INSERT INTO claimed_coupons (
                id, employee_id, merchant_id, discount_id, unique_code, signature,
                signed_payload, status, expires_at, usage_history,
                usage_this_month, last_reset_period, claimed_at, updated_at, version
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                COALESCE(%s, NOW()), COALESCE(%s, NOW()), %s
            )
            ON CONFLICT (employee_id, merchant_id) WHERE status = 'ACTIVE' DO NOTHING
            """,
            [
                coupon.id,
                coupon.employee_id,
                coupon.merchant_id,
                coupon.discount_id,
                coupon.unique_code,
                coupon.signature,
                Jsonb(coupon.signed_payload),
                coupon.status.value,
                coupon.expires_at,
                Jsonb([_entry_to_json(e) for e in coupon.usage_history]),
                coupon.usage_this_month,
                coupon.last_reset_period,
                coupon.claimed_at,
                coupon.updated_at,
                coupon.version,
            ],
            error_message="PostgresCouponRepository: Failed to create coupon",
            extra={"employee_id": str(coupon.employee_id), "merchant_id": str(coupon.merchant_id)},
        )
        return inserted == 1

    def save(self, coupon: ClaimedCoupon, *, expected_version: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE claimed_coupons
            SET unique_code = %s, signature = %s, signed_payload = %s, status = %s,
                expires_at = %s, usage_history = %s, usage_this_month = %s,
                last_reset_period = %s, updated_at = NOW(), version = version + 1
            WHERE id = %s AND version = %s
            """,
            [
                coupon.unique_code,
                coupon.signature,
                Jsonb(coupon.signed_payload),
                coupon.status.value,
                coupon.expires_at,
                Jsonb([_entry_to_json(e) for e in coupon.usage_history]),
                coupon.usage_this_month,
                coupon.last_reset_period,
                coupon.id,
                expected_version,
            ],
            error_message="PostgresCouponRepository: Failed to save coupon",
            extra={"coupon_id": str(coupon.id)},
        )
        if updated != 1:
            return False
        coupon.version = expected_version + 1
        return True

    def find_active(
        self, employee_id: UUID, merchant_id: UUID
    ) -> Optional[ClaimedCoupon]:
        found = self._select(
            "WHERE employee_id = %s AND merchant_id = %s AND status = 'ACTIVE'",
            [employee_id, merchant_id],
        )
        return found[0] if found else None

    def list_by_employee(
        self, employee_id: UUID, *, status: CouponStatus | None = None
    ) -> List[ClaimedCoupon]:
        where = "WHERE employee_id = %s"
        params: list = [employee_id]
        if status is not None:
            where += " AND status = %s"
            params.append(status.value)
        return self._select(where, params, order_by="ORDER BY claimed_at DESC")

    def _cancel(self, where: str, params: list, at: datetime) -> List[ClaimedCoupon]:
        rows = self._fetchall(
            f"""
            UPDATE claimed_coupons
            SET status = 'CANCELLED', updated_at = %s, version = version + 1
            {where}
            RETURNING {self._COLUMNS}
            """,
            [at, *params],
            error_message="PostgresCouponRepository: Failed to cancel coupons",
            extra={"where": where},
        )
        return [self._row_to_coupon(r) for r in rows]

    def cancel_active_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        return self._cancel(
            "WHERE employee_id = %s AND status = 'ACTIVE'", [employee_id], at
        )

    def cancel_all_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        return self._cancel(
            "WHERE employee_id = %s AND status <> 'CANCELLED'", [employee_id], at
        )

    def list_expired_active(self, now: datetime) -> List[ClaimedCoupon]:
        return self._select(
            "WHERE status = 'ACTIVE' AND expires_at IS NOT NULL AND expires_at < %s",
            [now],
            order_by="ORDER BY expires_at",
        )
