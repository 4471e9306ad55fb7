"""
============================================================
TARJETA CRC — repositories/postgres/discounts.py
============================================================
Class: PostgresDiscountRepository (tabla discounts)

Responsibilities:
  - add(): `INSERT ... ON CONFLICT DO NOTHING` contra el índice único
    parcial `ux_discounts_base_per_merchant` (un BASE por comercio).
  - save(): escritura condicional por versión.
  - Listados: priority DESC, id ASC (mismo orden que el store in-memory).
============================================================
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from ....domain.entities import Discount, DiscountType
from ._base import PostgresRepository


class PostgresDiscountRepository(PostgresRepository):
    _COLUMNS = """
        id, merchant_id, type, percentage, company_id, min_spend,
        monthly_usage_limit, first_time_bonus_percentage, is_active, priority,
        description, perk_description, created_at, updated_at, version
    """
    _ORDER_BY = "ORDER BY priority DESC, id::text ASC"

    @staticmethod
    def _row_to_discount(row: tuple) -> Discount:
        (
            discount_id,
            merchant_id,
            discount_type,
            percentage,
            company_id,
            min_spend,
            monthly_usage_limit,
            first_time_bonus_percentage,
            is_active,
            priority,
            description,
            perk_description,
            created_at,
            updated_at,
            version,
        ) = row
        return Discount(
            id=discount_id,
            merchant_id=merchant_id,
            type=DiscountType(discount_type),
            percentage=percentage,
            company_id=company_id,
            min_spend=float(min_spend) if min_spend is not None else None,
            monthly_usage_limit=monthly_usage_limit,
            first_time_bonus_percentage=first_time_bonus_percentage,
            is_active=is_active,
            priority=priority,
            description=description,
            perk_description=perk_description,
            created_at=created_at,
            updated_at=updated_at,
            version=version,
        )

    def get(self, discount_id: UUID) -> Optional[Discount]:
        row = self._fetchone(
            f"SELECT {self._COLUMNS} FROM discounts WHERE id = %s",
            [discount_id],
            error_message="PostgresDiscountRepository: Failed to get discount",
            extra={"discount_id": str(discount_id)},
        )
        return self._row_to_discount(row) if row else None

    def add(self, discount: Discount) -> bool:
        inserted = self._execute_rowcount(
            """
            INSERT INTO discounts (
                id, merchant_id, type, percentage, company_id, min_spend,
                monthly_usage_limit, first_time_bonus_percentage, is_active,
                priority, description, perk_description, created_at, updated_at,
                version
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                COALESCE(%s, NOW()), COALESCE(%s, NOW()), %s
            )
            ON CONFLICT DO NOTHING
            """,
            [
                discount.id,
                discount.merchant_id,
                discount.type.value,
                discount.percentage,
                discount.company_id,
                discount.min_spend,
                discount.monthly_usage_limit,
                discount.first_time_bonus_percentage,
                discount.is_active,
                discount.priority,
                discount.description,
                discount.perk_description,
                discount.created_at,
                discount.updated_at,
                discount.version,
            ],
            error_message="PostgresDiscountRepository: Failed to add discount",
            extra={"discount_id": str(discount.id)},
        )
        return inserted == 1

    def save(self, discount: Discount, *, expected_version: int) -> bool:
        updated = self._execute_rowcount(
            """
            UPDATE discounts
            SET percentage = %s, company_id = %s, min_spend = %s,
                monthly_usage_limit = %s, first_time_bonus_percentage = %s,
                is_active = %s, priority = %s, description = %s,
                perk_description = %s, updated_at = NOW(), version = version + 1
            WHERE id = %s AND version = %s
            """,
            [
                discount.percentage,
                discount.company_id,
                discount.min_spend,
                discount.monthly_usage_limit,
                discount.first_time_bonus_percentage,
                discount.is_active,
                discount.priority,
                discount.description,
                discount.perk_description,
                discount.id,
                expected_version,
            ],
            error_message="PostgresDiscountRepository: Failed to save discount",
            extra={"discount_id": str(discount.id)},
        )
        if updated != 1:
            return False
        discount.version = expected_version + 1
        return True

    def delete(self, discount_id: UUID) -> bool:
        deleted = self._execute_rowcount(
            "DELETE FROM discounts WHERE id = %s",
            [discount_id],
            error_message="PostgresDiscountRepository: Failed to delete discount",
            extra={"discount_id": str(discount_id)},
        )
        return deleted == 1

    def list_by_merchant(
        self, merchant_id: UUID, *, active_only: bool = False
    ) -> List[Discount]:
        where = "WHERE merchant_id = %s"
        if active_only:
            where += " AND is_active"
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM discounts {where} {self._ORDER_BY}",
            [merchant_id],
            error_message="PostgresDiscountRepository: Failed to list merchant discounts",
            extra={"merchant_id": str(merchant_id)},
        )
        return [self._row_to_discount(r) for r in rows]

    def list_by_company(
        self, company_id: UUID, *, active_only: bool = True
    ) -> List[Discount]:
        where = "WHERE company_id = %s AND type IN ('COMPANY', 'COMPANY_PERK')"
        if active_only:
            where += " AND is_active"
        rows = self._fetchall(
            f"SELECT {self._COLUMNS} FROM discounts {where} {self._ORDER_BY}",
            [company_id],
            error_message="PostgresDiscountRepository: Failed to list company discounts",
            extra={"company_id": str(company_id)},
        )
        return [self._row_to_discount(r) for r in rows]
