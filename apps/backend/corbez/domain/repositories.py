"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for the domain layer (ports).
- Keep the application/domain independent from infrastructure (PostgreSQL, in-memory).
- Expose ATOMIC conditional writes: every mutation either applies against the
  expected stored state or reports that it lost the race.

Collaborators
- domain.entities: Employee, Merchant, Company, Discount, ClaimedCoupon,
  EmployeePass, ModerationAction
- domain.audit: AuditEvent
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- `save(entity, expected_version=...)` returns False when the stored version
  differs; on success the stored version is expected_version + 1 and the
  passed entity is updated in place.

Notes
- typing.Protocol for structural subtyping ("duck typing").
- Outputs are concrete lists for predictable iteration/serialization.
"""

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from .audit import AuditEvent
from .entities import (
    AppealStatus,
    ClaimedCoupon,
    Company,
    CouponStatus,
    Discount,
    Employee,
    EmployeePass,
    EmployeeStatus,
    Merchant,
    ModerationAction,
    ModerationTargetType,
)


class EmployeeRepository(Protocol):
    """R: Employees (status transitions only, never hard-deleted)."""

    def get(self, employee_id: UUID) -> Optional[Employee]:
        ...

    def add(self, employee: Employee) -> None:
        ...

    def save(self, employee: Employee, *, expected_version: int) -> bool:
        """R: Conditional update (optimistic concurrency)."""
        ...

    def list_by_company(
        self, company_id: UUID, *, status: EmployeeStatus | None = None
    ) -> List[Employee]:
        ...

    def list_expired_suspensions(self, now: datetime) -> List[Employee]:
        """R: SUSPENDED employees whose suspended_until <= now."""
        ...

    def mark_first_redemption(self, employee_id: UUID, at: datetime) -> bool:
        """R: Atomically set first_redeemed_at if still NULL. True if this call won."""
        ...

    def credit_referral_points(self, employee_id: UUID, points: int) -> bool:
        """R: Atomic increment of referral_points. False if employee missing."""
        ...


class MerchantRepository(Protocol):
    def get(self, merchant_id: UUID) -> Optional[Merchant]:
        ...

    def add(self, merchant: Merchant) -> None:
        ...

    def save(self, merchant: Merchant, *, expected_version: int) -> bool:
        ...

    def list_expired_suspensions(self, now: datetime) -> List[Merchant]:
        ...


class CompanyRepository(Protocol):
    def get(self, company_id: UUID) -> Optional[Company]:
        ...

    def add(self, company: Company) -> None:
        ...

    def save(self, company: Company, *, expected_version: int) -> bool:
        ...

    def list_expired_suspensions(self, now: datetime) -> List[Company]:
        ...


class DiscountRepository(Protocol):
    """R: Merchant discount rules."""

    def get(self, discount_id: UUID) -> Optional[Discount]:
        ...

    def add(self, discount: Discount) -> bool:
        """R: Insert. False if it would create a second BASE for the merchant."""
        ...

    def save(self, discount: Discount, *, expected_version: int) -> bool:
        ...

    def delete(self, discount_id: UUID) -> bool:
        ...

    def list_by_merchant(
        self, merchant_id: UUID, *, active_only: bool = False
    ) -> List[Discount]:
        ...

    def list_by_company(
        self, company_id: UUID, *, active_only: bool = True
    ) -> List[Discount]:
        ...


class CouponRepository(Protocol):
    """R: Claimed coupons (reusable while ACTIVE)."""

    def get(self, coupon_id: UUID) -> Optional[ClaimedCoupon]:
        ...

    def get_by_code(self, code: str) -> Optional[ClaimedCoupon]:
        ...

    def create_if_no_active(self, coupon: ClaimedCoupon) -> bool:
        """
        R: Atomic conditional insert.

        Returns False (and stores nothing) when an ACTIVE coupon already exists
        for (coupon.employee_id, coupon.merchant_id).
        """
        ...

    def save(self, coupon: ClaimedCoupon, *, expected_version: int) -> bool:
        ...

    def find_active(
        self, employee_id: UUID, merchant_id: UUID
    ) -> Optional[ClaimedCoupon]:
        ...

    def list_by_employee(
        self, employee_id: UUID, *, status: CouponStatus | None = None
    ) -> List[ClaimedCoupon]:
        ...

    def cancel_active_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        """R: ACTIVE -> CANCELLED for the employee; returns the cancelled coupons."""
        ...

    def cancel_all_for_employee(
        self, employee_id: UUID, at: datetime
    ) -> List[ClaimedCoupon]:
        """R: Every non-CANCELLED coupon -> CANCELLED; returns the cancelled coupons."""
        ...

    def list_expired_active(self, now: datetime) -> List[ClaimedCoupon]:
        """R: ACTIVE coupons with expires_at < now."""
        ...


class EmployeePassRepository(Protocol):
    def get_by_pass_id(self, pass_id: str) -> Optional[EmployeePass]:
        ...

    def get_active_for_employee(self, employee_id: UUID) -> Optional[EmployeePass]:
        ...

    def create_if_no_active(self, employee_pass: EmployeePass) -> bool:
        ...

    def revoke_for_employee(self, employee_id: UUID, at: datetime) -> int:
        """R: ACTIVE -> REVOKED; returns affected rows."""
        ...


class ModerationActionRepository(Protocol):
    """R: Append-only moderation log."""

    def append(self, action: ModerationAction) -> None:
        ...

    def get(self, action_id: UUID) -> Optional[ModerationAction]:
        ...

    def list_for_target(
        self, target_type: ModerationTargetType, target_id: UUID
    ) -> List[ModerationAction]:
        """R: Newest first."""
        ...

    def list_by_appeal_status(self, status: AppealStatus) -> List[ModerationAction]:
        ...

    def set_appeal_status(
        self,
        action_id: UUID,
        *,
        expected: AppealStatus,
        new: AppealStatus,
    ) -> Optional[ModerationAction]:
        """R: Conditional appeal transition; None if the expected status did not match."""
        ...


class AuditEventRepository(Protocol):
    def record_event(self, event: AuditEvent) -> None:
        ...

    def list_events(
        self, *, action_prefix: str | None = None, limit: int = 100
    ) -> List[AuditEvent]:
        ...
