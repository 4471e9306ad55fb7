"""
Name: Coupon Use Cases Unit Tests

Responsibilities:
  - Verify claim rules (one ACTIVE coupon per employee/merchant, access checks)
  - Verify reusable redemption with monthly limit and lazy rollover
  - Verify lifetime first-use bonus and referral points
  - Verify listing, lookup, expiry sweep and token regeneration
  - Verify parallel claims / redemptions keep the pair and limit invariants
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from corbez.application.cache_keys import coupon_key
from corbez.application.usecases.coupons import (
    CouponErrorCode,
    CouponLookupUseCase,
    ExpireCouponsUseCase,
    ListEmployeeCouponsUseCase,
    RegenerateCouponTokenUseCase,
)
from corbez.crosscutting.config import get_settings
from corbez.domain.entities import (
    CouponStatus,
    DiscountType,
    EmployeeStatus,
    MerchantStatus,
)
from corbez.domain.events import EventType

BASE_URL = "https://corbez.test"

pytestmark = pytest.mark.unit


def _claimed(platform, *, percentage=10, limit=None, bonus=None, employee=None):
    merchant = platform.add_merchant()
    discount = platform.add_discount(
        merchant.id,
        percentage=percentage,
        monthly_usage_limit=limit,
        first_time_bonus_percentage=bonus,
    )
    employee = employee or platform.add_employee()
    result = platform.claim().execute(employee.id, merchant.id, discount.id)
    assert result.error is None
    return employee, merchant, discount, result.coupon


class TestClaimCoupon:
    def test_claim_creates_reusable_signed_coupon(self, platform):
        employee, merchant, discount, coupon = _claimed(platform)

        assert coupon.status == CouponStatus.ACTIVE
        assert coupon.expires_at is None
        assert coupon.usage_this_month == 0
        assert platform.signer.verify(coupon.signed_payload, coupon.signature)
        assert platform.cache.get(coupon_key(coupon.unique_code)) is not None

        claimed = platform.events.of_type(EventType.COUPON_CLAIMED)
        assert claimed[0].payload["merchant_name"] == merchant.business_name

    def test_claim_returns_verification_url(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id)
        employee = platform.add_employee()

        result = platform.claim().execute(employee.id, merchant.id, discount.id)

        assert result.verification_url == (
            f"{BASE_URL}/verify/coupon/{result.coupon.unique_code}"
            f"?s={result.coupon.signature}"
        )

    def test_second_claim_for_same_merchant_is_rejected(self, platform):
        employee, merchant, discount, _ = _claimed(platform)

        again = platform.claim().execute(employee.id, merchant.id, discount.id)

        assert again.error.code == CouponErrorCode.DUPLICATE_ACTIVE_COUPON
        assert len(platform.coupons.list_by_employee(employee.id)) == 1

    def test_claim_at_another_merchant_is_allowed(self, platform):
        employee, _, _, _ = _claimed(platform)
        other = platform.add_merchant("Pho House")
        discount = platform.add_discount(other.id)

        result = platform.claim().execute(employee.id, other.id, discount.id)
        assert result.error is None

    def test_suspended_employee_cannot_claim(self, platform, clock):
        employee = platform.add_employee(status=EmployeeStatus.SUSPENDED)
        stored = platform.employees.get(employee.id)
        stored.suspended_until = clock() + timedelta(days=7)
        stored.suspended_reason = "Fraud"
        platform.employees.save(stored, expected_version=stored.version)
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id)

        result = platform.claim().execute(employee.id, merchant.id, discount.id)

        assert result.error.code == CouponErrorCode.ACCESS_DENIED
        assert result.error.message == "Account suspended until 2026-03-17. Reason: Fraud"

    def test_discount_of_another_merchant_is_unavailable(self, platform):
        merchant = platform.add_merchant()
        other = platform.add_merchant("Other")
        discount = platform.add_discount(other.id)
        employee = platform.add_employee()

        result = platform.claim().execute(employee.id, merchant.id, discount.id)
        assert result.error.code == CouponErrorCode.DISCOUNT_UNAVAILABLE

    def test_inactive_merchant_is_unavailable(self, platform):
        merchant = platform.add_merchant(status=MerchantStatus.SUSPENDED)
        discount = platform.add_discount(merchant.id)
        employee = platform.add_employee()

        result = platform.claim().execute(employee.id, merchant.id, discount.id)
        assert result.error.code == CouponErrorCode.MERCHANT_UNAVAILABLE
        assert result.error.message == "Merchant is suspended"


class TestRedeemCoupon:
    def test_redeem_keeps_coupon_active(self, platform):
        _, merchant, _, coupon = _claimed(platform)

        result = platform.redeem().execute(coupon.unique_code, merchant.id, notes="table 4")

        assert result.error is None
        assert result.coupon.status == CouponStatus.ACTIVE
        assert result.remaining_uses is None
        stored = platform.coupons.get(coupon.id)
        assert stored.usage_this_month == 1
        assert stored.usage_history[0].notes == "table 4"

    def test_monthly_limit_blocks_fourth_use_and_resets_next_month(self, platform, clock):
        _, merchant, _, coupon = _claimed(platform, limit=3)
        redeem = platform.redeem()

        remaining = [
            redeem.execute(coupon.unique_code, merchant.id).remaining_uses
            for _ in range(3)
        ]
        assert remaining == [2, 1, 0]

        blocked = redeem.execute(coupon.unique_code, merchant.id)
        assert blocked.error.code == CouponErrorCode.MONTHLY_LIMIT_REACHED
        assert blocked.remaining_uses == 0
        assert platform.coupons.get(coupon.id).usage_this_month == 3

        clock.set(datetime(2026, 4, 2, 9, 0, tzinfo=timezone.utc))
        next_month = redeem.execute(coupon.unique_code, merchant.id)

        assert next_month.error is None
        assert next_month.remaining_uses == 2
        stored = platform.coupons.get(coupon.id)
        assert stored.usage_this_month == 1
        assert len(stored.usage_history) == 4

    def test_coupon_without_expiry_works_a_year_later(self, platform, clock):
        _, merchant, _, coupon = _claimed(platform)
        clock.advance(days=365)

        assert platform.redeem().execute(coupon.unique_code, merchant.id).error is None

    def test_wrong_merchant_is_rejected(self, platform):
        _, _, _, coupon = _claimed(platform)

        result = platform.redeem().execute(coupon.unique_code, uuid4())

        assert result.error.code == CouponErrorCode.WRONG_MERCHANT
        assert result.error.message == "This coupon is not for your restaurant"

    def test_suspended_merchant_cannot_redeem(self, platform):
        _, merchant, _, coupon = _claimed(platform)
        stored = platform.merchants.get(merchant.id)
        stored.status = MerchantStatus.SUSPENDED
        assert platform.merchants.save(stored, expected_version=stored.version)

        result = platform.redeem().execute(coupon.unique_code, merchant.id)

        assert result.error.code == CouponErrorCode.MERCHANT_UNAVAILABLE
        assert result.error.message == "Merchant is suspended"
        assert platform.coupons.get(coupon.id).usage_this_month == 0
        assert platform.events.of_type(EventType.COUPON_REDEEMED) == []

    def test_unknown_code_is_not_found(self, platform):
        result = platform.redeem().execute("ZZZZ9999", uuid4())
        assert result.error.code == CouponErrorCode.NOT_FOUND

    def test_expired_coupon_is_marked_expired(self, platform, clock):
        _, merchant, _, coupon = _claimed(platform)
        stored = platform.coupons.get(coupon.id)
        stored.expires_at = clock() - timedelta(minutes=1)
        platform.coupons.save(stored, expected_version=stored.version)

        result = platform.redeem().execute(coupon.unique_code, merchant.id)

        assert result.error.code == CouponErrorCode.EXPIRED
        assert platform.coupons.get(coupon.id).status == CouponStatus.EXPIRED
        assert len(platform.events.of_type(EventType.COUPON_EXPIRED)) == 1

    def test_cancelled_coupon_is_not_active(self, platform, clock):
        employee, merchant, _, coupon = _claimed(platform)
        platform.coupons.cancel_active_for_employee(employee.id, clock())

        result = platform.redeem().execute(coupon.unique_code, merchant.id)
        assert result.error.code == CouponErrorCode.NOT_ACTIVE

    def test_first_use_bonus_applies_once_across_merchants(self, platform):
        employee = platform.add_employee()
        _, first_merchant, _, first = _claimed(
            platform, percentage=10, bonus=5, employee=employee
        )
        _, second_merchant, _, second = _claimed(
            platform, percentage=20, bonus=5, employee=employee
        )
        redeem = platform.redeem()

        with_bonus = redeem.execute(first.unique_code, first_merchant.id)
        without_bonus = redeem.execute(second.unique_code, second_merchant.id)
        repeat = redeem.execute(first.unique_code, first_merchant.id)

        assert with_bonus.bonus_applied is True
        assert with_bonus.bonus_percentage == 5
        assert with_bonus.total_discount == 15
        assert without_bonus.bonus_applied is False
        assert without_bonus.total_discount == 20
        assert repeat.bonus_applied is False
        assert platform.employees.get(employee.id).first_redeemed_at is not None

    def test_referrer_is_credited_once(self, platform):
        referrer = platform.add_employee(email="ref@acme.test")
        employee = platform.add_employee(referred_by=referrer.id)
        _, merchant, _, coupon = _claimed(platform, employee=employee)
        redeem = platform.redeem()

        redeem.execute(coupon.unique_code, merchant.id)
        redeem.execute(coupon.unique_code, merchant.id)

        assert platform.employees.get(referrer.id).referral_points == 100
        earned = platform.events.of_type(EventType.REFERRAL_POINTS_EARNED)
        assert len(earned) == 1
        assert earned[0].payload["referrer_id"] == str(referrer.id)

    def test_redeem_invalidates_cached_coupon(self, platform):
        _, merchant, _, coupon = _claimed(platform)
        assert platform.cache.get(coupon_key(coupon.unique_code)) is not None

        platform.redeem().execute(coupon.unique_code, merchant.id)

        assert platform.cache.get(coupon_key(coupon.unique_code)) is None
        redeemed = platform.events.of_type(EventType.COUPON_REDEEMED)
        assert redeemed[0].payload["total_discount"] == 10


class TestCouponQueries:
    def test_list_reports_usage(self, platform):
        employee, merchant, _, coupon = _claimed(platform, limit=2)
        platform.redeem().execute(coupon.unique_code, merchant.id)
        platform.redeem().execute(coupon.unique_code, merchant.id)

        result = ListEmployeeCouponsUseCase(
            platform.coupons,
            platform.discounts,
            platform.access,
            public_base_url=BASE_URL,
            clock=platform.clock,
        ).execute(employee.id)

        assert len(result.coupons) == 1
        usage = result.coupons[0].usage
        assert usage.used_this_month == 2
        assert usage.remaining == 0
        assert usage.can_use is False
        assert usage.resets_on == "2026-04-01"

    def test_lookup_helpers(self, platform):
        employee, merchant, _, coupon = _claimed(platform)
        lookup = CouponLookupUseCase(platform.coupons, clock=platform.clock)

        assert lookup.by_code(coupon.unique_code).id == coupon.id
        assert lookup.has_active_coupon_for_merchant(employee.id, merchant.id)
        assert lookup.claimed_merchant_ids(employee.id) == [merchant.id]

    def test_expire_sweep_only_touches_expired_coupons(self, platform, clock):
        _, _, _, expiring = _claimed(platform)
        _claimed(platform)
        stored = platform.coupons.get(expiring.id)
        stored.expires_at = clock() + timedelta(hours=1)
        platform.coupons.save(stored, expected_version=stored.version)

        sweep = ExpireCouponsUseCase(platform.coupons, platform.events, clock=clock)
        assert sweep.execute().expired == 0

        clock.advance(hours=2)
        assert sweep.execute().expired == 1
        assert platform.coupons.get(expiring.id).status == CouponStatus.EXPIRED

    def test_regenerate_token_replaces_code_and_signature(self, platform):
        employee, _, _, coupon = _claimed(platform)
        use_case = RegenerateCouponTokenUseCase(
            platform.coupons,
            platform.signer,
            platform.cache,
            public_base_url=BASE_URL,
            clock=platform.clock,
        )

        result = use_case.execute(coupon.id, employee.id)

        assert result.error is None
        assert platform.cache.get(coupon_key(coupon.unique_code)) is None
        assert platform.cache.get(coupon_key(result.coupon.unique_code)) is not None
        assert platform.signer.verify(result.coupon.signed_payload, result.coupon.signature)

    def test_regenerate_someone_elses_coupon_is_not_found(self, platform):
        _, _, _, coupon = _claimed(platform)
        use_case = RegenerateCouponTokenUseCase(
            platform.coupons, platform.signer, platform.cache, public_base_url=BASE_URL
        )

        result = use_case.execute(coupon.id, uuid4())
        assert result.error.code == CouponErrorCode.NOT_FOUND


def test_company_discount_claim_uses_discount_percentage(platform):
    company = platform.add_company()
    merchant = platform.add_merchant()
    discount = platform.add_discount(
        merchant.id, type=DiscountType.COMPANY, percentage=25, company_id=company.id
    )
    employee = platform.add_employee(company.id)

    claim = platform.claim().execute(employee.id, merchant.id, discount.id)
    redeem = platform.redeem().execute(claim.coupon.unique_code, merchant.id)

    assert redeem.total_discount == 25


class TestConcurrentWrites:
    @pytest.fixture(autouse=True)
    def _generous_retries(self, monkeypatch):
        # R: Cada perdedor reintenta a lo sumo una vez por ganador.
        settings = get_settings()
        monkeypatch.setattr(settings, "retry_max_attempts", 25)
        monkeypatch.setattr(settings, "retry_base_delay_seconds", 0.001)
        monkeypatch.setattr(settings, "retry_max_delay_seconds", 0.01)

    def test_parallel_redemptions_never_exceed_limit(self, platform):
        _, merchant, _, coupon = _claimed(platform, limit=3)
        barrier = threading.Barrier(20, timeout=10)

        def redeem_once():
            barrier.wait()
            return platform.redeem().execute(coupon.unique_code, merchant.id)

        with ThreadPoolExecutor(max_workers=20) as pool:
            results = list(pool.map(lambda _: redeem_once(), range(20)))

        succeeded = [r for r in results if r.error is None]
        rejected = [r for r in results if r.error is not None]
        assert len(succeeded) == 3
        assert {r.error.code for r in rejected} == {CouponErrorCode.MONTHLY_LIMIT_REACHED}
        stored = platform.coupons.get(coupon.id)
        assert stored.usage_this_month == 3
        assert len(stored.usage_history) == 3

    def test_parallel_claims_leave_one_active_coupon(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id)
        employee = platform.add_employee()
        barrier = threading.Barrier(10, timeout=10)

        def claim_once():
            barrier.wait()
            return platform.claim().execute(employee.id, merchant.id, discount.id)

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(lambda _: claim_once(), range(10)))

        assert len([r for r in results if r.error is None]) == 1
        assert {r.error.code for r in results if r.error is not None} == {
            CouponErrorCode.DUPLICATE_ACTIVE_COUPON
        }
        active = [
            c
            for c in platform.coupons.list_by_employee(employee.id)
            if c.status == CouponStatus.ACTIVE
        ]
        assert len(active) == 1
