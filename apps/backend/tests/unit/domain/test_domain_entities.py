"""
Name: Domain Entities Unit Tests

Responsibilities:
  - Verify monthly period keys and labels
  - Verify coupon rollover / usage bookkeeping
  - Verify suspension durations (calendar months included)
  - Verify token payload builders and verification URLs
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from corbez.domain.entities import (
    ClaimedCoupon,
    Duration,
    DurationUnit,
    UsageEntry,
    add_months,
)
from corbez.domain.periods import period_key, period_label
from corbez.domain.tokens import (
    COUPON_CODE_ALPHABET,
    COUPON_CODE_LENGTH,
    build_coupon_payload,
    coupon_verification_url,
    generate_coupon_code,
    generate_pass_id,
    pass_verification_url,
)

pytestmark = pytest.mark.unit


class TestPeriods:
    def test_period_key_is_months_since_epoch_year(self):
        assert period_key(datetime(2026, 1, 1, tzinfo=timezone.utc)) == 2026 * 12
        assert period_key(datetime(2026, 12, 31, tzinfo=timezone.utc)) == 2026 * 12 + 11

    def test_period_key_uses_utc(self):
        minus_five = timezone(timedelta(hours=-5))
        # 2026-01-31 22:00 -05:00 is already February in UTC.
        moment = datetime(2026, 1, 31, 22, 0, tzinfo=minus_five)
        assert period_label(period_key(moment)) == "2026-02"

    def test_period_label(self):
        assert period_label(2026 * 12 + 2) == "2026-03"


def _coupon() -> ClaimedCoupon:
    return ClaimedCoupon(
        id=uuid4(),
        employee_id=uuid4(),
        merchant_id=uuid4(),
        discount_id=uuid4(),
        unique_code="ABCD2345",
    )


class TestCouponUsage:
    def test_record_use_appends_history_and_counts(self):
        coupon = _coupon()
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)
        coupon.record_use(UsageEntry(redeemed_at=now, period_key=period_key(now)))

        assert coupon.usage_this_month == 1
        assert coupon.last_reset_period == period_key(now)
        assert len(coupon.usage_history) == 1

    def test_roll_period_resets_counter_on_new_month(self):
        coupon = _coupon()
        coupon.usage_this_month = 3
        coupon.last_reset_period = 100

        assert coupon.roll_period(101) is True
        assert coupon.usage_this_month == 0
        assert coupon.roll_period(101) is False

    def test_uses_in_period_ignores_stale_counter(self):
        coupon = _coupon()
        coupon.usage_this_month = 2
        coupon.last_reset_period = 100
        assert coupon.uses_in_period(100) == 2
        assert coupon.uses_in_period(101) == 0

    def test_history_uses_in_period_counts_closed_months(self):
        coupon = _coupon()
        march = datetime(2026, 3, 30, tzinfo=timezone.utc)
        april = datetime(2026, 4, 1, tzinfo=timezone.utc)
        coupon.record_use(UsageEntry(redeemed_at=march, period_key=period_key(march)))
        coupon.record_use(UsageEntry(redeemed_at=april, period_key=period_key(april)))

        assert coupon.uses_in_period(period_key(march)) == 0
        assert coupon.history_uses_in_period(period_key(march)) == 1
        assert coupon.history_uses_in_period(period_key(april)) == 1

    def test_never_expires_without_expiry(self):
        coupon = _coupon()
        assert not coupon.is_expired(datetime(2099, 1, 1, tzinfo=timezone.utc))


class TestDuration:
    start = datetime(2026, 1, 31, 10, 0, tzinfo=timezone.utc)

    def test_permanent_has_no_expiry(self):
        assert Duration.permanent().expires_from(self.start) is None
        assert Duration.permanent().is_permanent

    @pytest.mark.parametrize(
        "unit,value,expected",
        [
            (DurationUnit.HOURS, 5, datetime(2026, 1, 31, 15, 0, tzinfo=timezone.utc)),
            (DurationUnit.DAYS, 7, datetime(2026, 2, 7, 10, 0, tzinfo=timezone.utc)),
            (DurationUnit.WEEKS, 1, datetime(2026, 2, 7, 10, 0, tzinfo=timezone.utc)),
            (DurationUnit.MONTHS, 1, datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)),
        ],
    )
    def test_expires_from(self, unit, value, expected):
        assert Duration(value=value, unit=unit).expires_from(self.start) == expected

    def test_add_months_crosses_year(self):
        assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


class TestTokens:
    def test_coupon_code_shape(self):
        code = generate_coupon_code()
        assert len(code) == COUPON_CODE_LENGTH
        assert set(code) <= set(COUPON_CODE_ALPHABET)

    def test_pass_id_prefix(self):
        assert generate_pass_id().startswith("PASS-")

    def test_coupon_payload_has_null_expiry_for_reusable_coupons(self):
        payload = build_coupon_payload(
            coupon_id=uuid4(),
            code="ABCD2345",
            employee_id=uuid4(),
            merchant_id=uuid4(),
            discount_id=uuid4(),
            expires_at=None,
        )
        assert payload["type"] == "coupon"
        assert payload["expiresAt"] is None

    def test_verification_urls(self):
        assert (
            coupon_verification_url("https://x.test/", "ABCD2345", "sig")
            == "https://x.test/verify/coupon/ABCD2345?s=sig"
        )
        assert (
            pass_verification_url("https://x.test", "PASS-1", "sig")
            == "https://x.test/verify/employee/PASS-1?s=sig"
        )
