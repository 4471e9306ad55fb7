"""
Name: Discount Use Cases Unit Tests

Responsibilities:
  - Verify resolution through the merchant discount cache
  - Verify create/update/toggle/delete validation and events
  - Verify single BASE per merchant
  - Verify cache invalidation on writes
"""

from uuid import uuid4

import pytest

from corbez.application.cache_keys import discounts_key
from corbez.application.usecases.discounts import (
    CreateDiscountInput,
    CreateDiscountUseCase,
    DeleteDiscountUseCase,
    DiscountErrorCode,
    ListCompanyDiscountsUseCase,
    ListMerchantDiscountsUseCase,
    ResolveDiscountUseCase,
    ToggleDiscountUseCase,
    UpdateDiscountInput,
    UpdateDiscountUseCase,
)
from corbez.domain.entities import DiscountType
from corbez.domain.events import EventType

pytestmark = pytest.mark.unit


def _manage(platform, cls):
    return cls(platform.discounts, platform.merchants, platform.discount_cache, platform.events)


class TestResolveDiscount:
    def test_company_discount_beats_base(self, platform):
        merchant = platform.add_merchant()
        company = platform.add_company()
        platform.add_discount(merchant.id, percentage=10)
        company_discount = platform.add_discount(
            merchant.id,
            type=DiscountType.COMPANY,
            percentage=20,
            company_id=company.id,
        )

        best = ResolveDiscountUseCase(platform.discount_cache).execute(
            merchant.id, employee_company_id=company.id
        )
        assert best is not None
        assert best.id == company_discount.id

    def test_spend_threshold_depends_on_order_amount(self, platform):
        merchant = platform.add_merchant()
        base = platform.add_discount(merchant.id, percentage=10)
        threshold = platform.add_discount(
            merchant.id,
            type=DiscountType.SPEND_THRESHOLD,
            percentage=15,
            min_spend=30.0,
        )
        resolve = ResolveDiscountUseCase(platform.discount_cache)

        assert resolve.execute(merchant.id, order_amount=35.0).id == threshold.id
        assert resolve.execute(merchant.id, order_amount=10.0).id == base.id

    def test_no_discounts_returns_none(self, platform):
        merchant = platform.add_merchant()
        assert ResolveDiscountUseCase(platform.discount_cache).execute(merchant.id) is None

    def test_second_lookup_is_served_from_cache(self, platform):
        merchant = platform.add_merchant()
        platform.add_discount(merchant.id, percentage=10)
        resolve = ResolveDiscountUseCase(platform.discount_cache)

        resolve.execute(merchant.id)
        assert platform.cache.get(discounts_key(merchant.id)) is not None

        # R: El repo ya no tiene nada, pero el cache sigue respondiendo.
        platform.discounts.clear()
        assert resolve.execute(merchant.id) is not None


class TestCreateDiscount:
    def test_creates_and_publishes_event(self, platform):
        merchant = platform.add_merchant()
        result = _manage(platform, CreateDiscountUseCase).execute(
            CreateDiscountInput(
                merchant_id=merchant.id,
                type=DiscountType.BASE,
                percentage=10,
                actor_id="owner-1",
            )
        )

        assert result.error is None
        assert result.discount.percentage == 10
        created = platform.events.of_type(EventType.DISCOUNT_CREATED)
        assert len(created) == 1
        assert created[0].payload["merchant_name"] == merchant.business_name
        assert created[0].actor_id == "owner-1"

    def test_second_base_discount_conflicts(self, platform):
        merchant = platform.add_merchant()
        platform.add_discount(merchant.id, percentage=10)

        result = _manage(platform, CreateDiscountUseCase).execute(
            CreateDiscountInput(merchant_id=merchant.id, type=DiscountType.BASE, percentage=12)
        )
        assert result.error.code == DiscountErrorCode.CONFLICT

    def test_unknown_merchant_is_not_found(self, platform):
        result = _manage(platform, CreateDiscountUseCase).execute(
            CreateDiscountInput(merchant_id=uuid4(), type=DiscountType.BASE, percentage=10)
        )
        assert result.error.code == DiscountErrorCode.NOT_FOUND

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"type": DiscountType.BASE, "percentage": 101},
            {"type": DiscountType.BASE, "percentage": 0},
            {"type": DiscountType.COMPANY, "percentage": 20},
            {"type": DiscountType.SPEND_THRESHOLD, "percentage": 15},
            {
                "type": DiscountType.COMPANY_PERK,
                "percentage": 5,
                "perk_description": "Free drink",
            },
        ],
    )
    def test_invalid_discounts_are_rejected(self, platform, kwargs):
        merchant = platform.add_merchant()
        result = _manage(platform, CreateDiscountUseCase).execute(
            CreateDiscountInput(merchant_id=merchant.id, **kwargs)
        )
        assert result.error.code == DiscountErrorCode.VALIDATION_ERROR
        assert platform.discounts.list_by_merchant(merchant.id) == []

    def test_create_invalidates_cached_list(self, platform):
        merchant = platform.add_merchant()
        resolve = ResolveDiscountUseCase(platform.discount_cache)
        assert resolve.execute(merchant.id) is None

        _manage(platform, CreateDiscountUseCase).execute(
            CreateDiscountInput(merchant_id=merchant.id, type=DiscountType.BASE, percentage=10)
        )
        assert resolve.execute(merchant.id) is not None


class TestUpdateToggleDelete:
    def test_update_changes_fields_and_bumps_version(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id, percentage=10)

        result = _manage(platform, UpdateDiscountUseCase).execute(
            discount.id, merchant.id, UpdateDiscountInput(percentage=12, priority=3)
        )

        assert result.error is None
        stored = platform.discounts.get(discount.id)
        assert stored.percentage == 12
        assert stored.priority == 3
        assert stored.version == discount.version + 1
        updated = platform.events.of_type(EventType.DISCOUNT_UPDATED)
        assert updated[0].payload["changes"] == ["percentage", "priority"]

    def test_update_rejects_invalid_result(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id, percentage=10)

        result = _manage(platform, UpdateDiscountUseCase).execute(
            discount.id, merchant.id, UpdateDiscountInput(percentage=150)
        )
        assert result.error.code == DiscountErrorCode.VALIDATION_ERROR
        assert platform.discounts.get(discount.id).percentage == 10

    def test_other_merchants_discount_is_not_found(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id, percentage=10)

        result = _manage(platform, ToggleDiscountUseCase).execute(discount.id, uuid4())
        assert result.error.code == DiscountErrorCode.NOT_FOUND

    def test_toggle_deactivates_and_hides_from_resolution(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id, percentage=10)
        resolve = ResolveDiscountUseCase(platform.discount_cache)
        assert resolve.execute(merchant.id) is not None

        result = _manage(platform, ToggleDiscountUseCase).execute(discount.id, merchant.id)

        assert result.discount.is_active is False
        assert resolve.execute(merchant.id) is None

    def test_delete_removes_discount(self, platform):
        merchant = platform.add_merchant()
        discount = platform.add_discount(merchant.id, percentage=10)

        result = _manage(platform, DeleteDiscountUseCase).execute(discount.id, merchant.id)

        assert result.deleted is True
        assert platform.discounts.get(discount.id) is None
        assert len(platform.events.of_type(EventType.DISCOUNT_DELETED)) == 1

    def test_delete_missing_discount(self, platform):
        result = _manage(platform, DeleteDiscountUseCase).execute(uuid4(), uuid4())
        assert result.deleted is False
        assert result.error.code == DiscountErrorCode.NOT_FOUND


class TestListDiscounts:
    def test_merchant_list_filters_inactive(self, platform):
        merchant = platform.add_merchant()
        platform.add_discount(merchant.id, percentage=10)
        platform.add_discount(
            merchant.id,
            type=DiscountType.SPEND_THRESHOLD,
            percentage=15,
            min_spend=20.0,
            is_active=False,
        )
        use_case = ListMerchantDiscountsUseCase(platform.discounts)

        assert len(use_case.execute(merchant.id).discounts) == 2
        assert len(use_case.execute(merchant.id, active_only=True).discounts) == 1

    def test_company_list_includes_perks(self, platform):
        merchant = platform.add_merchant()
        company = platform.add_company()
        platform.add_discount(merchant.id, percentage=10)
        platform.add_discount(
            merchant.id,
            type=DiscountType.COMPANY_PERK,
            percentage=0,
            company_id=company.id,
            perk_description="Free dessert",
        )

        result = ListCompanyDiscountsUseCase(platform.discounts).execute(company.id)
        assert [d.type for d in result.discounts] == [DiscountType.COMPANY_PERK]
