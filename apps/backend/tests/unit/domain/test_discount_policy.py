"""
Name: Discount Policy Unit Tests

Responsibilities:
  - Verify applicability per discount type
  - Verify best-discount selection (highest percentage, id tie-break)
  - Verify bonus cap at 100
"""

from uuid import UUID, uuid4

import pytest

from corbez.domain.discount_policy import (
    effective_percentage,
    is_discount_applicable,
    select_best_discount,
    sort_by_priority,
)
from corbez.domain.entities import Discount, DiscountType

pytestmark = pytest.mark.unit

_MERCHANT = uuid4()
_COMPANY = uuid4()


def _discount(type_: DiscountType, percentage: int, **kwargs) -> Discount:
    return Discount(
        id=kwargs.pop("id", uuid4()),
        merchant_id=_MERCHANT,
        type=type_,
        percentage=percentage,
        **kwargs,
    )


class TestApplicability:
    def test_base_always_applies(self):
        assert is_discount_applicable(_discount(DiscountType.BASE, 10))

    def test_inactive_never_applies(self):
        discount = _discount(DiscountType.BASE, 10, is_active=False)
        assert not is_discount_applicable(discount)

    def test_company_requires_matching_company(self):
        discount = _discount(DiscountType.COMPANY, 20, company_id=_COMPANY)
        assert is_discount_applicable(discount, employee_company_id=_COMPANY)
        assert not is_discount_applicable(discount, employee_company_id=uuid4())
        assert not is_discount_applicable(discount)

    def test_spend_threshold_requires_order_amount(self):
        discount = _discount(DiscountType.SPEND_THRESHOLD, 15, min_spend=25.0)
        assert is_discount_applicable(discount, order_amount=25.0)
        assert not is_discount_applicable(discount, order_amount=24.99)
        assert not is_discount_applicable(discount)

    def test_company_perk_is_never_a_percentage_discount(self):
        discount = _discount(
            DiscountType.COMPANY_PERK,
            0,
            company_id=_COMPANY,
            perk_description="Free dessert",
        )
        assert not is_discount_applicable(discount, employee_company_id=_COMPANY)


class TestSelectBest:
    def test_highest_applicable_percentage_wins(self):
        base = _discount(DiscountType.BASE, 10)
        company = _discount(DiscountType.COMPANY, 20, company_id=_COMPANY)
        threshold = _discount(DiscountType.SPEND_THRESHOLD, 15, min_spend=30.0)

        best = select_best_discount(
            [base, company, threshold], employee_company_id=_COMPANY, order_amount=50.0
        )
        assert best is company

    def test_base_beats_weaker_company_discount(self):
        base = _discount(DiscountType.BASE, 25)
        company = _discount(DiscountType.COMPANY, 15, company_id=_COMPANY)

        best = select_best_discount([company, base], employee_company_id=_COMPANY)
        assert best is base

    def test_threshold_beats_base_when_order_is_large_enough(self):
        base = _discount(DiscountType.BASE, 10)
        threshold = _discount(DiscountType.SPEND_THRESHOLD, 15, min_spend=30.0)

        assert select_best_discount([base, threshold], order_amount=40.0) is threshold
        assert select_best_discount([base, threshold], order_amount=20.0) is base

    def test_equal_percentages_pick_lowest_id(self):
        low = _discount(
            DiscountType.COMPANY,
            20,
            company_id=_COMPANY,
            id=UUID("00000000-0000-0000-0000-000000000001"),
        )
        high = _discount(
            DiscountType.COMPANY,
            20,
            company_id=_COMPANY,
            id=UUID("ffffffff-0000-0000-0000-000000000001"),
        )
        best = select_best_discount([high, low], employee_company_id=_COMPANY)
        assert best is low

    def test_nothing_applicable_returns_none(self):
        company = _discount(DiscountType.COMPANY, 20, company_id=_COMPANY)
        assert select_best_discount([company]) is None
        assert select_best_discount([]) is None


def test_sort_by_priority_descending():
    low = _discount(DiscountType.BASE, 10, priority=1)
    high = _discount(DiscountType.COMPANY, 20, priority=5, company_id=_COMPANY)
    assert sort_by_priority([low, high]) == [high, low]


@pytest.mark.parametrize(
    "base,bonus,expected",
    [(10, None, 10), (10, 0, 10), (10, 5, 15), (90, 20, 100)],
)
def test_effective_percentage(base, bonus, expected):
    assert effective_percentage(base, bonus) == expected
