"""
===============================================================================
DISCOUNT USE CASES PACKAGE (Public API / Exports)
===============================================================================
"""

from __future__ import annotations

from .company_savings import CalculateCompanySavingsUseCase
from .discount_cache import MerchantDiscountCache, discount_from_dict, discount_to_dict
from .discount_results import (
    CompanySavingsResult,
    DeleteDiscountResult,
    DiscountError,
    DiscountErrorCode,
    DiscountListResult,
    DiscountResult,
    MerchantSavings,
)
from .discount_validation import validate_discount
from .list_discounts import ListCompanyDiscountsUseCase, ListMerchantDiscountsUseCase
from .manage_discounts import (
    CreateDiscountInput,
    CreateDiscountUseCase,
    DeleteDiscountUseCase,
    ToggleDiscountUseCase,
    UpdateDiscountInput,
    UpdateDiscountUseCase,
)
from .resolve_discount import ResolveDiscountUseCase

__all__ = [
    "CalculateCompanySavingsUseCase",
    "CompanySavingsResult",
    "CreateDiscountInput",
    "CreateDiscountUseCase",
    "DeleteDiscountResult",
    "DeleteDiscountUseCase",
    "DiscountError",
    "DiscountErrorCode",
    "DiscountListResult",
    "DiscountResult",
    "ListCompanyDiscountsUseCase",
    "ListMerchantDiscountsUseCase",
    "MerchantDiscountCache",
    "MerchantSavings",
    "ResolveDiscountUseCase",
    "ToggleDiscountUseCase",
    "UpdateDiscountInput",
    "UpdateDiscountUseCase",
    "discount_from_dict",
    "discount_to_dict",
    "validate_discount",
]
