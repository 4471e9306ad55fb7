"""Moderation use cases (public API)."""

from __future__ import annotations

from .appeals import ResolveAppealUseCase, SubmitAppealUseCase
from .employee_moderation import (
    BanEmployeeUseCase,
    ModerationCommand,
    SuspendCommand,
    SuspendEmployeeUseCase,
    UnsuspendEmployeeUseCase,
    WarnEmployeeUseCase,
)
from .expired_suspensions import ProcessExpiredSuspensionsUseCase
from .moderation_base import ModerationPolicy, ModerationRecorder
from .moderation_queries import GetModerationHistoryUseCase, ListPendingAppealsUseCase
from .moderation_results import (
    ExpiredSuspensionsResult,
    ModerationError,
    ModerationErrorCode,
    ModerationListResult,
    ModerationResult,
)
from .organization_moderation import (
    ReactivateCompanyUseCase,
    ReactivateMerchantUseCase,
    SuspendCompanyUseCase,
    SuspendMerchantUseCase,
)

__all__ = [
    "BanEmployeeUseCase",
    "ExpiredSuspensionsResult",
    "GetModerationHistoryUseCase",
    "ListPendingAppealsUseCase",
    "ModerationCommand",
    "ModerationError",
    "ModerationErrorCode",
    "ModerationListResult",
    "ModerationPolicy",
    "ModerationRecorder",
    "ModerationResult",
    "ProcessExpiredSuspensionsUseCase",
    "ReactivateCompanyUseCase",
    "ReactivateMerchantUseCase",
    "ResolveAppealUseCase",
    "SubmitAppealUseCase",
    "SuspendCommand",
    "SuspendCompanyUseCase",
    "SuspendEmployeeUseCase",
    "SuspendMerchantUseCase",
    "UnsuspendEmployeeUseCase",
    "WarnEmployeeUseCase",
]
