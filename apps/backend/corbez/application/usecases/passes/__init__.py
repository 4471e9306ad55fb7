"""Employee pass use cases (public API)."""

from __future__ import annotations

from .issue_pass import IssueEmployeePassUseCase
from .pass_results import (
    PassError,
    PassErrorCode,
    PassResult,
    PassVerificationResult,
    RevokePassResult,
)
from .revoke_pass import RevokeEmployeePassUseCase
from .verify_pass import VerifyEmployeePassUseCase

__all__ = [
    "IssueEmployeePassUseCase",
    "PassError",
    "PassErrorCode",
    "PassResult",
    "PassVerificationResult",
    "RevokeEmployeePassUseCase",
    "RevokePassResult",
    "VerifyEmployeePassUseCase",
]
