"""
===============================================================================
USE CASE: Verify Employee Pass
===============================================================================

Business Goal:
    Responder a un comercio si el pase presentado es auténtico y si el
    empleado está activo AHORA.

Flow:
    1) Firma ausente -> INVALID_DATA.
    2) Payload firmado: caché (`pass:{pass_id}`) o store.
    3) Firma sobre el payload guardado -> INVALID_SIGNATURE.
    4) Estado del pase desde el store (system of record): REVOKED / EXPIRED.
    5) Estado del empleado desde el store -> EMPLOYEE_INACTIVE.

Notes:
    - La firma sola no alcanza: un token válido de un pase revocado falla.
===============================================================================
"""

from __future__ import annotations

from ....crosscutting.metrics import record_token_verification
from ....domain.entities import PassStatus
from ....domain.repositories import EmployeePassRepository, EmployeeRepository
from ....domain.services import KeyValueCache, TokenSigner
from ...access_policy import describe_employee_access
from ...cache_keys import pass_key
from .issue_pass import pass_cache_entry
from .pass_results import PassErrorCode, PassVerificationResult, pass_error


class VerifyEmployeePassUseCase:
    def __init__(
        self,
        pass_repository: EmployeePassRepository,
        employee_repository: EmployeeRepository,
        signer: TokenSigner,
        cache: KeyValueCache,
        *,
        cache_ttl_seconds: int = 86400 * 30,
    ) -> None:
        self._passes = pass_repository
        self._employees = employee_repository
        self._signer = signer
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds

    def _fail(self, code: PassErrorCode, message: str) -> PassVerificationResult:
        record_token_verification("pass", code.value.lower())
        return PassVerificationResult(error=pass_error(code, message))

    def execute(self, pass_id: str, signature: str | None) -> PassVerificationResult:
        if not signature:
            return self._fail(PassErrorCode.INVALID_DATA, "Signature is required")

        cached = self._cache.get(pass_key(pass_id))
        if isinstance(cached, dict) and cached.get("signed_payload"):
            if not self._signer.verify(cached["signed_payload"], signature):
                return self._fail(PassErrorCode.INVALID_SIGNATURE, "Invalid signature")

        employee_pass = self._passes.get_by_pass_id(pass_id)
        if employee_pass is None:
            return self._fail(PassErrorCode.NOT_FOUND, "Pass not found")

        if cached is None:
            self._cache.set(
                pass_key(pass_id),
                pass_cache_entry(employee_pass),
                self._cache_ttl_seconds,
            )

        if not self._signer.verify(employee_pass.signed_payload, signature):
            return self._fail(PassErrorCode.INVALID_SIGNATURE, "Invalid signature")

        if employee_pass.status == PassStatus.REVOKED:
            return self._fail(PassErrorCode.REVOKED, "Pass has been revoked")
        if employee_pass.status == PassStatus.EXPIRED:
            return self._fail(PassErrorCode.EXPIRED, "Pass has expired")

        employee = self._employees.get(employee_pass.employee_id)
        decision = describe_employee_access(employee)
        if not decision.allowed or employee is None:
            return self._fail(
                PassErrorCode.EMPLOYEE_INACTIVE,
                decision.reason or "Employee is not active",
            )

        record_token_verification("pass", "valid")
        return PassVerificationResult(
            summary={
                "pass_id": employee_pass.pass_id,
                "employee": {
                    "id": str(employee.id),
                    "company_id": str(employee.company_id),
                    "status": employee.status.value,
                },
                "issued_at": (
                    employee_pass.issued_at.isoformat()
                    if employee_pass.issued_at
                    else None
                ),
            }
        )
