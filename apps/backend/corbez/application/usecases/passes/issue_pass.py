"""
===============================================================================
USE CASE: Issue Employee Pass (get-or-create)
===============================================================================

Business Goal:
    Entregar al empleado su pase permanente firmado (no atado a un comercio),
    usado por los comercios para verificar que el empleado está activo.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    IssueEmployeePassUseCase

Responsibilities:
    - Exigir acceso (AccessPolicy); si no, ACCESS_DENIED con la razón.
    - Devolver el pase ACTIVE existente, o crear uno nuevo firmado.
    - Insert condicional (un único ACTIVE por empleado): si perdemos la
      carrera, devolvemos el pase del ganador.
    - Cachear `pass:{pass_id}` y publicar pass.issued.

Collaborators:
    - EmployeeRepository, EmployeePassRepository
    - AccessPolicy, TokenSigner, KeyValueCache, EventPublisher
===============================================================================
"""

from __future__ import annotations

from typing import Any, Dict
from uuid import UUID, uuid4

from ....domain.entities import EmployeePass, PassStatus
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import EmployeePassRepository, EmployeeRepository
from ....domain.services import EventPublisher, KeyValueCache, TokenSigner
from ....domain.tokens import (
    build_pass_payload,
    generate_pass_id,
    pass_verification_url,
)
from ...access_policy import AccessPolicy
from ...cache_keys import pass_key
from ...clock import Clock, utcnow
from .pass_results import PassErrorCode, PassResult, pass_error


def pass_cache_entry(employee_pass: EmployeePass) -> Dict[str, Any]:
    return {
        "pass_id": employee_pass.pass_id,
        "signature": employee_pass.signature,
        "signed_payload": employee_pass.signed_payload,
    }


class IssueEmployeePassUseCase:
    def __init__(
        self,
        employee_repository: EmployeeRepository,
        pass_repository: EmployeePassRepository,
        access_policy: AccessPolicy,
        signer: TokenSigner,
        cache: KeyValueCache,
        events: EventPublisher,
        *,
        public_base_url: str,
        cache_ttl_seconds: int = 86400 * 30,
        clock: Clock = utcnow,
    ) -> None:
        self._employees = employee_repository
        self._passes = pass_repository
        self._access = access_policy
        self._signer = signer
        self._cache = cache
        self._events = events
        self._public_base_url = public_base_url
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    def _result(self, employee_pass: EmployeePass, *, created: bool) -> PassResult:
        return PassResult(
            employee_pass=employee_pass,
            verification_url=pass_verification_url(
                self._public_base_url, employee_pass.pass_id, employee_pass.signature
            ),
            created=created,
        )

    def execute(self, employee_id: UUID) -> PassResult:
        decision = self._access.can_employee_access(employee_id)
        if not decision.allowed:
            return PassResult(
                error=pass_error(PassErrorCode.ACCESS_DENIED, decision.reason or "")
            )

        existing = self._passes.get_active_for_employee(employee_id)
        if existing is not None:
            return self._result(existing, created=False)

        employee = self._employees.get(employee_id)
        if employee is None:
            return PassResult(
                error=pass_error(PassErrorCode.NOT_FOUND, "Employee not found")
            )

        now = self._clock()
        pass_id = generate_pass_id()
        payload = build_pass_payload(
            pass_id=pass_id,
            user_id=employee.effective_user_id,
            employee_id=employee.id,
            company_id=employee.company_id,
            issued_at=now,
        )
        employee_pass = EmployeePass(
            id=uuid4(),
            pass_id=pass_id,
            employee_id=employee.id,
            user_id=employee.effective_user_id,
            company_id=employee.company_id,
            status=PassStatus.ACTIVE,
            signature=self._signer.sign(payload),
            signed_payload=payload,
            issued_at=now,
        )

        if not self._passes.create_if_no_active(employee_pass):
            winner = self._passes.get_active_for_employee(employee_id)
            if winner is None:
                return PassResult(
                    error=pass_error(PassErrorCode.NOT_FOUND, "Pass not found")
                )
            return self._result(winner, created=False)

        self._cache.set(
            pass_key(pass_id), pass_cache_entry(employee_pass), self._cache_ttl_seconds
        )
        self._events.publish_nowait(
            DomainEvent(
                type=EventType.PASS_ISSUED,
                payload={
                    "pass_id": pass_id,
                    "employee_id": str(employee.id),
                    "company_id": str(employee.company_id),
                },
                actor_id=str(employee.effective_user_id),
            )
        )
        return self._result(employee_pass, created=True)
