"""
===============================================================================
TARJETA CRC — routers/verify.py
===============================================================================

Name:
    Verification Router

Responsibilities:
    - GET /verify/coupon/{code}?s={signature}
    - GET /verify/employee/{pass_id}?s={signature}
    - Firma + estado vivo en el store (ver casos de uso); errores RFC7807.

Collaborators:
    - application.usecases.coupons.VerifyCouponUseCase
    - application.usecases.passes.VerifyEmployeePassUseCase
    - error_mapping.verification_exception
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from .....application.usecases.coupons import VerifyCouponUseCase
from .....application.usecases.passes import VerifyEmployeePassUseCase
from .....container import get_verify_coupon_use_case, get_verify_pass_use_case
from ..error_mapping import verification_exception
from ..schemas.verify import CouponVerificationResponse, PassVerificationResponse

router = APIRouter(prefix="/verify", tags=["verify"])


@router.get("/coupon/{code}", response_model=CouponVerificationResponse)
def verify_coupon(
    code: str,
    s: str | None = Query(default=None, max_length=128),
    use_case: VerifyCouponUseCase = Depends(get_verify_coupon_use_case),
):
    result = use_case.execute(code, s)
    if result.error is not None:
        raise verification_exception(
            result.error.code, result.error.message, resource="Coupon", identifier=code
        )
    return CouponVerificationResponse(**result.summary)


@router.get("/employee/{pass_id}", response_model=PassVerificationResponse)
def verify_employee_pass(
    pass_id: str,
    s: str | None = Query(default=None, max_length=128),
    use_case: VerifyEmployeePassUseCase = Depends(get_verify_pass_use_case),
):
    result = use_case.execute(pass_id, s)
    if result.error is not None:
        raise verification_exception(
            result.error.code,
            result.error.message,
            resource="Employee pass",
            identifier=pass_id,
        )
    return PassVerificationResponse(**result.summary)
