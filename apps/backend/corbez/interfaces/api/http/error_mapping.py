"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir los códigos de verificación (cupón / pase) a HTTP RFC7807.
  - Mantener el dominio y los casos de uso libres de HTTP.

Tabla:
  NOT_FOUND                          -> 404
  INVALID_DATA / INVALID_SIGNATURE   -> 400
  EXPIRED / CANCELLED / REVOKED /
  NOT_ACTIVE                         -> 410
  EMPLOYEE_INACTIVE / ACCESS_DENIED  -> 403
===============================================================================
"""

from __future__ import annotations

from ....application.usecases.coupons import CouponErrorCode
from ....application.usecases.passes import PassErrorCode
from ....crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    forbidden,
    gone,
    internal_error,
    invalid_data,
    not_found,
)

_GONE = {"EXPIRED", "CANCELLED", "REVOKED", "NOT_ACTIVE"}


def verification_exception(
    code: CouponErrorCode | PassErrorCode,
    message: str,
    *,
    resource: str,
    identifier: str,
) -> AppHTTPException:
    value = code.value
    if value == "NOT_FOUND":
        return not_found(resource, identifier)
    if value == "INVALID_DATA":
        return invalid_data(message)
    if value == "INVALID_SIGNATURE":
        return AppHTTPException(400, ErrorCode.INVALID_SIGNATURE, message)
    if value in _GONE:
        return gone(ErrorCode(value), message)
    if value in {"EMPLOYEE_INACTIVE", "ACCESS_DENIED"}:
        return forbidden(ErrorCode.EMPLOYEE_INACTIVE, message)
    return internal_error(message)
