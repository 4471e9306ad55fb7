"""
===============================================================================
TARJETA CRC — worker/jobs.py (Jobs RQ: mantenimiento y notificaciones)
===============================================================================

Responsabilidades:
  - Definir los entrypoints ejecutados por RQ, uno por JobType.
  - Validar payloads de forma fail-fast (payload inválido => INVALID, sin
    reintento: reintentar no lo arregla).
  - Construir casos de uso desde el contenedor.
  - Respetar el rate limit compartido del worker.
  - Logs/métricas con contexto consistente y limpieza de contexto al final.
  - Drenar el dispatcher: el work-horse de RQ termina con el job y los
    eventos fire-and-forget se perderían.

Colaboradores:
  - container.get_* (casos de uso, dispatcher, rate limiter)
  - crosscutting.metrics (record_worker_processed, observe_worker_duration)
  - context (set_request_context, clear_context)
===============================================================================
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping
from uuid import UUID

from rq import get_current_job

from ..application.clock import utcnow
from ..container import (
    get_event_dispatcher,
    get_expire_coupons_use_case,
    get_job_rate_limiter,
    get_process_expired_suspensions_use_case,
    get_savings_report_use_case,
)
from ..context import clear_context, set_request_context
from ..crosscutting.logger import logger
from ..crosscutting.metrics import observe_worker_duration, record_worker_processed
from ..domain.periods import period_key
from ..domain.services import JobType

REQUIRED_EMAIL_FIELDS = ("to", "subject", "template")


class InvalidJobPayload(ValueError):
    pass


class JobRateLimited(RuntimeError):
    """Sin cupo tras esperar el máximo; RQ reintenta el job."""


def _current_job_id() -> str:
    job = get_current_job()
    return str(getattr(job, "id", "") or "")


def run_job(
    job_type: JobType,
    payload: Mapping[str, Any],
    handler: Callable[[Mapping[str, Any]], Mapping[str, Any] | None],
) -> Mapping[str, Any] | None:
    """
    Envoltorio común de todos los jobs.

    Contrato:
      - Excepción del handler => FAILED + re-raise (RQ aplica Retry).
      - InvalidJobPayload => INVALID, se loguea y NO se reintenta.
      - Sin cupo de rate limit => RATE_LIMITED + JobRateLimited (RQ reintenta).
    """
    job_id = _current_job_id()
    set_request_context(
        request_id=job_id or job_type.value,
        method="WORKER",
        path=f"rq.{job_type.value}",
    )

    start = time.perf_counter()
    status = "UNKNOWN"
    result: Mapping[str, Any] | None = None
    try:
        limiter = get_job_rate_limiter()
        if limiter is not None and not limiter.acquire("jobs"):
            raise JobRateLimited(f"No rate-limit slot for {job_type.value}")
        logger.info("Worker job iniciado", extra={"job_id": job_id, "job_type": job_type.value})
        result = handler(payload or {})
        status = "COMPLETED"
        return result
    except InvalidJobPayload as exc:
        status = "INVALID"
        logger.error(
            "Job inválido: payload malformado",
            extra={"job_id": job_id, "job_type": job_type.value, "error": str(exc)},
        )
        return None
    except JobRateLimited as exc:
        status = "RATE_LIMITED"
        logger.warning(
            "Job sin cupo de rate limit, se reintenta",
            extra={"job_id": job_id, "job_type": job_type.value, "error": str(exc)},
        )
        raise
    except Exception as exc:
        status = "FAILED"
        logger.exception(
            "Worker job falló con excepción",
            extra={"job_id": job_id, "job_type": job_type.value, "error": str(exc)},
        )
        raise
    finally:
        get_event_dispatcher().drain()
        duration = time.perf_counter() - start
        record_worker_processed(job_type.value, status)
        observe_worker_duration(job_type.value, duration)
        logger.info(
            "Worker job finalizado",
            extra={
                "job_id": job_id,
                "job_type": job_type.value,
                "status": status,
                "duration_seconds": round(duration, 3),
            },
        )
        clear_context()


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


def _send_email(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    missing = [key for key in REQUIRED_EMAIL_FIELDS if not payload.get(key)]
    if missing:
        raise InvalidJobPayload(f"missing fields: {', '.join(missing)}")
    # R: El transporte real (SMTP/proveedor) es un colaborador externo; acá
    # solo queda el registro de la entrega.
    logger.info(
        "Email entregado al transporte",
        extra={"template": payload["template"], "subject": payload["subject"]},
    )
    return {"template": payload["template"]}


def _cleanup_expired_coupons(_: Mapping[str, Any]) -> Mapping[str, Any]:
    result = get_expire_coupons_use_case().execute()
    return {"expired": result.expired}


def _process_expired_suspensions(_: Mapping[str, Any]) -> Mapping[str, Any]:
    result = get_process_expired_suspensions_use_case().execute()
    return {
        "employees": result.employees,
        "merchants": result.merchants,
        "companies": result.companies,
    }


def _parse_month(raw: Any) -> int:
    if not raw:
        return period_key(utcnow())
    try:
        year, month = (int(part) for part in str(raw).split("-", 1))
    except ValueError as exc:
        raise InvalidJobPayload(f"month must be YYYY-MM, got {raw!r}") from exc
    if not 1 <= month <= 12:
        raise InvalidJobPayload(f"month out of range: {raw!r}")
    return year * 12 + (month - 1)


def _generate_savings_report(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    try:
        company_id = UUID(str(payload.get("company_id")))
    except ValueError as exc:
        raise InvalidJobPayload("company_id must be a UUID") from exc
    report = get_savings_report_use_case().execute(
        company_id, _parse_month(payload.get("month"))
    )
    return report.to_dict()


# -----------------------------------------------------------------------------
# Entrypoints RQ
# -----------------------------------------------------------------------------


def send_email_job(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    return run_job(JobType.SEND_EMAIL, payload, _send_email)


def cleanup_expired_coupons_job(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    return run_job(JobType.CLEANUP_EXPIRED_COUPONS, payload, _cleanup_expired_coupons)


def process_expired_suspensions_job(
    payload: Mapping[str, Any],
) -> Mapping[str, Any] | None:
    return run_job(
        JobType.PROCESS_EXPIRED_SUSPENSIONS, payload, _process_expired_suspensions
    )


def generate_savings_report_job(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    return run_job(JobType.GENERATE_SAVINGS_REPORT, payload, _generate_savings_report)


__all__ = [
    "cleanup_expired_coupons_job",
    "generate_savings_report_job",
    "process_expired_suspensions_job",
    "run_job",
    "send_email_job",
]
