"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus)

Responsabilidades:
    - Definir métricas Prometheus en un registry propio.
    - Proveer funciones pequeñas y estables para registrar eventos/duraciones.
    - Cuidar cardinalidad (NO employee_id, NO códigos de cupón).
    - Exponer helpers para generar la respuesta /metrics.

Colaboradores:
    - crosscutting.middleware: latencia y conteo HTTP.
    - application/usecases/coupons: claims / redemptions por resultado.
    - application/events: fallos de handlers.
    - worker/jobs: métricas de procesamiento asíncrono.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "corbez_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)
_request_latency = Histogram(
    "corbez_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=_registry,
)

# ------------------------
# Cupones
# ------------------------
_coupon_claims_total = Counter(
    "corbez_coupon_claims_total",
    "Intentos de claim de cupones por resultado",
    ["outcome"],
    registry=_registry,
)
_coupon_redemptions_total = Counter(
    "corbez_coupon_redemptions_total",
    "Intentos de redención de cupones por resultado",
    ["outcome"],
    registry=_registry,
)
_token_verifications_total = Counter(
    "corbez_token_verifications_total",
    "Verificaciones de tokens firmados por tipo y resultado",
    ["kind", "outcome"],
    registry=_registry,
)

# ------------------------
# Eventos / moderación
# ------------------------
_events_published_total = Counter(
    "corbez_events_published_total",
    "Eventos publicados en el dispatcher",
    ["event_type"],
    registry=_registry,
)
_event_handler_failures_total = Counter(
    "corbez_event_handler_failures_total",
    "Fallos aislados de handlers de eventos",
    ["event_type"],
    registry=_registry,
)
_moderation_actions_total = Counter(
    "corbez_moderation_actions_total",
    "Acciones de moderación registradas",
    ["target_type", "action"],
    registry=_registry,
)

# ------------------------
# Worker
# ------------------------
_worker_processed_total = Counter(
    "corbez_worker_processed_total",
    "Jobs procesados por el worker",
    ["job_type", "status"],
    registry=_registry,
)
_worker_duration = Histogram(
    "corbez_worker_duration_seconds",
    "Duración de jobs del worker (segundos)",
    ["job_type"],
    buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)


def record_request_metrics(
    *, endpoint: str, method: str, status_code: int, latency_seconds: float
) -> None:
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized, method=method, status=_status_bucket(status_code)
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_coupon_claim(outcome: str) -> None:
    _coupon_claims_total.labels(outcome=outcome).inc()


def record_coupon_redemption(outcome: str) -> None:
    _coupon_redemptions_total.labels(outcome=outcome).inc()


def record_token_verification(kind: str, outcome: str) -> None:
    _token_verifications_total.labels(kind=kind, outcome=outcome).inc()


def record_event_published(event_type: str) -> None:
    _events_published_total.labels(event_type=event_type).inc()


def record_event_handler_failure(event_type: str) -> None:
    _event_handler_failures_total.labels(event_type=event_type).inc()


def record_moderation_action(target_type: str, action: str) -> None:
    _moderation_actions_total.labels(target_type=target_type, action=action).inc()


def record_worker_processed(job_type: str, status: str) -> None:
    _worker_processed_total.labels(job_type=job_type, status=status).inc()


def observe_worker_duration(job_type: str, duration_seconds: float) -> None:
    _worker_duration.labels(job_type=job_type).observe(duration_seconds)


def _normalize_endpoint(path: str) -> str:
    """Normaliza paths para evitar cardinalidad alta (códigos y pass ids)."""
    path = re.sub(r"/verify/coupon/[^/]+", "/verify/coupon/{code}", path)
    path = re.sub(r"/verify/employee/[^/]+", "/verify/employee/{pass_id}", path)
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    return path


def _status_bucket(code: int) -> str:
    """Agrupa status code para baja cardinalidad."""
    if 200 <= code < 300:
        return "2xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST


def get_registry() -> CollectorRegistry:
    return _registry
