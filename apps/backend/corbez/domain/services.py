"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols) + tipos de la cola de jobs

Responsabilidades:
    - Definir contratos para colaboradores externos: publicación de eventos,
      firmado de tokens, caché clave/valor y cola de jobs.
    - Mantener el dominio independiente de Redis / rq / hmac.

Colaboradores:
    - application.events.dispatcher: implementa EventPublisher.
    - infrastructure.security.token_signer: implementa TokenSigner.
    - infrastructure.cache: implementa KeyValueCache.
    - infrastructure.queue.rq_queue: implementa JobQueue.

Reglas:
    - SOLO interfaces y value objects: nada de implementación.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

from .events import DomainEvent


class EventPublisher(Protocol):
    """Publicación fire-and-forget (no bloquea al productor)."""

    def publish_nowait(self, event: DomainEvent) -> None:
        ...


class TokenSigner(Protocol):
    """Firma y verificación de payloads canónicos."""

    def sign(self, payload: Mapping[str, Any]) -> str:
        ...

    def verify(self, payload: Mapping[str, Any], signature: str) -> bool:
        ...


class KeyValueCache(Protocol):
    """Caché secundaria (nunca fuente de verdad para decisiones de acceso)."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def delete_pattern(self, pattern: str) -> int:
        ...

    def incr(self, key: str, ttl_seconds: int) -> int:
        ...


# ---------------------------------------------------------------------------
# Cola de jobs
# ---------------------------------------------------------------------------


class JobType(str, Enum):
    SEND_EMAIL = "send-email"
    CLEANUP_EXPIRED_COUPONS = "cleanup-expired-coupons"
    PROCESS_EXPIRED_SUSPENSIONS = "process-expired-suspensions"
    GENERATE_SAVINGS_REPORT = "generate-savings-report"


@dataclass(frozen=True)
class JobOptions:
    """
    Opciones por job (None => default de configuración).

    delay_seconds: encola diferido.
    job_id: id explícito (dedupe).
    """

    attempts: int | None = None
    backoff_ms: int | None = None
    delay_seconds: int | None = None
    job_id: str | None = None


@dataclass(frozen=True)
class QueueStats:
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0
    scheduled: int = 0
    recurring: list[str] = field(default_factory=list)


class JobQueue(Protocol):
    def enqueue(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        """Encola y devuelve el job id."""
        ...

    def schedule_recurring(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        cron_expression: str,
    ) -> str:
        """Registra un job recurrente (cron de 5 campos); devuelve el schedule id."""
        ...

    def get_stats(self) -> QueueStats:
        ...
