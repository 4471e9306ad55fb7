"""
===============================================================================
ARCHIVO: infrastructure/queue/rq_queue.py
===============================================================================

CRC CARD (Class)
-------------------------------------------------------------------------------
Clase:
    RQJobQueue (Adapter)

Responsabilidades:
    - Implementar el puerto `JobQueue` usando RQ sobre Redis.
    - Reintentos con backoff exponencial: Retry(max=attempts-1,
      interval=[backoff * 2^i]).
    - Dead letter: tras el último intento el job queda en el
      FailedJobRegistry de RQ (failure_ttl) para inspección manual.
    - Registrar jobs recurrentes (cron) en Redis para el scheduler del worker.
    - Exponer contadores de la cola (get_stats).

Colaboradores:
    - domain.services.JobQueue / JobType / JobOptions / QueueStats
    - job_paths.JOB_FUNCTION_PATHS
    - import_utils.broken_paths
    - recurring.RecurringRegistry
    - crosscutting.exceptions.QueueConfigurationError / QueueEnqueueError

Patrones:
    - Adapter + Fail-Fast (paths de jobs validados al construir).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from redis import Redis
from rq import Queue, Retry

from ...crosscutting.config import Settings
from ...crosscutting.exceptions import (
    QueueConfigurationError,
    QueueEnqueueError,
    QueueError,
)
from ...crosscutting.logger import logger
from ...domain.services import JobOptions, JobQueue, JobType, QueueStats
from .cron import CronExpression, CronParseError
from .import_utils import broken_paths
from .job_paths import JOB_FUNCTION_PATHS, JOBS_QUEUE_NAME, job_path_for
from .recurring import RecurringRegistry, RecurringSchedule


@dataclass(frozen=True)
class RQQueueConfig:
    """Configuración del adaptador RQ.

    attempts:
        Intentos totales (0 o 1 = sin reintentos).
    backoff_ms:
        Demora base del primer reintento; se duplica en cada intento.
    failure_ttl_seconds:
        Tiempo que un job fallido permanece en el FailedJobRegistry.
    """

    queue_name: str = JOBS_QUEUE_NAME
    attempts: int = 3
    backoff_ms: int = 1000
    job_timeout_seconds: int = 300
    result_ttl_seconds: int = 3600
    failure_ttl_seconds: int = 86400 * 7

    @classmethod
    def from_settings(cls, settings: Settings) -> "RQQueueConfig":
        return cls(
            queue_name=settings.jobs_queue_name,
            attempts=settings.job_attempts,
            backoff_ms=settings.job_backoff_ms,
            job_timeout_seconds=settings.job_timeout_seconds,
            failure_ttl_seconds=settings.failed_job_ttl_seconds,
        )


def backoff_intervals(attempts: int, backoff_ms: int) -> list[int]:
    """Segundos de espera antes de cada reintento (mínimo 1s por intento)."""
    base_seconds = max(backoff_ms, 0) / 1000
    return [max(1, round(base_seconds * (2**i))) for i in range(max(attempts - 1, 0))]


def build_retry(attempts: int, backoff_ms: int) -> Retry | None:
    intervals = backoff_intervals(attempts, backoff_ms)
    if not intervals:
        return None
    return Retry(max=len(intervals), interval=intervals)


class RQJobQueue(JobQueue):
    """Adapter RQ para la cola de jobs de mantenimiento y notificaciones."""

    def __init__(
        self,
        *,
        redis: Redis,
        config: RQQueueConfig,
        queue: Queue | None = None,
        recurring: RecurringRegistry | None = None,
    ) -> None:
        self._redis = redis
        self._config = _validate_config(config)

        # Fail-fast: el worker necesita importar cada job.
        missing = broken_paths(JOB_FUNCTION_PATHS.values())
        if missing:
            raise QueueConfigurationError(
                f"Job paths no importables para RQ: {', '.join(missing)}"
            )

        self._queue = queue or Queue(name=self._config.queue_name, connection=redis)
        self._recurring = recurring or RecurringRegistry(redis)

        logger.info(
            "RQ inicializada",
            extra={
                "queue": self._config.queue_name,
                "attempts": self._config.attempts,
                "backoff_ms": self._config.backoff_ms,
            },
        )

    @property
    def recurring(self) -> RecurringRegistry:
        return self._recurring

    def enqueue(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        job_type = JobType(job_type)
        options = options or JobOptions()
        attempts = options.attempts if options.attempts is not None else self._config.attempts
        backoff_ms = (
            options.backoff_ms if options.backoff_ms is not None else self._config.backoff_ms
        )

        kwargs: dict[str, Any] = {
            "args": (dict(payload),),
            "retry": build_retry(attempts, backoff_ms),
            "job_timeout": self._config.job_timeout_seconds,
            "result_ttl": self._config.result_ttl_seconds,
            "failure_ttl": self._config.failure_ttl_seconds,
            "description": job_type.value,
        }
        if options.job_id:
            kwargs["job_id"] = options.job_id

        try:
            func_path = job_path_for(job_type)
            if options.delay_seconds:
                job = self._queue.enqueue_in(
                    timedelta(seconds=options.delay_seconds), func_path, **kwargs
                )
            else:
                job = self._queue.enqueue(func_path, **kwargs)
        except Exception as exc:
            logger.exception(
                "Error al encolar job",
                extra={"job_type": job_type.value, "queue": self._config.queue_name},
            )
            raise QueueEnqueueError(
                f"No se pudo encolar el job {job_type.value}", original_error=exc
            ) from exc

        job_id = str(getattr(job, "id", "") or "")
        logger.info(
            "Job encolado",
            extra={
                "job_type": job_type.value,
                "job_id": job_id,
                "queue": self._config.queue_name,
                "delay_seconds": options.delay_seconds or 0,
            },
        )
        return job_id

    def schedule_recurring(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        cron_expression: str,
    ) -> str:
        schedule = RecurringSchedule(
            job_type=JobType(job_type), cron=cron_expression, payload=dict(payload)
        )
        try:
            CronExpression.parse(schedule.cron)
        except CronParseError as exc:
            raise QueueConfigurationError(
                f"Cron inválido para {schedule.job_type.value}: {exc}", original_error=exc
            ) from exc

        try:
            schedule_id = self._recurring.add(schedule)
        except Exception as exc:
            raise QueueEnqueueError(
                "No se pudo registrar el job recurrente", original_error=exc
            ) from exc

        logger.info(
            "Job recurrente registrado",
            extra={"schedule_id": schedule_id, "cron": schedule.cron},
        )
        return schedule_id

    def get_stats(self) -> QueueStats:
        try:
            recurring = [entry.schedule_id for entry in self._recurring.entries()]
            return QueueStats(
                waiting=self._queue.count,
                active=self._queue.started_job_registry.count,
                completed=self._queue.finished_job_registry.count,
                failed=self._queue.failed_job_registry.count,
                delayed=self._queue.scheduled_job_registry.count,
                scheduled=len(recurring),
                recurring=sorted(recurring),
            )
        except Exception as exc:
            raise QueueError("No se pudieron leer las métricas de la cola", original_error=exc) from exc


def _validate_config(config: RQQueueConfig) -> RQQueueConfig:
    """Fail-fast: errores de configuración explotan al construir."""
    queue_name = (config.queue_name or "").strip() or JOBS_QUEUE_NAME
    if config.attempts < 0:
        raise QueueConfigurationError("attempts no puede ser negativo")
    if config.backoff_ms < 0:
        raise QueueConfigurationError("backoff_ms no puede ser negativo")
    if config.job_timeout_seconds <= 0:
        raise QueueConfigurationError("job_timeout_seconds debe ser > 0")
    if config.failure_ttl_seconds <= 0:
        raise QueueConfigurationError("failure_ttl_seconds debe ser > 0")

    return RQQueueConfig(
        queue_name=queue_name,
        attempts=config.attempts,
        backoff_ms=config.backoff_ms,
        job_timeout_seconds=config.job_timeout_seconds,
        result_ttl_seconds=config.result_ttl_seconds,
        failure_ttl_seconds=config.failure_ttl_seconds,
    )
