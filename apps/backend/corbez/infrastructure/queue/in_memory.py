"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Clase)
-------------------------------------------------------------------------------
Clase:
    InMemoryJobQueue

Responsabilidades:
    - Implementar `JobQueue` sin Redis (tests, APP_ENV=test, desarrollo
      local sin REDIS_URL).
    - Guardar los jobs encolados para inspección (no los ejecuta).
    - Deduplicar por job_id como hace RQ con ids explícitos.

Colaboradores:
    - domain.services.JobQueue
    - cron.CronExpression (validación del cron)
===============================================================================
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping
from uuid import uuid4

from ...crosscutting.exceptions import QueueConfigurationError
from ...domain.services import JobOptions, JobQueue, JobType, QueueStats
from .cron import CronExpression, CronParseError
from .recurring import RecurringSchedule


@dataclass(frozen=True)
class EnqueuedJob:
    job_id: str
    job_type: JobType
    payload: Dict[str, Any]
    options: JobOptions = field(default_factory=JobOptions)


class InMemoryJobQueue(JobQueue):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: Dict[str, EnqueuedJob] = {}
        self._recurring: Dict[str, RecurringSchedule] = {}

    def enqueue(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        options: JobOptions | None = None,
    ) -> str:
        options = options or JobOptions()
        job_id = options.job_id or str(uuid4())
        with self._lock:
            self._jobs[job_id] = EnqueuedJob(
                job_id=job_id,
                job_type=JobType(job_type),
                payload=dict(payload),
                options=options,
            )
        return job_id

    def schedule_recurring(
        self,
        job_type: JobType,
        payload: Mapping[str, Any],
        cron_expression: str,
    ) -> str:
        try:
            CronExpression.parse(cron_expression)
        except CronParseError as exc:
            raise QueueConfigurationError(str(exc), original_error=exc) from exc
        schedule = RecurringSchedule(
            job_type=JobType(job_type), cron=cron_expression, payload=dict(payload)
        )
        with self._lock:
            self._recurring[schedule.schedule_id] = schedule
        return schedule.schedule_id

    def get_stats(self) -> QueueStats:
        with self._lock:
            delayed = sum(1 for job in self._jobs.values() if job.options.delay_seconds)
            return QueueStats(
                waiting=len(self._jobs) - delayed,
                delayed=delayed,
                scheduled=len(self._recurring),
                recurring=sorted(self._recurring),
            )

    def jobs(self, job_type: JobType | None = None) -> List[EnqueuedJob]:
        with self._lock:
            return [
                job
                for job in self._jobs.values()
                if job_type is None or job.job_type == job_type
            ]

    def recurring_entries(self) -> List[RecurringSchedule]:
        with self._lock:
            return list(self._recurring.values())

    def clear(self) -> None:
        with self._lock:
            self._jobs.clear()
            self._recurring.clear()
