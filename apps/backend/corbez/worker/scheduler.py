"""
===============================================================================
TARJETA CRC — worker/scheduler.py (Jobs recurrentes por cron)
===============================================================================

Responsabilidades:
  - Registrar el calendario por defecto (register_defaults):
      * cleanup-expired-coupons       cada hora      (0 * * * *)
      * process-expired-suspensions   cada 15 min    (*/15 * * * *)
  - Tick por minuto: para cada entrada del RecurringRegistry cuyo cron
    coincide, reclamar el slot (SET NX) y encolar el job una sola vez.
  - Loop en un thread daemon del proceso worker.

Colaboradores:
  - infrastructure.queue.RecurringRegistry / RQJobQueue
  - domain.services.JobQueue
===============================================================================
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, List

from ..crosscutting.logger import logger
from ..domain.services import JobOptions, JobQueue, JobType
from ..infrastructure.queue import RecurringRegistry

DEFAULT_SCHEDULE = (
    (JobType.CLEANUP_EXPIRED_COUPONS, "0 * * * *"),
    (JobType.PROCESS_EXPIRED_SUSPENSIONS, "*/15 * * * *"),
)


def register_defaults(queue: JobQueue) -> List[str]:
    return [
        queue.schedule_recurring(job_type, {}, cron)
        for job_type, cron in DEFAULT_SCHEDULE
    ]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecurringScheduler:
    def __init__(
        self,
        registry: RecurringRegistry,
        queue: JobQueue,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._registry = registry
        self._queue = queue
        self._clock = clock

    def tick(self, now: datetime | None = None) -> List[str]:
        """Encola los jobs que vencen en el minuto actual; devuelve sus ids."""
        moment = (now or self._clock()).replace(second=0, microsecond=0)
        enqueued: List[str] = []
        for schedule in self._registry.entries():
            if not schedule.expression.matches(moment):
                continue
            if not self._registry.claim_slot(schedule.schedule_id, moment):
                continue
            slot = moment.strftime("%Y%m%d%H%M")
            job_id = self._queue.enqueue(
                schedule.job_type,
                schedule.payload,
                JobOptions(job_id=f"{schedule.job_type.value}-{slot}"),
            )
            enqueued.append(job_id)
            logger.info(
                "Job recurrente encolado",
                extra={"schedule_id": schedule.schedule_id, "job_id": job_id},
            )
        return enqueued

    def run(self, stop: threading.Event, *, interval_seconds: float = 20.0) -> None:
        # R: Intervalo < 60s para no saltear minutos; el SET NX evita duplicados.
        while not stop.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Scheduler tick falló")
            stop.wait(interval_seconds)

    def start(self, *, interval_seconds: float = 20.0) -> threading.Event:
        stop = threading.Event()
        thread = threading.Thread(
            target=self.run,
            args=(stop,),
            kwargs={"interval_seconds": interval_seconds},
            name="corbez-scheduler",
            daemon=True,
        )
        thread.start()
        return stop
