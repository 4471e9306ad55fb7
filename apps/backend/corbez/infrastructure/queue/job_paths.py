"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Rutas y Constantes de Jobs

Responsabilidades:
    - Centralizar el nombre de la cola, las claves Redis del scheduler y la
      ruta importable de cada JobType.
    - Evitar strings mágicos dispersos entre producer (RQJobQueue) y worker.

Colaboradores:
    - rq_queue.RQJobQueue
    - recurring.RecurringRegistry
    - corbez.jobs (entrypoints estables)

Notas:
    - Las rutas se validan en runtime al construir la cola (fail-fast).
===============================================================================
"""

from __future__ import annotations

from ...domain.services import JobType

JOBS_QUEUE_NAME: str = "corbez-jobs"

# Hash Redis con los jobs recurrentes ({schedule_id: json}).
RECURRING_HASH_KEY: str = "corbez:recurring"
# Prefijo del guard SET NX por slot de minuto.
RECURRING_SLOT_PREFIX: str = "corbez:recurring:slot"

JOB_FUNCTION_PATHS: dict[JobType, str] = {
    JobType.SEND_EMAIL: "corbez.jobs.send_email_job",
    JobType.CLEANUP_EXPIRED_COUPONS: "corbez.jobs.cleanup_expired_coupons_job",
    JobType.PROCESS_EXPIRED_SUSPENSIONS: "corbez.jobs.process_expired_suspensions_job",
    JobType.GENERATE_SAVINGS_REPORT: "corbez.jobs.generate_savings_report_job",
}


def job_path_for(job_type: JobType) -> str:
    return JOB_FUNCTION_PATHS[JobType(job_type)]
