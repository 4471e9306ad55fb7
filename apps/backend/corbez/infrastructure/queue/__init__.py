"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Package)
-------------------------------------------------------------------------------
Nombre:
    infrastructure.queue

Responsabilidades:
    - Exponer los adaptadores de `JobQueue` usados por DI (RQ / in-memory).
    - Exponer cron, registro de recurrentes y rate limiter para el worker.
===============================================================================
"""

from .cron import CronExpression, CronParseError, parse_cron
from .in_memory import EnqueuedJob, InMemoryJobQueue
from .job_paths import JOB_FUNCTION_PATHS, JOBS_QUEUE_NAME, job_path_for
from .rate_limit import FixedWindowRateLimiter
from .recurring import RecurringRegistry, RecurringSchedule
from .rq_queue import RQJobQueue, RQQueueConfig, backoff_intervals, build_retry

__all__ = [
    "CronExpression",
    "CronParseError",
    "EnqueuedJob",
    "FixedWindowRateLimiter",
    "InMemoryJobQueue",
    "JOB_FUNCTION_PATHS",
    "JOBS_QUEUE_NAME",
    "RecurringRegistry",
    "RecurringSchedule",
    "RQJobQueue",
    "RQQueueConfig",
    "backoff_intervals",
    "build_retry",
    "job_path_for",
    "parse_cron",
]
