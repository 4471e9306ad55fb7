"""
===============================================================================
TARJETA CRC — corbez/jobs.py (Entrypoints estables de jobs)
===============================================================================

Responsabilidades:
  - Exponer los jobs con un path de import estable para RQ
    ("corbez.jobs.<job>"), independiente de cómo se organice worker/.

Colaboradores:
  - worker.jobs
  - infrastructure.queue.job_paths (rutas que apuntan acá)
===============================================================================
"""

from .worker.jobs import (
    cleanup_expired_coupons_job,
    generate_savings_report_job,
    process_expired_suspensions_job,
    send_email_job,
)

__all__ = [
    "cleanup_expired_coupons_job",
    "generate_savings_report_job",
    "process_expired_suspensions_job",
    "send_email_job",
]
