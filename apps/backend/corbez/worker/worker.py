"""
===============================================================================
TARJETA CRC — worker/worker.py (Entrypoint del proceso Worker)
===============================================================================

Responsabilidades:
  - Levantar un WorkerPool de RQ con `worker_concurrency` procesos sobre la
    cola de jobs (scheduler de RQ habilitado para reintentos diferidos).
  - Inicializar dependencias del proceso: Redis + pool de BD.
  - Registrar el calendario recurrente y arrancar el tick de cron.
  - Apagar recursos de forma ordenada.

Patrones aplicados:
  - Process Bootstrap + Fail-fast: sin Redis/BD no se arranca "a medias".

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.db.pool.init_pool / close_pool
  - infrastructure.queue.RQJobQueue / RecurringRegistry
  - worker.scheduler.RecurringScheduler / register_defaults
  - rq.worker_pool.WorkerPool
===============================================================================
"""

from __future__ import annotations

from redis import Redis
from redis.exceptions import RedisError
from rq.worker_pool import WorkerPool

from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..infrastructure.db.pool import close_pool, init_pool
from ..infrastructure.queue import RQJobQueue, RQQueueConfig
from .scheduler import RecurringScheduler, register_defaults


def _build_redis_connection(redis_url: str) -> Redis:
    """Conexión Redis con timeouts cortos (sin bloqueos largos en ping)."""
    return Redis.from_url(
        redis_url,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


def main() -> None:
    settings = get_settings()

    redis_url = settings.redis_url.strip()
    if not redis_url:
        raise SystemExit("REDIS_URL es requerido para ejecutar el worker.")

    # R: Redis (fail-fast si no responde).
    redis_conn = _build_redis_connection(redis_url)
    try:
        redis_conn.ping()
    except RedisError as exc:
        logger.error("Redis no disponible para worker", extra={"error": str(exc)})
        raise SystemExit("Redis no disponible.") from exc

    # R: Pool DB (sin DATABASE_URL los jobs corren contra el store in-memory).
    if settings.database_url.strip():
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    config = RQQueueConfig.from_settings(settings)
    job_queue = RQJobQueue(redis=redis_conn, config=config)
    register_defaults(job_queue)
    stop_scheduler = RecurringScheduler(job_queue.recurring, job_queue).start()

    try:
        logger.info(
            "Worker arrancando",
            extra={
                "queue": config.queue_name,
                "concurrency": settings.worker_concurrency,
                "rate_limit_max": settings.rate_limit_max,
                "rate_limit_window_ms": settings.rate_limit_window_ms,
            },
        )
        pool = WorkerPool(
            [config.queue_name],
            connection=redis_conn,
            num_workers=settings.worker_concurrency,
        )
        pool.start(logging_level=settings.log_level.upper())
    except KeyboardInterrupt:
        logger.info("Worker detenido por señal (KeyboardInterrupt)")
    finally:
        stop_scheduler.set()
        close_pool()
        logger.info("Worker apagado")


if __name__ == "__main__":
    main()
