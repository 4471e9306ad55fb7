"""
===============================================================================
MÓDULO: Excepciones tipadas del backend (errores de infraestructura)
===============================================================================

Objetivo
--------
Las reglas de negocio NO lanzan excepciones (devuelven resultados tipados).
Estas excepciones cubren fallas de infraestructura, con:
- error_code estable
- error_id para correlación con logs
- message "humana" (sin filtrar secretos)

Colaboradores:
  - api/exception_handlers.py (mapea a AppHTTPException)
  - infrastructure/repositories/postgres, infrastructure/db/pool (DatabaseError)
  - application/concurrency.py (ConcurrentUpdateError)
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class CorbezError(Exception):
    """Base para errores internos del sistema (error_code + error_id + message)."""

    error_code: str = "CORBEZ_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DatabaseError(CorbezError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"


class ConcurrentUpdateError(CorbezError):
    """Una escritura condicional perdió la carrera (versión desactualizada)."""

    error_code: str = "CONCURRENT_UPDATE"


class CacheError(CorbezError):
    """Valor no serializable o backend de caché mal configurado."""

    error_code: str = "CACHE_ERROR"


class QueueError(CorbezError):
    """Base de errores de la cola de jobs (Redis / rq)."""

    error_code: str = "QUEUE_ERROR"


class QueueConfigurationError(QueueError):
    """Cola mal configurada (REDIS_URL ausente, job path inválido)."""

    error_code: str = "QUEUE_CONFIGURATION_ERROR"


class QueueEnqueueError(QueueError):
    """Falla al encolar o agendar un job."""

    error_code: str = "QUEUE_ENQUEUE_ERROR"


class PoolNotInitializedError(DatabaseError):
    """Se usó el pool de conexiones sin init_pool() (API responde 503)."""

    error_code: str = "DATABASE_POOL_NOT_INITIALIZED"


class PoolAlreadyInitializedError(DatabaseError):
    """init_pool() llamado dos veces en el mismo proceso."""

    error_code: str = "DATABASE_POOL_ALREADY_INITIALIZED"
