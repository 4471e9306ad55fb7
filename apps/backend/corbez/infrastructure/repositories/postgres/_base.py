"""
============================================================
TARJETA CRC — repositories/postgres/_base.py
============================================================
Class: PostgresRepository

Responsibilities:
  - Resolver el pool (inyectado o global).
  - Helpers de ejecución con errores consistentes: toda falla de driver se
    loguea con contexto y se re-lanza como DatabaseError (`from exc`).
  - `_execute_rowcount`: soporte de escrituras condicionales
    (`UPDATE ... WHERE version = %s`, `INSERT ... ON CONFLICT DO NOTHING`).

Constraints:
  - Queries SIEMPRE parametrizadas.
============================================================
"""

from __future__ import annotations

from typing import Iterable

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger


class PostgresRepository:
    def __init__(self, pool: ConnectionPool | None = None):
        # R: Pool inyectable para tests; en producción se usa el pool global.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    def _fail(self, message: str, exc: Exception, extra: dict) -> DatabaseError:
        logger.exception(message, extra={**extra, "error": str(exc)})
        return DatabaseError(f"{message}: {exc}", original_error=exc)

    def _fetchall(
        self, query: str, params: Iterable[object], *, error_message: str, extra: dict
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            raise self._fail(error_message, exc, extra) from exc

    def _fetchone(
        self, query: str, params: Iterable[object], *, error_message: str, extra: dict
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            raise self._fail(error_message, exc, extra) from exc

    def _execute_rowcount(
        self, query: str, params: Iterable[object], *, error_message: str, extra: dict
    ) -> int:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).rowcount
        except Exception as exc:
            raise self._fail(error_message, exc, extra) from exc
