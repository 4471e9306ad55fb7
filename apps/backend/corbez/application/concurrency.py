"""
Name: Optimistic Concurrency Retry

Responsibilities:
  - Re-ejecutar un bloque read-modify-write cuando la escritura condicional
    pierde la carrera (ConcurrentUpdateError).
  - Exponential backoff + jitter (tenacity), intentos acotados por settings.
  - Loguear cada reintento con el nombre de la operación.

Collaborators:
  - tenacity (motor de retry)
  - crosscutting.config.get_settings (retry_max_attempts / delays)
  - application/usecases/* (redimir cupón, transiciones de moderación)

Constraints:
  - Solo se reintenta ConcurrentUpdateError; cualquier otro error propaga.
  - El bloque reintentado DEBE releer el estado en cada intento.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import ConcurrentUpdateError
from ..crosscutting.logger import logger

T = TypeVar("T")


def _log_conflict(operation: str) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        wait_time = (
            retry_state.next_action.sleep
            if retry_state.next_action is not None
            else 0
        )
        logger.warning(
            "Concurrent update conflict, retrying",
            extra={
                "operation": operation,
                "attempt": retry_state.attempt_number,
                "wait_seconds": round(float(wait_time), 3),
            },
        )

    return _before_sleep


def run_with_conflict_retry(
    operation: str,
    fn: Callable[[], T],
    *,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
) -> T:
    """
    R: Ejecuta `fn` reintentando ante ConcurrentUpdateError.

    Agotados los intentos, re-lanza el último ConcurrentUpdateError.
    """
    settings = get_settings()
    _max_attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    _base_delay = (
        settings.retry_base_delay_seconds if base_delay is None else float(base_delay)
    )
    _max_delay = (
        settings.retry_max_delay_seconds if max_delay is None else float(max_delay)
    )
    if _max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")

    retrying = Retrying(
        stop=stop_after_attempt(_max_attempts),
        wait=wait_exponential_jitter(
            initial=_base_delay, max=_max_delay, jitter=_base_delay
        ),
        retry=retry_if_exception_type(ConcurrentUpdateError),
        before_sleep=_log_conflict(operation),
        reraise=True,
    )
    return retrying(fn)


def conflict(operation: str) -> ConcurrentUpdateError:
    """Error estándar para una escritura condicional perdida."""
    return ConcurrentUpdateError(f"Concurrent update on {operation}")
