"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Clase)
-------------------------------------------------------------------------------
Clase:
    FixedWindowRateLimiter

Responsabilidades:
    - Limitar cuántos jobs arrancan por ventana de tiempo entre TODOS los
      procesos del worker (contador compartido en Redis).
    - Bloquear (con sleep) hasta la próxima ventana cuando se agota el cupo.

Algoritmo:
    window = now_ms // window_ms
    INCR corbez:ratelimit:{name}:{window} (+ PEXPIRE) -> permitido si <= max
===============================================================================
"""

from __future__ import annotations

import time
from typing import Callable

from redis import Redis

from ...crosscutting.logger import logger


def _now_ms() -> int:
    return int(time.time() * 1000)


class FixedWindowRateLimiter:
    def __init__(
        self,
        redis: Redis,
        *,
        max_requests: int,
        window_ms: int,
        key_prefix: str = "corbez:ratelimit",
        now_ms: Callable[[], int] = _now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_requests <= 0 or window_ms <= 0:
            raise ValueError("max_requests y window_ms deben ser > 0")
        self._redis = redis
        self._max = max_requests
        self._window_ms = window_ms
        self._prefix = key_prefix
        self._now_ms = now_ms
        self._sleep = sleep

    def try_acquire(self, name: str) -> bool:
        window = self._now_ms() // self._window_ms
        key = f"{self._prefix}:{name}:{window}"
        pipe = self._redis.pipeline()
        pipe.incr(key)
        pipe.pexpire(key, self._window_ms * 2)
        count, _ = pipe.execute()
        return int(count) <= self._max

    def acquire(self, name: str, *, max_wait_ms: int = 60_000) -> bool:
        """Espera hasta obtener cupo; False si se supera `max_wait_ms`."""
        waited = 0
        while not self.try_acquire(name):
            if waited >= max_wait_ms:
                logger.warning(
                    "Rate limit wait exceeded",
                    extra={"limiter": name, "waited_ms": waited},
                )
                return False
            remaining = self._window_ms - (self._now_ms() % self._window_ms)
            self._sleep(remaining / 1000)
            waited += remaining
        return True
