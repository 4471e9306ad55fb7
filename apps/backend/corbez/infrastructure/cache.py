"""
============================================================
TARJETA CRC — infrastructure/cache.py
============================================================
Module: Key/Value Cache (Facade + Backends)

Responsibilities:
  - Cachear payloads firmados de cupones, pases y listas de descuentos.
  - Expiración por TTL (por entrada) y eviction LRU en memoria.
  - Contadores diarios de analytics (incr con TTL).
  - Seleccionar backend:
      - Redis si REDIS_URL está configurado y responde al ping
      - In-memory caso contrario
  - Invalidación por patrón (`discounts:{merchant_id}:*`).

Collaborators:
  - application/usecases/coupons, passes, discounts (vía puerto KeyValueCache)
  - application/events/handlers (analytics, invalidación)
  - redis-py

Policy / Design Notes:
  - La caché es secundaria: decisiones de acceso SIEMPRE leen el store.
  - Redis best-effort: un error es un miss (observable en stats), no un 500.
  - Valores serializados a JSON en ambos backends: el caller nunca comparte
    referencias mutables con la caché.
============================================================
"""

from __future__ import annotations

import fnmatch
import json
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Optional

import redis

from ..crosscutting.exceptions import CacheError
from ..crosscutting.logger import logger


def _dumps(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError) as exc:
        raise CacheError("Value is not JSON serializable", original_error=exc) from exc


# ============================================================
# Abstracción de backend
# ============================================================
class CacheBackend(ABC):
    """Contrato mínimo de backend (mismo shape que el puerto KeyValueCache)."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def incr(self, key: str, ttl_seconds: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict:
        raise NotImplementedError


# ============================================================
# Entry con TTL (in-memory)
# ============================================================
@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    Invariante:
      - expires_at es epoch seconds (monotonic).
    """

    raw: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


# ============================================================
# In-memory backend (LRU + TTL)
# ============================================================
class InMemoryCacheBackend(CacheBackend):
    """
    Caché en memoria con TTL por entrada, LRU (OrderedDict) y Lock.

    Nota:
      - No comparte estado entre procesos (tests / dev / APP_ENV=test).
    """

    def __init__(self, *, max_size: int = 10_000) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        self._max_size = int(max_size)
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expired = 0

    def _live_entry(self, key: str, now: float) -> Optional[CacheEntry]:
        # R: Llamar con el lock tomado.
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            self._cache.pop(key, None)
            self._expired += 1
            return None
        return entry

    def _put(self, key: str, entry: CacheEntry) -> None:
        if key in self._cache:
            self._cache[key] = entry
            self._cache.move_to_end(key, last=True)
            return
        if len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
            self._evictions += 1
        self._cache[key] = entry

    def get(self, key: str) -> Optional[Any]:
        now = time.monotonic()
        with self._lock:
            entry = self._live_entry(key, now)
            if entry is None:
                self._misses += 1
                return None
            self._cache.move_to_end(key, last=True)
            self._hits += 1
            raw = entry.raw
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raw = _dumps(value)
        expires_at = time.monotonic() + max(float(ttl_seconds), 0.0)
        with self._lock:
            self._put(key, CacheEntry(raw=raw, expires_at=expires_at))

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            keys = [k for k in self._cache if fnmatch.fnmatchcase(k, pattern)]
            for key in keys:
                del self._cache[key]
        return len(keys)

    def incr(self, key: str, ttl_seconds: int) -> int:
        now = time.monotonic()
        with self._lock:
            entry = self._live_entry(key, now)
            if entry is None:
                value = 1
                expires_at = now + float(ttl_seconds)
            else:
                value = int(json.loads(entry.raw)) + 1
                expires_at = entry.expires_at
            self._put(key, CacheEntry(raw=json.dumps(value), expires_at=expires_at))
        return value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "backend": "in-memory",
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "expired": self._expired,
                "evictions": self._evictions,
                "hit_rate": (self._hits / total) if total > 0 else 0.0,
            }


# ============================================================
# Redis backend (TTL nativo + namespace)
# ============================================================
class RedisCacheBackend(CacheBackend):
    """
    Caché Redis compartida entre API y worker.

    Nota:
      - Errores de Redis se degradan a miss / no-op y se cuentan en stats.
    """

    CACHE_PREFIX = "corbez:cache:"

    def __init__(self, *, client: redis.Redis) -> None:
        self._client = client
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCacheBackend":
        if not redis_url:
            raise ValueError("redis_url is required")
        return cls(client=redis.from_url(redis_url, decode_responses=True))

    def _k(self, key: str) -> str:
        return f"{self.CACHE_PREFIX}{key}"

    def _on_error(self, operation: str, exc: Exception) -> None:
        self._errors += 1
        logger.warning(
            "Cache backend error",
            extra={"operation": operation, "error": str(exc)},
        )

    def ping(self) -> bool:
        return bool(self._client.ping())

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._client.get(self._k(key))
        except redis.RedisError as exc:
            self._on_error("get", exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(data)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raw = _dumps(value)
        try:
            self._client.setex(self._k(key), max(int(ttl_seconds), 1), raw)
        except redis.RedisError as exc:
            self._on_error("set", exc)

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._k(key))
        except redis.RedisError as exc:
            self._on_error("delete", exc)

    def delete_pattern(self, pattern: str) -> int:
        try:
            keys = list(self._client.scan_iter(match=self._k(pattern)))
            if not keys:
                return 0
            return int(self._client.delete(*keys))
        except redis.RedisError as exc:
            self._on_error("delete_pattern", exc)
            return 0

    def incr(self, key: str, ttl_seconds: int) -> int:
        try:
            value = int(self._client.incr(self._k(key)))
            if value == 1:
                self._client.expire(self._k(key), max(int(ttl_seconds), 1))
            return value
        except redis.RedisError as exc:
            self._on_error("incr", exc)
            return 0

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "backend": "redis",
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": (self._hits / total) if total > 0 else 0.0,
        }


# ============================================================
# Facade
# ============================================================
class KeyValueCacheFacade:
    """
    Implementa el puerto KeyValueCache sobre un backend.

    Selección (create):
      - redis_url vacío => in-memory
      - redis_url seteado y ping OK => redis
      - ping falla => in-memory (warning)
    """

    def __init__(self, backend: CacheBackend) -> None:
        self._backend = backend

    @classmethod
    def create(cls, *, redis_url: str = "", max_entries: int = 10_000):
        if redis_url:
            try:
                backend = RedisCacheBackend.from_url(redis_url)
                backend.ping()
                return cls(backend)
            except redis.RedisError as exc:
                logger.warning(
                    "Redis cache unavailable, falling back to memory",
                    extra={"error": str(exc)},
                )
        return cls(InMemoryCacheBackend(max_size=max_entries))

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def get(self, key: str) -> Optional[Any]:
        return self._backend.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._backend.set(key, value, ttl_seconds)

    def delete(self, key: str) -> None:
        self._backend.delete(key)

    def delete_pattern(self, pattern: str) -> int:
        return self._backend.delete_pattern(pattern)

    def incr(self, key: str, ttl_seconds: int) -> int:
        return self._backend.incr(key, ttl_seconds)

    @property
    def stats(self) -> dict:
        return self._backend.stats()

