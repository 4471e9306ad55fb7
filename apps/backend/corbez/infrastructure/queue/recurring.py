"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Clase)
-------------------------------------------------------------------------------
Clase:
    RecurringRegistry

Responsabilidades:
    - Persistir jobs recurrentes {job_type, payload, cron} en un hash Redis.
    - Listar las entradas para el tick del scheduler del worker.
    - Reclamar un slot (schedule_id + minuto) con SET NX para que cada
      ocurrencia se encole una sola vez aunque haya varios workers.

Colaboradores:
    - redis.Redis
    - cron.CronExpression
    - rq_queue.RQJobQueue (escritura) / worker.scheduler (lectura)
===============================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from redis import Redis

from ...crosscutting.logger import logger
from ...domain.services import JobType
from .cron import CronExpression
from .job_paths import RECURRING_HASH_KEY, RECURRING_SLOT_PREFIX

SLOT_TTL_SECONDS = 120


@dataclass(frozen=True)
class RecurringSchedule:
    job_type: JobType
    cron: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def schedule_id(self) -> str:
        return f"{self.job_type.value}:{self.cron}"

    @property
    def expression(self) -> CronExpression:
        return CronExpression.parse(self.cron)

    def to_json(self) -> str:
        return json.dumps(
            {"job_type": self.job_type.value, "cron": self.cron, "payload": self.payload},
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "RecurringSchedule":
        data = json.loads(raw)
        return cls(
            job_type=JobType(data["job_type"]),
            cron=data["cron"],
            payload=dict(data.get("payload") or {}),
        )


class RecurringRegistry:
    def __init__(self, redis: Redis, *, key: str = RECURRING_HASH_KEY) -> None:
        self._redis = redis
        self._key = key

    def add(self, schedule: RecurringSchedule) -> str:
        self._redis.hset(self._key, schedule.schedule_id, schedule.to_json())
        return schedule.schedule_id

    def remove(self, schedule_id: str) -> bool:
        return bool(self._redis.hdel(self._key, schedule_id))

    def entries(self) -> List[RecurringSchedule]:
        schedules: List[RecurringSchedule] = []
        for schedule_id, raw in (self._redis.hgetall(self._key) or {}).items():
            try:
                schedules.append(RecurringSchedule.from_json(raw))
            except (ValueError, KeyError):
                logger.warning(
                    "Recurring schedule ignored (corrupt entry)",
                    extra={"schedule_id": str(schedule_id)},
                )
        return schedules

    def claim_slot(self, schedule_id: str, moment: datetime) -> bool:
        """True si este proceso es el primero en reclamar el minuto."""
        slot = moment.strftime("%Y%m%d%H%M")
        key = f"{RECURRING_SLOT_PREFIX}:{schedule_id}:{slot}"
        return bool(self._redis.set(key, "1", nx=True, ex=SLOT_TTL_SECONDS))
