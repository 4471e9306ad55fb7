"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Clase)
-------------------------------------------------------------------------------
Clase:
    CronExpression (Value Object)

Responsabilidades:
    - Parsear expresiones cron de 5 campos:
        minuto hora día-del-mes mes día-de-semana
      con `*`, listas (`1,15`), rangos (`1-5`) y pasos (`*/15`, `0-30/10`).
    - Decidir si un instante (precisión de minuto) coincide.

Reglas:
    - Día de semana 0-6 con domingo = 0 (se acepta 7 como domingo).
    - Si día-del-mes y día-de-semana están restringidos ambos, basta con que
      coincida uno (semántica clásica de cron).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet

# (min, max) por campo
_FIELD_BOUNDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day", 1, 31),
    ("month", 1, 12),
    ("weekday", 0, 7),
)


class CronParseError(ValueError):
    pass


def _parse_field(raw: str, name: str, low: int, high: int) -> FrozenSet[int]:
    values: set[int] = set()
    for part in raw.split(","):
        if not part:
            raise CronParseError(f"Empty list item in {name} field")

        step = 1
        if "/" in part:
            part, raw_step = part.split("/", 1)
            if not raw_step.isdigit() or int(raw_step) == 0:
                raise CronParseError(f"Invalid step in {name} field: {raw_step!r}")
            step = int(raw_step)

        if part == "*":
            start, end = low, high
        elif "-" in part:
            raw_start, raw_end = part.split("-", 1)
            if not (raw_start.isdigit() and raw_end.isdigit()):
                raise CronParseError(f"Invalid range in {name} field: {part!r}")
            start, end = int(raw_start), int(raw_end)
        elif part.isdigit():
            start = int(part)
            # R: "5/15" significa desde 5 hasta el máximo cada 15.
            end = high if step > 1 else start
        else:
            raise CronParseError(f"Invalid value in {name} field: {part!r}")

        if start < low or end > high or start > end:
            raise CronParseError(
                f"{name} field out of range ({low}-{high}): {start}-{end}"
            )
        values.update(range(start, end + 1, step))

    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    source: str
    minutes: FrozenSet[int]
    hours: FrozenSet[int]
    days: FrozenSet[int]
    months: FrozenSet[int]
    weekdays: FrozenSet[int]
    day_restricted: bool
    weekday_restricted: bool

    @classmethod
    def parse(cls, expression: str) -> "CronExpression":
        fields = (expression or "").split()
        if len(fields) != 5:
            raise CronParseError(
                f"Cron expression must have 5 fields, got {len(fields)}: {expression!r}"
            )
        parsed = [
            _parse_field(raw, name, low, high)
            for raw, (name, low, high) in zip(fields, _FIELD_BOUNDS)
        ]
        weekdays = frozenset(0 if day == 7 else day for day in parsed[4])
        return cls(
            source=" ".join(fields),
            minutes=parsed[0],
            hours=parsed[1],
            days=parsed[2],
            months=parsed[3],
            weekdays=weekdays,
            day_restricted=not fields[2].startswith("*"),
            weekday_restricted=not fields[4].startswith("*"),
        )

    def matches(self, moment: datetime) -> bool:
        if moment.minute not in self.minutes or moment.hour not in self.hours:
            return False
        if moment.month not in self.months:
            return False

        # datetime.weekday(): lunes = 0 -> cron: domingo = 0
        cron_weekday = (moment.weekday() + 1) % 7
        day_ok = moment.day in self.days
        weekday_ok = cron_weekday in self.weekdays
        if self.day_restricted and self.weekday_restricted:
            return day_ok or weekday_ok
        return day_ok and weekday_ok


def parse_cron(expression: str) -> CronExpression:
    return CronExpression.parse(expression)
