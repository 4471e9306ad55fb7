"""
Handlers por defecto del EventDispatcher.

register_default_handlers es el único punto de cableado (lo llama el container).
"""

from __future__ import annotations

from typing import Callable

from ....domain.repositories import AuditEventRepository, EmployeeRepository
from ....domain.services import JobQueue, KeyValueCache
from ..dispatcher import EventDispatcher
from .analytics import ANALYTICS_EVENTS, make_analytics_handler
from .audit import AUDITED_EVENTS, make_audit_handler
from .cache_invalidation import (
    CACHE_INVALIDATION_EVENTS,
    make_cache_invalidation_handler,
)
from .notifications import NOTIFICATION_EVENTS, make_notification_handler


def register_default_handlers(
    dispatcher: EventDispatcher,
    *,
    audit_repository: AuditEventRepository,
    cache: KeyValueCache,
    employees: EmployeeRepository,
    job_queue: JobQueue | None = None,
) -> Callable[[], None]:
    """Registra audit / analytics / cache / notificaciones. Devuelve un unsubscribe."""
    unsubscribers = [
        dispatcher.subscribe_many(AUDITED_EVENTS, make_audit_handler(audit_repository)),
        dispatcher.subscribe_many(ANALYTICS_EVENTS, make_analytics_handler(cache)),
        dispatcher.subscribe_many(
            CACHE_INVALIDATION_EVENTS, make_cache_invalidation_handler(cache)
        ),
    ]
    if job_queue is not None:
        unsubscribers.append(
            dispatcher.subscribe_many(
                NOTIFICATION_EVENTS, make_notification_handler(employees, job_queue)
            )
        )

    def _unsubscribe_all() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return _unsubscribe_all


__all__ = ["register_default_handlers"]
