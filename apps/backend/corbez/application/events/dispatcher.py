"""
===============================================================================
TARJETA CRC — application/events/dispatcher.py
===============================================================================

Clase:
    EventDispatcher

Responsabilidades:
    - Registrar handlers por tipo de evento (sync o async).
    - Pasar cada evento por la cadena de middlewares (transformar o vetar).
    - Entregar concurrentemente a todos los handlers (asyncio.gather).
    - Aislar fallas: un handler que falla se loguea y se cuenta; el resto
      recibe el evento igual y publish siempre completa.
    - publish_nowait: fire-and-forget desde código sync o async.

Colaboradores:
    - domain.events.DomainEvent / EventType
    - crosscutting.metrics (eventos publicados, fallas de handlers)
    - crosscutting.logger
    - context.get_context_dict (correlation id = request id)

Notas:
    - Instancia explícita inyectada por el container (sin singleton de módulo).
    - Entrega at-most-once y no transaccional respecto de la mutación.
===============================================================================
"""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from threading import Lock
from typing import Awaitable, Callable, Iterable, Optional, Union
from uuid import uuid4

from ...context import get_context_dict
from ...crosscutting.logger import logger
from ...crosscutting.metrics import (
    record_event_handler_failure,
    record_event_published,
)
from ...domain.events import DomainEvent, EventType

Handler = Callable[[DomainEvent], Union[None, Awaitable[None]]]
Middleware = Callable[
    [DomainEvent], Union[Optional[DomainEvent], Awaitable[Optional[DomainEvent]]]
]


class EventDispatcher:
    """Bus de eventos in-process con entrega concurrente y aislamiento de fallas."""

    def __init__(self, *, max_background_workers: int = 4) -> None:
        self._handlers: dict[EventType, list[Handler]] = {}
        self._middlewares: list[Middleware] = []
        self._lock = Lock()
        self._max_background_workers = max_background_workers
        self._executor: ThreadPoolExecutor | None = None
        self._pending_tasks: set[asyncio.Task] = set()
        self._pending_futures: set[Future] = set()

    # ------------------------------------------------------------------
    # Registro
    # ------------------------------------------------------------------
    def subscribe(self, event_type: EventType, handler: Handler) -> Callable[[], None]:
        """Registra un handler; devuelve un callable que lo desuscribe."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(event_type, [])
                if handler in handlers:
                    handlers.remove(handler)

        return _unsubscribe

    def subscribe_many(
        self, event_types: Iterable[EventType], handler: Handler
    ) -> Callable[[], None]:
        unsubscribers = [self.subscribe(t, handler) for t in event_types]

        def _unsubscribe_all() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _unsubscribe_all

    def off(self, event_type: EventType) -> None:
        """Quita todos los handlers de un tipo."""
        with self._lock:
            self._handlers.pop(event_type, None)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
            self._middlewares.clear()

    def listener_count(self, event_type: EventType) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))

    def use(self, middleware: Middleware) -> None:
        with self._lock:
            self._middlewares.append(middleware)

    # ------------------------------------------------------------------
    # Publicación
    # ------------------------------------------------------------------
    @staticmethod
    def _with_correlation(event: DomainEvent) -> DomainEvent:
        if event.correlation_id:
            return event
        request_id = get_context_dict().get("request_id")
        return replace(event, correlation_id=request_id or str(uuid4()))

    async def _apply_middlewares(self, event: DomainEvent) -> Optional[DomainEvent]:
        with self._lock:
            middlewares = list(self._middlewares)
        current: Optional[DomainEvent] = event
        for middleware in middlewares:
            result = middleware(current)
            if inspect.isawaitable(result):
                result = await result
            if result is None:
                logger.info(
                    "Event vetoed by middleware",
                    extra={"event_type": event.type.value, "event_id": event.event_id},
                )
                return None
            current = result
        return current

    async def _run_handler(self, handler: Handler, event: DomainEvent) -> None:
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(event)
                return
            result = await asyncio.to_thread(handler, event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            record_event_handler_failure(event.type.value)
            logger.exception(
                "Event handler failed",
                extra={
                    "event_type": event.type.value,
                    "event_id": event.event_id,
                    "handler": getattr(handler, "__name__", repr(handler)),
                    "correlation_id": event.correlation_id,
                },
            )

    async def publish(self, event: DomainEvent) -> None:
        """Entrega el evento a todos sus handlers; nunca propaga fallas de handlers."""
        event = self._with_correlation(event)
        processed = await self._apply_middlewares(event)
        if processed is None:
            return

        with self._lock:
            handlers = list(self._handlers.get(processed.type, []))

        record_event_published(processed.type.value)
        if not handlers:
            return
        await asyncio.gather(*(self._run_handler(h, processed) for h in handlers))

    def publish_nowait(self, event: DomainEvent) -> None:
        """
        Fire-and-forget.

        - Con loop corriendo: task en ese loop (se guarda la referencia).
        - Sin loop (código sync / threads): asyncio.run en un executor.
        """
        # R: El correlation id se toma acá, en el contexto del productor.
        event = self._with_correlation(event)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self.publish(event))
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)
            return

        future = self._get_executor().submit(asyncio.run, self.publish(event))
        with self._lock:
            self._pending_futures.add(future)
        future.add_done_callback(self._forget_future)

    def _forget_future(self, future: Future) -> None:
        with self._lock:
            self._pending_futures.discard(future)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_background_workers,
                    thread_name_prefix="corbez-events",
                )
            return self._executor

    def drain(self, timeout: float | None = 5.0) -> None:
        """Espera publicaciones en background (worker, tests, shutdown)."""
        with self._lock:
            futures = list(self._pending_futures)
        for future in futures:
            future.result(timeout=timeout)

    async def drain_async(self) -> None:
        tasks = list(self._pending_tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
