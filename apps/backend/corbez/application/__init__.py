"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada compartidos de la capa de aplicación:
  - AccessPolicy: gating de empleados y comercios por estado
  - EventDispatcher: bus de eventos in-process
  - run_with_conflict_retry: reintento ante escrituras condicionales perdidas

Nota:
  - Los casos de uso se importan desde `usecases/` subdirectories.
===============================================================================
"""

from .access_policy import AccessDecision, AccessPolicy
from .concurrency import run_with_conflict_retry
from .events import EventDispatcher

__all__ = [
    "AccessDecision",
    "AccessPolicy",
    "EventDispatcher",
    "run_with_conflict_retry",
]
