"""
===============================================================================
SUBSISTEMA: Infraestructura / Queue
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Utilidades de Importación Segura

Responsabilidades:
    - Validar que un "dotted path" (module.attr) sea importable y callable.
    - Detectar paths de jobs rotos al construir la cola y no recién en el
      worker, cuando el job ya está encolado.

Colaboradores:
    - rq_queue.RQJobQueue
    - importlib
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache
from importlib import import_module
from typing import Iterable


@lru_cache(maxsize=128)
def is_importable_dotted_path(dotted_path: str) -> bool:
    """True si `dotted_path` resuelve a un callable (no valida firma)."""
    try:
        module_name, attr_name = _split_dotted_path(dotted_path)
        module = import_module(module_name)
        return callable(getattr(module, attr_name))
    except (ModuleNotFoundError, AttributeError, ValueError):
        return False


def broken_paths(paths: Iterable[str]) -> list[str]:
    return [path for path in paths if not is_importable_dotted_path(path)]


def _split_dotted_path(dotted_path: str) -> tuple[str, str]:
    if not dotted_path or "." not in dotted_path:
        raise ValueError("dotted_path debe ser 'modulo.atributo'")
    module_name, attr_name = dotted_path.rsplit(".", 1)
    if not module_name or not attr_name:
        raise ValueError("dotted_path inválido")
    return module_name, attr_name
