"""
===============================================================================
TARJETA CRC — corbez/context.py (Contexto por request / job)
===============================================================================

Responsabilidades:
  - Mantener contexto "request-scoped" usando ContextVars (async-safe).
  - Permitir correlación de logs y eventos sin pasar parámetros por todo el stack.

Colaboradores:
  - crosscutting.middleware: setea request_id/method/path al inicio del request.
  - crosscutting.logger: enriquece logs leyendo get_context_dict().
  - application.events: usa request_id como correlation_id por defecto.
  - worker.jobs: setea request_id por job y limpia contexto al finalizar.

Restricciones:
  - Solo strings; "" significa "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """Setea el contexto mínimo del request o job."""
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve solo las claves con valor (para no ensuciar los logs)."""
    ctx = {
        "request_id": request_id_var.get(),
        "method": http_method_var.get(),
        "path": http_path_var.get(),
    }
    return {k: v for k, v in ctx.items() if v}


def clear_context() -> None:
    """Limpia el contexto (evita leaks entre requests/jobs en el mismo worker)."""
    request_id_var.set("")
    http_method_var.set("")
    http_path_var.set("")
