"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz incluido en FastAPI.
  - Centralizar responses RFC7807 para OpenAPI.
  - Componer los sub-routers por feature.
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from ....crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from .routers.verify import router as verify_router


def build_router() -> APIRouter:
    """Construye el router raíz (factory: sin side-effects al importar)."""
    api_router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)
    api_router.include_router(verify_router)
    return api_router


router = build_router()

__all__ = ["build_router", "router"]
