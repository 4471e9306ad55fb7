"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    Modelo de Auditoría (Dominio)

Responsabilidades:
    - Definir el registro de auditoría (AuditEvent) independiente de la DB.

Colaboradores:
    - domain.repositories.AuditEventRepository: persiste y lista eventos.
    - application/events/handlers/audit.py: traduce DomainEvent -> AuditEvent.

Notas:
    - Auditoría es append-only (no se edita ni se borra).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(slots=True)
class AuditEvent:
    """Evento de auditoría del sistema."""

    id: UUID
    actor: str
    action: str
    target_id: str | None = None
    correlation_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
