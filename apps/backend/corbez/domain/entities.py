"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (Employee, Merchant, Company, Discount,
    ClaimedCoupon, EmployeePass, ModerationAction)

Responsabilidades:
    - Definir estructuras centrales del negocio (sin infraestructura).
    - Brindar helpers mínimos para mantener invariantes simples
      (rollover mensual, expiración, limpieza de suspensión).
    - Mantener tipos claros para casos de uso y repositorios.

Colaboradores:
    - domain.repositories: persisten/recuperan estas entidades.
    - domain.periods: period key mensual.
    - application/usecases: construyen/consumen estas entidades.

Principios:
    - Sin dependencias a DB/Redis/FastAPI.
    - `version` soporta escrituras condicionales (optimistic concurrency).
===============================================================================
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

SYSTEM_ACTOR = "SYSTEM"


def _utcnow() -> datetime:
    """Fecha/hora UTC (helper interno)."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Estados
# ---------------------------------------------------------------------------


class EmployeeStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BANNED = "BANNED"
    INACTIVE = "INACTIVE"


class MerchantStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class CompanyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class DiscountType(str, Enum):
    """Tipos de descuento (universal, por empresa, por umbral de gasto, perk)."""

    BASE = "BASE"
    COMPANY = "COMPANY"
    SPEND_THRESHOLD = "SPEND_THRESHOLD"
    COMPANY_PERK = "COMPANY_PERK"


class CouponStatus(str, Enum):
    """
    ACTIVE es reutilizable: redimir NO termina el cupón.
    Solo expiración o cancelación lo sacan de ACTIVE.
    """

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    REDEEMED = "REDEEMED"


class PassStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


# ---------------------------------------------------------------------------
# Moderación (enums + duración)
# ---------------------------------------------------------------------------


class ModerationTargetType(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    MERCHANT = "MERCHANT"
    COMPANY = "COMPANY"


class ModerationActionType(str, Enum):
    WARN = "WARN"
    SUSPEND = "SUSPEND"
    UNSUSPEND = "UNSUSPEND"
    BAN = "BAN"
    REACTIVATE = "REACTIVATE"


class ModerationReason(str, Enum):
    FRAUD = "FRAUD"
    ABUSE = "ABUSE"
    POLICY_VIOLATION = "POLICY_VIOLATION"
    SPAM = "SPAM"
    INAPPROPRIATE_BEHAVIOR = "INAPPROPRIATE_BEHAVIOR"
    PAYMENT_ISSUE = "PAYMENT_ISSUE"
    AUTO_WARNINGS = "AUTO_WARNINGS"
    EXPIRED = "EXPIRED"
    OTHER = "OTHER"


class AppealStatus(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DurationUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    PERMANENT = "permanent"


def add_months(start: datetime, months: int) -> datetime:
    """Suma meses calendario; el día se recorta al último del mes destino."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class Duration:
    """Duración de una suspensión (valor + unidad)."""

    value: int
    unit: DurationUnit

    @classmethod
    def permanent(cls) -> "Duration":
        return cls(value=0, unit=DurationUnit.PERMANENT)

    @property
    def is_permanent(self) -> bool:
        return self.unit == DurationUnit.PERMANENT

    def expires_from(self, start: datetime) -> Optional[datetime]:
        """Expiración absoluta; None si es permanente."""
        if self.unit == DurationUnit.PERMANENT:
            return None
        if self.unit == DurationUnit.HOURS:
            return start + timedelta(hours=self.value)
        if self.unit == DurationUnit.DAYS:
            return start + timedelta(days=self.value)
        if self.unit == DurationUnit.WEEKS:
            return start + timedelta(weeks=self.value)
        return add_months(start, self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "unit": self.unit.value}


# ---------------------------------------------------------------------------
# Employee / Merchant / Company
# ---------------------------------------------------------------------------


@dataclass
class Employee:
    """Empleado de una empresa cliente (nunca se borra: solo cambia status)."""

    id: UUID
    company_id: UUID
    user_id: Optional[UUID] = None
    email: str = ""
    status: EmployeeStatus = EmployeeStatus.PENDING
    warning_count: int = 0
    suspended_until: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    referred_by: Optional[UUID] = None
    referral_points: int = 0
    first_redeemed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    @property
    def effective_user_id(self) -> UUID:
        return self.user_id or self.id

    def clear_suspension(self) -> None:
        self.suspended_until = None
        self.suspended_reason = None

    def snapshot(self) -> Dict[str, Any]:
        """Estado relevante para auditoría de moderación."""
        return {
            "status": self.status.value,
            "warning_count": self.warning_count,
            "suspended_until": (
                self.suspended_until.isoformat() if self.suspended_until else None
            ),
            "suspended_reason": self.suspended_reason,
        }


@dataclass
class Merchant:
    """Comercio (restaurante) con una o más sucursales."""

    id: UUID
    business_name: str
    status: MerchantStatus = MerchantStatus.PENDING
    locations: List[str] = field(default_factory=list)
    avg_order_value: Optional[float] = None
    price_tier: Optional[str] = None
    suspended_until: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == MerchantStatus.ACTIVE

    def clear_suspension(self) -> None:
        self.suspended_until = None
        self.suspended_reason = None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "suspended_until": (
                self.suspended_until.isoformat() if self.suspended_until else None
            ),
            "suspended_reason": self.suspended_reason,
        }


@dataclass
class Company:
    """Empresa empleadora."""

    id: UUID
    name: str
    status: CompanyStatus = CompanyStatus.ACTIVE
    suspended_until: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == CompanyStatus.ACTIVE

    def clear_suspension(self) -> None:
        self.suspended_until = None
        self.suspended_reason = None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "suspended_until": (
                self.suspended_until.isoformat() if self.suspended_until else None
            ),
            "suspended_reason": self.suspended_reason,
        }


# ---------------------------------------------------------------------------
# Discount
# ---------------------------------------------------------------------------


@dataclass
class Discount:
    """
    Regla de descuento de un comercio.

    Invariantes (validadas en application/usecases/discounts):
      - COMPANY / COMPANY_PERK requieren company_id.
      - SPEND_THRESHOLD requiere min_spend.
      - COMPANY_PERK tiene percentage 0.
      - Un único BASE por comercio.
    """

    id: UUID
    merchant_id: UUID
    type: DiscountType
    percentage: int
    company_id: Optional[UUID] = None
    min_spend: Optional[float] = None
    monthly_usage_limit: Optional[int] = None
    first_time_bonus_percentage: Optional[int] = None
    is_active: bool = True
    priority: int = 0
    description: Optional[str] = None
    perk_description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0


# ---------------------------------------------------------------------------
# ClaimedCoupon
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsageEntry:
    """Entrada append-only del historial de uso."""

    redeemed_at: datetime
    period_key: int
    notes: Optional[str] = None


@dataclass
class ClaimedCoupon:
    """
    Cupón reclamado: vincula Employee + Merchant + Discount.

    Notas:
      - expires_at None => no expira.
      - usage_this_month se resetea de forma lazy (rollover) al redimir.
      - signed_payload es el registro del sistema: la firma se recalcula sobre él.
    """

    id: UUID
    employee_id: UUID
    merchant_id: UUID
    discount_id: UUID
    unique_code: str
    signature: str = ""
    signed_payload: Dict[str, Any] = field(default_factory=dict)
    status: CouponStatus = CouponStatus.ACTIVE
    expires_at: Optional[datetime] = None
    usage_history: List[UsageEntry] = field(default_factory=list)
    usage_this_month: int = 0
    last_reset_period: Optional[int] = None
    claimed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == CouponStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def uses_in_period(self, period_key: int) -> int:
        """Usos del período pedido (0 si el contador pertenece a otro mes)."""
        if self.last_reset_period != period_key:
            return 0
        return self.usage_this_month

    def history_uses_in_period(self, period_key: int) -> int:
        """Usos del historial para ese mes; vale también para meses ya cerrados."""
        return sum(1 for entry in self.usage_history if entry.period_key == period_key)

    def roll_period(self, period_key: int) -> bool:
        """Resetea el contador si cambió el mes. True si hubo reset."""
        if self.last_reset_period == period_key:
            return False
        self.usage_this_month = 0
        self.last_reset_period = period_key
        return True

    def record_use(self, entry: UsageEntry) -> None:
        self.usage_history.append(entry)
        self.usage_this_month += 1
        self.last_reset_period = entry.period_key
        self.updated_at = entry.redeemed_at


# ---------------------------------------------------------------------------
# EmployeePass
# ---------------------------------------------------------------------------


@dataclass
class EmployeePass:
    """Pase permanente del empleado (no atado a un comercio)."""

    id: UUID
    pass_id: str
    employee_id: UUID
    user_id: UUID
    company_id: UUID
    status: PassStatus = PassStatus.ACTIVE
    signature: str = ""
    signed_payload: Dict[str, Any] = field(default_factory=dict)
    issued_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == PassStatus.ACTIVE


# ---------------------------------------------------------------------------
# ModerationAction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModerationAction:
    """
    Registro inmutable de una transición de estado.

    Nota:
      - appeal_status es lo único que evoluciona, y lo hace vía repositorio
        (set_appeal_status) produciendo una copia; el snapshot no cambia.
    """

    id: UUID
    target_type: ModerationTargetType
    target_id: UUID
    action: ModerationActionType
    actor_id: str
    reason: ModerationReason
    previous_state: Dict[str, Any]
    new_state: Dict[str, Any]
    notes: Optional[str] = None
    duration: Optional[Duration] = None
    is_appealable: bool = False
    appeal_deadline: Optional[datetime] = None
    appeal_status: AppealStatus = AppealStatus.NONE
    created_at: datetime = field(default_factory=_utcnow)
