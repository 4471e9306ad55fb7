"""
===============================================================================
TARJETA CRC — application/events/handlers/notifications.py
===============================================================================

Responsabilidades:
  - Traducir eventos a emails transaccionales y encolarlos como jobs
    `send-email` (el envío real ocurre en el worker).
  - Resolver el destinatario desde el store (el payload del evento no lleva PII).

Colaboradores:
  - domain.services.JobQueue (enqueue send-email)
  - domain.repositories.EmployeeRepository (email del destinatario)

Notas:
  - Solo se elige template + subject; el cuerpo del email no vive acá.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional
from uuid import UUID

from ....crosscutting.logger import logger
from ....domain.entities import ModerationActionType, ModerationTargetType
from ....domain.events import DomainEvent, EventType
from ....domain.repositories import EmployeeRepository
from ....domain.services import JobOptions, JobQueue, JobType

NOTIFICATION_EVENTS = (
    EventType.COUPON_CLAIMED,
    EventType.REFERRAL_POINTS_EARNED,
    EventType.MODERATION_ACTION,
)


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    template: str
    recipient_key: str


_MODERATION_TEMPLATES = {
    ModerationActionType.WARN.value: EmailTemplate(
        "You have received a warning", "account-warning", "target_id"
    ),
    ModerationActionType.SUSPEND.value: EmailTemplate(
        "Your account has been suspended", "account-suspended", "target_id"
    ),
    ModerationActionType.BAN.value: EmailTemplate(
        "Your account has been banned", "account-banned", "target_id"
    ),
    ModerationActionType.UNSUSPEND.value: EmailTemplate(
        "Your account has been reactivated", "account-reactivated", "target_id"
    ),
}


def select_template(event: DomainEvent) -> Optional[EmailTemplate]:
    payload = event.payload
    if event.type == EventType.COUPON_CLAIMED:
        percentage = payload.get("discount_percentage")
        merchant = payload.get("merchant_name") or "your restaurant"
        return EmailTemplate(
            f"Your {percentage}% discount at {merchant} is ready!",
            "coupon-claimed",
            "employee_id",
        )
    if event.type == EventType.REFERRAL_POINTS_EARNED:
        return EmailTemplate(
            f"You earned {payload.get('points')} referral points",
            "referral-points-earned",
            "referrer_id",
        )
    if event.type == EventType.MODERATION_ACTION:
        # R: Solo moderación de empleados tiene destinatario personal.
        if payload.get("target_type") != ModerationTargetType.EMPLOYEE.value:
            return None
        return _MODERATION_TEMPLATES.get(str(payload.get("action")))
    return None


def make_notification_handler(
    employees: EmployeeRepository,
    queue: JobQueue,
) -> Callable[[DomainEvent], None]:
    def handle_notification(event: DomainEvent) -> None:
        template = select_template(event)
        if template is None:
            return

        raw_id = event.payload.get(template.recipient_key)
        employee = employees.get(UUID(str(raw_id))) if raw_id else None
        if employee is None or not employee.email:
            logger.info(
                "Notification skipped (no recipient)",
                extra={"event_type": event.type.value, "template": template.template},
            )
            return

        data: dict[str, Any] = {
            k: v for k, v in event.payload.items() if k not in {"email", "to"}
        }
        queue.enqueue(
            JobType.SEND_EMAIL,
            {
                "to": employee.email,
                "subject": template.subject,
                "template": template.template,
                "data": data,
            },
            JobOptions(job_id=f"email-{event.event_id}"),
        )

    return handle_notification
