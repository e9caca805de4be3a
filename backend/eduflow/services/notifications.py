from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from eduflow.models.notification import AcademicNotification, NotificationType, TeacherNotification
from eduflow.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _deliver(db: Session, build, *, context: str) -> int:
    # Runs after the primary transition has committed; failures never reach the caller.
    try:
        records = build()
        for record in records:
            db.add(record)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Notification delivery failed (%s)", context, exc_info=True)
        return 0
    return len(records)


def notify_teacher(
    db: Session,
    *,
    teacher_id: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    related_id: str | None = None,
) -> int:
    def build() -> list[TeacherNotification]:
        return [
            TeacherNotification(
                teacher=teacher_id,
                message=message,
                type=notification_type,
                related_id=related_id,
                is_read=False,
            )
        ]

    return _deliver(db, build, context=f"teacher={teacher_id} related={related_id}")


def notify_academic_coordinators(
    db: Session,
    *,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    related_id: str | None = None,
) -> int:
    def build() -> list[AcademicNotification]:
        coordinator_ids = db.execute(
            select(User.id).where(
                User.role == UserRole.academic,
                User.is_active.is_(True),
            )
        ).scalars()
        return [
            AcademicNotification(
                academic_coordinator_id=coordinator_id,
                message=message,
                type=notification_type,
                related_id=related_id,
                is_read=False,
            )
            for coordinator_id in coordinator_ids
        ]

    return _deliver(db, build, context=f"academic coordinators related={related_id}")
