from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from eduflow.api.deps import get_db, require_roles
from eduflow.core.exceptions import NotFoundError
from eduflow.core.security import Principal
from eduflow.models.notification import AcademicNotification, TeacherNotification
from eduflow.models.user import UserRole
from eduflow.schemas.common import Envelope
from eduflow.schemas.notification import AcademicNotificationOut, TeacherNotificationOut
from eduflow.services.teachers import resolve_teacher_id

router = APIRouter()


@router.get("/teacher/notifications", response_model=Envelope[list[TeacherNotificationOut]])
def list_teacher_notifications(
    principal: Principal = Depends(require_roles(UserRole.teacher)),
    db: Session = Depends(get_db),
) -> Envelope[list[TeacherNotificationOut]]:
    teacher_id = resolve_teacher_id(db, principal.id)
    notifications = db.execute(
        select(TeacherNotification)
        .where(
            TeacherNotification.teacher == teacher_id,
            TeacherNotification.is_read.is_(False),
        )
        .order_by(TeacherNotification.created_at.desc())
    ).scalars()
    return Envelope(data=[TeacherNotificationOut.model_validate(item) for item in notifications])


@router.patch("/teacher/notifications/{notification_id}", response_model=Envelope[TeacherNotificationOut])
def mark_teacher_notification_read(
    notification_id: str,
    principal: Principal = Depends(require_roles(UserRole.teacher)),
    db: Session = Depends(get_db),
) -> Envelope[TeacherNotificationOut]:
    teacher_id = resolve_teacher_id(db, principal.id)
    notification = db.get(TeacherNotification, notification_id)
    if notification is None or notification.teacher != teacher_id:
        raise NotFoundError("Notification", notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return Envelope(data=TeacherNotificationOut.model_validate(notification))


@router.get("/academic/notifications", response_model=Envelope[list[AcademicNotificationOut]])
def list_academic_notifications(
    principal: Principal = Depends(require_roles(UserRole.academic)),
    db: Session = Depends(get_db),
) -> Envelope[list[AcademicNotificationOut]]:
    notifications = db.execute(
        select(AcademicNotification)
        .where(AcademicNotification.academic_coordinator_id == principal.id)
        .order_by(AcademicNotification.created_at.desc())
    ).scalars()
    return Envelope(data=[AcademicNotificationOut.model_validate(item) for item in notifications])


@router.patch("/academic/notifications/{notification_id}", response_model=Envelope[AcademicNotificationOut])
def mark_academic_notification_read(
    notification_id: str,
    principal: Principal = Depends(require_roles(UserRole.academic)),
    db: Session = Depends(get_db),
) -> Envelope[AcademicNotificationOut]:
    notification = db.get(AcademicNotification, notification_id)
    if notification is None or notification.academic_coordinator_id != principal.id:
        raise NotFoundError("Notification", notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return Envelope(data=AcademicNotificationOut.model_validate(notification))
