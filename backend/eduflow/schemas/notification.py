from datetime import datetime

from pydantic import BaseModel

from eduflow.models.notification import NotificationType


class TeacherNotificationOut(BaseModel):
    id: str
    teacher: str
    message: str
    type: NotificationType
    related_id: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AcademicNotificationOut(BaseModel):
    id: str
    academic_coordinator_id: str
    message: str
    type: NotificationType
    related_id: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
