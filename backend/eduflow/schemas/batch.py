from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel


class RoleTag(str, Enum):
    sub_teacher = "Sub Teacher"
    main_teacher = "Main Teacher"
    assistant_tutor = "Assistant Tutor"


class DetailLevel(str, Enum):
    full = "full"
    minimal = "minimal"


class TeacherBatchOut(BaseModel):
    batch_id: str
    batch_name: str
    status: str | None = None
    duration: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    time_from: time | None = None
    time_to: time | None = None
    created_at: datetime | None = None
    center: str | None = None
    course_id: str | None = None
    teacher: str | None = None
    assistant_tutor: str | None = None
    center_name: str | None = None
    course_name: str | None = None
    course_type: str | None = None
    detail_level: DetailLevel = DetailLevel.full


class EffectiveBatchOut(TeacherBatchOut):
    role_tag: RoleTag
    sub_date_from: date | None = None
    sub_date_to: date | None = None
    main_teacher_name: str | None = None
    assistant_tutor_name: str | None = None
    counterpart_on_leave: bool = False
