from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from eduflow.models.teacher_batch_request import RequestStatus, RequestType


class TeacherBatchRequestCreate(BaseModel):
    batch_id: str = Field(min_length=1, max_length=36)
    request_type: RequestType
    reason: str | None = Field(default=None, max_length=1000)
    date_from: date
    date_to: date

    @model_validator(mode="after")
    def check_date_range(self) -> "TeacherBatchRequestCreate":
        if self.date_from > self.date_to:
            raise ValueError("date_from must be on or before date_to")
        return self


class TeacherBatchRequestUpdate(BaseModel):
    batch_id: str | None = Field(default=None, min_length=1, max_length=36)
    request_type: RequestType | None = None
    reason: str | None = Field(default=None, max_length=1000)
    date_from: date | None = None
    date_to: date | None = None


class TeacherBatchRequestApprove(BaseModel):
    sub_teacher_id: str = Field(min_length=1, max_length=36)


class BatchRef(BaseModel):
    batch_id: str
    batch_name: str | None = None
    center: str | None = None
    course_id: str | None = None


class TeacherRef(BaseModel):
    teacher_id: str
    user_id: str | None = None
    name: str | None = None


class TeacherBatchRequestOut(BaseModel):
    id: str
    batch_id: str
    main_teacher_id: str
    request_type: RequestType
    reason: str | None = None
    date_from: date
    date_to: date
    status: RequestStatus
    sub_teacher_id: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime
    batch: BatchRef | None = None
    main_teacher: TeacherRef | None = None
    sub_teacher: TeacherRef | None = None

    model_config = {"from_attributes": True}
