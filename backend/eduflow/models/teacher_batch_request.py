import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, String, Text, TypeDecorator
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from eduflow.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class RequestType(_CaseInsensitiveEnum):
    LEAVE = "LEAVE"
    SUB_TEACHER = "SUB_TEACHER"


class RequestStatus(_CaseInsensitiveEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CaseInsensitiveEnumType(TypeDecorator):
    """Plain string column that writes upper-case values and reads legacy mixed-case ones."""

    impl = String
    cache_ok = True

    def __init__(self, enum_class: type[_CaseInsensitiveEnum], length: int = 20) -> None:
        super().__init__(length=length)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self.enum_class(value)


class TeacherBatchRequest(Base):
    __tablename__ = "teacher_batch_requests"
    __table_args__ = (
        CheckConstraint("date_from <= date_to", name="ck_teacher_batch_requests_date_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.batch_id"), nullable=False, index=True)
    main_teacher_id: Mapped[str] = mapped_column(ForeignKey("teachers.teacher_id"), nullable=False, index=True)
    request_type: Mapped[RequestType] = mapped_column(CaseInsensitiveEnumType(RequestType), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        CaseInsensitiveEnumType(RequestStatus),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    # Legacy rows may hold the substitute's user id instead of a teacher id.
    sub_teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @classmethod
    def status_is(cls, status: RequestStatus):
        # Stored values are not guaranteed upper-case on rows written before normalization.
        return func.upper(cls.status) == status.value

    @classmethod
    def type_is(cls, request_type: RequestType):
        return func.upper(cls.request_type) == request_type.value
