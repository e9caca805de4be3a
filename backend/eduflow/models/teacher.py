import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from eduflow.db.base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    teacher_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Owning user identity; tokens carry this id, batches and requests carry teacher_id.
    teacher: Mapped[str] = mapped_column(ForeignKey("users.id"), unique=True, index=True, nullable=False)
    center: Mapped[str | None] = mapped_column(ForeignKey("centers.center_id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
