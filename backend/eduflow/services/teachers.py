from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from eduflow.core.exceptions import NotFoundError
from eduflow.models.teacher import Teacher
from eduflow.models.user import User


def find_teacher_for_user(db: Session, user_id: str) -> Teacher | None:
    return db.execute(select(Teacher).where(Teacher.teacher == user_id)).scalar_one_or_none()


def resolve_teacher_id(db: Session, user_id: str) -> str:
    teacher = find_teacher_for_user(db, user_id)
    if teacher is None:
        raise NotFoundError("Teacher")
    return teacher.teacher_id


def resolve_substitute_teacher_id(db: Session, raw_id: str) -> str:
    """Accept either a teacher id or the owning user id and return the teacher id."""
    teacher = db.get(Teacher, raw_id)
    if teacher is None:
        teacher = find_teacher_for_user(db, raw_id)
    if teacher is None:
        raise NotFoundError("Substitute teacher", raw_id)
    return teacher.teacher_id


def teacher_display_names(db: Session, teacher_ids: Iterable[str | None]) -> dict[str, tuple[str, str | None]]:
    """Map teacher id -> (user id, display name) for every id that resolves."""
    wanted = {item for item in teacher_ids if item}
    if not wanted:
        return {}
    rows = db.execute(
        select(Teacher.teacher_id, User.id, User.name, User.full_name)
        .join(User, User.id == Teacher.teacher)
        .where(Teacher.teacher_id.in_(wanted))
    ).all()
    return {
        teacher_id: (user_id, full_name or name)
        for teacher_id, user_id, name, full_name in rows
    }
