"""Effective batch resolution for a teacher on a calendar day.

A teacher is responsible for a batch on a given day when they are its main
teacher or assistant tutor and have no approved LEAVE covering that day, or
when an approved request names them as substitute for a window covering that
day. Range membership is always ``date_from <= day <= date_to``; the approval
timestamp is audit data and never moves the window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
import logging
import re

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from eduflow.core.exceptions import ValidationError
from eduflow.core.security import Principal
from eduflow.models.batch import Batch
from eduflow.models.center import Center
from eduflow.models.course import Course
from eduflow.models.teacher import Teacher
from eduflow.models.teacher_batch_request import RequestStatus, RequestType, TeacherBatchRequest
from eduflow.models.user import User
from eduflow.schemas.batch import DetailLevel, EffectiveBatchOut, RoleTag, TeacherBatchOut
from eduflow.services.teachers import resolve_teacher_id

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_calendar_date(raw: str | None, *, field_name: str = "date") -> date:
    if not raw:
        raise ValidationError(f"{field_name} query param required (YYYY-MM-DD)")
    value = raw.strip()
    if not DATE_PATTERN.match(value):
        raise ValidationError(f"{field_name} must be formatted as YYYY-MM-DD", details={field_name: raw})
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{field_name} is not a valid calendar date", details={field_name: raw}) from exc


def as_calendar_date(value: date | datetime | str | None) -> date | None:
    """Drop any time-of-day component so range checks compare whole days."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip().split("T")[0].split(" ")[0]
    if not text:
        return None
    return date.fromisoformat(text)


def is_active_on(date_from, date_to, day: date) -> bool:
    start = as_calendar_date(date_from)
    end = as_calendar_date(date_to)
    if start is None or end is None:
        return False
    return start <= day <= end


@dataclass
class SubstituteWindow:
    batch_id: str
    date_from: date
    date_to: date


@dataclass
class LeaveOverlay:
    # batch id -> teacher ids holding an approved LEAVE active on the day
    absent_by_batch: dict[str, set[str]] = field(default_factory=dict)

    def is_absent(self, batch_id: str, teacher_id: str | None) -> bool:
        return bool(teacher_id) and teacher_id in self.absent_by_batch.get(batch_id, set())

    def batches_for(self, teacher_id: str) -> set[str]:
        return {batch_id for batch_id, absent in self.absent_by_batch.items() if teacher_id in absent}


@dataclass
class EffectiveAssignment:
    teacher_id: str
    on_date: date
    # batch id -> assistant tutor id for batches the teacher leads
    main: dict[str, str | None]
    # batch id -> main teacher id for batches the teacher assists
    assistant: dict[str, str | None]
    substitutions: dict[str, SubstituteWindow]
    overlay: LeaveOverlay

    @property
    def on_leave(self) -> set[str]:
        return self.overlay.batches_for(self.teacher_id)

    @property
    def own_batch_ids(self) -> set[str]:
        on_leave = self.on_leave
        return {batch_id for batch_id in (*self.main, *self.assistant) if batch_id not in on_leave}

    @property
    def batch_ids(self) -> set[str]:
        return self.own_batch_ids | set(self.substitutions)

    def role_for(self, batch_id: str) -> RoleTag | None:
        if batch_id in self.substitutions:
            return RoleTag.sub_teacher
        if batch_id in self.main:
            return RoleTag.main_teacher
        if batch_id in self.assistant:
            return RoleTag.assistant_tutor
        return None

    def counterpart_on_leave(self, batch_id: str) -> bool:
        if batch_id in self.main:
            return self.overlay.is_absent(batch_id, self.main[batch_id])
        if batch_id in self.assistant:
            return self.overlay.is_absent(batch_id, self.assistant[batch_id])
        return False


def load_leave_overlay(db: Session, on_date: date) -> LeaveOverlay:
    rows = db.execute(
        select(
            TeacherBatchRequest.batch_id,
            TeacherBatchRequest.main_teacher_id,
            TeacherBatchRequest.date_from,
            TeacherBatchRequest.date_to,
        ).where(
            TeacherBatchRequest.status_is(RequestStatus.APPROVED),
            TeacherBatchRequest.type_is(RequestType.LEAVE),
        )
    ).all()
    overlay = LeaveOverlay()
    for batch_id, teacher_id, date_from, date_to in rows:
        if is_active_on(date_from, date_to, on_date):
            overlay.absent_by_batch.setdefault(batch_id, set()).add(teacher_id)
    return overlay


def load_substitute_windows(
    db: Session,
    *,
    teacher_id: str,
    user_id: str,
    on_date: date,
) -> dict[str, SubstituteWindow]:
    rows = db.execute(
        select(
            TeacherBatchRequest.batch_id,
            TeacherBatchRequest.date_from,
            TeacherBatchRequest.date_to,
        )
        .where(
            TeacherBatchRequest.status_is(RequestStatus.APPROVED),
            TeacherBatchRequest.sub_teacher_id.in_({teacher_id, user_id}),
        )
        .order_by(TeacherBatchRequest.date_from)
    ).all()
    windows: dict[str, SubstituteWindow] = {}
    for batch_id, date_from, date_to in rows:
        if batch_id in windows or not is_active_on(date_from, date_to, on_date):
            continue
        windows[batch_id] = SubstituteWindow(
            batch_id=batch_id,
            date_from=as_calendar_date(date_from),
            date_to=as_calendar_date(date_to),
        )
    return windows


def compute_assignment(
    db: Session,
    *,
    teacher_id: str,
    user_id: str,
    on_date: date,
    include_substitutions: bool = True,
) -> EffectiveAssignment:
    substitutions: dict[str, SubstituteWindow] = {}
    if include_substitutions:
        substitutions = load_substitute_windows(db, teacher_id=teacher_id, user_id=user_id, on_date=on_date)

    owned = db.execute(
        select(Batch.batch_id, Batch.teacher, Batch.assistant_tutor).where(
            or_(Batch.teacher == teacher_id, Batch.assistant_tutor == teacher_id)
        )
    ).all()
    main = {batch_id: assistant for batch_id, lead, assistant in owned if lead == teacher_id}
    assistant = {
        batch_id: lead
        for batch_id, lead, assistant_id in owned
        if assistant_id == teacher_id and batch_id not in main
    }

    assignment = EffectiveAssignment(
        teacher_id=teacher_id,
        on_date=on_date,
        main=main,
        assistant=assistant,
        substitutions=substitutions,
        overlay=load_leave_overlay(db, on_date),
    )
    logger.debug(
        "Resolved teacher=%s date=%s main=%d assistant=%d sub=%d on_leave=%d",
        teacher_id,
        on_date.isoformat(),
        len(main),
        len(assistant),
        len(substitutions),
        len(assignment.on_leave),
    )
    return assignment


@dataclass
class BatchDetailRow:
    batch: Batch
    center_name: str | None = None
    course_name: str | None = None
    course_type: str | None = None
    main_teacher_name: str | None = None
    assistant_tutor_name: str | None = None


@dataclass
class BatchDetails:
    level: DetailLevel
    rows: list[BatchDetailRow]


def _query_full_details(db: Session, batch_ids: set[str]) -> list[BatchDetailRow]:
    main_teacher = aliased(Teacher)
    main_user = aliased(User)
    assistant_teacher = aliased(Teacher)
    assistant_user = aliased(User)
    rows = db.execute(
        select(
            Batch,
            Center.center_name,
            Course.course_name,
            Course.type,
            main_user.name,
            main_user.full_name,
            assistant_user.name,
            assistant_user.full_name,
        )
        .outerjoin(Center, Center.center_id == Batch.center)
        .outerjoin(Course, Course.course_id == Batch.course_id)
        .outerjoin(main_teacher, main_teacher.teacher_id == Batch.teacher)
        .outerjoin(main_user, main_user.id == main_teacher.teacher)
        .outerjoin(assistant_teacher, assistant_teacher.teacher_id == Batch.assistant_tutor)
        .outerjoin(assistant_user, assistant_user.id == assistant_teacher.teacher)
        .where(Batch.batch_id.in_(batch_ids))
    ).all()
    return [
        BatchDetailRow(
            batch=batch,
            center_name=center_name,
            course_name=course_name,
            course_type=course_type,
            main_teacher_name=main_full or main_name,
            assistant_tutor_name=assistant_full or assistant_name,
        )
        for (
            batch,
            center_name,
            course_name,
            course_type,
            main_name,
            main_full,
            assistant_name,
            assistant_full,
        ) in rows
    ]


def _query_minimal_details(db: Session, batch_ids: set[str]) -> list[BatchDetailRow]:
    batches = db.execute(select(Batch).where(Batch.batch_id.in_(batch_ids))).scalars()
    return [BatchDetailRow(batch=batch) for batch in batches]


def load_batch_details(db: Session, batch_ids: set[str]) -> BatchDetails:
    if not batch_ids:
        return BatchDetails(level=DetailLevel.full, rows=[])
    try:
        rows = _query_full_details(db, batch_ids)
        level = DetailLevel.full
    except SQLAlchemyError:
        logger.warning("Batch detail join failed, falling back to minimal fields", exc_info=True)
        db.rollback()
        rows = _query_minimal_details(db, batch_ids)
        level = DetailLevel.minimal
    rows.sort(key=lambda item: (item.batch.batch_name or "", item.batch.batch_id))
    return BatchDetails(level=level, rows=rows)


def _batch_fields(row: BatchDetailRow, level: DetailLevel) -> dict:
    batch = row.batch
    return {
        "batch_id": batch.batch_id,
        "batch_name": batch.batch_name,
        "status": batch.status,
        "duration": batch.duration,
        "start_date": batch.start_date,
        "end_date": batch.end_date,
        "time_from": batch.time_from,
        "time_to": batch.time_to,
        "created_at": batch.created_at,
        "center": batch.center,
        "course_id": batch.course_id,
        "teacher": batch.teacher,
        "assistant_tutor": batch.assistant_tutor,
        "center_name": row.center_name,
        "course_name": row.course_name,
        "course_type": row.course_type,
        "detail_level": level,
    }


def resolve_effective_batches(db: Session, principal: Principal, raw_date: str | None) -> list[EffectiveBatchOut]:
    teacher_id = resolve_teacher_id(db, principal.id)
    on_date = parse_calendar_date(raw_date)
    assignment = compute_assignment(db, teacher_id=teacher_id, user_id=principal.id, on_date=on_date)
    details = load_batch_details(db, assignment.batch_ids)

    output: list[EffectiveBatchOut] = []
    for row in details.rows:
        batch_id = row.batch.batch_id
        role_tag = assignment.role_for(batch_id)
        if role_tag is None:
            continue
        window = assignment.substitutions.get(batch_id) if role_tag == RoleTag.sub_teacher else None
        output.append(
            EffectiveBatchOut(
                **_batch_fields(row, details.level),
                role_tag=role_tag,
                sub_date_from=window.date_from if window else None,
                sub_date_to=window.date_to if window else None,
                assistant_tutor_name=row.assistant_tutor_name if role_tag == RoleTag.main_teacher else None,
                main_teacher_name=row.main_teacher_name if role_tag == RoleTag.assistant_tutor else None,
                counterpart_on_leave=assignment.counterpart_on_leave(batch_id),
            )
        )
    return output


def list_visible_batches(db: Session, principal: Principal, on_date: date) -> list[TeacherBatchOut]:
    """Batches the teacher leads or assists, minus those covered by their own active leave."""
    teacher_id = resolve_teacher_id(db, principal.id)
    assignment = compute_assignment(
        db,
        teacher_id=teacher_id,
        user_id=principal.id,
        on_date=on_date,
        include_substitutions=False,
    )
    details = load_batch_details(db, assignment.own_batch_ids)
    return [TeacherBatchOut(**_batch_fields(row, details.level)) for row in details.rows]
