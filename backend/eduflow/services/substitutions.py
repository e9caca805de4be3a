"""Lifecycle of leave and substitute-teacher requests.

Requests start PENDING, may be edited or withdrawn by the owning teacher while
PENDING, and are approved or rejected exactly once by an academic or admin.
Every transition out of PENDING is a conditional update on ``status`` so that
two concurrent reviewers cannot both succeed.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduflow.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from eduflow.core.security import Principal
from eduflow.models.batch import Batch
from eduflow.models.notification import NotificationType
from eduflow.models.teacher_batch_request import RequestStatus, RequestType, TeacherBatchRequest
from eduflow.schemas.teacher_batch_request import (
    BatchRef,
    TeacherBatchRequestCreate,
    TeacherBatchRequestOut,
    TeacherBatchRequestUpdate,
    TeacherRef,
)
from eduflow.services.notifications import notify_academic_coordinators, notify_teacher
from eduflow.services.teachers import (
    resolve_substitute_teacher_id,
    resolve_teacher_id,
    teacher_display_names,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def _commit(db: Session, operation: str, **context) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s failed %s", operation, context, exc_info=True)
        raise ServerError(f"Failed to {operation}") from exc


def _teaches_batch(batch: Batch, teacher_id: str) -> bool:
    return teacher_id in {batch.teacher, batch.assistant_tutor}


def _load_request(db: Session, request_id: str) -> TeacherBatchRequest:
    request = db.get(TeacherBatchRequest, request_id)
    if request is None:
        raise NotFoundError("Request", request_id)
    return request


def _load_owned_pending_request(db: Session, request_id: str, teacher_id: str) -> TeacherBatchRequest:
    request = _load_request(db, request_id)
    if request.main_teacher_id != teacher_id:
        raise AuthorizationError("Request not owned by teacher")
    if request.status != RequestStatus.PENDING:
        raise ConflictError(
            f"Only pending requests can be changed (current status {request.status.value})",
            details={"status": request.status.value},
        )
    return request


def _ensure_pending(request: TeacherBatchRequest) -> None:
    if request.status != RequestStatus.PENDING:
        raise ConflictError(
            f"Request already {request.status.value.lower()}",
            details={"status": request.status.value},
        )


def _describe_request(request: TeacherBatchRequest, batch: Batch | None) -> str:
    batch_label = batch.batch_name if batch is not None else request.batch_id
    kind = "leave" if request.request_type == RequestType.LEAVE else "substitute teacher"
    return (
        f"{kind} request for batch {batch_label} "
        f"from {request.date_from.isoformat()} to {request.date_to.isoformat()}"
    )


def hydrate_requests(
    db: Session,
    requests: list[TeacherBatchRequest],
    *,
    include_main_teacher: bool = False,
) -> list[TeacherBatchRequestOut]:
    if not requests:
        return []

    batch_ids = {item.batch_id for item in requests}
    batches = {
        item.batch_id: item
        for item in db.execute(select(Batch).where(Batch.batch_id.in_(batch_ids))).scalars()
    }
    teacher_ids: set[str] = {item.sub_teacher_id for item in requests if item.sub_teacher_id}
    if include_main_teacher:
        teacher_ids.update(item.main_teacher_id for item in requests)
    names = teacher_display_names(db, teacher_ids)

    def teacher_ref(teacher_id: str | None) -> TeacherRef | None:
        if not teacher_id:
            return None
        user_id, name = names.get(teacher_id, (None, None))
        return TeacherRef(teacher_id=teacher_id, user_id=user_id, name=name)

    output: list[TeacherBatchRequestOut] = []
    for request in requests:
        batch = batches.get(request.batch_id)
        output.append(
            TeacherBatchRequestOut(
                id=request.id,
                batch_id=request.batch_id,
                main_teacher_id=request.main_teacher_id,
                request_type=request.request_type,
                reason=request.reason,
                date_from=request.date_from,
                date_to=request.date_to,
                status=request.status,
                sub_teacher_id=request.sub_teacher_id,
                approved_by=request.approved_by,
                approved_at=request.approved_at,
                created_at=request.created_at,
                batch=(
                    BatchRef(
                        batch_id=batch.batch_id,
                        batch_name=batch.batch_name,
                        center=batch.center,
                        course_id=batch.course_id,
                    )
                    if batch is not None
                    else None
                ),
                main_teacher=teacher_ref(request.main_teacher_id) if include_main_teacher else None,
                sub_teacher=teacher_ref(request.sub_teacher_id),
            )
        )
    return output


def create_request(
    db: Session,
    principal: Principal,
    payload: TeacherBatchRequestCreate,
) -> TeacherBatchRequestOut:
    teacher_id = resolve_teacher_id(db, principal.id)

    batch = db.get(Batch, payload.batch_id)
    if batch is None or not _teaches_batch(batch, teacher_id):
        raise AuthorizationError("Batch not owned by teacher")

    request = TeacherBatchRequest(
        batch_id=batch.batch_id,
        main_teacher_id=teacher_id,
        request_type=payload.request_type,
        reason=_normalize_text(payload.reason),
        date_from=payload.date_from,
        date_to=payload.date_to,
        status=RequestStatus.PENDING,
    )
    db.add(request)
    _commit(db, "create request", teacher_id=teacher_id, batch_id=batch.batch_id)
    db.refresh(request)
    logger.info("Request %s created by teacher %s for batch %s", request.id, teacher_id, batch.batch_id)

    if request.request_type == RequestType.LEAVE:
        _, teacher_name = teacher_display_names(db, [teacher_id]).get(teacher_id, (None, teacher_id))
        notify_academic_coordinators(
            db,
            message=f"{teacher_name} submitted a {_describe_request(request, batch)}.",
            notification_type=NotificationType.leave_request,
            related_id=request.id,
        )
    return hydrate_requests(db, [request])[0]


def list_my_requests(db: Session, principal: Principal) -> list[TeacherBatchRequestOut]:
    teacher_id = resolve_teacher_id(db, principal.id)
    requests = list(
        db.execute(
            select(TeacherBatchRequest)
            .where(TeacherBatchRequest.main_teacher_id == teacher_id)
            .order_by(TeacherBatchRequest.created_at.desc())
        ).scalars()
    )
    return hydrate_requests(db, requests)


def update_request(
    db: Session,
    request_id: str,
    principal: Principal,
    payload: TeacherBatchRequestUpdate,
) -> TeacherBatchRequestOut:
    teacher_id = resolve_teacher_id(db, principal.id)
    request = _load_owned_pending_request(db, request_id, teacher_id)

    changes = payload.model_dump(exclude_unset=True)
    batch_id = changes.get("batch_id") or request.batch_id
    batch = db.get(Batch, batch_id)
    if batch is None:
        raise NotFoundError("Batch", batch_id)
    if not _teaches_batch(batch, teacher_id):
        raise AuthorizationError("Batch not owned by teacher")

    date_from = changes.get("date_from") or request.date_from
    date_to = changes.get("date_to") or request.date_to
    if date_from > date_to:
        raise ValidationError("date_from must be on or before date_to")

    values = {
        "batch_id": batch_id,
        "request_type": changes.get("request_type") or request.request_type,
        "date_from": date_from,
        "date_to": date_to,
    }
    if "reason" in changes:
        values["reason"] = _normalize_text(changes["reason"])

    result = db.execute(
        update(TeacherBatchRequest)
        .where(
            TeacherBatchRequest.id == request_id,
            TeacherBatchRequest.main_teacher_id == teacher_id,
            TeacherBatchRequest.status_is(RequestStatus.PENDING),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ConflictError("Request is no longer pending")
    _commit(db, "update request", request_id=request_id, teacher_id=teacher_id)
    db.refresh(request)
    return hydrate_requests(db, [request])[0]


def delete_request(db: Session, request_id: str, principal: Principal) -> None:
    teacher_id = resolve_teacher_id(db, principal.id)
    _load_owned_pending_request(db, request_id, teacher_id)

    result = db.execute(
        delete(TeacherBatchRequest)
        .where(
            TeacherBatchRequest.id == request_id,
            TeacherBatchRequest.main_teacher_id == teacher_id,
            TeacherBatchRequest.status_is(RequestStatus.PENDING),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ConflictError("Request is no longer pending")
    _commit(db, "delete request", request_id=request_id, teacher_id=teacher_id)
    logger.info("Request %s deleted by teacher %s", request_id, teacher_id)


def admin_list_requests(db: Session, status: RequestStatus | None = None) -> list[TeacherBatchRequestOut]:
    query = select(TeacherBatchRequest).order_by(TeacherBatchRequest.created_at.desc())
    if status is not None:
        query = query.where(TeacherBatchRequest.status_is(status))
    requests = list(db.execute(query).scalars())
    return hydrate_requests(db, requests, include_main_teacher=True)


def _review(
    db: Session,
    request: TeacherBatchRequest,
    principal: Principal,
    *,
    target: RequestStatus,
    sub_teacher_id: str | None = None,
) -> TeacherBatchRequest:
    """Move a request loaded as PENDING to ``target``; 409 if another reviewer got there first."""
    request_id = request.id
    values = {
        "status": target,
        "approved_by": principal.id,
        "approved_at": _utc_now(),
    }
    if sub_teacher_id is not None:
        values["sub_teacher_id"] = sub_teacher_id

    result = db.execute(
        update(TeacherBatchRequest)
        .where(
            TeacherBatchRequest.id == request_id,
            TeacherBatchRequest.status_is(RequestStatus.PENDING),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        current = _load_request(db, request_id).status
        raise ConflictError(f"Request already {current.value.lower()}", details={"status": current.value})
    _commit(db, f"{target.value.lower()} request", request_id=request_id, reviewer=principal.id)
    db.refresh(request)
    logger.info("Request %s %s by %s", request_id, target.value, principal.id)
    return request


def approve_request(
    db: Session,
    request_id: str,
    principal: Principal,
    sub_teacher_id: str,
) -> TeacherBatchRequestOut:
    request = _load_request(db, request_id)
    _ensure_pending(request)
    resolved_sub_teacher_id = resolve_substitute_teacher_id(db, sub_teacher_id)
    request = _review(
        db,
        request,
        principal,
        target=RequestStatus.APPROVED,
        sub_teacher_id=resolved_sub_teacher_id,
    )

    batch = db.get(Batch, request.batch_id)
    _, sub_name = teacher_display_names(db, [resolved_sub_teacher_id]).get(
        resolved_sub_teacher_id,
        (None, resolved_sub_teacher_id),
    )
    description = _describe_request(request, batch)
    notify_teacher(
        db,
        teacher_id=request.main_teacher_id,
        message=f"Your {description} was approved. Substitute teacher: {sub_name}.",
        notification_type=NotificationType.request_approved,
        related_id=request.id,
    )
    if resolved_sub_teacher_id != request.main_teacher_id:
        notify_teacher(
            db,
            teacher_id=resolved_sub_teacher_id,
            message=(
                f"You were assigned as substitute teacher for batch "
                f"{batch.batch_name if batch is not None else request.batch_id} "
                f"from {request.date_from.isoformat()} to {request.date_to.isoformat()}."
            ),
            notification_type=NotificationType.substitute_assigned,
            related_id=request.id,
        )
    return hydrate_requests(db, [request], include_main_teacher=True)[0]


def reject_request(db: Session, request_id: str, principal: Principal) -> TeacherBatchRequestOut:
    request = _load_request(db, request_id)
    _ensure_pending(request)
    request = _review(db, request, principal, target=RequestStatus.REJECTED)
    return hydrate_requests(db, [request], include_main_teacher=True)[0]
