from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from eduflow.api.deps import get_db, require_roles
from eduflow.core.security import Principal
from eduflow.models.user import UserRole
from eduflow.schemas.batch import EffectiveBatchOut, TeacherBatchOut
from eduflow.schemas.common import Envelope
from eduflow.schemas.teacher_batch_request import (
    TeacherBatchRequestCreate,
    TeacherBatchRequestOut,
    TeacherBatchRequestUpdate,
)
from eduflow.services import substitutions
from eduflow.services.effective_batches import (
    list_visible_batches,
    resolve_effective_batches,
    utc_today,
)
from eduflow.services.teachers import resolve_teacher_id

router = APIRouter()

require_teacher = require_roles(UserRole.teacher)


@router.post(
    "/teacher/leave-requests",
    response_model=Envelope[TeacherBatchRequestOut],
    status_code=status.HTTP_201_CREATED,
)
def create_leave_request(
    payload: TeacherBatchRequestCreate,
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[TeacherBatchRequestOut]:
    request = substitutions.create_request(db, principal, payload)
    return Envelope(data=request, message="Request submitted successfully")


@router.get("/teacher/leave-requests", response_model=Envelope[list[TeacherBatchRequestOut]])
def list_my_leave_requests(
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[list[TeacherBatchRequestOut]]:
    return Envelope(data=substitutions.list_my_requests(db, principal))


@router.put("/teacher/leave-requests/{request_id}", response_model=Envelope[TeacherBatchRequestOut])
def update_leave_request(
    request_id: str,
    payload: TeacherBatchRequestUpdate,
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[TeacherBatchRequestOut]:
    request = substitutions.update_request(db, request_id, principal, payload)
    return Envelope(data=request, message="Request updated successfully")


@router.delete("/teacher/leave-requests/{request_id}", response_model=Envelope[None])
def delete_leave_request(
    request_id: str,
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[None]:
    substitutions.delete_request(db, request_id, principal)
    return Envelope(message="Request deleted successfully")


@router.get("/teacher/effective-batches", response_model=Envelope[list[EffectiveBatchOut]])
def get_effective_batches(
    raw_date: str | None = Query(default=None, alias="date"),
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[list[EffectiveBatchOut]]:
    return Envelope(data=resolve_effective_batches(db, principal, raw_date))


@router.get("/teacher/batches", response_model=Envelope[list[TeacherBatchOut]])
def get_my_batches(
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> Envelope[list[TeacherBatchOut]]:
    return Envelope(data=list_visible_batches(db, principal, utc_today()))


@router.get("/teacher/my-id")
def get_my_teacher_id(
    principal: Principal = Depends(require_teacher),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "teacher_id": resolve_teacher_id(db, principal.id)}
