from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from eduflow.api.deps import get_db, require_roles
from eduflow.core.security import Principal
from eduflow.models.teacher_batch_request import RequestStatus
from eduflow.models.user import UserRole
from eduflow.schemas.common import Envelope
from eduflow.schemas.teacher_batch_request import TeacherBatchRequestApprove, TeacherBatchRequestOut
from eduflow.services import substitutions

router = APIRouter()

require_reviewer = require_roles(UserRole.academic, UserRole.admin)


@router.get("/academic/sub-tutor-requests", response_model=Envelope[list[TeacherBatchRequestOut]])
def list_sub_tutor_requests(
    request_status: RequestStatus | None = Query(default=None, alias="status"),
    _: Principal = Depends(require_reviewer),
    db: Session = Depends(get_db),
) -> Envelope[list[TeacherBatchRequestOut]]:
    return Envelope(data=substitutions.admin_list_requests(db, request_status))


@router.post(
    "/academic/sub-tutor-requests/{request_id}/approve",
    response_model=Envelope[TeacherBatchRequestOut],
)
def approve_sub_tutor_request(
    request_id: str,
    payload: TeacherBatchRequestApprove,
    principal: Principal = Depends(require_reviewer),
    db: Session = Depends(get_db),
) -> Envelope[TeacherBatchRequestOut]:
    request = substitutions.approve_request(db, request_id, principal, payload.sub_teacher_id)
    return Envelope(data=request, message="Request approved")


@router.post(
    "/academic/sub-tutor-requests/{request_id}/reject",
    response_model=Envelope[TeacherBatchRequestOut],
)
def reject_sub_tutor_request(
    request_id: str,
    principal: Principal = Depends(require_reviewer),
    db: Session = Depends(get_db),
) -> Envelope[TeacherBatchRequestOut]:
    request = substitutions.reject_request(db, request_id, principal)
    return Envelope(data=request, message="Request rejected")
