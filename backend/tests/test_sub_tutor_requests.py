from datetime import date

from eduflow.models.notification import TeacherNotification
from eduflow.models.teacher_batch_request import RequestStatus, RequestType, TeacherBatchRequest
from eduflow.models.user import UserRole
from eduflow.services import notifications


def pending_leave(seed, batch, owner, **overrides):
    values = {"date_from": date(2024, 1, 10), "date_to": date(2024, 1, 12)}
    values.update(overrides)
    return seed.request(batch, owner, **values)


def test_admin_lists_requests_with_batch_and_teacher_details(client, seed, headers):
    admin = seed.user(UserRole.admin)
    _, t1 = seed.teacher("asha", full_name="Asha Menon")
    _, t2 = seed.teacher("ravi")
    batch_a = seed.batch("Batch A", teacher=t1)
    batch_b = seed.batch("Batch B", teacher=t2)
    pending_leave(seed, batch_a, t1)
    approved = pending_leave(
        seed,
        batch_b,
        t2,
        request_type=RequestType.SUB_TEACHER,
        status=RequestStatus.APPROVED,
        sub_teacher_id=t1.teacher_id,
    )

    response = client.get("/api/academic/sub-tutor-requests", headers=headers(admin))
    assert response.status_code == 200
    items = response.json()["data"]
    assert len(items) == 2
    by_id = {item["id"]: item for item in items}
    row = by_id[approved.id]
    assert row["batch"]["batch_name"] == "Batch B"
    assert row["main_teacher"]["teacher_id"] == t2.teacher_id
    assert row["main_teacher"]["name"] == "ravi"
    assert row["sub_teacher"]["name"] == "Asha Menon"

    filtered = client.get(
        "/api/academic/sub-tutor-requests",
        params={"status": "approved"},
        headers=headers(admin),
    )
    assert filtered.status_code == 200
    assert [item["id"] for item in filtered.json()["data"]] == [approved.id]

    invalid = client.get(
        "/api/academic/sub-tutor-requests",
        params={"status": "archived"},
        headers=headers(admin),
    )
    assert invalid.status_code == 400


def test_teacher_cannot_review_requests(client, seed, headers):
    t1_user, t1 = seed.teacher()
    _, t2 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)

    assert client.get("/api/academic/sub-tutor-requests", headers=headers(t1_user)).status_code == 403
    response = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t2.teacher_id},
        headers=headers(t1_user),
    )
    assert response.status_code == 403
    assert seed.get(TeacherBatchRequest, request.id).status == RequestStatus.PENDING


def test_approve_resolves_user_id_and_notifies_both_teachers(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    t1_user, t1 = seed.teacher("asha")
    t2_user, t2 = seed.teacher("ravi")
    batch = seed.batch("Morning Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)

    response = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t2_user.id},
        headers=headers(reviewer),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Request approved"
    data = body["data"]
    assert data["status"] == "APPROVED"
    assert data["sub_teacher_id"] == t2.teacher_id
    assert data["approved_by"] == reviewer.id
    assert data["approved_at"] is not None

    stored = seed.get(TeacherBatchRequest, request.id)
    assert stored.sub_teacher_id == t2.teacher_id
    assert stored.approved_by == reviewer.id

    main_inbox = client.get("/api/teacher/notifications", headers=headers(t1_user))
    assert [item["type"] for item in main_inbox.json()["data"]] == ["request_approved"]
    assert "ravi" in main_inbox.json()["data"][0]["message"]

    sub_inbox = client.get("/api/teacher/notifications", headers=headers(t2_user))
    sub_items = sub_inbox.json()["data"]
    assert [item["type"] for item in sub_items] == ["substitute_assigned"]
    assert sub_items[0]["related_id"] == request.id
    assert "Morning Batch" in sub_items[0]["message"]


def test_second_approval_conflicts(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    other_reviewer = seed.user(UserRole.admin)
    _, t1 = seed.teacher()
    _, t2 = seed.teacher()
    _, t3 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)
    url = f"/api/academic/sub-tutor-requests/{request.id}/approve"

    assert client.post(url, json={"sub_teacher_id": t2.teacher_id}, headers=headers(reviewer)).status_code == 200
    second = client.post(url, json={"sub_teacher_id": t3.teacher_id}, headers=headers(other_reviewer))
    assert second.status_code == 409
    assert second.json()["details"] == {"status": "APPROVED"}

    stored = seed.get(TeacherBatchRequest, request.id)
    assert stored.sub_teacher_id == t2.teacher_id
    assert stored.approved_by == reviewer.id


def test_reject_then_approve_conflicts(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    _, t1 = seed.teacher()
    _, t2 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1, request_type=RequestType.SUB_TEACHER)

    rejected = client.post(f"/api/academic/sub-tutor-requests/{request.id}/reject", headers=headers(reviewer))
    assert rejected.status_code == 200
    assert rejected.json()["data"]["status"] == "REJECTED"
    assert rejected.json()["data"]["sub_teacher_id"] is None

    approve = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t2.teacher_id},
        headers=headers(reviewer),
    )
    assert approve.status_code == 409

    reject_again = client.post(f"/api/academic/sub-tutor-requests/{request.id}/reject", headers=headers(reviewer))
    assert reject_again.status_code == 409
    assert seed.get(TeacherBatchRequest, request.id).status == RequestStatus.REJECTED


def test_approve_unknown_request_or_substitute(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    _, t1 = seed.teacher()
    _, t2 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)

    missing_request = client.post(
        "/api/academic/sub-tutor-requests/unknown/approve",
        json={"sub_teacher_id": t2.teacher_id},
        headers=headers(reviewer),
    )
    assert missing_request.status_code == 404

    missing_sub = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": "nobody"},
        headers=headers(reviewer),
    )
    assert missing_sub.status_code == 404

    no_sub = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={},
        headers=headers(reviewer),
    )
    assert no_sub.status_code == 400

    missing_reject = client.post("/api/academic/sub-tutor-requests/unknown/reject", headers=headers(reviewer))
    assert missing_reject.status_code == 404

    assert seed.get(TeacherBatchRequest, request.id).status == RequestStatus.PENDING


def test_approval_survives_notification_failure(client, seed, headers, monkeypatch):
    reviewer = seed.user(UserRole.academic)
    _, t1 = seed.teacher()
    _, t2 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)

    def broken_notification(**_kwargs):
        raise RuntimeError("notification sink unavailable")

    monkeypatch.setattr(notifications, "TeacherNotification", broken_notification)

    response = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t2.teacher_id},
        headers=headers(reviewer),
    )
    assert response.status_code == 200
    assert seed.get(TeacherBatchRequest, request.id).status == RequestStatus.APPROVED


def test_self_substitution_sends_single_notification(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    t1_user, t1 = seed.teacher()
    batch = seed.batch("Batch", teacher=t1)
    request = pending_leave(seed, batch, t1, request_type=RequestType.SUB_TEACHER)

    response = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t1.teacher_id},
        headers=headers(reviewer),
    )
    assert response.status_code == 200

    inbox = client.get("/api/teacher/notifications", headers=headers(t1_user))
    assert [item["type"] for item in inbox.json()["data"]] == ["request_approved"]
    assert seed.count(TeacherNotification) == 1


def test_mixed_case_pending_row_can_be_approved(client, seed, headers):
    reviewer = seed.user(UserRole.academic)
    _, t1 = seed.teacher()
    _, t2 = seed.teacher()
    batch = seed.batch("Legacy Batch", teacher=t1)
    request = pending_leave(seed, batch, t1)
    seed.execute("UPDATE teacher_batch_requests SET status = 'Pending' WHERE id = :id", id=request.id)

    response = client.post(
        f"/api/academic/sub-tutor-requests/{request.id}/approve",
        json={"sub_teacher_id": t2.teacher_id},
        headers=headers(reviewer),
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "APPROVED"
    stored = seed.get(TeacherBatchRequest, request.id)
    assert stored.status == RequestStatus.APPROVED
    assert stored.approved_by == reviewer.id
