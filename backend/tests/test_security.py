import json
import logging
from datetime import timedelta

from jose import jwt

from eduflow.core.config import Settings, get_settings
from eduflow.core.logging import JsonFormatter
from eduflow.core.security import create_access_token, decode_token
from eduflow.models.user import UserRole


def test_access_token_round_trip_carries_id_and_role():
    token = create_access_token("user-1", UserRole.academic)
    claims = decode_token(token)
    assert claims["id"] == "user-1"
    assert claims["sub"] == "user-1"
    assert claims["role"] == "academic"


def test_expired_token_is_rejected(client, seed):
    teacher_user, _ = seed.teacher()
    token = create_access_token(teacher_user.id, UserRole.teacher, expires_delta=timedelta(seconds=-5))

    response = client.get("/api/teacher/my-id", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["message"] == "Invalid token"


def test_unknown_role_claim_is_rejected(client):
    settings = get_settings()
    token = jwt.encode(
        {"id": "user-1", "role": "superuser"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    response = client.get("/api/teacher/my-id", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Invalid token", "details": {}}


def test_cors_origins_accept_comma_and_json_lists():
    assert Settings(cors_origins="https://a.example, https://b.example").cors_origins == [
        "https://a.example",
        "https://b.example",
    ]
    assert Settings(cors_origins='["https://c.example"]').cors_origins == ["https://c.example"]


def test_json_formatter_emits_structured_record():
    record = logging.LogRecord("eduflow.test", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
    record.request_id = "req-1"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "eduflow.test"
    assert payload["message"] == "hello world"
    assert payload["request_id"] == "req-1"
