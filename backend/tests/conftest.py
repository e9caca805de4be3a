from datetime import date

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine, func, select, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import eduflow.models  # noqa: F401
from eduflow.api.deps import get_db
from eduflow.api.routes import health
from eduflow.core.security import create_access_token
from eduflow.db.base import Base
from eduflow.main import app
from eduflow.models.batch import Batch
from eduflow.models.center import Center
from eduflow.models.course import Course
from eduflow.models.teacher import Teacher
from eduflow.models.teacher_batch_request import RequestStatus, RequestType, TeacherBatchRequest
from eduflow.models.user import User, UserRole


class Seeder:
    """Writes fixture rows straight through the ORM, bypassing the API."""

    def __init__(self, session_factory):
        self._session = session_factory(expire_on_commit=False)
        self._counter = 0

    def _save(self, record):
        self._session.add(record)
        self._session.commit()
        return record

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def user(self, role: UserRole, name: str | None = None, *, full_name: str | None = None) -> User:
        index = self._next()
        return self._save(
            User(
                name=name or f"{role.value}-{index}",
                full_name=full_name,
                email=f"{role.value}-{index}@example.com",
                role=role,
            )
        )

    def teacher(self, name: str | None = None, *, full_name: str | None = None) -> tuple[User, Teacher]:
        user = self.user(UserRole.teacher, name, full_name=full_name)
        teacher = self._save(Teacher(teacher=user.id))
        return user, teacher

    def center(self, name: str = "North Center") -> Center:
        return self._save(Center(center_name=name))

    def course(self, name: str = "Spoken English", course_type: str = "language") -> Course:
        return self._save(Course(course_name=name, type=course_type))

    def batch(
        self,
        name: str,
        *,
        teacher: Teacher | None = None,
        assistant: Teacher | None = None,
        center: Center | None = None,
        course: Course | None = None,
    ) -> Batch:
        return self._save(
            Batch(
                batch_name=name,
                status="active",
                teacher=teacher.teacher_id if teacher else None,
                assistant_tutor=assistant.teacher_id if assistant else None,
                center=center.center_id if center else None,
                course_id=course.course_id if course else None,
            )
        )

    def request(
        self,
        batch: Batch,
        owner: Teacher,
        *,
        date_from: date,
        date_to: date,
        request_type: RequestType = RequestType.LEAVE,
        status: RequestStatus = RequestStatus.PENDING,
        sub_teacher_id: str | None = None,
    ) -> TeacherBatchRequest:
        return self._save(
            TeacherBatchRequest(
                batch_id=batch.batch_id,
                main_teacher_id=owner.teacher_id,
                request_type=request_type,
                date_from=date_from,
                date_to=date_to,
                status=status,
                sub_teacher_id=sub_teacher_id,
            )
        )

    def get(self, model, key):
        self._session.expire_all()
        return self._session.get(model, key)

    def count(self, model) -> int:
        return self._session.scalar(select(func.count()).select_from(model))

    def execute(self, statement: str, **params) -> None:
        self._session.execute(text(statement), params)
        self._session.commit()

    def close(self) -> None:
        self._session.close()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture()
def engine():
    engine = create_engine( #create isolate DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def seed(session_factory):
    seeder = Seeder(session_factory)
    yield seeder
    seeder.close()


@pytest.fixture()
def headers():
    return auth_headers


@pytest.fixture() #test client
def client(engine, session_factory, monkeypatch):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(health, "engine", engine)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
