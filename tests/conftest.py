import os
from datetime import date
from pathlib import Path

import pytest

# Must be set before anything under sinmungo is imported (engine and secrets are read at import)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "0"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.setdefault("STATUS_TRANSITION_POLICY", "open")

from fastapi.testclient import TestClient

from sinmungo.core.security import create_access_token, get_password_hash
from sinmungo.crud import issue as crud_issue
from sinmungo.db.session import SessionLocal, engine
from sinmungo.main import app
from sinmungo.models import Base
from sinmungo.models.user import User
from sinmungo.schemas.issue import IssueCreate
from sinmungo.services import moderation
from sinmungo.services.storage import LocalBlobStore, get_blob_store


ISSUE_PAYLOAD = {
    "title": "불법주차 단속 기준이 구청마다 다릅니다",
    "summary": "같은 장소인데 구청 경계에 따라 과태료 부과 여부가 달라집니다.",
    "enforcement_type": "과태료·범칙금",
    "field_category": "교통",
    "region": "서울",
    "occurred_at": date(2026, 9, 1).isoformat(),
    "content_overview": "골목길 양쪽이 서로 다른 구청 관할입니다.",
    "content_problem": "한쪽에만 과태료가 부과되었습니다.",
    "content_common_sense": "같은 행위에는 같은 처분이 따라야 합니다.",
    "content_comparison": None,
    "content_status": "이의신청 진행 중",
    "request_types": ["제도개선"],
    "agencies": [{"agency_type": "구청", "agency_name": "마포구청"}],
}


@pytest.fixture(autouse=True)
def fresh_schema():
    """Every test starts from empty tables on the shared in-memory database."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_blob_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(email: str, *, role: str = "citizen", nickname: str = "시민", password: str = "password123"):
        user = User(
            email=email,
            nickname=nickname,
            role=role,
            is_active=True,
            hashed_password=get_password_hash(password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def citizen(make_user):
    return make_user("citizen@example.com", nickname="제보자")


@pytest.fixture
def other_citizen(make_user):
    return make_user("other@example.com", nickname="다른시민")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin", nickname="운영자")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def pending_issue(db, citizen):
    return crud_issue.create_issue(db, IssueCreate(**ISSUE_PAYLOAD), author_id=citizen.id)


@pytest.fixture
def published_issue(db, pending_issue, admin):
    return moderation.approve_issue(db, pending_issue.id, actor=admin)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def issue_payload():
    return dict(ISSUE_PAYLOAD)


@pytest.fixture
def issue_factory(db, citizen):
    """Pending issues by the citizen fixture, with field overrides."""
    def _make(**overrides):
        return crud_issue.create_issue(db, IssueCreate(**{**ISSUE_PAYLOAD, **overrides}), author_id=citizen.id)

    return _make
