import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from family_sharing.core.auth import get_identity_verifier
from family_sharing.core.db import get_db
from family_sharing.main import app
from family_sharing.models.base import Base
from family_sharing.models import entities  # noqa: F401
from family_sharing.services.identity import Identity
from family_sharing.services.notifications import get_notifier
from family_sharing.store.sql import SqlStore


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OWNER = Identity(id="user-a", email="a@x.com")
INVITEE = Identity(id="user-b", email="b@y.com")
OTHER = Identity(id="user-c", email="c@z.com")

REFRESH_TOKENS = {
    "rt-owner": OWNER,
    "rt-invitee": INVITEE,
    "rt-other": OTHER,
}


class FakeVerifier:
    def verify(self, refresh_token: str) -> Identity | None:
        return REFRESH_TOKENS.get(refresh_token)


class RecordingNotifier:
    def __init__(self):
        self.sent: list[dict] = []
        self.accepts = True

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})
        return self.accepts


notifier = RecordingNotifier()


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_identity_verifier] = lambda: FakeVerifier()
app.dependency_overrides[get_notifier] = lambda: notifier


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    notifier.sent.clear()
    notifier.accepts = True
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return SqlStore(db_session)


@pytest.fixture
def mail():
    return notifier


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def invitee():
    return INVITEE


@pytest.fixture
def other():
    return OTHER
