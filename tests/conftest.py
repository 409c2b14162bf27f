import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["INTEGRITY_CHECK_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

import re
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.application.services.auth_service import seed_defaults
from app.core.clock import utc_now
from app.domain.models.user import ConfirmationStatus, User
from app.infrastructure.database import Base, get_db
from app.infrastructure.identity_api import IdentityCheckOutcome, IdentityCheckResult
from app.infrastructure.provider import ProviderResult
from app.interfaces.deps import get_clock, get_email_sender, get_identity_verifier, get_sms_sender
from app.main import app


class FakeClock:
    def __init__(self):
        self.now = utc_now()

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, to_address, subject, html_body):
        if self.fail:
            return ProviderResult(False, "Email provider error: 500")
        self.sent.append({"to": to_address, "subject": subject, "html": html_body})
        return ProviderResult(True, "Email sent")

    def last_code(self) -> str:
        return re.search(r">(\d{6})<", self.sent[-1]["html"]).group(1)


class FakeSmsSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, numbers, message):
        if self.fail:
            return ProviderResult(False, "SMS sending failed")
        self.sent.append({"numbers": numbers, "message": message})
        return ProviderResult(True, "SMS sent")

    def last_code(self) -> str:
        return re.search(r"(\d{6})$", self.sent[-1]["message"]).group(1)


class FakeIdentityVerifier:
    def __init__(self):
        self.calls = []
        self.result = IdentityCheckResult(True, "Identity number verified successfully", IdentityCheckOutcome.VERIFIED)

    async def verify(self, first_name, last_name, identity_number, year_of_birth):
        self.calls.append((first_name, last_name, identity_number, year_of_birth))
        return self.result


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = factory()
    seed_defaults(db)
    db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def sms_sender():
    return FakeSmsSender()


@pytest.fixture
def identity_verifier():
    return FakeIdentityVerifier()


@pytest.fixture
def client(session_factory, clock, email_sender, sms_sender, identity_verifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_sms_sender] = lambda: sms_sender
    app.dependency_overrides[get_identity_verifier] = lambda: identity_verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def build_signup_payload(**overrides):
    payload = {
        "firstName": "Ayse",
        "lastName": "Yilmaz",
        "email": "a@x.com",
        "phoneNumber": "+905551110001",
        "password": "secret123",
        "yearOfBirth": 1990,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def signup_payload():
    return build_signup_payload


@pytest.fixture
def signup(client):
    """Register a user and return the response data (user + tokens)."""
    def _signup(**overrides):
        response = client.post("/api/auth/Signup", json=build_signup_payload(**overrides))
        assert response.status_code == 201, response.json()
        return response.json()["data"]
    return _signup


@pytest.fixture
def auth_header():
    def _header(data) -> dict:
        return {"Authorization": f"Bearer {data['tokens']['accessToken']}"}
    return _header


@pytest.fixture
def load_user(session_factory):
    """Read a user in a fresh session so request-side commits are visible."""
    def _load(email):
        session = session_factory()
        try:
            return session.query(User).filter(User.email == email).one()
        finally:
            session.close()
    return _load


@pytest.fixture
def set_user_fields(session_factory):
    def _set(email, **fields):
        session = session_factory()
        try:
            user = session.query(User).filter(User.email == email).one()
            for name, value in fields.items():
                setattr(user, name, value)
            session.commit()
        finally:
            session.close()
    return _set


@pytest.fixture
def approve_user(set_user_fields):
    def _approve(email):
        set_user_fields(
            email,
            email_verified=True,
            phone_verified=True,
            confirmation_status=ConfirmationStatus.APPROVED,
        )
    return _approve
