"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EMAIL_BACKEND", "console")

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from flowauth.database import Base, engine_options, get_db  # noqa: E402
from flowauth.errors import NotificationError  # noqa: E402
from flowauth.models.user import User  # noqa: E402, F401
from flowauth.repositories.user import UserRepository  # noqa: E402
from flowauth.services.credentials import CredentialPolicy, CredentialService  # noqa: E402
from flowauth.services.notifier import NotificationKind, get_notifier  # noqa: E402
from flowauth.services.passwords import get_password_hasher  # noqa: E402
from flowauth.services.session import SessionIssuer, get_session_issuer  # noqa: E402

PASSWORD = "Password123"


class RecordingNotifier:
    """Notifier that keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, NotificationKind, dict[str, Any]]] = []

    def send(self, recipient: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        self.sent.append((recipient, kind, payload))

    def last_token(self, kind: NotificationKind, recipient: str | None = None) -> str:
        for to, sent_kind, payload in reversed(self.sent):
            if sent_kind == kind and (recipient is None or to == recipient):
                return payload["token"]
        raise AssertionError(f"No {kind.value} email was sent")

    def kinds(self) -> list[NotificationKind]:
        return [kind for _, kind, _ in self.sent]


class FailingNotifier:
    """Notifier whose delivery channel is down."""

    def __init__(self) -> None:
        self.attempts = 0

    def send(self, recipient: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        self.attempts += 1
        raise NotificationError("SMTP relay unreachable")


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine("sqlite:///:memory:", poolclass=StaticPool, **engine_options("sqlite:///:memory:"))
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="notifier")
def notifier_fixture() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, notifier: RecordingNotifier):
    """Create a test client with overridden DB and notifier, and rate limiting disabled."""
    from flowauth.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="accounts")
def accounts_fixture(db_session: Session) -> UserRepository:
    return UserRepository(db_session, get_password_hasher())


@pytest.fixture(name="sessions")
def sessions_fixture() -> SessionIssuer:
    return get_session_issuer()


@pytest.fixture(name="service")
def service_fixture(
    accounts: UserRepository, sessions: SessionIssuer, notifier: RecordingNotifier
) -> CredentialService:
    return CredentialService(
        accounts=accounts,
        hasher=accounts.hasher,
        sessions=sessions,
        notifier=notifier,
        policy=CredentialPolicy(),
    )


@pytest.fixture(name="registered_user")
def registered_user_fixture(service: CredentialService, notifier: RecordingNotifier) -> dict:
    """Register an unverified user and return its credentials and verification secret."""
    user = service.register("alice@example.com", PASSWORD, "Alice", "Doe")
    return {
        "id": user.id,
        "email": user.email,
        "password": PASSWORD,
        "verification_token": notifier.last_token(NotificationKind.VERIFICATION),
    }


@pytest.fixture(name="verified_user")
def verified_user_fixture(service: CredentialService, registered_user: dict, sessions: SessionIssuer) -> dict:
    """A verified user with a valid session token."""
    service.verify_email(registered_user["verification_token"])
    return {**registered_user, "token": sessions.issue(registered_user["id"])}


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(verified_user: dict) -> dict:
    return {"Authorization": f"Bearer {verified_user['token']}"}


@pytest.fixture(name="failing_notifier")
def failing_notifier_fixture() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture(name="broken_delivery")
def broken_delivery_fixture(client: TestClient, failing_notifier: FailingNotifier) -> FailingNotifier:
    """Point the running app at a notifier whose every send fails."""
    from main import app

    app.dependency_overrides[get_notifier] = lambda: failing_notifier
    return failing_notifier
