"""FastAPI dependencies: service wiring and the authenticated user."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from flowauth.config import get_settings
from flowauth.database import get_db
from flowauth.errors import UnauthorizedError
from flowauth.models.user import User
from flowauth.repositories.user import UserRepository
from flowauth.services.credentials import CredentialPolicy, CredentialService
from flowauth.services.notifier import Notifier, get_notifier
from flowauth.services.passwords import get_password_hasher
from flowauth.services.session import SessionIssuer, get_session_issuer


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db, get_password_hasher())


def get_credential_service(
    accounts: UserRepository = Depends(get_user_repository),
    notifier: Notifier = Depends(get_notifier),
    sessions: SessionIssuer = Depends(get_session_issuer),
) -> CredentialService:
    """Build a credential service bound to this request's database session."""
    return CredentialService(
        accounts=accounts,
        hasher=accounts.hasher,
        sessions=sessions,
        notifier=notifier,
        policy=CredentialPolicy.from_settings(get_settings()),
    )


def bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_user(
    request: Request,
    accounts: UserRepository = Depends(get_user_repository),
    sessions: SessionIssuer = Depends(get_session_issuer),
) -> User:
    """Resolve the live user behind the bearer token. Raises 401 if absent or invalid."""
    token = bearer_token(request)
    if not token:
        raise UnauthorizedError("Not authorized, no token", {"auth": "No bearer token provided"})

    user_id = sessions.validate(token)
    user = accounts.find_by_id(user_id)
    if user is None:
        raise UnauthorizedError("User not found", {"auth": "The account for this token no longer exists"})
    return user
