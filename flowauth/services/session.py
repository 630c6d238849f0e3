"""Session token issuing and validation."""

from datetime import datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from flowauth.config import get_settings
from flowauth.errors import InvalidSessionTokenError, SessionTokenExpiredError


class SessionIssuer:
    """Mints and validates signed bearer tokens carrying a user id.

    Tokens carry no profile data; callers load the live user by id.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 1440) -> None:
        if not secret_key:
            raise ValueError("A signing secret is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str, now: datetime | None = None) -> str:
        """Create a signed token for the given user."""
        issued_at = now or datetime.utcnow()
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str) -> str:
        """Return the user id from a token.

        Raises SessionTokenExpiredError for an expired token and
        InvalidSessionTokenError for anything malformed or wrongly signed.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise SessionTokenExpiredError() from None
        except JWTError:
            raise InvalidSessionTokenError() from None

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise InvalidSessionTokenError()
        return user_id


_session_issuer: SessionIssuer | None = None


def get_session_issuer() -> SessionIssuer:
    """Get singleton session issuer built from settings."""
    global _session_issuer
    if _session_issuer is None:
        settings = get_settings()
        _session_issuer = SessionIssuer(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_EXPIRE_MINUTES,
        )
    return _session_issuer
