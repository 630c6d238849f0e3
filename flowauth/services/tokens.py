"""One-time token generation for email verification and password reset."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

TOKEN_BYTES = 32


@dataclass(frozen=True)
class OneTimeToken:
    """A freshly issued token. Only ``hash`` and ``expires_at`` may be persisted."""

    secret: str
    hash: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"OneTimeToken(hash={self.hash[:8]}..., expires_at={self.expires_at.isoformat()})"


def hash_token(secret: str) -> str:
    """Return the SHA-256 hex digest stored in place of a raw secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def generate_token(ttl: timedelta, now: datetime | None = None) -> OneTimeToken:
    """Generate a 256-bit random secret with its storage hash and expiry."""
    secret = secrets.token_hex(TOKEN_BYTES)
    issued_at = now or datetime.utcnow()
    return OneTimeToken(secret=secret, hash=hash_token(secret), expires_at=issued_at + ttl)


def verify_token(candidate: str, stored_hash: str | None) -> bool:
    """Check a raw secret against a stored hash."""
    if not candidate or not stored_hash:
        return False
    return secrets.compare_digest(hash_token(candidate), stored_hash)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """A missing expiry counts as expired."""
    if expires_at is None:
        return True
    return (now or datetime.utcnow()) > expires_at
