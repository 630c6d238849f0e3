"""Password hashing with bcrypt."""

import logging

import bcrypt

from flowauth.config import get_settings
from flowauth.errors import CredentialProcessingError

logger = logging.getLogger("flowauth")


class PasswordHasher:
    """Salted, adaptive one-way hashing for account passwords."""

    def __init__(self, rounds: int) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plaintext: str) -> str:
        """Hash a plaintext password. Raises CredentialProcessingError on backend failure."""
        try:
            return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as e:
            logger.error("Password hashing failed: %s", type(e).__name__)
            raise CredentialProcessingError("Password hashing failed") from e

    def verify(self, plaintext: str, hashed: str | None) -> bool:
        """Check a candidate password. Malformed stored hashes never match."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one comparison against a fixed hash.

        Used when the account does not exist so that the response takes as
        long as a real password check.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy_password_for_timing_safety")
        self.verify(plaintext, self._dummy_hash)


_password_hasher: PasswordHasher | None = None


def get_password_hasher() -> PasswordHasher:
    """Get singleton password hasher instance."""
    global _password_hasher
    if _password_hasher is None:
        _password_hasher = PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)
    return _password_hasher
