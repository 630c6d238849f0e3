"""Account store: persistence and field invariants for User records."""

import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flowauth.errors import AccountExistsError, InvalidIdFormatError, ValidationFailedError
from flowauth.models.user import User
from flowauth.services.passwords import PasswordHasher
from flowauth.validators import check_email, check_name, check_password_length, normalize_email

logger = logging.getLogger("flowauth")


class UserRepository:
    """Owns User persistence, email uniqueness and password hashing on write.

    Every write validates the fields it touches before anything reaches the
    database. Uniqueness of email is enforced by the unique index, so two
    concurrent registrations cannot both succeed.
    """

    def __init__(self, db: Session, hasher: PasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    # --- Reads ---

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def find_by_id(self, user_id: str) -> User | None:
        """Look up a user by id. Raises InvalidIdFormatError for a malformed id."""
        try:
            key = str(uuid.UUID(str(user_id)))
        except ValueError:
            raise InvalidIdFormatError() from None
        return self.db.get(User, key)

    def find_by_verification_token(self, token_hash: str) -> User | None:
        return self.db.query(User).filter(User.verification_token == token_hash).first()

    def find_by_reset_token(self, token_hash: str) -> User | None:
        return self.db.query(User).filter(User.reset_password_token == token_hash).first()

    # --- Writes ---

    def create(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        verification_hash: str | None = None,
        verification_expiry: datetime | None = None,
    ) -> User:
        """Insert a new unverified user.

        Raises ValidationFailedError for invalid fields and AccountExistsError
        when the normalized email is already taken.
        """
        errors = {}
        for field, error in (
            ("email", check_email(email)),
            ("password", check_password_length(password)),
            ("firstName", check_name(first_name, "First name")),
            ("lastName", check_name(last_name, "Last name")),
        ):
            if error:
                errors[field] = error
        if errors:
            raise ValidationFailedError(errors=errors)

        user = User(
            email=normalize_email(email),
            password_hash=self.hasher.hash(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            is_email_verified=False,
            verification_token=verification_hash,
            verification_token_expiry=verification_expiry,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AccountExistsError() from None
        self.db.refresh(user)
        logger.info("Created user %s", user.id)
        return user

    def update_password(self, user: User, plaintext: str) -> User:
        """Hash and store a new password."""
        error = check_password_length(plaintext)
        if error:
            raise ValidationFailedError(errors={"password": error})
        user.password_hash = self.hasher.hash(plaintext)
        return self._save(user)

    def update_profile_fields(self, user: User, first_name: str | None = None, last_name: str | None = None) -> User:
        """Update display fields. The password hash is left untouched."""
        errors = {}
        if first_name is not None:
            error = check_name(first_name, "First name")
            if error:
                errors["firstName"] = error
        if last_name is not None:
            error = check_name(last_name, "Last name")
            if error:
                errors["lastName"] = error
        if errors:
            raise ValidationFailedError(errors=errors)

        if first_name is not None:
            user.first_name = first_name.strip()
        if last_name is not None:
            user.last_name = last_name.strip()
        return self._save(user)

    def set_verification(self, user: User, token_hash: str, expires_at: datetime) -> User:
        """Store a verification hash, replacing any outstanding one."""
        user.verification_token = token_hash
        user.verification_token_expiry = expires_at
        return self._save(user)

    def clear_verification(self, user: User) -> User:
        user.verification_token = None
        user.verification_token_expiry = None
        return self._save(user)

    def mark_email_verified(self, user: User) -> User:
        """Flag the email as verified and drop the verification token in one write."""
        user.is_email_verified = True
        user.verification_token = None
        user.verification_token_expiry = None
        return self._save(user)

    def set_reset_token(self, user: User, token_hash: str, expires_at: datetime) -> User:
        """Store a reset hash, replacing any outstanding one."""
        user.reset_password_token = token_hash
        user.reset_password_token_expiry = expires_at
        return self._save(user)

    def clear_reset_token(self, user: User) -> User:
        user.reset_password_token = None
        user.reset_password_token_expiry = None
        return self._save(user)

    def reset_password(self, user: User, plaintext: str) -> User:
        """Store a new password and consume the reset token in one write."""
        error = check_password_length(plaintext)
        if error:
            raise ValidationFailedError(errors={"password": error})
        user.password_hash = self.hasher.hash(plaintext)
        user.reset_password_token = None
        user.reset_password_token_expiry = None
        return self._save(user)

    def _save(self, user: User) -> User:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user
