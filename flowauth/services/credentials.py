"""Credential service: registration, login, email verification and password reset.

Each public method is one short flow over a user's credential fields:

    register            -> unverified user + verification token, email best-effort
    verify_email        -> token consumed, user verified, welcome email best-effort
    resend_verification -> new verification token (old one invalidated), email surfaced
    login               -> password checked, optional verification gate, session token
    forgot_password     -> new reset token (old one invalidated), email surfaced
    reset_password      -> token consumed, password replaced

Lookups that could reveal whether an email is registered answer with the
same wording whether or not the account exists. Token failures answer with
one message for "unknown" and "expired".
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

from flowauth.config import Settings
from flowauth.errors import (
    AccountExistsError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    InvalidEmailError,
    InvalidOrExpiredTokenError,
    InvalidPasswordError,
    NotificationError,
    ValidationFailedError,
    WrongCredentialsError,
)
from flowauth.models.user import User
from flowauth.repositories.user import UserRepository
from flowauth.services.notifier import NotificationKind, Notifier
from flowauth.services.passwords import PasswordHasher
from flowauth.services.session import SessionIssuer
from flowauth.services.tokens import generate_token, hash_token, is_expired, verify_token
from flowauth.validators import check_password_policy

logger = logging.getLogger("flowauth")

RESEND_SENT_MESSAGE = "If your email is registered, a new verification link has been sent."
ALREADY_VERIFIED_MESSAGE = "Email is already verified. You can log in."
FORGOT_PASSWORD_MESSAGE = "If your email is registered, a password reset link has been sent."


class DeliveryPolicy(str, Enum):
    """What a flow does when the notifier fails."""

    BEST_EFFORT = "best_effort"  # log and carry on
    SURFACE = "surface"  # fail the flow with a server error


@dataclass
class CredentialPolicy:
    """Tunable posture of the credential flows."""

    require_email_verification: bool = True
    reveal_login_failure_reason: bool = False
    verification_ttl: timedelta = timedelta(hours=24)
    reset_ttl: timedelta = timedelta(hours=1)
    registration_delivery: DeliveryPolicy = DeliveryPolicy.BEST_EFFORT
    welcome_delivery: DeliveryPolicy = DeliveryPolicy.BEST_EFFORT
    resend_delivery: DeliveryPolicy = DeliveryPolicy.SURFACE
    reset_delivery: DeliveryPolicy = DeliveryPolicy.SURFACE

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialPolicy":
        return cls(
            require_email_verification=settings.REQUIRE_EMAIL_VERIFICATION,
            reveal_login_failure_reason=settings.LOGIN_REVEAL_FAILURE_REASON,
            verification_ttl=timedelta(hours=settings.VERIFICATION_TOKEN_TTL_HOURS),
            reset_ttl=timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES),
        )


@dataclass
class LoginResult:
    user: User
    token: str


def describe_ttl(ttl: timedelta) -> str:
    """Render a validity window for email copy, e.g. '24 hours' or '30 minutes'."""
    minutes = int(ttl.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


@dataclass
class CredentialService:
    """Orchestrates the account lifecycle. All storage goes through ``accounts``."""

    accounts: UserRepository
    hasher: PasswordHasher
    sessions: SessionIssuer
    notifier: Notifier
    policy: CredentialPolicy = field(default_factory=CredentialPolicy)

    # --- Registration and verification ---

    def register(self, email: str, password: str, first_name: str, last_name: str) -> User:
        """Create an unverified account and email a verification link.

        Raises AccountExistsError if the email is taken. The existence check
        here only short-circuits the common case; the store's unique index
        decides concurrent registrations.
        """
        self._require_password_policy(password, "password")
        if self.accounts.find_by_email(email):
            raise AccountExistsError()

        token = generate_token(self.policy.verification_ttl)
        user = self.accounts.create(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            verification_hash=token.hash,
            verification_expiry=token.expires_at,
        )
        logger.info("Registered user %s", user.id)

        self._notify(
            self.policy.registration_delivery,
            user,
            NotificationKind.VERIFICATION,
            {"token": token.secret, "expires_in": describe_ttl(self.policy.verification_ttl)},
        )
        return user

    def verify_email(self, token: str) -> User:
        """Consume a verification token and mark the email verified."""
        if not token:
            raise ValidationFailedError(errors={"token": "Verification token is required"})

        user = self.accounts.find_by_verification_token(hash_token(token))
        if user is None or not verify_token(token, user.verification_token):
            raise InvalidOrExpiredTokenError()
        if is_expired(user.verification_token_expiry):
            self.accounts.clear_verification(user)
            raise InvalidOrExpiredTokenError()

        user = self.accounts.mark_email_verified(user)
        logger.info("Verified email for user %s", user.id)

        self._notify(self.policy.welcome_delivery, user, NotificationKind.WELCOME, {})
        return user

    def resend_verification(self, email: str) -> str:
        """Issue a fresh verification token. Returns the message to show the caller."""
        user = self.accounts.find_by_email(email)
        if user is None:
            return RESEND_SENT_MESSAGE
        if user.is_email_verified:
            return ALREADY_VERIFIED_MESSAGE

        token = generate_token(self.policy.verification_ttl)
        user = self.accounts.set_verification(user, token.hash, token.expires_at)
        self._notify(
            self.policy.resend_delivery,
            user,
            NotificationKind.VERIFICATION,
            {"token": token.secret, "expires_in": describe_ttl(self.policy.verification_ttl)},
        )
        logger.info("Reissued verification token for user %s", user.id)
        return RESEND_SENT_MESSAGE

    # --- Login ---

    def login(self, email: str, password: str) -> LoginResult:
        """Check credentials and issue a session token."""
        user = self.accounts.find_by_email(email)
        if user is None:
            self.hasher.burn(password)
            if self.policy.reveal_login_failure_reason:
                raise InvalidEmailError()
            raise WrongCredentialsError()

        if not self.hasher.verify(password, user.password_hash):
            if self.policy.reveal_login_failure_reason:
                raise InvalidPasswordError()
            raise WrongCredentialsError()

        if self.policy.require_email_verification and not user.is_email_verified:
            raise EmailNotVerifiedError()

        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, token=self.sessions.issue(user.id))

    # --- Password reset ---

    def forgot_password(self, email: str) -> str:
        """Issue a reset token if the account exists. Returns the message to show the caller."""
        user = self.accounts.find_by_email(email)
        if user is None:
            return FORGOT_PASSWORD_MESSAGE

        token = generate_token(self.policy.reset_ttl)
        user = self.accounts.set_reset_token(user, token.hash, token.expires_at)
        self._notify(
            self.policy.reset_delivery,
            user,
            NotificationKind.PASSWORD_RESET,
            {"token": token.secret, "expires_in": describe_ttl(self.policy.reset_ttl)},
        )
        logger.info("Issued password reset token for user %s", user.id)
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token and replace the password."""
        if not token:
            raise ValidationFailedError(errors={"token": "Reset token is required"})
        self._require_password_policy(new_password, "newPassword")

        user = self.accounts.find_by_reset_token(hash_token(token))
        if user is None or not verify_token(token, user.reset_password_token):
            raise InvalidOrExpiredTokenError()
        if is_expired(user.reset_password_token_expiry):
            self.accounts.clear_reset_token(user)
            raise InvalidOrExpiredTokenError()

        user = self.accounts.reset_password(user, new_password)
        logger.info("Password reset for user %s", user.id)
        return user

    # --- Signed-in account management ---

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        if not self.hasher.verify(current_password, user.password_hash):
            raise ValidationFailedError(
                "Incorrect current password",
                errors={"currentPassword": "Current password is incorrect"},
            )
        self._require_password_policy(new_password, "newPassword")
        user = self.accounts.update_password(user, new_password)
        logger.info("Password changed for user %s", user.id)
        return user

    def update_profile(self, user: User, first_name: str | None = None, last_name: str | None = None) -> User:
        if first_name is None and last_name is None:
            raise ValidationFailedError("No fields to update")
        return self.accounts.update_profile_fields(user, first_name=first_name, last_name=last_name)

    # --- Helpers ---

    def _require_password_policy(self, password: str, field_name: str) -> None:
        error = check_password_policy(password)
        if error:
            raise ValidationFailedError(errors={field_name: error})

    def _notify(self, policy: DeliveryPolicy, user: User, kind: NotificationKind, payload: dict[str, Any]) -> None:
        try:
            self.notifier.send(user.email, kind, {"name": user.first_name, **payload})
        except NotificationError as e:
            if policy is DeliveryPolicy.SURFACE:
                raise EmailDeliveryError() from e
            logger.warning("Ignoring failed %s email for user %s", kind.value, user.id)
        except Exception as e:
            if policy is DeliveryPolicy.SURFACE:
                raise
            logger.warning("Ignoring failed %s email for user %s: %s", kind.value, user.id, type(e).__name__)
