"""Pydantic schemas for authentication and profile endpoints."""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, ConfigDict
from pydantic.alias_generators import to_camel

from flowauth.schemas.common import CamelModel
from flowauth.validators import check_email, check_name, check_password_policy, normalize_email


def _rule(check: Callable[[str], str | None], strip: bool = True) -> AfterValidator:
    """Wrap a ``check_*`` rule as a pydantic after-validator."""

    def validator(value: str) -> str:
        error = check(value)
        if error:
            raise ValueError(error)
        return value.strip() if strip else value

    return AfterValidator(validator)


def _required(label: str) -> Callable[[str], str | None]:
    return lambda value: None if value and value.strip() else f"{label} is required"


Email = Annotated[str, _rule(check_email), AfterValidator(normalize_email)]
NewPassword = Annotated[str, _rule(check_password_policy, strip=False)]
FirstName = Annotated[str, _rule(lambda v: check_name(v, "First name"))]
LastName = Annotated[str, _rule(lambda v: check_name(v, "Last name"))]
ProfileFirstName = Annotated[str, _rule(lambda v: check_name(v, "First name", letters_only=True))]
ProfileLastName = Annotated[str, _rule(lambda v: check_name(v, "Last name", letters_only=True))]


class RegisterRequest(CamelModel):
    email: Email
    password: NewPassword
    first_name: FirstName
    last_name: LastName


class LoginRequest(CamelModel):
    email: Email
    password: Annotated[str, _rule(_required("Password"), strip=False)]


class EmailRequest(CamelModel):
    """Body of resend-verification and forgot-password."""

    email: Email


class ResetPasswordRequest(CamelModel):
    token: Annotated[str, _rule(_required("Reset token"))]
    new_password: NewPassword


class ChangePasswordRequest(CamelModel):
    current_password: Annotated[str, _rule(_required("Current password"), strip=False)]
    new_password: NewPassword


class UpdateProfileRequest(CamelModel):
    first_name: ProfileFirstName | None = None
    last_name: ProfileLastName | None = None


class UserProfile(CamelModel):
    """Public view of a user. Never carries password or token hashes."""

    id: str
    email: str
    first_name: str
    last_name: str
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SessionResponse(UserProfile):
    token: str
