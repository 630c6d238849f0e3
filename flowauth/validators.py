"""Field rules shared by request schemas and the account store.

Each check returns an error message, or None if the value is valid.
"""

import re

from email_validator import EmailNotValidError, validate_email

from flowauth.config import get_settings

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
NAME_PATTERN = re.compile(r"^[A-Za-z\s]*$")

# bcrypt only reads the first 72 bytes and newer releases reject anything longer
PASSWORD_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: str | None) -> str | None:
    if not email or not email.strip():
        return "Email is required"
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return "Please provide a valid email address"
    return None


def check_name(value: str | None, label: str, letters_only: bool = False) -> str | None:
    if value is None or not value.strip():
        return f"{label} is required"
    value = value.strip()
    if len(value) < NAME_MIN_LENGTH:
        return f"{label} must be at least {NAME_MIN_LENGTH} characters long"
    if len(value) > NAME_MAX_LENGTH:
        return f"{label} cannot exceed {NAME_MAX_LENGTH} characters"
    if letters_only and not NAME_PATTERN.match(value):
        return f"{label} must contain only letters and spaces"
    return None


def check_password_length(password: str | None) -> str | None:
    min_length = get_settings().PASSWORD_MIN_LENGTH
    if not password:
        return "Password is required"
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters long"
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes"
    return None


def check_password_policy(password: str | None) -> str | None:
    """Full policy for new passwords (registration, reset, change)."""
    error = check_password_length(password)
    if error:
        return error
    if get_settings().PASSWORD_REQUIRE_MIXED and not (
        re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)
    ):
        return "Password must contain at least one uppercase letter, one lowercase letter, and one number"
    return None
