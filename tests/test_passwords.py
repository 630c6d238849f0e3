"""Tests for password hashing and password policy."""

from unittest.mock import patch

import pytest

from flowauth.config import get_settings
from flowauth.errors import CredentialProcessingError
from flowauth.services.passwords import PasswordHasher
from flowauth.validators import check_password_policy


@pytest.fixture(name="hasher")
def hasher_fixture() -> PasswordHasher:
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for bcrypt hashing."""

    def test_hash_differs_from_plaintext(self, hasher: PasswordHasher):
        assert hasher.hash("Password123") != "Password123"

    def test_same_plaintext_gives_different_hashes(self, hasher: PasswordHasher):
        assert hasher.hash("Password123") != hasher.hash("Password123")

    def test_verify(self, hasher: PasswordHasher):
        hashed = hasher.hash("Password123")
        assert hasher.verify("Password123", hashed) is True
        assert hasher.verify("password123", hashed) is False

    def test_verify_against_malformed_hash(self, hasher: PasswordHasher):
        assert hasher.verify("Password123", "not-a-bcrypt-hash") is False
        assert hasher.verify("Password123", None) is False

    def test_uses_configured_work_factor(self, hasher: PasswordHasher):
        assert hasher.hash("Password123").startswith("$2b$04$")

    def test_backend_failure_is_wrapped(self, hasher: PasswordHasher):
        with patch("flowauth.services.passwords.bcrypt.hashpw", side_effect=ValueError("boom")):
            with pytest.raises(CredentialProcessingError):
                hasher.hash("Password123")

    def test_burn_runs_a_comparison(self, hasher: PasswordHasher):
        with patch("flowauth.services.passwords.bcrypt.checkpw", return_value=False) as checkpw:
            hasher.burn("Password123")
        checkpw.assert_called_once()


class TestPasswordPolicy:
    """Tests for the password policy used at registration, reset and change."""

    def test_valid_password(self):
        assert check_password_policy("Password123") is None

    def test_too_short(self):
        assert "at least 8 characters" in check_password_policy("Pa1")

    def test_bcrypt_byte_limit(self):
        assert check_password_policy("Aa1" + "x" * 69) is None
        assert check_password_policy("Aa1" + "x" * 70) == "Password cannot exceed 72 bytes"

    def test_limit_counts_utf8_bytes(self):
        # 3 + 2 * 35 = 73 bytes in 38 characters
        assert check_password_policy("Aa1" + "é" * 35) == "Password cannot exceed 72 bytes"

    def test_missing_character_classes(self):
        for weak in ("password123", "PASSWORD123", "PasswordABC"):
            assert "uppercase" in check_password_policy(weak)

    def test_mixed_requirement_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "PASSWORD_REQUIRE_MIXED", False)
        assert check_password_policy("password") is None

    def test_min_length_is_configurable(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "PASSWORD_MIN_LENGTH", 12)
        assert "at least 12 characters" in check_password_policy("Password123")
