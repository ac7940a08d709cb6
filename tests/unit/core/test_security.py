"""
Unit Tests for Security Module.

Black box tests against the public interface of security.py.
All cryptographic operations (bcrypt, JWT) execute for real.
Only the config boundary is stubbed with real Pydantic schema objects.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from jose import jwt

from notekeeper.core.config_schema import JwtSchema
from notekeeper.core.exceptions import AuthenticationError, TokenMalformedError, ValidationError
from notekeeper.core.security import (
    extract_expiry,
    extract_subject,
    hash_password,
    issue_token,
    validate_token,
    verify_password,
)
from notekeeper.core.utils import utc_now

TEST_JWT_SECRET = "unit-secret-key-that-is-long-enough-for-testing-purposes"


@pytest.fixture
def jwt_config():
    """Real Pydantic JwtSchema with test values."""
    return JwtSchema(
        algorithm="HS256",
        access_token_expire_minutes=30,
        audience="test-api",
    )


@pytest.fixture(autouse=True)
def _stub_config(jwt_config):
    """Stub the config boundary so security functions can resolve settings."""
    settings = SimpleNamespace(jwt_secret=TEST_JWT_SECRET)
    app_config = SimpleNamespace(security=SimpleNamespace(jwt=jwt_config))
    with (
        patch("notekeeper.core.security.get_settings", return_value=settings),
        patch("notekeeper.core.security.get_app_config", return_value=app_config),
    ):
        yield


def _user(username: str = "alice") -> SimpleNamespace:
    return SimpleNamespace(username=username)


# =============================================================================
# Password Hashing
# =============================================================================


class TestPasswordHashing:
    """Tests for bcrypt hashing and verification."""

    def test_returns_bcrypt_formatted_hash(self):
        result = hash_password("password123")
        assert result.startswith("$2b$")
        assert result != "password123"

    def test_same_password_produces_different_hashes(self):
        assert hash_password("identical") != hash_password("identical")

    def test_correct_password_verifies(self):
        hashed = hash_password("correct-horse-battery-staple")
        assert verify_password("correct-horse-battery-staple", hashed) is True

    def test_wrong_password_fails(self):
        hashed = hash_password("right")
        assert verify_password("wrong", hashed) is False

    def test_password_at_byte_limit_hashes(self):
        hashed = hash_password("p" * 72)
        assert verify_password("p" * 72, hashed) is True

    def test_over_long_password_rejected_when_hashing(self):
        with pytest.raises(ValidationError) as exc_info:
            hash_password("p" * 100)
        assert "password" in exc_info.value.details

    def test_limit_counts_utf8_bytes(self):
        with pytest.raises(ValidationError):
            hash_password("\u00e9" * 40)

    def test_over_long_password_never_verifies(self):
        hashed = hash_password("p" * 72)
        assert verify_password("p" * 100, hashed) is False


# =============================================================================
# Issuing
# =============================================================================


class TestIssueToken:
    """Tests for token issuance."""

    def test_claims_name_the_user_and_nothing_about_role(self):
        token = issue_token(_user("alice"))

        claims = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"], audience="test-api")

        assert claims["sub"] == "alice"
        assert claims["type"] == "access"
        assert "role" not in claims
        assert claims["exp"] - claims["iat"] == 30 * 60

    def test_custom_lifetime(self):
        token = issue_token(_user(), expires_delta=timedelta(minutes=5))

        remaining = extract_expiry(token) - utc_now()

        assert timedelta(minutes=4) < remaining <= timedelta(minutes=5)


# =============================================================================
# Validation
# =============================================================================


class TestValidateToken:
    """validate_token never raises and only accepts live tokens for the right user."""

    def test_fresh_token_for_same_user_is_valid(self):
        token = issue_token(_user("alice"))
        assert validate_token(token, _user("alice")) is True

    def test_token_for_other_user_is_rejected(self):
        token = issue_token(_user("alice"))
        assert validate_token(token, _user("bob")) is False

    def test_expired_token_is_rejected(self):
        token = issue_token(_user("alice"), expires_delta=timedelta(seconds=-10))
        assert validate_token(token, _user("alice")) is False

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
    def test_garbage_is_rejected_without_raising(self, token):
        assert validate_token(token, _user()) is False

    def test_missing_user_is_rejected(self):
        assert validate_token(issue_token(_user()), None) is False

    def test_token_signed_with_other_secret_is_rejected(self):
        forged = jwt.encode(
            {"sub": "alice", "type": "access", "aud": "test-api"},
            "another-secret-of-sufficient-length-000000",
            algorithm="HS256",
        )
        assert validate_token(forged, _user("alice")) is False

    def test_wrong_audience_is_rejected(self, jwt_config):
        token = jwt.encode(
            {"sub": "alice", "type": "access", "aud": "someone-else"},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )
        assert validate_token(token, _user("alice")) is False


# =============================================================================
# Extraction
# =============================================================================


class TestExtraction:
    """Subject and expiry extraction."""

    def test_extract_subject(self):
        assert extract_subject(issue_token(_user("carol"))) == "carol"

    def test_expired_token_still_yields_subject_and_expiry(self):
        token = issue_token(_user("alice"), expires_delta=timedelta(minutes=-1))

        assert extract_subject(token) == "alice"
        assert extract_expiry(token) < utc_now()
        assert validate_token(token, _user("alice")) is False

    def test_expiry_is_naive_utc(self):
        expiry = extract_expiry(issue_token(_user()))
        assert isinstance(expiry, datetime)
        assert expiry.tzinfo is None

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_malformed_token_raises(self, token):
        with pytest.raises(TokenMalformedError):
            extract_subject(token)
        with pytest.raises(TokenMalformedError):
            extract_expiry(token)

    def test_bad_signature_raises(self):
        forged = jwt.encode(
            {"sub": "alice", "aud": "test-api"},
            "another-secret-of-sufficient-length-000000",
            algorithm="HS256",
        )
        with pytest.raises(TokenMalformedError):
            extract_subject(forged)

    def test_malformed_is_an_authentication_error(self):
        with pytest.raises(AuthenticationError):
            extract_subject("garbage")
