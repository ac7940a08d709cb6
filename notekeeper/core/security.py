"""
Security Utilities.

Password hashing and bearer token issuance/validation.

Tokens carry only the username (``sub``), issue time and expiry. Role and
enabled status are looked up again on every request, so a downgrade or a
disabled account takes effect immediately instead of at token expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import bcrypt
from jose import JWTError, jwt

from notekeeper.core.config import get_app_config, get_settings
from notekeeper.core.exceptions import TokenMalformedError, ValidationError
from notekeeper.core.logging import get_logger
from notekeeper.core.utils import utc_now

logger = get_logger(__name__)

TOKEN_TYPE = "access"

# bcrypt input limit
PASSWORD_MAX_BYTES = 72


class TokenSubject(Protocol):
    """Anything with a username can be the subject of a token."""

    username: str


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Raises:
        ValidationError: If the UTF-8 encoded password exceeds PASSWORD_MAX_BYTES
    """
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > PASSWORD_MAX_BYTES:
        raise ValidationError(
            "Password too long",
            details={"password": f"Maximum length is {PASSWORD_MAX_BYTES} bytes"},
        )
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Over-long passwords never match."""
    password_bytes = plain_password.encode("utf-8")
    if len(password_bytes) > PASSWORD_MAX_BYTES:
        return False
    return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))


def issue_token(user: TokenSubject, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed access token for a user.

    Args:
        user: Token subject; only ``username`` is read
        expires_delta: Optional custom lifetime, defaults to
            ``security.jwt.access_token_expire_minutes``

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt

    issued_at = utc_now()
    if expires_delta is None:
        expires_delta = timedelta(minutes=jwt_config.access_token_expire_minutes)

    claims = {
        "sub": user.username,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "type": TOKEN_TYPE,
        "aud": jwt_config.audience,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=jwt_config.algorithm)


def _decode(token: str, verify_exp: bool) -> dict[str, Any]:
    """Verify signature and audience, optionally expiry. Raises JWTError."""
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[jwt_config.algorithm],
        audience=jwt_config.audience,
        options={"verify_exp": verify_exp},
    )


def _decode_ignoring_expiry(token: str | None) -> dict[str, Any]:
    if not token or not isinstance(token, str):
        raise TokenMalformedError("Token is empty")
    try:
        return _decode(token, verify_exp=False)
    except JWTError as e:
        logger.debug("Token parse failed", extra={"error": str(e)})
        raise TokenMalformedError("Invalid token") from e


def extract_subject(token: str | None) -> str:
    """
    Return the username a token was issued for.

    Works for expired tokens: who the token names is independent of
    whether it is still usable.

    Raises:
        TokenMalformedError: If the token cannot be parsed or the
            signature does not verify
    """
    subject = _decode_ignoring_expiry(token).get("sub")
    if not isinstance(subject, str) or not subject:
        raise TokenMalformedError("Token has no subject")
    return subject


def extract_expiry(token: str | None) -> datetime:
    """
    Return the token expiry as naive UTC.

    Raises:
        TokenMalformedError: If the token cannot be parsed or the
            signature does not verify
    """
    exp = _decode_ignoring_expiry(token).get("exp")
    if not isinstance(exp, (int, float)):
        raise TokenMalformedError("Token has no expiry")
    return datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None)


def validate_token(token: str | None, user: TokenSubject | None) -> bool:
    """
    Check a token against the user it should belong to.

    Returns True only if the signature verifies, the token is unexpired and
    its subject is ``user.username``. Never raises.
    """
    if not token or not isinstance(token, str) or user is None:
        return False
    try:
        claims = _decode(token, verify_exp=True)
    except JWTError as e:
        logger.debug("Token rejected", extra={"error": str(e)})
        return False
    return claims.get("sub") == user.username and claims.get("type") == TOKEN_TYPE
