"""
Password Hashing and Session Tokens

- Passwords are stored as bcrypt hashes with a per-password random salt.
- Session tokens are HS256 JWTs carrying {id, email, role} and an expiry.
- Tokens arrive either as ``Authorization: Bearer <token>`` or in the
  session cookie; the header wins when both are present.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import bcrypt
import jwt

from feastflow.core.config import Settings, get_settings
from feastflow.core.exceptions import InvalidTokenError
from feastflow.models import UserRole

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10

# Longest password bcrypt accepts
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class TokenIdentity:
    """Identity asserted by a verified session token."""
    id: str
    email: str
    role: UserRole


# =============================================================================
# PASSWORDS
# =============================================================================

def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """
    Hash a password with a freshly generated salt.

    Raises:
        ValueError: The password is longer than MAX_PASSWORD_BYTES
    """
    if password_too_long(password):
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never verify."""
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# =============================================================================
# TOKENS
# =============================================================================

def create_access_token(
    user_id: str,
    email: str,
    role: UserRole,
    settings: Optional[Settings] = None,
) -> str:
    """
    Issue a signed session token.

    Args:
        user_id: Account id
        email: Account email
        role: Account role
        settings: Overrides the cached settings (secret, lifetime)

    Returns:
        Encoded JWT
    """
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "email": email,
        "role": UserRole(role).value,
        "iat": now,
        "exp": now + settings.token_lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> TokenIdentity:
    """
    Verify a session token and return the identity it asserts.

    Raises:
        InvalidTokenError: Bad signature, expired, malformed or incomplete token
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id", "role"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired session token")
        raise InvalidTokenError()
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected session token: {e}")
        raise InvalidTokenError()

    try:
        role = UserRole(payload["role"])
    except ValueError:
        raise InvalidTokenError()

    return TokenIdentity(
        id=str(payload["id"]),
        email=payload.get("email", ""),
        role=role,
    )


def extract_token(
    authorization: Optional[str],
    cookie_token: Optional[str],
) -> Optional[str]:
    """
    Pick the session token from the request.

    A ``Bearer`` authorization header takes precedence over the cookie.
    """
    if authorization and authorization.startswith("Bearer"):
        parts = authorization.split()
        return parts[1] if len(parts) > 1 else None
    if cookie_token:
        return cookie_token
    return None
