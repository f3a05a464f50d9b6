"""Password hashing and JWT creation/verification for authentication."""

import hashlib
import hmac
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import uuid4

import jwt

from revforge.core.clock import utcnow
from revforge.core.config import Settings

logger = logging.getLogger(__name__)

# PBKDF2 parameters; changing any of them invalidates every stored hash.
PBKDF2_HASH_NAME = "sha512"
PBKDF2_ITERATIONS = 100_000
PBKDF2_KEY_LENGTH = 64
SALT_LENGTH = 32

# Min/max lengths for password validation at registration and reset.
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Used only when JWT_SECRET is unset and ALLOW_INSECURE_JWT_SECRET is on.
DEV_JWT_SECRET = "revenueforge-default-secret-change-in-production"

TOKEN_TYPE_REFRESH = "refresh"

_OPAQUE_TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"


class TokenConfigurationError(RuntimeError):
    """No signing secret is available and insecure mode is off."""


def _derive_key(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(
        PBKDF2_HASH_NAME,
        password.encode("utf-8"),
        salt,
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_LENGTH,
    )


def hash_password(plain_password: str, salt: str | None = None) -> str:
    """
    Hash a plain-text password for storage as "<salt hex>:<derived key hex>".

    salt is a hex string; a fresh 32-byte random salt is generated when omitted.
    """
    salt_bytes = bytes.fromhex(salt) if salt is not None else secrets.token_bytes(SALT_LENGTH)
    derived = _derive_key(plain_password, salt_bytes)
    return f"{salt_bytes.hex()}:{derived.hex()}"


def verify_password(plain_password: str, stored_hash: str | None) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes never match."""
    if not stored_hash:
        return False
    salt_hex, sep, key_hex = stored_hash.partition(":")
    if not sep or not salt_hex or not key_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    if len(expected) != PBKDF2_KEY_LENGTH:
        return False
    return hmac.compare_digest(_derive_key(plain_password, salt), expected)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password(secrets.token_hex(16))


def burn_password_check(plain_password: str) -> None:
    """Spend the same PBKDF2 work as a real check when there is no account to check against."""
    verify_password(plain_password, _dummy_password_hash())


def generate_opaque_token(size: int = 32) -> str:
    """Random URL-safe string for reset tokens and record ids."""
    return "".join(secrets.choice(_OPAQUE_TOKEN_ALPHABET) for _ in range(size))


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried inside a signed token."""

    user_id: str
    email: str
    role: str
    # "refresh" for refresh tokens, None for access tokens
    type: str | None = None

    @property
    def is_refresh(self) -> bool:
        return self.type == TOKEN_TYPE_REFRESH


def get_signing_secret(settings: Settings) -> str:
    """Return the HMAC key, falling back to the development secret only in insecure mode."""
    if settings.JWT_SECRET is not None:
        return settings.JWT_SECRET.get_secret_value()
    if settings.ALLOW_INSECURE_JWT_SECRET:
        logger.warning(
            "JWT_SECRET is not set: tokens are signed with the public development "
            "secret (ALLOW_INSECURE_JWT_SECRET=true). Do not run this way in production."
        )
        return DEV_JWT_SECRET
    raise TokenConfigurationError(
        "JWT_SECRET is not set and ALLOW_INSECURE_JWT_SECRET is disabled"
    )


def _encode(
    claims: TokenClaims,
    settings: Settings,
    lifetime: timedelta,
    token_type: str | None,
    now: datetime | None,
) -> str:
    issued_at = now or utcnow()
    payload: dict[str, Any] = {
        "sub": str(claims.user_id),
        "email": claims.email,
        "role": claims.role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid4().hex,
    }
    if token_type is not None:
        payload["type"] = token_type
    return jwt.encode(payload, get_signing_secret(settings), algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    claims: TokenClaims, settings: Settings, now: datetime | None = None
) -> str:
    """Create a short-lived access token (no type claim)."""
    return _encode(
        claims,
        settings,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        None,
        now,
    )


def create_refresh_token(
    claims: TokenClaims, settings: Settings, now: datetime | None = None
) -> str:
    """Create a long-lived refresh token carrying type=refresh."""
    return _encode(
        claims,
        settings,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        TOKEN_TYPE_REFRESH,
        now,
    )


def verify_token(token: str, settings: Settings) -> TokenClaims | None:
    """
    Validate signature, issuer, audience and expiry; return the claims.

    Returns None for every kind of invalid token (bad signature, expired, wrong
    audience, missing claims) so callers treat them alike. The token type is not
    checked here; callers that care inspect TokenClaims.type.
    """
    secret = get_signing_secret(settings)
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            options={"require": ["exp", "iat", "iss", "aud", "sub"]},
        )
    except jwt.PyJWTError:
        return None

    email = payload.get("email")
    role = payload.get("role")
    if not isinstance(email, str) or not isinstance(role, str):
        return None
    token_type = payload.get("type")
    return TokenClaims(
        user_id=str(payload["sub"]),
        email=email,
        role=role,
        type=token_type if isinstance(token_type, str) else None,
    )


def decode_unverified_claims(token: str) -> dict[str, Any] | None:
    """
    Read a JWT payload WITHOUT checking its signature or expiry.

    Only for advisory routing decisions (page redirects). Anything that grants
    access must go through verify_token.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    return payload if isinstance(payload, dict) else None
