"""
credentials.py - Password hashing and bearer token helpers.

Passwords are hashed with bcrypt (cost factor from config.BCRYPT_ROUNDS).
Tokens are HS256 JWTs carrying only the user id as `sub`, plus `iat`/`exp`.
The lifetime comes from config.JWT_EXPIRES_IN, parsed once at startup.
"""

from datetime import datetime, timezone

import bcrypt
import jwt
from jwt import InvalidTokenError

import config
from config import parse_expires_in

__all__ = [
    "InvalidTokenError",
    "create_token",
    "hash_password",
    "parse_expires_in",
    "verify_password",
    "verify_token",
]

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt."""
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_token(subject_id: str) -> str:
    """Sign a bearer token for the given user id."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject_id),
        "iat": now,
        "exp": now + config.JWT_EXPIRES_IN,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """Decode a bearer token and return its claims.

    Raises:
        InvalidTokenError: bad signature, expired, or missing `sub`.
    """
    return jwt.decode(
        token,
        config.JWT_SECRET,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
