"""
Password hashing, session tokens and one-time tokens.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from tropicario.core.config import Settings
from tropicario.core.errors import UnauthorizedError

ONE_TIME_TOKEN_BYTES = 32


# ==================== Passwords ====================


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(plain: str, settings: Settings) -> str:
    """Hash a plaintext password using bcrypt."""
    return _password_context(settings.bcrypt_rounds).hash(plain)


def verify_password(plain: str, hashed: str, settings: Settings) -> bool:
    """Verify plaintext password against a bcrypt hash."""
    return _password_context(settings.bcrypt_rounds).verify(plain, hashed)


# ==================== Session tokens ====================


def create_session_token(user_id: int, settings: Settings) -> str:
    """Create a signed JWT carrying the account id."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.session_token_expire_days)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str, settings: Settings) -> int:
    """
    Validate a session token and return the account id it carries.

    Raises:
        UnauthorizedError: token expired, badly signed or malformed
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise UnauthorizedError("Token expired. Please login again.")
    except JWTError:
        raise UnauthorizedError("Invalid token")

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise UnauthorizedError("Invalid token")
    return int(subject)


# ==================== One-time tokens ====================


def hash_one_time_token(plain: str) -> str:
    """SHA-256 hex digest used to store verification and reset tokens."""
    return hashlib.sha256(plain.encode()).hexdigest()


def generate_one_time_token() -> tuple[str, str]:
    """
    Generate a verification / reset token.

    Returns:
        (plaintext, hashed) - only the hash is ever persisted
    """
    plain = secrets.token_hex(ONE_TIME_TOKEN_BYTES)
    return plain, hash_one_time_token(plain)
