"""Password hashing and bearer tokens."""

from datetime import datetime, timedelta, timezone
from enum import Enum

import jwt
from passlib.hash import bcrypt

JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=1)


class AuthErrorCode(str, Enum):
    NO_TOKEN = "no_token"
    EXPIRED_TOKEN = "expired_token"
    INVALID_TOKEN = "invalid_token"


class AuthError(Exception):
    def __init__(self, code: AuthErrorCode, message: str = ""):
        super().__init__(message or code.value)
        self.code = code


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password, password_hash)


def issue_token(user_id: str, secret: str, expires_in: timedelta = TOKEN_TTL) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user": {"id": user_id},
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str, secret: str) -> str:
    """Return the user id carried by ``token``.

    Raises ``AuthError`` with ``EXPIRED_TOKEN`` or ``INVALID_TOKEN``.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthError(AuthErrorCode.EXPIRED_TOKEN, "Token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError(AuthErrorCode.INVALID_TOKEN, "Token is invalid.") from exc

    user = payload.get("user")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        raise AuthError(AuthErrorCode.INVALID_TOKEN, "Token carries no user.")
    return str(user_id)
