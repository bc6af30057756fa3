"""Password hashing and JWT issuance/validation."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

if TYPE_CHECKING:
    from kotoba.config import Settings

_log = logging.getLogger("kotoba.security")

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def _create_token(settings: Settings, username: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": username,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
        "token_type": token_type,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def create_access_token(settings: Settings, username: str) -> str:
    return _create_token(settings, username, ACCESS, timedelta(minutes=settings.access_token_minutes))


def create_refresh_token(settings: Settings, username: str) -> str:
    return _create_token(settings, username, REFRESH, timedelta(days=settings.refresh_token_days))


def decode_token(settings: Settings, token: str | None, token_type: str) -> str | None:
    """Return the username in a valid *token_type* token, or None."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        _log.info("Expired JWT token.")
        return None
    except jwt.InvalidTokenError as e:
        _log.info("Invalid JWT token: %s", e)
        return None
    if claims.get("token_type") != token_type:
        _log.info("Unexpected JWT token type: %s", claims.get("token_type"))
        return None
    return claims.get("sub")
