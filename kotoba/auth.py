"""Sign-up, login, token refresh and logout."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kotoba.errors import FieldErrors, ServiceError
from kotoba.models import TokenPair
from kotoba.security import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

if TYPE_CHECKING:
    from kotoba.config import Settings
    from kotoba.db import Database

_log = logging.getLogger("kotoba.auth")


def signup(db: Database, body: dict) -> int:
    v = FieldErrors(body)
    username = v.text("username", "Username is required", max_len=50,
                      size_message="Username must be within 50 characters")
    password = v.text("password", "Password is required")
    confirm = v.text("passwordConfirm", "Password confirmation is required")
    email = v.email("email", "Email is required", "Please enter a valid email address", max_len=50)
    nickname = v.text("nickname", "Nickname is required", max_len=50,
                      size_message="Nickname must be within 50 characters")
    v.check()

    if password != confirm:
        raise ServiceError("400", "Passwords do not match")
    if db.username_exists(username):
        raise ServiceError("400", "Username already exists")
    if db.nickname_exists(nickname):
        raise ServiceError("400", "Nickname already exists")
    if db.email_exists(email):
        raise ServiceError("400", "Email already exists")

    user_id = db.create_user(username, hash_password(password), email, nickname)
    _log.info("Signed up: %s (id %d)", username, user_id)
    return user_id


def login(db: Database, settings: Settings, username: str, password: str) -> TokenPair:
    user = db.get_user_by_username(username) if username else None
    if (
        user is None
        or user["status"] != "ACTIVE"
        or not verify_password(password or "", user["password"])
    ):
        _log.info("Login rejected for %r", username)
        raise ServiceError("401", "Incorrect username or password.")

    pair = TokenPair(
        access_token=create_access_token(settings, username),
        refresh_token=create_refresh_token(settings, username),
    )
    db.set_refresh_token(user["id"], pair.refresh_token)
    return pair


def refresh_access_token(db: Database, settings: Settings, refresh_token: str | None) -> str:
    username = decode_token(settings, refresh_token, REFRESH)
    if username is None:
        raise ServiceError("401", "Invalid Refresh Token")

    user = db.get_user_by_username(username)
    if user is None or user["status"] != "ACTIVE":
        raise ServiceError("401", "Invalid Refresh Token")
    if refresh_token != user["refresh_token"]:
        raise ServiceError("401", "Refresh token does not match")

    return create_access_token(settings, username)


def logout(db: Database, settings: Settings, refresh_token: str | None) -> None:
    """Forget the stored refresh token if *refresh_token* is valid."""
    username = decode_token(settings, refresh_token, REFRESH)
    if username is None:
        return
    user = db.get_user_by_username(username)
    if user is not None:
        db.set_refresh_token(user["id"], None)


def authenticate(db: Database, settings: Settings, access_token: str | None) -> dict | None:
    """Resolve an access token to an active user row, or None."""
    username = decode_token(settings, access_token, ACCESS)
    if username is None:
        return None
    user = db.get_user_by_username(username)
    if user is None or user["status"] != "ACTIVE":
        return None
    return user
