"""Account lookup, profile updates, password changes, and soft deletion."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kotoba.errors import FieldErrors, ServiceError
from kotoba.security import hash_password, verify_password

if TYPE_CHECKING:
    from kotoba.db import Database

_log = logging.getLogger("kotoba.users")


def user_info(user: dict) -> dict:
    return {
        "id": user["id"],
        "username": user["username"],
        "email": user["email"],
        "nickname": user["nickname"],
        "role": user["role"],
    }


def get_user_by_username(db: Database, username: str | None) -> dict:
    user = db.get_user_by_username(username) if username else None
    if user is None:
        raise ServiceError("404", "User not found")
    return user


def get_user_info(db: Database, username: str) -> dict:
    return user_info(get_user_by_username(db, username))


def validate_ownership(owner_username: str, request_username: str | None) -> None:
    if owner_username != request_username:
        raise ServiceError("403", "You do not have permission to perform this operation")


def update_profile(db: Database, username: str, body: dict) -> dict:
    v = FieldErrors(body)
    nickname = v.text("nickname", "Nickname is required", min_len=2, max_len=50,
                      size_message="Nickname must be between 2 and 50 characters")
    email = v.email("email", "Email is required", "Invalid email format", max_len=50)
    v.check()

    user = get_user_by_username(db, username)
    if user["nickname"] != nickname and db.nickname_exists(nickname):
        raise ServiceError("400", "Nickname already exists")
    if user["email"] != email and db.email_exists(email):
        raise ServiceError("400", "Email already exists")

    db.update_user_profile(user["id"], nickname, email)
    return user_info(db.get_user(user["id"]))


def change_password(db: Database, username: str, body: dict) -> None:
    v = FieldErrors(body)
    current = v.text("currentPassword", "Current password is required")
    new = v.text("newPassword", "New password is required", min_len=6, max_len=20,
                 size_message="Password must be between 6 and 20 characters")
    confirm = v.text("newPasswordConfirm", "Password confirmation is required")
    v.check()

    user = get_user_by_username(db, username)
    if not verify_password(current, user["password"]):
        raise ServiceError("400", "Current password is incorrect")
    if new != confirm:
        raise ServiceError("400", "New passwords do not match")

    db.update_user_password(user["id"], hash_password(new))


def delete_account(db: Database, username: str) -> None:
    user = get_user_by_username(db, username)
    delete_date = db.soft_delete_user(user["id"])
    _log.info("User account soft deleted - username: %s, deleteDate: %s", username, delete_date)
