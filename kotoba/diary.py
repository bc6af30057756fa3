"""Personal diary entries: one per user per day, public or private."""
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from kotoba.errors import FieldErrors, ServiceError
from kotoba.users import get_user_by_username

if TYPE_CHECKING:
    from kotoba.db import Database

PREVIEW_LENGTH = 100
TITLE_MAX_LENGTH = 100


def diary_response(row: dict) -> dict:
    return {
        "id": row["id"],
        "username": row["username"],
        "nickname": row["nickname"],
        "diaryDate": row["diary_date"],
        "title": row["title"],
        "content": row["content"],
        "isPublic": bool(row["is_public"]),
        "createDate": row["create_date"],
        "updateDate": row["update_date"],
    }


def diary_list_item(row: dict) -> dict:
    content = row["content"]
    preview = content[:PREVIEW_LENGTH] + "..." if len(content) > PREVIEW_LENGTH else content
    return {
        "id": row["id"],
        "nickname": row["nickname"],
        "diaryDate": row["diary_date"],
        "title": row["title"],
        "contentPreview": preview,
        "isPublic": bool(row["is_public"]),
        "createDate": row["create_date"],
    }


def _parse_body(body: dict) -> tuple[date, str, str, bool]:
    v = FieldErrors(body)
    raw_date = body.get("diaryDate") if isinstance(body, dict) else None
    diary_date = None
    if not raw_date:
        v.add("diaryDate", "NotNull", "Date is required")
    else:
        try:
            diary_date = date.fromisoformat(str(raw_date))
        except ValueError:
            v.add("diaryDate", "TypeMismatch", "Date must be in YYYY-MM-DD format")
    title = v.text("title", "Title is required", max_len=TITLE_MAX_LENGTH,
                   size_message=f"Title must be within {TITLE_MAX_LENGTH} characters")
    content = v.text("content", "Content is required")
    is_public = v.boolean("isPublic", "Public setting is required")
    v.check()
    return diary_date, title, content, is_public


def validate_diary_date(diary_date: date, today: date | None = None) -> None:
    today = today or date.today()
    try:
        one_year_ago = today.replace(year=today.year - 1)
    except ValueError:
        # Feb 29
        one_year_ago = today.replace(year=today.year - 1, day=28)

    if diary_date > today:
        raise ServiceError("400", "Future dates cannot be set")
    if diary_date < one_year_ago:
        raise ServiceError("400", "Dates more than one year ago cannot be set")


def _get_or_404(db: Database, diary_id: int) -> dict:
    diary = db.get_diary(diary_id)
    if diary is None:
        raise ServiceError("404", "Diary not found")
    return diary


def create_diary(db: Database, username: str, body: dict) -> dict:
    user = get_user_by_username(db, username)
    diary_date, title, content, is_public = _parse_body(body)
    validate_diary_date(diary_date)

    if db.get_diary_by_user_and_date(user["id"], diary_date.isoformat()):
        raise ServiceError("400", "A diary for this date already exists")

    diary_id = db.create_diary(user["id"], diary_date.isoformat(), title, content, is_public)
    return diary_response(db.get_diary(diary_id))


def get_public_diaries(db: Database) -> list[dict]:
    return [diary_list_item(r) for r in db.get_public_diaries()]


def get_my_diaries(db: Database, username: str) -> list[dict]:
    user = get_user_by_username(db, username)
    return [diary_list_item(r) for r in db.get_diaries_by_user(user["id"])]


def get_diary(db: Database, diary_id: int, username: str | None) -> dict:
    """Public diaries are visible to anyone; private ones only to the author."""
    diary = _get_or_404(db, diary_id)
    if not diary["is_public"] and diary["username"] != username:
        raise ServiceError("403", "You do not have permission to view this diary")
    return diary_response(diary)


def update_diary(db: Database, diary_id: int, username: str, body: dict) -> dict:
    diary = _get_or_404(db, diary_id)
    diary_date, title, content, is_public = _parse_body(body)
    validate_diary_date(diary_date)

    if diary["username"] != username:
        raise ServiceError("403", "You do not have permission to edit this diary")

    new_date = diary_date.isoformat()
    if new_date != diary["diary_date"] and db.get_diary_by_user_and_date(diary["user_id"], new_date):
        raise ServiceError("400", "A diary for this date already exists")

    db.update_diary(diary_id, title, content, new_date, is_public)
    return diary_response(db.get_diary(diary_id))


def delete_diary(db: Database, diary_id: int, username: str) -> None:
    diary = _get_or_404(db, diary_id)
    if diary["username"] != username:
        raise ServiceError("403", "You do not have permission to delete this diary")
    db.delete_diary(diary_id)
