"""Personal vocabulary notebook."""
from __future__ import annotations

from typing import TYPE_CHECKING

from kotoba.errors import FieldErrors, ServiceError
from kotoba.models import STUDY_STATUSES
from kotoba.users import get_user_by_username, validate_ownership

if TYPE_CHECKING:
    from kotoba.db import Database


def vocabulary_response(row: dict) -> dict:
    return {
        "id": row["id"],
        "word": row["word"],
        "hiragana": row["hiragana"],
        "meaning": row["meaning"],
        "exampleSentence": row["example_sentence"],
        "exampleTranslation": row["example_translation"],
        "studyStatus": row["study_status"],
        "studyStatusDisplay": STUDY_STATUSES[row["study_status"]],
        "createDate": row["create_date"],
        "updateDate": row["update_date"],
    }


def vocabulary_list_item(row: dict) -> dict:
    return {
        "id": row["id"],
        "word": row["word"],
        "hiragana": row["hiragana"],
        "meaning": row["meaning"],
        "studyStatus": row["study_status"],
        "studyStatusDisplay": STUDY_STATUSES[row["study_status"]],
        "createDate": row["create_date"],
    }


def parse_study_status(value) -> str:
    if not isinstance(value, str) or value.strip().upper() not in STUDY_STATUSES:
        raise ServiceError("400", f"Invalid study status: {value}")
    return value.strip().upper()


def _validate_entry(v: FieldErrors) -> tuple:
    word = v.text("word", "Word is required", max_len=100,
                  size_message="Word must be within 100 characters")
    hiragana = v.text("hiragana", "Hiragana is required", max_len=100,
                      size_message="Hiragana must be within 100 characters")
    meaning = v.text("meaning", "Meaning is required", max_len=500,
                     size_message="Meaning must be within 500 characters")
    sentence = v.text("exampleSentence", "", required=False, max_len=1000,
                      size_message="Example sentence must be within 1000 characters")
    translation = v.text("exampleTranslation", "", required=False, max_len=1000,
                         size_message="Example translation must be within 1000 characters")
    return word, hiragana, meaning, sentence, translation


def _get_owned(db: Database, vocabulary_id: int, username: str) -> dict:
    vocab = db.get_vocabulary(vocabulary_id)
    if vocab is None:
        raise ServiceError("404", "Vocabulary not found")
    validate_ownership(vocab["username"], username)
    return vocab


def create_vocabulary(db: Database, username: str, body: dict) -> dict:
    user = get_user_by_username(db, username)
    v = FieldErrors(body)
    word, hiragana, meaning, sentence, translation = _validate_entry(v)
    v.check()

    vocab_id = db.create_vocabulary(user["id"], word, hiragana, meaning, sentence, translation)
    return vocabulary_response(db.get_vocabulary(vocab_id))


def get_my_vocabularies(db: Database, username: str) -> list[dict]:
    user = get_user_by_username(db, username)
    return [vocabulary_list_item(r) for r in db.get_vocabularies_by_user(user["id"])]


def get_vocabularies_by_status(db: Database, username: str, status: str) -> list[dict]:
    user = get_user_by_username(db, username)
    status = parse_study_status(status)
    return [vocabulary_list_item(r) for r in db.get_vocabularies_by_status(user["id"], status)]


def search_vocabularies(db: Database, username: str, keyword: str) -> list[dict]:
    user = get_user_by_username(db, username)
    return [vocabulary_list_item(r) for r in db.search_vocabularies(user["id"], keyword or "")]


def get_vocabulary(db: Database, vocabulary_id: int, username: str) -> dict:
    return vocabulary_response(_get_owned(db, vocabulary_id, username))


def update_vocabulary(db: Database, vocabulary_id: int, username: str, body: dict) -> dict:
    v = FieldErrors(body)
    word, hiragana, meaning, sentence, translation = _validate_entry(v)
    raw_status = v.body.get("studyStatus")
    if raw_status is None:
        v.add("studyStatus", "NotNull", "Study status is required")
    v.check()
    status = parse_study_status(raw_status)

    _get_owned(db, vocabulary_id, username)
    db.update_vocabulary(vocabulary_id, word, hiragana, meaning, sentence, translation, status)
    return vocabulary_response(db.get_vocabulary(vocabulary_id))


def update_study_status(db: Database, vocabulary_id: int, username: str, status) -> dict:
    status = parse_study_status(status)
    _get_owned(db, vocabulary_id, username)
    db.update_study_status(vocabulary_id, status)
    return vocabulary_response(db.get_vocabulary(vocabulary_id))


def delete_vocabulary(db: Database, vocabulary_id: int, username: str) -> None:
    _get_owned(db, vocabulary_id, username)
    db.delete_vocabulary(vocabulary_id)
