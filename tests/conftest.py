"""Shared test fixtures."""
from __future__ import annotations

import pytest

from kotoba.config import Settings
from kotoba.db import Database
from kotoba.models import QuizWord
from kotoba.security import hash_password

N5_WORDS = [
    ("会う", "あう", "to meet"),
    ("青い", "あおい", "blue"),
    ("赤い", "あかい", "red"),
    ("朝", "あさ", "morning"),
    ("雨", "あめ", "rain"),
    ("犬", "いぬ", "dog"),
    ("駅", "えき", "station"),
    ("学校", "がっこう", "school"),
    ("先生", "せんせい", "teacher"),
    ("友達", "ともだち", "friend"),
]


def make_words(level: str, n: int) -> list[QuizWord]:
    return [
        QuizWord(word=w, hiragana=h, meaning=m, source="JLPT", source_detail=level)
        for w, h, m in N5_WORDS[:n]
    ]


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "test.db"),
        jwt_secret="test-secret-with-at-least-thirty-two-bytes!!",
        jlpt_data_dir=str(tmp_path / "jlpt"),
    )


@pytest.fixture
def sample_words():
    """Ten N5 quiz words."""
    return make_words("N5", 10)


@pytest.fixture
def populated_db(tmp_db, sample_words):
    """A database with ten N5 words and two users."""
    tmp_db.import_quiz_words(sample_words)
    tmp_db.create_user("alice", hash_password("secret123"), "alice@test.com", "Alice")
    tmp_db.create_user("bob", hash_password("secret456"), "bob@test.com", "Bob")
    return tmp_db


@pytest.fixture
def word_factory():
    """``word_factory(level, n)`` -> the first *n* sample words tagged *level*."""
    return make_words
