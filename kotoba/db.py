from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from kotoba.models import JLPT_LEVELS, QuizWord

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    email TEXT,
    name TEXT,
    nickname TEXT,
    role TEXT NOT NULL DEFAULT 'USER',
    status TEXT NOT NULL DEFAULT 'ACTIVE',
    refresh_token TEXT,
    delete_date TEXT,
    create_date TEXT NOT NULL,
    update_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS diaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    diary_date TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    is_public INTEGER NOT NULL DEFAULT 0,
    create_date TEXT NOT NULL,
    update_date TEXT NOT NULL,
    UNIQUE (user_id, diary_date)
);

CREATE TABLE IF NOT EXISTS vocabularies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    word TEXT NOT NULL,
    hiragana TEXT NOT NULL,
    meaning TEXT NOT NULL,
    example_sentence TEXT,
    example_translation TEXT,
    study_status TEXT NOT NULL DEFAULT 'NOT_STUDIED',
    create_date TEXT NOT NULL,
    update_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS quiz_words (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source TEXT NOT NULL,
    source_detail TEXT,
    word TEXT NOT NULL,
    hiragana TEXT NOT NULL,
    meaning TEXT NOT NULL,
    example_sentence TEXT,
    example_translation TEXT,
    create_date TEXT NOT NULL,
    update_date TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_quiz_words_level
    ON quiz_words (source, source_detail);

CREATE TABLE IF NOT EXISTS file_mtimes (
    file_path TEXT PRIMARY KEY,
    mtime_ns INTEGER NOT NULL
);
"""

_DIARY_SELECT = """
    SELECT d.*, u.username, u.nickname
    FROM diaries d
    JOIN users u ON d.user_id = u.id
"""

_VOCAB_SELECT = """
    SELECT v.*, u.username
    FROM vocabularies v
    JOIN users u ON v.user_id = u.id
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ── Users ─────────────────────────────────────────────────────────────

    def create_user(
        self,
        username: str,
        password_hash: str,
        email: str | None,
        nickname: str | None,
        role: str = "USER",
        name: str | None = None,
    ) -> int:
        now = _now()
        cur = self.conn.execute(
            "INSERT INTO users (username, password, email, name, nickname, role, "
            "create_date, update_date) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (username, password_hash, email, name, nickname, role, now, now),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_user(self, user_id: int) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_user_by_username(self, username: str) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM users WHERE username = ?", (username,)
        ).fetchone()
        return dict(row) if row else None

    def username_exists(self, username: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM users WHERE username = ?", (username,)
        ).fetchone()
        return row is not None

    def nickname_exists(self, nickname: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM users WHERE nickname = ?", (nickname,)
        ).fetchone()
        return row is not None

    def email_exists(self, email: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM users WHERE email = ?", (email,)
        ).fetchone()
        return row is not None

    def update_user_profile(self, user_id: int, nickname: str, email: str) -> None:
        self.conn.execute(
            "UPDATE users SET nickname = ?, email = ?, update_date = ? WHERE id = ?",
            (nickname, email, _now(), user_id),
        )
        self.conn.commit()

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        self.conn.execute(
            "UPDATE users SET password = ?, update_date = ? WHERE id = ?",
            (password_hash, _now(), user_id),
        )
        self.conn.commit()

    def set_refresh_token(self, user_id: int, refresh_token: str | None) -> None:
        self.conn.execute(
            "UPDATE users SET refresh_token = ? WHERE id = ?",
            (refresh_token, user_id),
        )
        self.conn.commit()

    def soft_delete_user(self, user_id: int) -> str:
        """Mark a user DELETED and drop their refresh token. Returns delete_date."""
        now = _now()
        self.conn.execute(
            "UPDATE users SET status = 'DELETED', delete_date = ?, "
            "refresh_token = NULL, update_date = ? WHERE id = ?",
            (now, now, user_id),
        )
        self.conn.commit()
        return now

    def get_user_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM users").fetchone()
        return row[0]

    # ── Diaries ───────────────────────────────────────────────────────────

    def create_diary(
        self,
        user_id: int,
        diary_date: str,
        title: str,
        content: str,
        is_public: bool,
    ) -> int:
        now = _now()
        cur = self.conn.execute(
            "INSERT INTO diaries (user_id, diary_date, title, content, is_public, "
            "create_date, update_date) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (user_id, diary_date, title, content, 1 if is_public else 0, now, now),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_diary(self, diary_id: int) -> dict | None:
        row = self.conn.execute(
            _DIARY_SELECT + " WHERE d.id = ?", (diary_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_diary_by_user_and_date(self, user_id: int, diary_date: str) -> dict | None:
        row = self.conn.execute(
            _DIARY_SELECT + " WHERE d.user_id = ? AND d.diary_date = ?",
            (user_id, diary_date),
        ).fetchone()
        return dict(row) if row else None

    def get_public_diaries(self) -> list[dict]:
        rows = self.conn.execute(
            _DIARY_SELECT + " WHERE d.is_public = 1 ORDER BY d.create_date DESC, d.id DESC"
        ).fetchall()
        return [dict(r) for r in rows]

    def get_diaries_by_user(self, user_id: int) -> list[dict]:
        rows = self.conn.execute(
            _DIARY_SELECT + " WHERE d.user_id = ? ORDER BY d.create_date DESC, d.id DESC",
            (user_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    def update_diary(
        self,
        diary_id: int,
        title: str,
        content: str,
        diary_date: str,
        is_public: bool,
    ) -> None:
        self.conn.execute(
            "UPDATE diaries SET title = ?, content = ?, diary_date = ?, is_public = ?, "
            "update_date = ? WHERE id = ?",
            (title, content, diary_date, 1 if is_public else 0, _now(), diary_id),
        )
        self.conn.commit()

    def delete_diary(self, diary_id: int) -> None:
        self.conn.execute("DELETE FROM diaries WHERE id = ?", (diary_id,))
        self.conn.commit()

    def get_diary_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM diaries").fetchone()
        return row[0]

    # ── Vocabulary notebook ───────────────────────────────────────────────

    def create_vocabulary(
        self,
        user_id: int,
        word: str,
        hiragana: str,
        meaning: str,
        example_sentence: str | None = None,
        example_translation: str | None = None,
        study_status: str = "NOT_STUDIED",
    ) -> int:
        now = _now()
        cur = self.conn.execute(
            "INSERT INTO vocabularies (user_id, word, hiragana, meaning, "
            "example_sentence, example_translation, study_status, create_date, update_date) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (user_id, word, hiragana, meaning, example_sentence,
             example_translation, study_status, now, now),
        )
        self.conn.commit()
        return cur.lastrowid

    def get_vocabulary(self, vocabulary_id: int) -> dict | None:
        row = self.conn.execute(
            _VOCAB_SELECT + " WHERE v.id = ?", (vocabulary_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_vocabularies_by_user(self, user_id: int) -> list[dict]:
        rows = self.conn.execute(
            _VOCAB_SELECT + " WHERE v.user_id = ? ORDER BY v.create_date DESC, v.id DESC",
            (user_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_vocabularies_by_status(self, user_id: int, study_status: str) -> list[dict]:
        rows = self.conn.execute(
            _VOCAB_SELECT + " WHERE v.user_id = ? AND v.study_status = ? "
            "ORDER BY v.create_date DESC, v.id DESC",
            (user_id, study_status),
        ).fetchall()
        return [dict(r) for r in rows]

    def search_vocabularies(self, user_id: int, keyword: str) -> list[dict]:
        """Entries whose word, reading or meaning contains *keyword*."""
        rows = self.conn.execute(
            _VOCAB_SELECT + " WHERE v.user_id = ? AND ("
            "instr(v.word, ?) > 0 OR instr(v.hiragana, ?) > 0 OR instr(v.meaning, ?) > 0) "
            "ORDER BY v.create_date DESC, v.id DESC",
            (user_id, keyword, keyword, keyword),
        ).fetchall()
        return [dict(r) for r in rows]

    def update_vocabulary(
        self,
        vocabulary_id: int,
        word: str,
        hiragana: str,
        meaning: str,
        example_sentence: str | None,
        example_translation: str | None,
        study_status: str,
    ) -> None:
        self.conn.execute(
            "UPDATE vocabularies SET word = ?, hiragana = ?, meaning = ?, "
            "example_sentence = ?, example_translation = ?, study_status = ?, "
            "update_date = ? WHERE id = ?",
            (word, hiragana, meaning, example_sentence, example_translation,
             study_status, _now(), vocabulary_id),
        )
        self.conn.commit()

    def update_study_status(self, vocabulary_id: int, study_status: str) -> None:
        self.conn.execute(
            "UPDATE vocabularies SET study_status = ?, update_date = ? WHERE id = ?",
            (study_status, _now(), vocabulary_id),
        )
        self.conn.commit()

    def delete_vocabulary(self, vocabulary_id: int) -> None:
        self.conn.execute("DELETE FROM vocabularies WHERE id = ?", (vocabulary_id,))
        self.conn.commit()

    def get_vocabulary_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM vocabularies").fetchone()
        return row[0]

    # ── Quiz words ────────────────────────────────────────────────────────

    def quiz_word_exists(self, source: str, source_detail: str, word: str, hiragana: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM quiz_words WHERE source = ? AND source_detail = ? "
            "AND word = ? AND hiragana = ?",
            (source, source_detail, word, hiragana),
        ).fetchone()
        return row is not None

    def import_quiz_words(self, words: list[QuizWord]) -> int:
        now = _now()
        count = 0
        for w in words:
            self.conn.execute(
                "INSERT INTO quiz_words (source, source_detail, word, hiragana, meaning, "
                "example_sentence, example_translation, create_date, update_date) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (w.source, w.source_detail, w.word, w.hiragana, w.meaning,
                 w.example_sentence, w.example_translation, now, now),
            )
            count += 1
        self.conn.commit()
        return count

    def count_quiz_words(self, level: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM quiz_words WHERE source = 'JLPT' AND source_detail = ?",
            (level,),
        ).fetchone()
        return row[0]

    def count_all_jlpt_words(self) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM quiz_words WHERE source = 'JLPT'"
        ).fetchone()
        return row[0]

    def get_quiz_word_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM quiz_words").fetchone()
        return row[0]

    def get_quiz_words_by_level(self, level: str) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM quiz_words WHERE source = 'JLPT' AND source_detail = ?",
            (level,),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_random_quiz_words(self, level: str, limit: int) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM quiz_words WHERE source = 'JLPT' AND source_detail = ? "
            "ORDER BY RANDOM() LIMIT ?",
            (level, limit),
        ).fetchall()
        return [dict(r) for r in rows]

    # ── File mtimes ─────────────────────────────────────────────────────

    def get_file_mtime(self, file_path: str) -> int | None:
        row = self.conn.execute(
            "SELECT mtime_ns FROM file_mtimes WHERE file_path = ?", (file_path,)
        ).fetchone()
        return row[0] if row else None

    def set_file_mtime(self, file_path: str, mtime_ns: int) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO file_mtimes (file_path, mtime_ns) VALUES (?, ?)",
            (file_path, mtime_ns),
        )
        self.conn.commit()

    # ── Stats ─────────────────────────────────────────────────────────────

    def get_stats(self) -> dict:
        return {
            "total_users": self.get_user_count(),
            "total_diaries": self.get_diary_count(),
            "total_vocabularies": self.get_vocabulary_count(),
            "total_quiz_words": self.get_quiz_word_count(),
            "jlpt_words": {level: self.count_quiz_words(level) for level in JLPT_LEVELS},
        }
