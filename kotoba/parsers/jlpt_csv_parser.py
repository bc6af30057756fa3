"""Parse JLPT word lists (CSV) into QuizWord objects.

Expected columns:
  expression, reading, meaning

A header row is recognised by its first cell (expression / word / kanji /
単語). Rows without an expression or reading are skipped; a missing meaning
is stored as "-".
"""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from kotoba.errors import ServiceError
from kotoba.models import QuizWord

if TYPE_CHECKING:
    from kotoba.config import Settings
    from kotoba.db import Database

_log = logging.getLogger("kotoba.import")

HEADER_MARKERS = ("expression", "word", "kanji", "単語")


def is_header(row: list[str]) -> bool:
    if len(row) < 2:
        return False
    first = row[0].lower()
    return any(marker in first for marker in HEADER_MARKERS)


def read_rows(text: str) -> list[list[str]]:
    # utf-8-sig exports leave a BOM on the first cell
    text = text.lstrip("\ufeff")
    return [row for row in csv.reader(io.StringIO(text)) if row]


def parse_jlpt_csv(text: str, level: str) -> tuple[list[QuizWord], int]:
    """Return (words, skipped) for one level's CSV text."""
    rows = read_rows(text)
    if not rows:
        raise ServiceError("400", "CSV file is empty.")
    if is_header(rows[0]):
        rows = rows[1:]

    words: list[QuizWord] = []
    skipped = 0
    for i, row in enumerate(rows, 1):
        if len(row) < 2:
            _log.warning("Skipping row %d: Insufficient columns (%d)", i, len(row))
            skipped += 1
            continue

        word = row[0].strip()
        hiragana = row[1].strip()
        meaning = row[2].strip() if len(row) > 2 else ""
        if not word or not hiragana:
            _log.warning("Skipping row %d: Required fields are empty", i)
            skipped += 1
            continue

        words.append(QuizWord(
            word=word,
            hiragana=hiragana,
            meaning=meaning or "-",
            source="JLPT",
            source_detail=level,
        ))
    return words, skipped


def import_jlpt_csv(db: Database, level: str, text: str) -> int:
    """Insert the words of *text* for *level* that are not stored yet.

    Returns the number of inserted words.
    """
    words, skipped = parse_jlpt_csv(text, level)

    new_words: list[QuizWord] = []
    seen: set[tuple[str, str]] = set()
    for w in words:
        key = (w.word, w.hiragana)
        if key in seen or db.quiz_word_exists("JLPT", level, w.word, w.hiragana):
            _log.debug("Skipping duplicate word: %s", w.word)
            skipped += 1
            continue
        seen.add(key)
        new_words.append(w)

    n = db.import_quiz_words(new_words) if new_words else 0
    if n:
        _log.info("JLPT %s word registration completed: %d words (skipped: %d)", level, n, skipped)
    return n


def decode_csv(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ServiceError("400", "CSV file must be UTF-8 encoded.") from None


def import_jlpt_file(db: Database, level: str, path: Path) -> int:
    return import_jlpt_csv(db, level, decode_csv(path.read_bytes()))


def import_jlpt_files(db: Database, settings: Settings, only_changed: bool = True) -> dict[str, int]:
    """Import ``n5.csv`` .. ``n1.csv`` from the data directory.

    With *only_changed*, files whose mtime matches the last import are skipped.
    Returns inserted counts per level for the files that were read.
    """
    imported: dict[str, int] = {}
    for level, path in settings.jlpt_csv_files().items():
        if not path.exists():
            continue
        current_mtime = path.stat().st_mtime_ns
        if only_changed and db.get_file_mtime(str(path)) == current_mtime:
            continue
        _log.info("Importing %s for %s", path.name, level)
        try:
            imported[level] = import_jlpt_file(db, level, path)
        except ServiceError as e:
            _log.warning("Skipped %s: %s", path.name, e.msg)
            imported[level] = 0
        db.set_file_mtime(str(path), current_mtime)
    return imported
