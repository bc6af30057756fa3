"""Build multiple-choice JLPT vocabulary quizzes from the quiz word bank."""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from kotoba.errors import DistractorShortageError, InsufficientDataError
from kotoba.models import READING_HINT_LEVELS, QuizItem

if TYPE_CHECKING:
    from kotoba.db import Database

_log = logging.getLogger("kotoba.quiz")

MINIMUM_WORDS_REQUIRED = 4
WRONG_ANSWERS_COUNT = 3

KANJI_TO_HIRAGANA = "kanji_to_hiragana"
HIRAGANA_TO_MEANING = "hiragana_to_meaning"

QUESTION_LABELS = {
    KANJI_TO_HIRAGANA: "What is the reading of this word?",
    HIRAGANA_TO_MEANING: "What is the meaning of this word?",
}


def _pick_quiz_type(rng=random) -> str:
    return KANJI_TO_HIRAGANA if rng.random() < 0.5 else HIRAGANA_TO_MEANING


def _answer_for(word: dict, quiz_type: str) -> str:
    return word["hiragana"] if quiz_type == KANJI_TO_HIRAGANA else word["meaning"]


def _effective_count(pool_size: int, requested: int, level: str) -> int:
    """Clamp *requested* so every question keeps three spare distractor words."""
    if pool_size < MINIMUM_WORDS_REQUIRED:
        raise InsufficientDataError(
            f"Insufficient words for JLPT {level} "
            f"(minimum required: {MINIMUM_WORDS_REQUIRED}, actual: {pool_size})"
        )
    max_possible = pool_size - WRONG_ANSWERS_COUNT
    if requested > max_possible:
        clamped = max(1, max_possible)
        _log.warning(
            "Requested %d questions for %s but only %d words exist, generating %d",
            requested, level, pool_size, clamped,
        )
        return clamped
    return requested


def _bucket_by_length(words: list[dict], target_length: int, quiz_type: str, rng=random) -> list[list[dict]]:
    """Split words into [exact, ±1, ±2, rest] by answer-length difference.

    Each bucket is shuffled independently.
    """
    buckets: list[list[dict]] = [[], [], [], []]
    for w in words:
        diff = abs(len(_answer_for(w, quiz_type)) - target_length)
        buckets[min(diff, 3)].append(w)
    for bucket in buckets:
        rng.shuffle(bucket)
    return buckets


def _select_distractors(correct_word: dict, pool: list[dict], quiz_type: str, rng=random) -> list[dict]:
    target_length = len(_answer_for(correct_word, quiz_type))
    others = [w for w in pool if w["id"] != correct_word["id"]]

    chosen: list[dict] = []
    for bucket in _bucket_by_length(others, target_length, quiz_type, rng):
        remaining = WRONG_ANSWERS_COUNT - len(chosen)
        chosen.extend(bucket[:remaining])
        if len(chosen) >= WRONG_ANSWERS_COUNT:
            break

    if len(chosen) < WRONG_ANSWERS_COUNT:
        raise DistractorShortageError(
            f"Failed to generate wrong answer choices "
            f"(required: {WRONG_ANSWERS_COUNT}, actual: {len(chosen)})"
        )
    return chosen


def _build_question(word: dict, quiz_type: str, level: str) -> str:
    if quiz_type == HIRAGANA_TO_MEANING and level in READING_HINT_LEVELS:
        return f"{word['word']}（{word['hiragana']}）"
    return word["word"]


def build_explanation(word: dict) -> str:
    return f"「{word['word']}」is read as「{word['hiragana']}」and means「{word['meaning']}」."


def generate_item(
    word: dict,
    pool: list[dict],
    level: str,
    quiz_type: str | None = None,
    rng=random,
) -> QuizItem:
    """Build one quiz item for *word*, drawing distractors from *pool*.

    *pool* is every word of the same level; the question word itself is
    skipped by id.
    """
    if quiz_type is None:
        quiz_type = _pick_quiz_type(rng)

    distractors = _select_distractors(word, pool, quiz_type, rng)
    correct = _answer_for(word, quiz_type)
    choices = [correct] + [_answer_for(d, quiz_type) for d in distractors]
    rng.shuffle(choices)

    return QuizItem(
        id=word["id"],
        question=_build_question(word, quiz_type, level),
        question_type=QUESTION_LABELS[quiz_type],
        choices=choices,
        correct_answer=correct,
        level=level,
        explanation=build_explanation(word),
    )


def generate_quiz(db: Database, level: str, count: int, rng=random) -> list[QuizItem]:
    """Generate up to *count* quiz items for a JLPT *level*.

    Raises InsufficientDataError when the level has fewer than four words.
    When the pool is too small for *count*, fewer items are returned.
    """
    pool_size = db.count_quiz_words(level)
    actual = _effective_count(pool_size, count, level)

    question_words = db.get_random_quiz_words(level, actual)
    pool = db.get_quiz_words_by_level(level)

    items = [generate_item(w, pool, level, rng=rng) for w in question_words]
    _log.info("Generated %d %s questions (requested %d)", len(items), level, count)
    return items
