from __future__ import annotations

from dataclasses import dataclass

from kotoba.errors import InvalidLevelError

# Difficulty rank per JLPT level (N5 easiest)
JLPT_LEVELS = {
    "N5": 1,
    "N4": 2,
    "N3": 3,
    "N2": 4,
    "N1": 5,
}

# Levels where meaning questions show the reading next to the word
READING_HINT_LEVELS = ("N5", "N4")

STUDY_STATUSES = {
    "NOT_STUDIED": "Not Studied",
    "STUDYING": "Studying",
    "COMPLETED": "Completed",
}


def parse_jlpt_level(level: str | None) -> str:
    """Normalize a level tag like ``" n3 "`` to ``"N3"``."""
    if level is None or not level.strip():
        raise InvalidLevelError("JLPT level is empty.")
    normalized = level.strip().upper()
    if normalized not in JLPT_LEVELS:
        raise InvalidLevelError(f"Invalid JLPT level: {level}")
    return normalized


@dataclass
class QuizWord:
    word: str
    hiragana: str
    meaning: str
    source: str = "JLPT"
    source_detail: str | None = None  # JLPT level for JLPT words
    example_sentence: str | None = None
    example_translation: str | None = None


@dataclass
class QuizItem:
    id: int
    question: str
    question_type: str
    choices: list[str]
    correct_answer: str
    level: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "questionType": self.question_type,
            "choices": list(self.choices),
            "correctAnswer": self.correct_answer,
            "level": self.level,
            "explanation": self.explanation,
        }


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
