"""Tests for JLPT quiz generation."""
from __future__ import annotations

import random

import pytest

from kotoba.errors import DistractorShortageError, InsufficientDataError
from kotoba.models import QuizWord
from kotoba.quiz_generator import (
    HIRAGANA_TO_MEANING,
    KANJI_TO_HIRAGANA,
    QUESTION_LABELS,
    _bucket_by_length,
    _effective_count,
    _select_distractors,
    build_explanation,
    generate_item,
    generate_quiz,
)


def _word(id_, word, hiragana, meaning):
    return {"id": id_, "word": word, "hiragana": hiragana, "meaning": meaning}


@pytest.fixture
def pool_db(tmp_db, word_factory):
    def load(level, n):
        tmp_db.import_quiz_words(word_factory(level, n))
        return tmp_db
    return load


class TestEffectiveCount:
    def test_enough_words(self):
        assert _effective_count(10, 5, "N5") == 5

    def test_clamped_to_pool_minus_three(self):
        assert _effective_count(6, 10, "N5") == 3

    def test_pool_of_four_gives_one(self):
        assert _effective_count(4, 50, "N5") == 1

    def test_pool_of_three_fails(self):
        with pytest.raises(InsufficientDataError) as exc:
            _effective_count(3, 1, "N3")
        assert "minimum required: 4, actual: 3" in exc.value.msg
        assert exc.value.status_code == 400

    def test_empty_pool_fails(self):
        with pytest.raises(InsufficientDataError):
            _effective_count(0, 10, "N1")


class TestDistractors:
    def test_bucket_by_length(self):
        words = [
            _word(1, "a", "ab", "x"),
            _word(2, "b", "abc", "x"),
            _word(3, "c", "abcd", "x"),
            _word(4, "d", "abcdefgh", "x"),
        ]
        buckets = _bucket_by_length(words, 2, KANJI_TO_HIRAGANA, random.Random(0))
        assert [len(b) for b in buckets] == [1, 1, 1, 1]
        assert buckets[0][0]["id"] == 1
        assert buckets[3][0]["id"] == 4

    def test_prefers_same_length(self):
        target = _word(1, "犬", "いぬ", "dog")
        pool = [
            target,
            _word(2, "木", "きい", "tree"),
            _word(3, "駅", "えき", "station"),
            _word(4, "雨", "あめ", "rain"),
            _word(5, "学校", "がっこうです", "school"),
        ]
        chosen = _select_distractors(target, pool, KANJI_TO_HIRAGANA, random.Random(1))
        assert {w["id"] for w in chosen} == {2, 3, 4}

    def test_falls_through_to_other_lengths(self):
        target = _word(1, "犬", "いぬ", "dog")
        pool = [
            target,
            _word(2, "学校", "がっこうですよ", "school"),
            _word(3, "先生", "せんせいですよ", "teacher"),
            _word(4, "友達", "ともだちですよ", "friend"),
        ]
        chosen = _select_distractors(target, pool, KANJI_TO_HIRAGANA, random.Random(2))
        assert {w["id"] for w in chosen} == {2, 3, 4}

    def test_near_lengths_drained_in_order(self):
        target = _word(1, "犬", "いぬ", "dog")
        pool = [
            target,
            _word(2, "木", "き", "tree"),
            _word(3, "朝日", "あさひ", "morning sun"),
            _word(4, "学校", "がっこう", "school"),
            _word(5, "先生", "せんせい", "teacher"),
            _word(6, "友達", "ともだちですよ", "friend"),
        ]
        picked_from_two_away = set()
        for seed in range(20):
            chosen = {w["id"] for w in _select_distractors(target, pool, KANJI_TO_HIRAGANA, random.Random(seed))}
            assert {2, 3} <= chosen
            assert 6 not in chosen
            picked_from_two_away |= chosen - {2, 3}
        assert picked_from_two_away <= {4, 5}

    def test_question_word_excluded_by_id(self):
        target = _word(1, "犬", "いぬ", "dog")
        pool = [target] + [_word(i, f"w{i}", f"r{i}", f"m{i}") for i in range(2, 8)]
        for seed in range(20):
            chosen = _select_distractors(target, pool, HIRAGANA_TO_MEANING, random.Random(seed))
            assert 1 not in {w["id"] for w in chosen}

    def test_shortage_raises(self):
        target = _word(1, "犬", "いぬ", "dog")
        pool = [target, _word(2, "木", "き", "tree")]
        with pytest.raises(DistractorShortageError) as exc:
            _select_distractors(target, pool, KANJI_TO_HIRAGANA)
        assert exc.value.status_code == 500
        assert "required: 3, actual: 1" in exc.value.msg


class TestGenerateItem:
    def _pool(self):
        return [
            _word(1, "犬", "いぬ", "dog"),
            _word(2, "駅", "えき", "station"),
            _word(3, "雨", "あめ", "rain"),
            _word(4, "朝", "あさ", "morning"),
        ]

    def test_reading_question(self):
        pool = self._pool()
        item = generate_item(pool[0], pool, "N3", quiz_type=KANJI_TO_HIRAGANA)
        assert item.question == "犬"
        assert item.question_type == QUESTION_LABELS[KANJI_TO_HIRAGANA]
        assert item.correct_answer == "いぬ"
        assert sorted(item.choices) == sorted(["いぬ", "えき", "あめ", "あさ"])

    def test_meaning_question_shows_reading_at_n5(self):
        pool = self._pool()
        item = generate_item(pool[0], pool, "N5", quiz_type=HIRAGANA_TO_MEANING)
        assert item.question == "犬（いぬ）"
        assert item.correct_answer == "dog"

    def test_meaning_question_hides_reading_at_n2(self):
        pool = self._pool()
        item = generate_item(pool[0], pool, "N2", quiz_type=HIRAGANA_TO_MEANING)
        assert item.question == "犬"

    def test_explanation(self):
        pool = self._pool()
        item = generate_item(pool[0], pool, "N5")
        assert item.explanation == build_explanation(pool[0])
        assert item.explanation == "「犬」is read as「いぬ」and means「dog」."

    def test_to_dict_uses_camel_case(self):
        pool = self._pool()
        d = generate_item(pool[0], pool, "N5").to_dict()
        assert set(d) == {"id", "question", "questionType", "choices",
                          "correctAnswer", "level", "explanation"}
        assert d["id"] == 1
        assert d["level"] == "N5"


class TestGenerateQuiz:
    def test_pool_ten_count_five(self, pool_db):
        db = pool_db("N5", 10)
        items = generate_quiz(db, "N5", 5)
        assert len(items) == 5
        for item in items:
            assert len(item.choices) == 4
            assert len(set(item.choices)) == 4
            assert item.choices.count(item.correct_answer) == 1

    def test_pool_six_count_ten_clamped(self, pool_db):
        db = pool_db("N4", 6)
        items = generate_quiz(db, "N4", 10)
        assert len(items) == 3

    def test_pool_four_gives_one_item(self, pool_db):
        db = pool_db("N5", 4)
        items = generate_quiz(db, "N5", 20)
        assert len(items) == 1
        item = items[0]
        all_words = db.get_quiz_words_by_level("N5")
        question_word = next(w for w in all_words if w["id"] == item.id)
        others = [w for w in all_words if w["id"] != item.id]
        key = "hiragana" if item.question_type == QUESTION_LABELS[KANJI_TO_HIRAGANA] else "meaning"
        assert item.correct_answer == question_word[key]
        assert sorted(c for c in item.choices if c != item.correct_answer) == sorted(
            w[key] for w in others
        )

    def test_pool_three_fails(self, pool_db):
        db = pool_db("N5", 3)
        with pytest.raises(InsufficientDataError):
            generate_quiz(db, "N5", 1)

    def test_larger_level_does_not_fill_small_pool(self, tmp_db, word_factory):
        tmp_db.import_quiz_words(word_factory("N5", 10))
        tmp_db.import_quiz_words(word_factory("N3", 3))
        with pytest.raises(InsufficientDataError):
            generate_quiz(tmp_db, "N3", 1)

    def test_choices_drawn_from_question_level_only(self, tmp_db, word_factory):
        tmp_db.import_quiz_words(word_factory("N5", 4))
        tmp_db.import_quiz_words([
            QuizWord(word=f"語{i}", hiragana="ご" * (i % 3 + 1), meaning=f"n4 word {i}",
                     source="JLPT", source_detail="N4")
            for i in range(10)
        ])
        n5 = tmp_db.get_quiz_words_by_level("N5")
        n5_answers = {w["hiragana"] for w in n5} | {w["meaning"] for w in n5}
        for _ in range(30):
            item = generate_quiz(tmp_db, "N5", 1)[0]
            assert item.level == "N5"
            assert set(item.choices) <= n5_answers

    def test_items_unique_per_quiz(self, pool_db):
        db = pool_db("N5", 10)
        items = generate_quiz(db, "N5", 7)
        assert len({item.id for item in items}) == 7

    def test_question_word_never_a_distractor(self, pool_db):
        db = pool_db("N5", 10)
        words = {w["id"]: w for w in db.get_quiz_words_by_level("N5")}
        for _ in range(10):
            for item in generate_quiz(db, "N5", 5):
                w = words[item.id]
                own = w["hiragana"] if item.correct_answer == w["hiragana"] else w["meaning"]
                assert item.choices.count(own) == 1

    def test_choice_order_varies(self, pool_db):
        db = pool_db("N5", 4)
        orders = set()
        for _ in range(40):
            item = generate_quiz(db, "N5", 1)[0]
            orders.add((item.id, tuple(item.choices)))
        assert len(orders) > 1

    def test_seeded_rng_reproducible_item(self, sample_words):
        pool = [
            {"id": i, "word": w.word, "hiragana": w.hiragana, "meaning": w.meaning}
            for i, w in enumerate(sample_words, 1)
        ]
        a = generate_item(pool[0], pool, "N5", rng=random.Random(42))
        b = generate_item(pool[0], pool, "N5", rng=random.Random(42))
        assert a == b
