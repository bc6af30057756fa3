"""Development sample data: accounts, diaries and a vocabulary notebook.

Every step is idempotent; existing usernames and diary dates are skipped.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from kotoba.security import hash_password

if TYPE_CHECKING:
    from kotoba.db import Database

_log = logging.getLogger("kotoba.seed")

ADMIN = ("admin", "admin123!", "admin@nihongo.com", "管理者", "ADMIN")
USER_PASSWORD = "user123!"
USER_COUNT = 5

# (username, days ago, title, content, is_public)
SAMPLE_DIARIES = [
    ("user1", 1, "初めての日本語日記",
     "今日から日本語の勉強を始めました。最初は難しいですが、毎日少しずつ頑張ります。"
     "ひらがなとカタカナを覚えるのが目標です。", True),
    ("user1", 3, "カフェで勉強",
     "近くのカフェで日本語を勉強しました。静かな環境で集中できて良かったです。新しい単語を20個覚えました。", True),
    ("user1", 5, "難しい文法",
     "今日は助詞の使い方を勉強しました。「は」と「が」の違いが本当に難しいです。もっと練習が必要だと思います。", False),
    ("user1", 7, "週末の計画",
     "週末に日本のドラマを見る予定です。字幕なしで見るのはまだ難しいですが、挑戦してみます。", False),
    ("user2", 2, "日本料理を作った",
     "今日、初めて日本料理を作りました。簡単なお味噌汁と卵焼きです。美味しくできて嬉しかったです。"
     "次は肉じゃがに挑戦したいです。", True),
    ("user2", 4, "オンライン授業",
     "オンラインで日本語の授業を受けました。先生がとても優しくて、分かりやすく説明してくれました。"
     "会話の練習もできて良かったです。", True),
    ("user2", 6, "漢字が難しい",
     "漢字を覚えるのが本当に大変です。同じ漢字でも読み方がたくさんあって混乱します。"
     "毎日10個ずつ覚える練習をしています。", False),
    ("user3", 0, "今日の勉強",
     "今日は動詞の活用を勉強しました。て形とた形の作り方を練習しました。少しずつ慣れてきた気がします。明日も頑張ります！", True),
    ("user3", 2, "日本の音楽",
     "最近、日本の音楽をよく聞いています。歌詞を読みながら聞くと、新しい表現を学べて楽しいです。"
     "おすすめの歌があれば教えてください。", True),
    ("user3", 8, "友達と日本語で話した",
     "今日、日本人の友達と日本語だけで会話しました。まだ完璧ではありませんが、楽しくコミュニケーションできました。"
     "もっと上手になりたいです。", True),
]

# (word, hiragana, meaning, example sentence, translation, status)
SAMPLE_VOCABULARY = [
    ("隣人", "りんじん", "neighbor", "隣人の迷惑にならないように気をつけましょう。",
     "Let's be careful not to bother the neighbors.", "COMPLETED"),
    ("日記", "にっき", "diary", "毎晩日記を書きます。", "I write in my diary every night.", "NOT_STUDIED"),
    ("難しい", "むずかしい", "difficult", "この問題は難しいです。", "This problem is difficult.", "STUDYING"),
    ("助詞", "じょし", "particle", "日本語の助詞は複雑です。", "Japanese particles are complex.", "STUDYING"),
    ("字幕", "じまく", "subtitles", "字幕なしでドラマを見ます。", "I watch dramas without subtitles.", "NOT_STUDIED"),
    ("挑戦", "ちょうせん", "challenge", "新しいことに挑戦します。", "I take on new challenges.", "NOT_STUDIED"),
]


def _create_user(db: Database, username: str, password: str, email: str, nickname: str, role: str) -> bool:
    if db.username_exists(username):
        _log.debug("Account already exists (%s): skipping", username)
        return False
    db.create_user(username, hash_password(password), email, nickname, role=role)
    _log.info("User created: %s (%s)", username, nickname)
    return True


def create_users(db: Database) -> int:
    created = int(_create_user(db, *ADMIN))
    for i in range(1, USER_COUNT + 1):
        created += _create_user(db, f"user{i}", USER_PASSWORD, f"user{i}@test.com", f"ユーザー{i}", "USER")
    return created


def create_diaries(db: Database, today: date | None = None) -> int:
    today = today or date.today()
    created = 0
    for username, days_ago, title, content, is_public in SAMPLE_DIARIES:
        user = db.get_user_by_username(username)
        if user is None:
            _log.warning("Skipping diaries for %s: user does not exist", username)
            continue
        diary_date = (today - timedelta(days=days_ago)).isoformat()
        if db.get_diary_by_user_and_date(user["id"], diary_date):
            continue
        db.create_diary(user["id"], diary_date, title, content, is_public)
        created += 1
    return created


def create_vocabularies(db: Database) -> int:
    user = db.get_user_by_username("user1")
    if user is None:
        _log.warning("Skipping vocabulary generation: user does not exist")
        return 0
    existing = {v["word"] for v in db.get_vocabularies_by_user(user["id"])}
    created = 0
    for word, hiragana, meaning, sentence, translation, status in SAMPLE_VOCABULARY:
        if word in existing:
            continue
        db.create_vocabulary(user["id"], word, hiragana, meaning, sentence, translation, status)
        created += 1
    return created


def seed_dev_data(db: Database) -> dict[str, int]:
    result = {
        "users": create_users(db),
        "diaries": create_diaries(db),
        "vocabularies": create_vocabularies(db),
    }
    _log.info(
        "Sample data: %d users, %d diaries, %d vocabulary entries created",
        result["users"], result["diaries"], result["vocabularies"],
    )
    return result
