from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from kotoba.models import JLPT_LEVELS

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "db_path": "kotoba.db",
    "jwt_secret": "kotoba-dev-secret-change-me-0123456789abcdef0123456789abcdef",
    "access_token_minutes": 60,
    "refresh_token_days": 7,
    "cookie_secure": False,
    "cookie_domain": None,
    "cors_origins": ["http://localhost:3000", "http://localhost:8080"],
    "jlpt_data_dir": "data/jlpt",
    "seed_dev_data": False,
}


@dataclass
class Settings:
    db_path: str = DEFAULTS["db_path"]
    jwt_secret: str = DEFAULTS["jwt_secret"]
    access_token_minutes: int = DEFAULTS["access_token_minutes"]
    refresh_token_days: int = DEFAULTS["refresh_token_days"]
    cookie_secure: bool = DEFAULTS["cookie_secure"]
    cookie_domain: str | None = DEFAULTS["cookie_domain"]
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULTS["cors_origins"]))
    jlpt_data_dir: str = DEFAULTS["jlpt_data_dir"]
    seed_dev_data: bool = DEFAULTS["seed_dev_data"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    @property
    def jlpt_data_full_path(self) -> Path:
        return self.project_root / self.jlpt_data_dir

    @property
    def access_token_seconds(self) -> int:
        return self.access_token_minutes * 60

    @property
    def refresh_token_seconds(self) -> int:
        return self.refresh_token_days * 24 * 60 * 60

    def jlpt_csv_files(self) -> dict[str, Path]:
        """Expected CSV file per JLPT level (``n5.csv`` ... ``n1.csv``)."""
        root = self.jlpt_data_full_path
        return {level: root / f"{level.lower()}.csv" for level in JLPT_LEVELS}

    def to_dict(self) -> dict:
        return {
            "db_path": self.db_path,
            "jwt_secret": self.jwt_secret,
            "access_token_minutes": self.access_token_minutes,
            "refresh_token_days": self.refresh_token_days,
            "cookie_secure": self.cookie_secure,
            "cookie_domain": self.cookie_domain,
            "cors_origins": self.cors_origins,
            "jlpt_data_dir": self.jlpt_data_dir,
            "seed_dev_data": self.seed_dev_data,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        settings = Settings(**filtered)
    else:
        settings = Settings()
    secret = os.environ.get("KOTOBA_JWT_SECRET")
    if secret:
        settings.jwt_secret = secret
    return settings


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
