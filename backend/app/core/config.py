# app/core/config.py

import os
from dataclasses import dataclass, field
from typing import List

# =========================
# DEFAULTS
# =========================

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024 * 1024  # 5 GB per file
DEFAULT_MAX_FILES = 50


def _default_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_user = os.getenv("DB_USER", "codedrop")
    db_pass = os.getenv("DB_PASS", "codedrop")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "codedrop")
    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_files: int = DEFAULT_MAX_FILES
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_default_database_url(),
            max_file_size=int(os.getenv("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE)),
            max_files=int(os.getenv("MAX_FILES", DEFAULT_MAX_FILES)),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
        )
