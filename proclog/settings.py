import os
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, field_validator


def default_log_file_path() -> Path:
    # <cwd>/logs/<program>.log
    stem = Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else ""
    return Path.cwd() / "logs" / f"{stem or 'app'}.log"


class LoggerSettings(BaseModel):
    log_file: Path
    log_level: str = ""

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if value is None:
            return ""
        return str(value).strip().lower()


def load_settings(env_file: str | os.PathLike | None = None) -> LoggerSettings:
    """Read `LOG_FILE` and `LOG_LEVEL`, loading a .env file first.

    Variables already present in the environment win over the .env file.
    """
    path = env_file or find_dotenv(usecwd=True)
    if path:
        load_dotenv(path)
    return LoggerSettings(
        log_file=os.environ.get("LOG_FILE") or default_log_file_path(),
        log_level=os.environ.get("LOG_LEVEL", ""),
    )
