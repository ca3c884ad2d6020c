"""
Configuration Module - Settings and logging for the journal viewer

Settings are read from the environment (and a local .env file, if any).
"""
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

LOG_FILE_NAME = "journal_viewer.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class Settings(BaseModel):
    journalctl_path: str = "journalctl"
    query_timeout: float = Field(default=30.0, gt=0)
    fail_on_stderr: bool = True
    log_dir: Path = Path("app_log")
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level '{value}'")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables

        Unset variables keep their defaults. Invalid values raise
        pydantic.ValidationError.
        """
        load_dotenv()

        env_names = {
            "journalctl_path": "JOURNALCTL_PATH",
            "query_timeout": "JOURNAL_QUERY_TIMEOUT",
            "fail_on_stderr": "JOURNAL_FAIL_ON_STDERR",
            "log_dir": "JOURNAL_LOG_DIR",
            "log_level": "JOURNAL_LOG_LEVEL",
        }
        values = {}
        for field, env_name in env_names.items():
            value = os.getenv(env_name)
            if value is not None and value != "":
                values[field] = value

        return cls(**values)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Attach a file handler to the package logger

    Calling it again does not add a second handler.

    Returns:
        The configured ``journal_viewer`` logger
    """
    settings = settings or Settings()

    logger = logging.getLogger("journal_viewer")
    logger.setLevel(settings.log_level)

    if not logger.handlers:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME)
        file_handler.setLevel(settings.log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger
