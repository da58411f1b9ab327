# config.py
"""Configuration settings for the ArcLoom arc context engine.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import structlog
from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ArcLoomSettings(BaseSettings):
    """Full configuration for the ArcLoom engine."""

    # Analysis Cache
    ANALYSIS_CACHE_TTL_SECONDS: float = 60.0
    ANALYSIS_CACHE_MAX_ENTRIES: int = 10
    # "counts" keys on chapter/arc counts, "content" on a digest of their text
    ANALYSIS_CACHE_FINGERPRINT: str = "counts"

    # Arc Boundary Resolution
    TYPICAL_ARC_LENGTH: int = 10
    LARGE_NOVEL_CHAPTER_THRESHOLD: int = 20
    DEFAULT_ARC_TARGET_CHAPTERS: int = 10

    # Arc Summaries
    MAX_UNRESOLVED_ELEMENTS: int = 8
    MAX_RECENT_KEY_EVENTS: int = 10
    MAX_MIDDLE_KEY_EVENTS: int = 5
    MIDDLE_DIGEST_MAX_CHARS: int = 150
    ARC_OUTCOME_MAX_CHARS: int = 300
    OVERDUE_FORESHADOWING_CHAPTERS: int = 10

    # Brief Assembly
    MAX_BRIEF_LENGTH: int = 12000
    TRUNCATION_MARKER: str = "\n…[truncated for length]"
    TRUNCATION_RESERVE: int = 30
    MIN_TRUNCATED_SECTION_LENGTH: int = 50
    BRIEF_FILL_STOP_RATIO: float = 0.95
    SENTENCE_BREAK_MIN_RATIO: float = 0.6
    LINE_BREAK_MIN_RATIO: float = 0.7
    COMPRESSION_WARNING_RATIO: float = 0.8
    RECENT_CHAPTER_COUNT: int = 3
    CHAPTER_TRANSITION_TAIL_CHARS: int = 1200

    # Token Estimation
    TOKENIZER_MODEL: str = "gpt-4o"
    TIKTOKEN_DEFAULT_ENCODING: str = "cl100k_base"
    FALLBACK_CHARS_PER_TOKEN: float = 4.0
    TOKENIZER_CACHE_SIZE: int = 10

    # Logging & UI
    LOG_LEVEL_STR: str = Field("INFO", alias="ARCLOOM_LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = "arcloom.log"
    LOG_FILE_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_FILE_BACKUP_COUNT: int = 5
    BASE_OUTPUT_DIR: str = "arcloom_output"
    ENABLE_RICH_OUTPUT: bool = True

    @field_validator("ANALYSIS_CACHE_FINGERPRINT")
    @classmethod
    def check_fingerprint_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in {"counts", "content"}:
            raise ValueError(
                "ANALYSIS_CACHE_FINGERPRINT must be 'counts' or 'content'"
            )
        return mode

    @field_validator("LOG_LEVEL_STR")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator(
        "ANALYSIS_CACHE_TTL_SECONDS",
        "ANALYSIS_CACHE_MAX_ENTRIES",
        "TYPICAL_ARC_LENGTH",
        "DEFAULT_ARC_TARGET_CHAPTERS",
        "MAX_UNRESOLVED_ELEMENTS",
        "LOG_FILE_MAX_BYTES",
    )
    @classmethod
    def check_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("LOG_FILE_BACKUP_COUNT")
    @classmethod
    def check_backup_count(cls, value: int) -> int:
        if value < 0:
            raise ValueError("LOG_FILE_BACKUP_COUNT must not be negative")
        return value

    @model_validator(mode="after")
    def check_brief_ratios(self) -> ArcLoomSettings:
        if not 0 < self.BRIEF_FILL_STOP_RATIO <= 1:
            raise ValueError("BRIEF_FILL_STOP_RATIO must be in (0, 1]")
        if self.TRUNCATION_RESERVE < len(self.TRUNCATION_MARKER):
            logger.warning(
                "TRUNCATION_RESERVE is smaller than the truncation marker. Raising it.",
                reserve=self.TRUNCATION_RESERVE,
                marker_length=len(self.TRUNCATION_MARKER),
            )
            self.TRUNCATION_RESERVE = len(self.TRUNCATION_MARKER)
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", populate_by_name=True, extra="ignore"
    )


settings = ArcLoomSettings()
