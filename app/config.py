"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class AppSettings:
    """
    Process-level settings read once at startup.
    """

    title: str = "JTBD Explorer API"
    log_level: str = "INFO"
    check_database_on_startup: bool = True


@dataclass(frozen=True)
class SurveyImportSettings:
    """
    Runtime settings for the survey import pipeline.
    """

    fuzzy_match_threshold: float = 0.85
    max_upload_bytes: int = 10 * 1024 * 1024
    log_row_issues: bool = True
    max_logged_issues: int = 200


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings from environment variables.
    """

    return AppSettings(
        title=_get_str_env("APP_TITLE", "JTBD Explorer API"),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
        check_database_on_startup=_get_bool_env("CHECK_DATABASE_ON_STARTUP", True),
    )


@lru_cache(maxsize=1)
def get_survey_import_settings() -> SurveyImportSettings:
    """
    Return cached survey import settings from environment variables.
    """

    return SurveyImportSettings(
        fuzzy_match_threshold=min(
            1.0, max(0.0, _get_float_env("SURVEY_IMPORT_FUZZY_THRESHOLD", 0.85))
        ),
        max_upload_bytes=max(1024, _get_int_env("SURVEY_IMPORT_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)),
        log_row_issues=_get_bool_env("SURVEY_IMPORT_LOG_ROW_ISSUES", True),
        max_logged_issues=max(0, _get_int_env("SURVEY_IMPORT_MAX_LOGGED_ISSUES", 200)),
    )
