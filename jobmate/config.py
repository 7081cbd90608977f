"""
Runtime settings for JobMate.

Values come from environment variables (optionally loaded from a .env
file by ``jobmate.env.load_env``). Defaults suit a local checkout.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_DB_PATH = "data/jobmate.db"
DEFAULT_LOG_DIR = "logs"
DEFAULT_MAX_DISTANCE_KM = 50.0
DEFAULT_CACHE_TTL_SECONDS = 3600
DEFAULT_MIN_MATCH_SCORE = 0


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str
    log_dir: Path
    max_distance_km: float
    cache_ttl_seconds: int
    min_match_score: int
    google_maps_api_key: Optional[str]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {raw!r}")
    return value


def get_settings() -> Settings:
    """
    Build settings from the current environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    level = (os.getenv("JOBMATE_LOG_LEVEL") or "INFO").upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(f"JOBMATE_LOG_LEVEL must be a logging level, got {level!r}")

    return Settings(
        db_path=Path(os.getenv("JOBMATE_DB_PATH") or DEFAULT_DB_PATH),
        log_level=level,
        log_dir=Path(os.getenv("JOBMATE_LOG_DIR") or DEFAULT_LOG_DIR),
        max_distance_km=_env_float("JOBMATE_MAX_DISTANCE_KM", DEFAULT_MAX_DISTANCE_KM),
        cache_ttl_seconds=_env_int("JOBMATE_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS, minimum=1),
        min_match_score=_env_int("JOBMATE_MIN_MATCH_SCORE", DEFAULT_MIN_MATCH_SCORE),
        google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY") or None,
    )
