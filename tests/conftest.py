"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Dict, Any

from jobmate import geocode
from jobmate.database import init_database, get_session
from jobmate.logger import get_logger, reset_logger


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Fresh global logger per test, writing only to a temp directory."""
    reset_logger()
    logger = get_logger(name="jobmate-test", log_dir=tmp_path / "logs", enable_console=False)
    geocode.reset_circuit()
    yield logger
    reset_logger()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of the tests."""
    for name in (
        "JOBMATE_DB_PATH",
        "JOBMATE_LOG_LEVEL",
        "JOBMATE_LOG_DIR",
        "JOBMATE_MAX_DISTANCE_KM",
        "JOBMATE_CACHE_TTL",
        "JOBMATE_MIN_MATCH_SCORE",
        "GOOGLE_MAPS_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def job_data() -> Dict[str, Any]:
    """Open plumbing job in central Boston, camelCase as sent by the web app."""
    return {
        "id": "job-1",
        "title": "Fix leaking kitchen sink",
        "description": "Sink drips constantly, needs a new washer or tap.",
        "status": "open",
        "location": {"lat": 42.3601, "lng": -71.0589, "city": "Boston", "state": "MA"},
        "budgetMin": 40,
        "budgetMax": 60,
        "urgencyLevel": "high",
        "category": "Plumbing",
        "requiredSkills": ["Pipe Repair", "Leak Detection"],
        "schedule": [{"day": 1, "startHour": 9, "endHour": 12}],
        "isVerifiedPayment": True,
        "customer": {
            "id": "cust-1",
            "name": "Dana",
            "reputation": {
                "overallRating": 4.6,
                "reliability": 4.8,
                "communication": 4.5,
                "fairPayment": 4.7,
                "respectfulness": 4.9,
                "totalRatings": 12,
            },
        },
    }


@pytest.fixture
def specialist_data() -> Dict[str, Any]:
    """Plumber a few kilometres from job_data."""
    return {
        "id": "spec-1",
        "user": {"firstName": "Sam", "lastName": "Rivera"},
        "skills": [{"name": "Plumbing"}, "pipe repair", "Leak Detection"],
        "location": {"lat": 42.3736, "lng": -71.1097},
        "rating": 4.8,
        "completedJobs": 40,
        "hourlyRate": 50,
        "ratePreferences": {"min": 45, "max": 65, "preferred": 50},
        "availability": {"schedule": [{"day": 1, "startHour": 8, "endHour": 17}]},
        "responseTime": 15,
    }


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Initialized empty SQLite database."""
    path = tmp_path / "jobmate.db"
    init_database(path)
    return path


@pytest.fixture
def session(db_path):
    s = get_session(db_path)
    yield s
    s.close()
