"""
Tests for database.py - SQLite schema and sessions.
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError

from jobmate.database import JobRecord, MatchRecord, SpecialistRecord, init_database, get_session


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        """Test that init_database creates all tables."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(JobRecord).count() == 0
        assert session.query(SpecialistRecord).count() == 0
        assert session.query(MatchRecord).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        init_database(db_path)
        assert db_path.exists()

    def test_init_is_idempotent(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        init_database(str(db_path))
        assert db_path.exists()


class TestJobRecord:
    """Test the jobs table."""

    def _record(self, job_id="job-1", **overrides):
        values = dict(
            id=job_id,
            title="Fix sink",
            status="open",
            lat=42.36,
            lng=-71.06,
            payload={"id": job_id, "title": "Fix sink", "location": {"lat": 42.36, "lng": -71.06}},
        )
        values.update(overrides)
        return JobRecord(**values)

    def test_create_and_read(self, session):
        session.add(self._record())
        session.commit()

        result = session.get(JobRecord, "job-1")
        assert result.title == "Fix sink"
        assert result.payload["location"]["lat"] == 42.36

    def test_to_job_round_trip(self, session):
        session.add(self._record())
        session.commit()

        job = session.get(JobRecord, "job-1").to_job()
        assert job.id == "job-1"
        assert job.location.lng == -71.06
        # created_at falls back to the row timestamp
        assert job.created_at is not None

    def test_missing_payload_fails(self, session):
        session.add(JobRecord(id="job-2", title="t"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_duplicate_id_fails(self, session):
        session.add(self._record())
        session.commit()
        session.expunge_all()
        session.add(self._record())
        with pytest.raises(IntegrityError):
            session.commit()

    def test_timestamps_set_on_insert(self, session):
        before = datetime.now()
        session.add(self._record())
        session.commit()
        after = datetime.now()

        saved = session.get(JobRecord, "job-1")
        assert before <= saved.created_at <= after
        assert abs((saved.created_at - saved.updated_at).total_seconds()) < 1

    def test_query_by_date_range(self, session):
        now = datetime.now()
        session.add(self._record("old", created_at=now - timedelta(days=10)))
        session.add(self._record("new", created_at=now))
        session.commit()

        cutoff = now - timedelta(days=5)
        recent = session.query(JobRecord).filter(JobRecord.created_at >= cutoff).all()
        assert [r.id for r in recent] == ["new"]


class TestSpecialistAndMatchRecords:
    """Test the specialists and matches tables."""

    def test_specialist_to_model(self, session, specialist_data):
        session.add(SpecialistRecord(id="spec-1", name="Sam Rivera", payload=specialist_data))
        session.commit()

        specialist = session.get(SpecialistRecord, "spec-1").to_specialist()
        assert specialist.name == "Sam Rivera"
        assert specialist.hourly_rate == 50.0

    def test_match_record_json_columns(self, session):
        session.add(MatchRecord(
            specialist_id="spec-1",
            job_id="job-1",
            score=87,
            raw_score=0.87,
            factors={"skill_match": 1.0},
            explanations=["Close by"],
        ))
        session.commit()

        saved = session.query(MatchRecord).one()
        assert saved.id is not None
        assert saved.factors == {"skill_match": 1.0}
        assert saved.explanations == ["Close by"]
