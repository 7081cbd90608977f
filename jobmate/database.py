"""
Database schema and connection management.

Uses SQLite with SQLAlchemy. Jobs and specialists keep their full JSON
payload alongside the columns that queries filter on (status,
coordinates, timestamps).
"""

from datetime import datetime
from pathlib import Path

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .models import Job, Specialist

Base = declarative_base()


class JobRecord(Base):
    """Job posting row."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default="open", index=True)
    category = Column(String, nullable=True)
    urgency_level = Column(String, nullable=True)
    lat = Column(Float, nullable=True, index=True)
    lng = Column(Float, nullable=True, index=True)
    budget_min = Column(Float, nullable=True)
    budget_max = Column(Float, nullable=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_job(self) -> Job:
        job = Job.from_dict(self.payload)
        if job.created_at is None:
            job.created_at = self.created_at
        return job


class SpecialistRecord(Base):
    """Specialist profile row."""

    __tablename__ = "specialists"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    lat = Column(Float, nullable=True, index=True)
    lng = Column(Float, nullable=True, index=True)
    rating = Column(Float, nullable=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_specialist(self) -> Specialist:
        return Specialist.from_dict(self.payload)


class MatchRecord(Base):
    """Stored result of the latest match run for a specialist."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    specialist_id = Column(String, ForeignKey("specialists.id"), nullable=False, index=True)
    job_id = Column(String, ForeignKey("jobs.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    raw_score = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=True)
    factors = Column(JSON, nullable=False)
    explanations = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{Path(db_path)}")
    Session = sessionmaker(bind=engine)
    return Session()
