"""
Persistence operations on top of the SQLAlchemy models.

Jobs and specialists are upserted from their JSON form; match runs load
candidate jobs with a bounding-box query, confirm the distance with
Haversine, score them and store the results.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .database import JobRecord, MatchRecord, SpecialistRecord, get_session
from .geo import filter_by_radius, get_bounding_box, validate_coordinates
from .logger import get_logger
from .matching import MAX_DISTANCE_KM, calculate_matches_for_specialist
from .models import Job, JobMatch, MatchPreferences, Specialist
from .reputation import can_access_job
from .schema import validate_job, validate_specialist


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _apply(record, values: Dict[str, Any]) -> bool:
    changed = False
    for key, value in values.items():
        if getattr(record, key) != value:
            setattr(record, key, value)
            changed = True
    return changed


def _upsert(session, model, record_id: str, values: Dict[str, Any], created_at=None) -> Dict[str, Any]:
    record = session.get(model, record_id)
    if record is None:
        record = model(id=record_id, **values)
        if created_at is not None:
            record.created_at = created_at
        session.add(record)
        session.commit()
        return {"status": "new", "id": record_id}
    if _apply(record, values):
        session.commit()
        return {"status": "updated", "id": record_id}
    return {"status": "no-change", "id": record_id}


def upsert_job(session, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert or update a job from its JSON form.

    Returns:
        {"status": "new" | "updated" | "no-change", "id": ...} or
        {"status": "validation_error", "errors": [...]}
    """
    errors = validate_job(data)
    if not errors:
        try:
            job = Job.from_dict(data)
        except (TypeError, ValueError) as e:
            errors = [str(e)]
    if errors:
        get_logger().warning("Job failed validation", job_id=data.get("id"), errors=errors)
        return {"status": "validation_error", "errors": errors}

    values = {
        "title": job.title,
        "status": job.status,
        "category": job.category,
        "urgency_level": job.urgency_level,
        "lat": job.location.lat if job.location else None,
        "lng": job.location.lng if job.location else None,
        "budget_min": job.budget_min,
        "budget_max": job.budget_max,
        "payload": dict(data),
    }
    return _upsert(session, JobRecord, job.id, values, created_at=_naive(job.created_at))


def upsert_specialist(session, data: Dict[str, Any]) -> Dict[str, Any]:
    """Same contract as upsert_job, for specialist profiles."""
    errors = validate_specialist(data)
    if not errors:
        try:
            specialist = Specialist.from_dict(data)
        except (TypeError, ValueError) as e:
            errors = [str(e)]
    if errors:
        get_logger().warning("Specialist failed validation", specialist_id=data.get("id"), errors=errors)
        return {"status": "validation_error", "errors": errors}

    values = {
        "name": specialist.name,
        "lat": specialist.location.lat if specialist.location else None,
        "lng": specialist.location.lng if specialist.location else None,
        "rating": specialist.rating,
        "payload": dict(data),
    }
    return _upsert(session, SpecialistRecord, specialist.id, values)


def _within_box(query, model, lat: float, lng: float, radius_km: float):
    box = get_bounding_box(lat, lng, radius_km)
    return query.filter(
        model.lat.between(box.min_lat, box.max_lat),
        model.lng.between(box.min_lng, box.max_lng),
    )


def _location_of(item) -> Optional[Tuple[float, float]]:
    if item.location is None:
        return None
    return item.location.lat, item.location.lng


def fetch_job_matches(
    session,
    specialist_id: str,
    radius_km: Optional[float] = None,
    limit: Optional[int] = 20,
    min_score: int = 0,
    weights: Optional[Mapping[str, float]] = None,
    preferences: Optional[MatchPreferences] = None,
    persist: bool = True,
) -> List[JobMatch]:
    """
    Best open jobs for a specialist.

    Jobs outside the search radius, jobs the specialist may not access and
    matches below min_score are dropped. With persist=True the results
    replace the specialist's stored matches.

    Raises:
        ValueError: If the specialist does not exist
    """
    logger = get_logger()
    record = session.get(SpecialistRecord, specialist_id)
    if record is None:
        raise ValueError(f"Specialist not found: {specialist_id}")
    specialist = record.to_specialist()

    preferences = preferences or MatchPreferences()
    radius = radius_km or preferences.max_distance_km or MAX_DISTANCE_KM

    query = session.query(JobRecord).filter(JobRecord.status == "open")
    if specialist.location is not None:
        lat, lng = specialist.location.lat, specialist.location.lng
        query = _within_box(query, JobRecord, lat, lng, radius)
        candidates = [r.to_job() for r in query.order_by(JobRecord.id).all()]
        jobs = [job for job, _ in filter_by_radius(candidates, lat, lng, radius, _location_of)]
    else:
        candidates = [r.to_job() for r in query.order_by(JobRecord.id).all()]
        jobs = candidates

    out_of_range = len(candidates) - len(jobs)
    jobs = [job for job in jobs if can_access_job(job, specialist)]

    matches = calculate_matches_for_specialist(
        specialist, jobs, preferences, weights, max_distance_km=radius
    )
    matches = [m for m in matches if m.match_result.score >= min_score]
    if limit is not None:
        matches = matches[:limit]

    if persist:
        _store_matches(session, specialist.id, matches)

    logger.record_match_run(len(candidates), out_of_range, len(matches))
    logger.info(
        "Fetched job matches",
        specialist_id=specialist.id,
        candidates=len(candidates),
        out_of_range=out_of_range,
        returned=len(matches),
        radius_km=radius,
    )
    return matches


def _store_matches(session, specialist_id: str, matches: List[JobMatch]) -> None:
    session.query(MatchRecord).filter(MatchRecord.specialist_id == specialist_id).delete()
    for m in matches:
        result = m.match_result
        session.add(MatchRecord(
            specialist_id=specialist_id,
            job_id=m.job.id,
            score=result.score,
            raw_score=result.raw_score,
            distance_km=result.distance_km,
            factors=result.factors.as_dict(),
            explanations=list(result.explanations),
        ))
    session.commit()


def search_specialists_near(
    session, lat: float, lng: float, radius_km: float, limit: Optional[int] = None
) -> List[Tuple[Specialist, float]]:
    """(specialist, distance_km) pairs within radius_km, nearest first."""
    validate_coordinates(lat, lng)
    query = _within_box(session.query(SpecialistRecord), SpecialistRecord, lat, lng, radius_km)
    specialists = [r.to_specialist() for r in query.order_by(SpecialistRecord.id).all()]
    hits = filter_by_radius(specialists, lat, lng, radius_km, _location_of)
    return hits[:limit] if limit is not None else hits


def delete_stale_jobs(days: int, db_path: Path) -> Tuple[int, int]:
    """
    Delete jobs created more than `days` days ago, with their matches.

    Returns:
        (jobs_before, jobs_after)
    """
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    cutoff = datetime.now() - timedelta(days=days)
    session = get_session(db_path)
    try:
        before = session.query(JobRecord).count()
        stale_ids = [
            job_id for (job_id,) in
            session.query(JobRecord.id).filter(JobRecord.created_at < cutoff).all()
        ]
        if stale_ids:
            session.query(MatchRecord).filter(MatchRecord.job_id.in_(stale_ids)).delete(
                synchronize_session=False
            )
            session.query(JobRecord).filter(JobRecord.id.in_(stale_ids)).delete(
                synchronize_session=False
            )
            session.commit()
        after = session.query(JobRecord).count()
    finally:
        session.close()
    get_logger().debug("Deleted stale jobs", cutoff=cutoff.isoformat(), removed=before - after)
    return before, after
