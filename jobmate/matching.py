"""
Job/specialist match scoring.

Responsibilities:
- Score six factors in [0, 1]: skill match, location proximity,
  reputation, price match, availability match, urgency compatibility.
- Combine them with normalized weights into a 0-100 match score.
- Emit the factor breakdown and human-readable explanations.

Non-Responsibilities:
- No database access (see storage.fetch_job_matches).
- No threshold decisions beyond sorting.

Invariant:
Given identical inputs, this module always returns the same score,
breakdown and explanations.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .geo import calculate_distance
from .models import (
    Job,
    JobMatch,
    MatchFactors,
    MatchPreferences,
    MatchResult,
    Specialist,
    TimeSlot,
)
from .normalize import normalize_skills, normalize_urgency, response_time_minutes
from .reputation import client_reputation_score, specialist_reputation_score
from .weights import FACTORS, apply_priorities

NEUTRAL = 0.5
MAX_DISTANCE_KM = 50.0

URGENCY_VALUES = {"low": 0.3, "medium": 0.6, "high": 0.9}
# Minutes after which a response no longer counts as quick
QUICK_RESPONSE_MINUTES = 60.0

PREMIUM_BOOSTS = {"basic": 1.1, "pro": 1.2, "elite": 1.3}

EXACT_SKILL_WEIGHT = 0.7
PARTIAL_SKILL_WEIGHT = 0.3


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def calculate_skill_match(job_skills: Iterable[str], specialist_skills: Iterable[str]) -> float:
    """
    Share of the job's skills the specialist covers.

    Exact matches count fully; substring matches ("plumbing" vs
    "emergency plumbing") get partial credit.
    """
    wanted = normalize_skills(job_skills)
    offered = normalize_skills(specialist_skills)
    if not wanted or not offered:
        return NEUTRAL

    offered_set = set(offered)
    exact = sum(1 for skill in wanted if skill in offered_set)
    partial = sum(
        1 for skill in wanted
        if any(skill in other or other in skill for other in offered)
    )
    return _clamp01(
        EXACT_SKILL_WEIGHT * exact / len(wanted)
        + PARTIAL_SKILL_WEIGHT * partial / len(wanted)
    )


def job_distance_km(job: Job, specialist: Specialist) -> Optional[float]:
    if job.location is None or specialist.location is None:
        return None
    return calculate_distance(
        job.location.lat, job.location.lng,
        specialist.location.lat, specialist.location.lng,
    )


def calculate_location_proximity(
    distance_km: Optional[float], max_distance_km: Optional[float] = None
) -> float:
    """Linear falloff from 1 at the job site to 0 at max_distance_km."""
    if distance_km is None:
        return NEUTRAL
    max_dist = max_distance_km or MAX_DISTANCE_KM
    return _clamp01(1 - distance_km / max_dist)


def calculate_reputation_score(job: Job, specialist: Specialist) -> float:
    """Mean of the specialist's and the customer's reputation, where known."""
    parts = []
    specialist_part = specialist_reputation_score(specialist)
    if specialist_part is not None:
        parts.append(specialist_part)
    if job.customer is not None and job.customer.reputation is not None:
        parts.append(client_reputation_score(job.customer.reputation))
    if not parts:
        return NEUTRAL
    return _clamp01(sum(parts) / len(parts))


def _specialist_rates(specialist: Specialist) -> Optional[Tuple[float, float, float]]:
    prefs = specialist.rate_preferences
    hourly = specialist.hourly_rate
    low = (prefs.min if prefs else None) or hourly
    high = (prefs.max if prefs else None) or hourly
    preferred = (prefs.preferred if prefs else None) or hourly

    if low is None and high is None and preferred is None:
        return None
    if low is None:
        low = preferred if preferred is not None else high
    if high is None:
        high = preferred if preferred is not None else low
    if high < low:
        low, high = high, low
    if preferred is None:
        preferred = (low + high) / 2
    return low, high, preferred


def calculate_price_match(job: Job, specialist: Specialist) -> float:
    """
    How well the specialist's rates fit the job budget.

    1.0 when the budget contains the preferred rate, 0.7 when the rate
    ranges merely overlap. Cheaper specialists score between 0.4 and 0.7;
    pricier ones fall from 0.7 to 0 as they approach double the budget.
    """
    if not job.budget_min and not job.budget_max:
        return NEUTRAL
    rates = _specialist_rates(specialist)
    if rates is None or rates[2] <= 0:
        return NEUTRAL
    rate_min, rate_max, preferred = rates

    job_min = job.budget_min or 0.0
    job_max = job.budget_max or job_min * 1.5
    if job_max < job_min:
        job_min, job_max = job_max, job_min

    if job_min <= preferred <= job_max:
        return 1.0
    if rate_min <= job_max and rate_max >= job_min:
        return 0.7
    if rate_max < job_min:
        return _clamp01(0.4 + 0.3 * rate_max / job_min)
    excess = (rate_min - job_max) / job_max
    return _clamp01(0.7 * (1 - excess))


def _covered_hours(slot: TimeSlot, offered: List[TimeSlot]) -> float:
    intervals = sorted(
        (max(slot.start_hour, o.start_hour), min(slot.end_hour, o.end_hour))
        for o in offered
        if o.day == slot.day
    )
    covered = 0.0
    cursor = slot.start_hour
    for start, end in intervals:
        start = max(start, cursor)
        if end > start:
            covered += end - start
            cursor = end
    return covered


def _has_availability(specialist: Specialist) -> bool:
    return specialist.availability is not None and bool(specialist.availability.schedule)


def calculate_availability_match(job: Job, specialist: Specialist) -> float:
    """Fraction of the job's requested hours inside the specialist's weekly slots."""
    if not _has_availability(specialist):
        return NEUTRAL
    if not job.schedule:
        # Specialist publishes availability but the job is flexible
        return 0.8

    requested = sum(slot.hours for slot in job.schedule)
    covered = sum(_covered_hours(slot, specialist.availability.schedule) for slot in job.schedule)
    return _clamp01(covered / requested)


def calculate_urgency_compatibility(job: Job, specialist: Specialist) -> float:
    urgency = normalize_urgency(job.urgency_level)
    if urgency is None:
        return NEUTRAL
    value = URGENCY_VALUES[urgency]

    minutes = response_time_minutes(specialist.response_time)
    if urgency == "high" and minutes is not None:
        response_score = _clamp01(1 - minutes / QUICK_RESPONSE_MINUTES)
        return _clamp01(value * 0.4 + response_score * 0.6)
    return value


def premium_boost(specialist: Specialist) -> float:
    """An explicit boost_factor wins; otherwise the level table, 1.0 for unknown levels."""
    premium = specialist.premium
    if premium is None or not premium.is_premium:
        return 1.0
    if premium.boost_factor:
        return premium.boost_factor
    return PREMIUM_BOOSTS.get(premium.premium_level, 1.0)


def calculate_factors(
    job: Job, specialist: Specialist, max_distance_km: Optional[float] = None
) -> Tuple[MatchFactors, Optional[float]]:
    distance = job_distance_km(job, specialist)
    factors = MatchFactors(
        skill_match=calculate_skill_match(job.skills, specialist.skills),
        location_proximity=calculate_location_proximity(distance, max_distance_km),
        reputation_score=calculate_reputation_score(job, specialist),
        price_match=calculate_price_match(job, specialist),
        availability_match=calculate_availability_match(job, specialist),
        urgency_compatibility=calculate_urgency_compatibility(job, specialist),
    )
    return factors, distance


def generate_explanations(
    factors: MatchFactors,
    job: Job,
    specialist: Specialist,
    distance_km: Optional[float] = None,
    boost: float = 1.0,
) -> List[str]:
    """Plain-language reasons behind each factor, strongest signals first."""
    explanations: List[str] = []
    subject = f"this {job.category} job" if job.category else "this job"

    if factors.skill_match > 0.8:
        explanations.append(f"Your skills are an excellent match for {subject}.")
    elif factors.skill_match > 0.5:
        explanations.append(f"You have some of the skills needed for {subject}.")
    elif factors.skill_match < 0.5:
        explanations.append("This job may require skills you don't currently list in your profile.")

    if distance_km is None:
        explanations.append("Location information not available.")
    elif distance_km < 2:
        explanations.append(f"Very close to the job location ({distance_km:.1f} km).")
    elif factors.location_proximity > 0.5:
        explanations.append(f"Within a reasonable distance ({distance_km:.1f} km).")
    elif factors.location_proximity > 0.2:
        explanations.append(f"Somewhat far from the job location ({distance_km:.1f} km).")
    else:
        explanations.append(f"Quite far from the job location ({distance_km:.1f} km).")

    if specialist.rating is not None and factors.reputation_score > 0.8:
        explanations.append(f"Highly rated specialist ({specialist.rating:g}/5).")
    elif specialist.rating is not None and factors.reputation_score > 0.6:
        explanations.append(f"Well-rated specialist ({specialist.rating:g}/5).")

    if factors.price_match >= 0.9:
        explanations.append("The job budget aligns with your rate preferences.")
    elif factors.price_match > 0.5:
        explanations.append("The job budget is close to your preferred rates.")
    elif factors.price_match < 0.5:
        explanations.append("The job budget differs from your preferred rates.")

    if factors.availability_match >= 0.9 and job.schedule:
        explanations.append("Your availability covers the requested times.")
    elif job.schedule and factors.availability_match < 0.5 and _has_availability(specialist):
        explanations.append("Your availability only partly covers the requested times.")

    if normalize_urgency(job.urgency_level) == "high":
        if factors.urgency_compatibility > 0.7:
            explanations.append("This is an urgent job that matches your quick response time.")
        else:
            explanations.append("This is an urgent job requiring immediate attention.")

    reputation = job.customer.reputation if job.customer else None
    if reputation is not None and reputation.overall_rating > 4:
        explanations.append(
            f"This client has an excellent reputation rating of {reputation.overall_rating:g}/5."
        )

    if boost > 1.0:
        level = specialist.premium.premium_level if specialist.premium else ""
        explanations.append(
            f"Premium {level} status applied a {round((boost - 1) * 100)}% boost to the match score."
        )

    return explanations


def calculate_match_score(
    job: Job,
    specialist: Specialist,
    preferences: Optional[MatchPreferences] = None,
    weights: Optional[Mapping[str, float]] = None,
    max_distance_km: Optional[float] = None,
) -> MatchResult:
    """
    Score how well a specialist fits a job.

    Args:
        job: The job being matched
        specialist: The candidate specialist
        preferences: Priority toggles and an optional distance cap
        weights: User slider values (any scale); renormalized to sum to 1
        max_distance_km: Distance at which proximity reaches 0; overridden
            by preferences.max_distance_km

    Returns:
        MatchResult with the 0-100 score, factor breakdown and explanations
    """
    preferences = preferences or MatchPreferences()
    applied: Dict[str, float] = apply_priorities(
        weights,
        prioritize_location=preferences.prioritize_location,
        prioritize_rate=preferences.prioritize_rate,
        prioritize_urgent=preferences.prioritize_urgent,
    )

    factors, distance = calculate_factors(
        job, specialist, preferences.max_distance_km or max_distance_km
    )
    values = factors.as_dict()
    raw_score = _clamp01(sum(values[f] * applied[f] for f in FACTORS))

    boost = premium_boost(specialist)
    score = min(100, max(0, round(raw_score * boost * 100)))

    return MatchResult(
        score=score,
        raw_score=raw_score,
        factors=factors,
        weights=applied,
        explanations=generate_explanations(factors, job, specialist, distance, boost),
        distance_km=distance,
        boost=boost,
    )


def _rank_key(match: JobMatch):
    return (-match.match_result.score, -match.match_result.raw_score, match.job.id)


def calculate_matches_for_specialist(
    specialist: Specialist,
    jobs: Iterable[Job],
    preferences: Optional[MatchPreferences] = None,
    weights: Optional[Mapping[str, float]] = None,
    max_distance_km: Optional[float] = None,
) -> List[JobMatch]:
    """Score every job for one specialist, best first."""
    matches = [
        JobMatch(job, calculate_match_score(job, specialist, preferences, weights, max_distance_km))
        for job in jobs
    ]
    matches.sort(key=_rank_key)
    return matches


def rank_specialists_for_job(
    job: Job,
    specialists: Iterable[Specialist],
    weights: Optional[Mapping[str, float]] = None,
    max_distance_km: Optional[float] = None,
) -> List[Tuple[Specialist, MatchResult]]:
    """Customer-side view: specialists for one job, best first."""
    ranked = [
        (s, calculate_match_score(job, s, weights=weights, max_distance_km=max_distance_km))
        for s in specialists
    ]
    ranked.sort(key=lambda pair: (-pair[1].score, -pair[1].raw_score, pair[0].id))
    return ranked
