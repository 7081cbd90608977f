"""
Reputation aggregates and premium rules for both sides of a match.
"""

from typing import List, Optional

from .models import ClientReputation, Job, Specialist

CLIENT_RATING_WEIGHTS = {
    "overall_rating": 0.30,
    "reliability": 0.25,
    "communication": 0.20,
    "fair_payment": 0.15,
    "respectfulness": 0.10,
}

MAX_RATING = 5.0
# Ratings needed before a client's score is fully trusted
CONFIDENT_RATING_COUNT = 10
# Completed jobs needed before a specialist's track record saturates
EXPERIENCED_JOB_COUNT = 20


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def client_reputation_score(reputation: Optional[ClientReputation]) -> float:
    """
    Score a customer's reputation in [0, 1].

    Sub-ratings are weighted and divided by 5, then shrunk toward a
    neutral 0.5 when the customer has only a few ratings. An unknown
    rating count is taken at face value.
    """
    if reputation is None:
        return 0.5

    weighted = 0.0
    for attr, weight in CLIENT_RATING_WEIGHTS.items():
        value = getattr(reputation, attr)
        if value is None:
            value = reputation.overall_rating
        weighted += value * weight
    weighted = _clamp01(weighted / MAX_RATING)

    if reputation.total_ratings is None:
        confidence = 1.0
    else:
        confidence = min(1.0, max(0, reputation.total_ratings) / CONFIDENT_RATING_COUNT)

    return _clamp01(0.5 + (weighted - 0.5) * confidence)


def specialist_reputation_score(specialist: Specialist) -> Optional[float]:
    """Rating and track record blended 70/30; None when the specialist is unrated."""
    if specialist.rating is None:
        return None
    rating_part = _clamp01(specialist.rating / MAX_RATING)
    experience_part = min(1.0, max(0, specialist.completed_jobs) / EXPERIENCED_JOB_COUNT)
    return rating_part * 0.7 + experience_part * 0.3


def premium_badges(specialist: Specialist) -> List[str]:
    premium = specialist.premium
    if premium is None or not premium.is_premium:
        return []

    badges = ["premium"]
    if premium.premium_level in ("pro", "elite"):
        badges.append("verified")
    if premium.premium_level == "elite":
        badges.append("top-rated")
    return badges


def can_access_job(job: Job, specialist: Specialist) -> bool:
    """Verified-only premium specialists only see jobs with verified payment."""
    premium = specialist.premium
    if premium is not None and premium.verified_only and not job.is_verified_payment:
        return False
    return True
