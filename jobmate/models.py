"""
Domain types for jobs, specialists and match results.

Inputs arrive as JSON from the web app, so every ``from_dict`` accepts
both snake_case and the app's camelCase keys.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional


def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


@dataclass
class Location:
    lat: float
    lng: float
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Location"]:
        """Build a Location from {lat, lng} / {latitude, longitude}; None without both."""
        if not data:
            return None
        lat = _opt_float(_get(data, "lat", "latitude"))
        lng = _opt_float(_get(data, "lng", "lon", "longitude"))
        if lat is None or lng is None:
            return None
        return cls(
            lat=lat,
            lng=lng,
            city=_get(data, "city"),
            state=_get(data, "state"),
            zip_code=_get(data, "zip_code", "zipCode"),
        )


@dataclass(frozen=True)
class TimeSlot:
    """A weekly window: day 0 (Monday) to 6, hours in [0, 24)."""

    day: int
    start_hour: float
    end_hour: float

    def __post_init__(self):
        if not 0 <= self.day <= 6:
            raise ValueError(f"day must be 0-6, got {self.day}")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"slot hours must satisfy 0 <= start < end <= 24, "
                f"got {self.start_hour}-{self.end_hour}"
            )

    @property
    def hours(self) -> float:
        return self.end_hour - self.start_hour

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeSlot":
        return cls(
            day=int(_get(data, "day")),
            start_hour=float(_get(data, "start_hour", "startHour")),
            end_hour=float(_get(data, "end_hour", "endHour")),
        )


@dataclass
class Availability:
    schedule: List[TimeSlot] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Availability"]:
        if data is None:
            return None
        slots = [TimeSlot.from_dict(s) for s in _get(data, "schedule", default=[])]
        return cls(schedule=slots)


@dataclass
class RatePreferences:
    min: Optional[float] = None
    max: Optional[float] = None
    preferred: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["RatePreferences"]:
        if not data:
            return None
        return cls(
            min=_opt_float(_get(data, "min")),
            max=_opt_float(_get(data, "max")),
            preferred=_opt_float(_get(data, "preferred")),
        )


@dataclass
class PremiumFeatures:
    is_premium: bool = False
    premium_level: Optional[str] = None  # basic | pro | elite
    boost_factor: Optional[float] = None
    featured_profile: bool = False
    verified_only: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["PremiumFeatures"]:
        if not data:
            return None
        level = _get(data, "premium_level", "premiumLevel")
        return cls(
            is_premium=bool(_get(data, "is_premium", "isPremium", default=False)),
            premium_level=level.lower() if isinstance(level, str) else None,
            boost_factor=_opt_float(_get(data, "boost_factor", "boostFactor")),
            featured_profile=bool(_get(data, "featured_profile", "featuredProfile", default=False)),
            verified_only=bool(_get(data, "verified_only", "verifiedOnly", default=False)),
        )


@dataclass
class ClientReputation:
    """Customer ratings on a 1-5 scale; sub-ratings default to the overall rating."""

    overall_rating: float
    reliability: Optional[float] = None
    communication: Optional[float] = None
    fair_payment: Optional[float] = None
    respectfulness: Optional[float] = None
    total_ratings: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["ClientReputation"]:
        if not data:
            return None
        overall = _opt_float(_get(data, "overall_rating", "overallRating", "rating"))
        if overall is None:
            return None
        total = _get(data, "total_ratings", "totalRatings")
        return cls(
            overall_rating=overall,
            reliability=_opt_float(_get(data, "reliability")),
            communication=_opt_float(_get(data, "communication")),
            fair_payment=_opt_float(_get(data, "fair_payment", "fairPayment")),
            respectfulness=_opt_float(_get(data, "respectfulness")),
            total_ratings=int(total) if total is not None else None,
        )


@dataclass
class Customer:
    id: str
    name: Optional[str] = None
    reputation: Optional[ClientReputation] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Customer"]:
        if not data:
            return None
        reputation = _get(data, "reputation")
        if reputation is None and _get(data, "rating") is not None:
            reputation = {"overall_rating": data["rating"]}
        return cls(
            id=str(_get(data, "id", default="")),
            name=_get(data, "name"),
            reputation=ClientReputation.from_dict(reputation),
        )


@dataclass
class Job:
    id: str
    title: str
    description: str = ""
    status: str = "open"
    location: Optional[Location] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    urgency_level: Optional[str] = None
    category: Optional[str] = None
    required_skills: List[str] = field(default_factory=list)
    schedule: List[TimeSlot] = field(default_factory=list)
    is_verified_payment: bool = False
    customer: Optional[Customer] = None
    created_at: Optional[datetime] = None

    @property
    def skills(self) -> List[str]:
        """Required skills plus the category name, which doubles as a skill."""
        skills = list(self.required_skills)
        if self.category:
            skills.append(self.category)
        return skills

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Job":
        location = _get(data, "location")
        if not isinstance(location, Mapping):
            location = data
        category = _get(data, "category", "service_category", "serviceCategory")
        if isinstance(category, Mapping):
            category = category.get("name")

        budget = _opt_float(_get(data, "budget"))
        budget_min = _opt_float(_get(data, "budget_min", "budgetMin"))
        budget_max = _opt_float(_get(data, "budget_max", "budgetMax"))
        if budget is not None and budget_min is None and budget_max is None:
            budget_min = budget_max = budget

        return cls(
            id=str(_get(data, "id", default="")),
            title=str(_get(data, "title", default="")),
            description=str(_get(data, "description", default="")),
            status=str(_get(data, "status", default="open")).lower(),
            location=Location.from_dict(location),
            budget_min=budget_min,
            budget_max=budget_max,
            urgency_level=_get(data, "urgency_level", "urgencyLevel"),
            category=category,
            required_skills=list(_get(data, "required_skills", "requiredSkills", default=[])),
            schedule=[TimeSlot.from_dict(s) for s in _get(data, "schedule", default=[])],
            is_verified_payment=bool(
                _get(data, "is_verified_payment", "isVerifiedPayment", default=False)
            ),
            customer=Customer.from_dict(_get(data, "customer", "client")),
            created_at=_parse_datetime(_get(data, "created_at", "createdAt")),
        )


@dataclass
class Specialist:
    id: str
    name: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    location: Optional[Location] = None
    rating: Optional[float] = None
    completed_jobs: int = 0
    hourly_rate: Optional[float] = None
    rate_preferences: Optional[RatePreferences] = None
    availability: Optional[Availability] = None
    response_time: Any = None  # minutes, or fast/normal/slow
    premium: Optional[PremiumFeatures] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Specialist":
        name = _get(data, "name")
        user = _get(data, "user")
        if name is None and isinstance(user, Mapping):
            parts = [user.get("firstName") or user.get("first_name"),
                     user.get("lastName") or user.get("last_name")]
            name = " ".join(p for p in parts if p) or None

        skills = []
        for s in _get(data, "skills", default=[]):
            if isinstance(s, Mapping):
                s = s.get("name")
            if isinstance(s, str):
                skills.append(s)

        location = _get(data, "location")
        if not isinstance(location, Mapping):
            location = data

        return cls(
            id=str(_get(data, "id", default="")),
            name=name,
            skills=skills,
            location=Location.from_dict(location),
            rating=_opt_float(_get(data, "rating")),
            completed_jobs=int(_get(data, "completed_jobs", "completedJobs", default=0)),
            hourly_rate=_opt_float(_get(data, "hourly_rate", "hourlyRate")),
            rate_preferences=RatePreferences.from_dict(
                _get(data, "rate_preferences", "ratePreferences")
            ),
            availability=Availability.from_dict(_get(data, "availability")),
            response_time=_get(data, "response_time", "responseTime"),
            premium=PremiumFeatures.from_dict(_get(data, "premium")),
        )


@dataclass
class MatchPreferences:
    prioritize_location: bool = False
    prioritize_rate: bool = False
    prioritize_urgent: bool = False
    max_distance_km: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "MatchPreferences":
        if not data:
            return cls()
        return cls(
            prioritize_location=bool(_get(data, "prioritize_location", "prioritizeLocation", default=False)),
            prioritize_rate=bool(_get(data, "prioritize_rate", "prioritizeRate", default=False)),
            prioritize_urgent=bool(_get(data, "prioritize_urgent", "prioritizeUrgent", default=False)),
            max_distance_km=_opt_float(_get(data, "max_distance_km", "maxDistance")),
        )


@dataclass(frozen=True)
class MatchFactors:
    skill_match: float
    location_proximity: float
    reputation_score: float
    price_match: float
    availability_match: float
    urgency_compatibility: float

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"factor '{f.name}' must be within [0, 1], got {value}")

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class MatchResult:
    """
    Explainable outcome of scoring one job against one specialist.

    raw_score is the weighted factor sum in [0, 1]; score is the
    0-100 figure shown to users, after any premium boost.
    """

    score: int
    raw_score: float
    factors: MatchFactors
    weights: Dict[str, float]
    explanations: List[str] = field(default_factory=list)
    distance_km: Optional[float] = None
    boost: float = 1.0

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"score must be 0-100, got {self.score}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "raw_score": round(self.raw_score, 4),
            "factors": {k: round(v, 4) for k, v in self.factors.as_dict().items()},
            "weights": {k: round(v, 4) for k, v in self.weights.items()},
            "explanations": list(self.explanations),
            "distance_km": round(self.distance_km, 2) if self.distance_km is not None else None,
            "boost": self.boost,
        }


@dataclass
class JobMatch:
    job: Job
    match_result: MatchResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job.id,
            "title": self.job.title,
            **self.match_result.to_dict(),
        }


@dataclass
class UserPreferences:
    """Per-category listing preferences, e.g. {"jobs": {"desiredSkills": [...]}}."""

    user_id: str
    category_preferences: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    weight_preferences: Optional[Dict[str, float]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserPreferences":
        weights = _get(data, "weight_preferences", "weightPreferences")
        return cls(
            user_id=str(_get(data, "user_id", "userId", default="")),
            category_preferences=dict(
                _get(data, "category_preferences", "categoryPreferences", default={})
            ),
            weight_preferences=dict(weights) if weights else None,
        )

    def for_category(self, category: str) -> Optional[Dict[str, Any]]:
        return self.category_preferences.get(category) or None


@dataclass
class CompatibilityDimension:
    name: str
    score: int  # 0-100
    weight: float
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "weight": round(self.weight, 4),
            "description": self.description,
        }


@dataclass
class CompatibilityResult:
    overall_score: int
    dimensions: List[CompatibilityDimension]
    category: str
    listing_id: str
    user_id: str
    subcategory: Optional[str] = None
    primary_match_reason: str = ""
    improvement_suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not 0 <= self.overall_score <= 100:
            raise ValueError(f"overall_score must be 0-100, got {self.overall_score}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "category": self.category,
            "subcategory": self.subcategory,
            "listing_id": self.listing_id,
            "user_id": self.user_id,
            "dimensions": [d.to_dict() for d in self.dimensions],
            "primary_match_reason": self.primary_match_reason,
            "improvement_suggestions": list(self.improvement_suggestions),
            "timestamp": self.timestamp.isoformat(),
        }
