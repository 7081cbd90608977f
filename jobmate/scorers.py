"""
Category scorers for listing-vs-preferences compatibility.

Every score here is on a 0-100 scale. Listing data and category
preferences are plain dicts from the web app, read with either
snake_case or camelCase keys.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import CompatibilityDimension, CompatibilityResult, UserPreferences, _get, _opt_float
from .normalize import normalize_text

NEUTRAL_SCORE = 50
STRONG_MATCH_SCORE = 70
WEAK_MATCH_SCORE = 50

# Dimension name -> weight preference key
DIMENSION_WEIGHT_KEYS = {
    "skills match": "skills",
    "tag match": "skills",
    "location match": "location",
    "location": "location",
    "distance": "location",
    "availability": "availability",
    "schedule match": "availability",
    "price": "price",
    "price match": "price",
    "salary match": "price",
    "budget match": "price",
    "user preference": "userPreferences",
    "preference match": "userPreferences",
    "reputation": "reputation",
    "rating match": "reputation",
    "provider rating": "reputation",
    "trust score": "reputation",
}

EXPERIENCE_LEVELS = ("entry", "junior", "mid", "senior", "expert", "lead")

CONDITION_RATINGS = {"new": 5, "like-new": 4, "good": 3, "fair": 2, "poor": 1}


def _score(value: float) -> int:
    return max(0, min(100, round(value)))


def text_similarity(a: Optional[str], b: Optional[str]) -> int:
    """Shared-word ratio over all distinct words; 100 for identical text."""
    if not a or not b:
        return 0
    a, b = normalize_text(a), normalize_text(b)
    if a == b:
        return 100
    words_a, words_b = a.split(), b.split()
    vocab_b = set(words_b)
    shared = sum(1 for w in words_a if w in vocab_b)
    unique = len(set(words_a) | vocab_b)
    return _score(shared / unique * 100) if unique else 0


def array_overlap(a: Sequence[Any], b: Sequence[Any]) -> int:
    if not a or not b:
        return 0
    set_b = set(b)
    shared = sum(1 for item in a if item in set_b)
    unique = len(set(a) | set_b)
    return _score(shared / unique * 100)


def range_match(value: Optional[float], low: Optional[float], high: Optional[float]) -> int:
    """
    100 inside [low, high]; falls off linearly outside.

    Values above the range are penalized half as hard as values below it.
    """
    if value is None or low is None or high is None:
        return 0
    if low <= value <= high:
        return 100
    if value < low:
        return _score((1 - (low - value) / low) * 100) if low > 0 else 0
    if high <= 0:
        return 0
    return _score((1 - (value - high) / high * 0.5) * 100)


def distance_match(distance: Optional[float], max_distance: Optional[float]) -> int:
    if distance is None or max_distance is None or max_distance <= 0:
        return 0
    if distance <= max_distance:
        return 100
    return _score((1 - (distance - max_distance) / max_distance) * 100)


def budget_match(max_price: Optional[float], price: Optional[float], bargain_ratio: float = 0.7) -> int:
    """100 for a bargain (<= bargain_ratio of max), 90 under max, then a linear penalty."""
    if max_price is None or price is None or max_price <= 0:
        return NEUTRAL_SCORE
    if price <= max_price:
        return 100 if price / max_price <= bargain_ratio else 90
    return _score(100 - (price - max_price) / max_price * 100)


def _lower(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def choice_match(preferred: Sequence[str], actual: Optional[str], partial: int = 80, miss: int = 30) -> int:
    """
    100 for a case-insensitive hit in `preferred`, `partial` when one name
    contains the other, `miss` otherwise. Neutral when either side is empty.
    """
    options = [_lower(p) for p in preferred or () if _lower(p)]
    value = _lower(actual)
    if not options or not value:
        return NEUTRAL_SCORE
    if value in options:
        return 100
    if any(value in o or o in value for o in options):
        return partial
    return miss


def bounded_range_match(value: Optional[float], bounds: Optional[Mapping[str, Any]]) -> int:
    """range_match against a {"min": .., "max": ..} preference; neutral when incomplete."""
    if value is None or not isinstance(bounds, Mapping):
        return NEUTRAL_SCORE
    low, high = _opt_float(bounds.get("min")), _opt_float(bounds.get("max"))
    if low is None or high is None:
        return NEUTRAL_SCORE
    return range_match(value, low, high)


def _num(value: Optional[float]) -> str:
    return f"{value:g}" if value is not None else "unknown"


def _money(value: Optional[float]) -> str:
    return f"${value:,.0f}" if value is not None else "unknown"


def overall_score(
    dimensions: List[CompatibilityDimension],
    weight_preferences: Optional[Mapping[str, float]] = None,
) -> int:
    """Weighted mean of dimension scores, with user weights applied by dimension name."""
    total_weight = 0.0
    weighted = 0.0
    for dim in dimensions:
        weight = dim.weight
        if weight_preferences:
            key = DIMENSION_WEIGHT_KEYS.get(dim.name.lower())
            if key is not None and key in weight_preferences:
                weight = float(weight_preferences[key])
        total_weight += weight
        weighted += dim.score * weight
    if total_weight <= 0:
        return 0
    return _score(weighted / total_weight)


def improvement_suggestions(dimensions: List[CompatibilityDimension]) -> List[str]:
    low = sorted((d for d in dimensions if d.score < WEAK_MATCH_SCORE), key=lambda d: d.score)
    return [
        f"Improve your {d.name.lower()} match by updating your preferences."
        for d in low[:3]
    ]


def primary_match_reason(dimensions: List[CompatibilityDimension]) -> str:
    strong = [d for d in dimensions if d.score >= STRONG_MATCH_SCORE]
    if not strong:
        return "Moderate overall compatibility."
    best = max(strong, key=lambda d: d.score)
    return f"Strong match on {best.name.lower()}."


def _describe(score: int, levels: Sequence[str]) -> str:
    """Pick a description for >=90 / >=70 / >=50 / below."""
    for threshold, text in zip((90, 70, 50), levels):
        if score >= threshold:
            return text
    return levels[-1]


class BaseScorer:
    category = ""
    preference_label = "more specific"

    def calculate_score(
        self, preferences: UserPreferences, listing: Mapping[str, Any]
    ) -> CompatibilityResult:
        prefs = preferences.for_category(self.category)
        if prefs is None:
            return self.missing_preferences(preferences, listing)
        dimensions = self.dimensions(prefs, listing)
        return CompatibilityResult(
            overall_score=overall_score(dimensions, self.user_weights(preferences)),
            dimensions=dimensions,
            category=self.category,
            listing_id=str(_get(listing, "id", default="")),
            user_id=preferences.user_id,
            subcategory=self.subcategory(listing),
            primary_match_reason=primary_match_reason(dimensions),
            improvement_suggestions=improvement_suggestions(dimensions),
        )

    def missing_preferences(
        self, preferences: UserPreferences, listing: Mapping[str, Any]
    ) -> CompatibilityResult:
        return default_result(
            self.category,
            {**listing, "subcategory": self.subcategory(listing)},
            preferences.user_id,
            reason="Limited preference data available",
            suggestion=f"Add {self.preference_label} preferences to get more accurate matches",
        )

    def dimensions(
        self, prefs: Mapping[str, Any], listing: Mapping[str, Any]
    ) -> List[CompatibilityDimension]:
        raise NotImplementedError

    def user_weights(self, preferences: UserPreferences) -> Optional[Dict[str, float]]:
        return None

    def subcategory(self, listing: Mapping[str, Any]) -> Optional[str]:
        return _get(listing, "subcategory")


def default_result(
    category: str,
    listing: Mapping[str, Any],
    user_id: str,
    reason: str = "Basic compatibility calculation",
    suggestion: str = "Add more specific preferences to get better matches",
) -> CompatibilityResult:
    """Neutral result for users without preferences or unsupported categories."""
    return CompatibilityResult(
        overall_score=NEUTRAL_SCORE,
        dimensions=[
            CompatibilityDimension(
                "Overall Match", NEUTRAL_SCORE, 1.0, "Based on general profile information"
            )
        ],
        category=category,
        listing_id=str(_get(listing, "id", default="")),
        user_id=user_id,
        subcategory=_get(listing, "subcategory"),
        primary_match_reason=reason,
        improvement_suggestions=[suggestion],
    )


class JobScorer(BaseScorer):
    category = "jobs"
    preference_label = "job"

    def user_weights(self, preferences):
        return preferences.weight_preferences

    def dimensions(self, prefs, job):
        salary = _opt_float(_get(job, "salary"))
        arrangement = _get(job, "work_arrangement", "workArrangement")
        level = _get(job, "experience_level", "experienceLevel")

        skills = self.skills_match(
            _get(prefs, "desired_skills", "desiredSkills", default=[]),
            _get(job, "required_skills", "requiredSkills", default=[]),
        )
        salary_score = self.salary_match(
            _opt_float(_get(prefs, "min_salary", "minSalary")),
            _opt_float(_get(prefs, "max_salary", "maxSalary")),
            salary,
        )
        arrangement_score = self.arrangement_match(
            _get(prefs, "work_arrangement", "workArrangement", default=[]), arrangement
        )
        experience = self.experience_match(
            _get(prefs, "experience_level", "experienceLevel"), level
        )

        return [
            CompatibilityDimension("Skills Match", skills, 0.4, _describe(skills, (
                "Your skills are a perfect match!",
                "Your skills align well with this job",
                "You have some relevant skills for this job",
                "You may need to develop more skills for this role",
            ))),
            CompatibilityDimension("Salary Match", salary_score, 0.25, _describe(salary_score, (
                f"The salary (${salary:,.0f}) matches your expectations" if salary is not None else "Salary matches your expectations",
                f"The salary (${salary:,.0f}) is close to your range" if salary is not None else "Salary is close to your range",
                "The salary is somewhat outside your range",
                "The salary is far from your preferred range",
            ))),
            CompatibilityDimension(
                "Work Arrangement", arrangement_score, 0.2,
                f"This {arrangement or 'job'} position "
                + ("matches your preference" if arrangement_score >= 90 else "differs from your preferences"),
            ),
            CompatibilityDimension("Experience Level", experience, 0.15, _describe(experience, (
                f"The {level} experience level is perfect for you",
                f"The {level} experience level is close to your preference",
                f"The {level} experience level is somewhat different from your preference",
                f"The {level} experience level is very different from your preference",
            ))),
        ]

    def subcategory(self, job):
        return _get(job, "subcategory", "work_arrangement", "workArrangement")

    @staticmethod
    def skills_match(desired: Sequence[str], required: Sequence[str]) -> int:
        """Share of required skills matching a desired skill, substring either way."""
        desired = [normalize_text(s) for s in desired if isinstance(s, str)]
        required = [normalize_text(s) for s in required if isinstance(s, str)]
        if not desired or not required:
            return NEUTRAL_SCORE
        matched = [r for r in required if any(r in d or d in r for d in desired)]
        return _score(len(matched) / len(required) * 100)

    @staticmethod
    def salary_match(low, high, salary) -> int:
        if low is None or high is None or salary is None:
            return NEUTRAL_SCORE
        return range_match(salary, low, high)

    @staticmethod
    def arrangement_match(preferred: Sequence[str], arrangement: Optional[str]) -> int:
        if not preferred or not arrangement:
            return NEUTRAL_SCORE
        return 100 if arrangement in preferred else 0

    @staticmethod
    def experience_match(preferred: Optional[str], level: Optional[str]) -> int:
        if not preferred or not level:
            return NEUTRAL_SCORE
        p, j = preferred.lower(), level.lower()
        if p not in EXPERIENCE_LEVELS or j not in EXPERIENCE_LEVELS:
            return NEUTRAL_SCORE
        gap = abs(EXPERIENCE_LEVELS.index(p) - EXPERIENCE_LEVELS.index(j))
        return _score(100 - gap / (len(EXPERIENCE_LEVELS) - 1) * 100)


class ServiceScorer(BaseScorer):
    category = "services"
    preference_label = "service"

    DEFAULT_DISTANCE = 10.0
    DEFAULT_PREFERRED_DISTANCE = 20.0

    def dimensions(self, prefs, service):
        service_type = _get(service, "type", "service_type", "serviceType")
        price = _opt_float(_get(service, "price"))
        rating = _opt_float(_get(service, "provider_rating", "providerRating"))
        distance = _opt_float(_get(service, "distance")) or self.DEFAULT_DISTANCE

        type_score = self.service_type_match(
            _get(prefs, "service_types", "serviceTypes", default=[]), service_type
        )
        price_score = self.price_match(_opt_float(_get(prefs, "max_price", "maxPrice")), price)
        rating_score = self.rating_match(
            _opt_float(_get(prefs, "min_provider_rating", "minProviderRating")), rating
        )
        distance_score = distance_match(
            distance,
            _opt_float(_get(prefs, "preferred_distance", "preferredDistance"))
            or self.DEFAULT_PREFERRED_DISTANCE,
        )

        return [
            CompatibilityDimension(
                "Service Type", type_score, 0.3,
                f"This {service_type or 'service'} service "
                + ("matches your preferences" if type_score >= 90 else "is different from your usual preferences"),
            ),
            CompatibilityDimension("Price", price_score, 0.25, _describe(price_score, (
                "The price is well within your budget",
                "The price is close to your budget",
                "The price is somewhat above your budget",
                "The price is significantly above your budget",
            ))),
            CompatibilityDimension("Provider Rating", rating_score, 0.25, _describe(rating_score, (
                "The provider rating is excellent",
                "The provider rating meets your standards",
                "The provider rating is slightly below your preference",
                "The provider rating is below your minimum standard",
            ))),
            CompatibilityDimension("Location", distance_score, 0.2, _describe(distance_score, (
                f"Located very close to you ({distance:g} miles)",
                f"Located within reasonable distance ({distance:g} miles)",
                f"Located somewhat far from you ({distance:g} miles)",
                f"Located quite far from your preferred area ({distance:g} miles)",
            ))),
        ]

    def subcategory(self, service):
        return _get(service, "type", "service_type", "serviceType")

    @staticmethod
    def service_type_match(preferred: Sequence[str], service_type: Optional[str]) -> int:
        if not preferred or not service_type:
            return NEUTRAL_SCORE
        return 100 if service_type in preferred else 0

    @staticmethod
    def price_match(max_price: Optional[float], price: Optional[float]) -> int:
        return budget_match(max_price, price)

    @staticmethod
    def rating_match(min_rating: Optional[float], rating: Optional[float]) -> int:
        if min_rating is None or rating is None:
            return NEUTRAL_SCORE
        wanted = min_rating / 5 * 100
        actual = rating / 5 * 100
        if actual >= wanted:
            return _score(90 + (actual - wanted) / 2)
        return _score(100 - (wanted - actual) * 2)


class MarketplaceScorer(BaseScorer):
    category = "marketplace"

    def dimensions(self, prefs, item):
        return [
            CompatibilityDimension(
                "Item Type", self.item_type_match(prefs, item), 0.3,
                "How well the item type matches your preferences",
            ),
            CompatibilityDimension(
                "Price", self.price_match(prefs, item),
                _opt_float(_get(prefs, "price_importance", "priceImportance")) or 0.2,
                "How well the price matches your budget",
            ),
            CompatibilityDimension(
                "Condition", self.condition_match(prefs, item),
                _opt_float(_get(prefs, "quality_importance", "qualityImportance")) or 0.2,
                "How well the item condition matches your preferences",
            ),
            CompatibilityDimension(
                "Distance", self.distance_match(prefs, item),
                _opt_float(_get(prefs, "location_importance", "locationImportance")) or 0.15,
                "How close the item is to your preferred location",
            ),
            CompatibilityDimension(
                "Brand", self.brand_match(prefs, item), 0.15,
                "How well the brand matches your preferred brands",
            ),
        ]

    @staticmethod
    def item_type_match(prefs, item) -> int:
        wanted = _get(prefs, "item_types", "itemTypes", default=[])
        item_type = _get(item, "item_type", "itemType")
        if not wanted or not item_type:
            return NEUTRAL_SCORE
        if item_type in wanted:
            return 100
        return text_similarity(" ".join(wanted), item_type)

    @staticmethod
    def price_match(prefs, item) -> int:
        """80-100 within budget (cheaper is better), 0-80 over it."""
        budget = _opt_float(_get(prefs, "max_budget", "maxBudget"))
        price = _opt_float(_get(item, "price"))
        if not budget or not price:
            return NEUTRAL_SCORE
        if price <= budget:
            return _score(80 + (1 - price / budget) * 20)
        return _score(80 - (price - budget) / budget * 100)

    @staticmethod
    def condition_match(prefs, item) -> int:
        wanted = _get(prefs, "min_condition", "minCondition")
        condition = _get(item, "condition")
        if not wanted or not condition:
            return NEUTRAL_SCORE
        wanted_rating = CONDITION_RATINGS.get(wanted, 3)
        rating = CONDITION_RATINGS.get(condition, 3)
        if rating >= wanted_rating:
            return min(100, 90 + (rating - wanted_rating) * 5)
        return max(0, 90 - (wanted_rating - rating) * 30)

    @staticmethod
    def distance_match(prefs, item) -> int:
        max_distance = _opt_float(_get(prefs, "max_distance", "maxDistance"))
        distance = _opt_float(_get(item, "distance"))
        if not max_distance or not distance:
            return NEUTRAL_SCORE
        return distance_match(distance, max_distance)

    @staticmethod
    def brand_match(prefs, item) -> int:
        brands = _get(prefs, "preferred_brands", "preferredBrands", default=[])
        brand = _get(item, "brand")
        if not brands or not brand:
            return NEUTRAL_SCORE
        if brand in brands:
            return 100
        return array_overlap(brands, [brand])


class RentalScorer(BaseScorer):
    category = "rentals"
    preference_label = "rental"

    def dimensions(self, prefs, rental):
        rental_type = _get(rental, "type", "rental_type", "rentalType")
        price = _opt_float(_get(rental, "price"))
        duration = _opt_float(_get(rental, "duration"))

        type_score = choice_match(
            _get(prefs, "rental_types", "rentalTypes", default=[]), rental_type, partial=0, miss=0
        )
        price_score = budget_match(
            _opt_float(_get(prefs, "max_price", "maxPrice")), price, bargain_ratio=0.8
        )
        location_score = self.location_match(_get(prefs, "location"), _get(rental, "location"))
        amenities = self.amenities_match(
            _get(prefs, "required_amenities", "requiredAmenities", default=[]),
            _get(rental, "amenities", default=[]),
        )
        duration_score = self.duration_match(
            _opt_float(_get(prefs, "min_duration", "minDuration")),
            _opt_float(_get(prefs, "max_duration", "maxDuration")),
            duration,
        )

        return [
            CompatibilityDimension(
                "Rental Type", type_score, 0.25,
                f"This {rental_type or 'rental'} "
                + ("matches your preferred rental type" if type_score >= 90
                   else "differs from your usual rental preferences"),
            ),
            CompatibilityDimension("Price", price_score, 0.3, _describe(price_score, (
                f"The price ({_money(price)}) is well within your budget",
                f"The price ({_money(price)}) is close to your budget",
                f"The price ({_money(price)}) is somewhat above your budget",
                f"The price ({_money(price)}) is significantly above your budget",
            ))),
            CompatibilityDimension("Location", location_score, 0.25, _describe(location_score, (
                "Located in your preferred area",
                "Located in an area similar to your preference",
                "Located somewhat far from your preferred area",
                "Located in an area different from your preference",
            ))),
            CompatibilityDimension("Amenities", amenities, 0.1, _describe(amenities, (
                "Has all your required amenities",
                "Has most of your required amenities",
                "Has some of your required amenities",
                "Missing many of your required amenities",
            ))),
            CompatibilityDimension("Duration", duration_score, 0.1, _describe(duration_score, (
                f"The {_num(duration)} month duration is perfect for your needs",
                f"The {_num(duration)} month duration is close to your preference",
                f"The {_num(duration)} month duration is somewhat different from your preference",
                f"The {_num(duration)} month duration is very different from your preference",
            ))),
        ]

    def subcategory(self, rental):
        return _get(rental, "type", "rental_type", "rentalType")

    @staticmethod
    def location_match(preferred: Any, actual: Any) -> int:
        # Free-text areas only; coordinates are handled by the job matcher
        if not isinstance(preferred, str) or not isinstance(actual, str):
            return NEUTRAL_SCORE
        if not preferred.strip() or not actual.strip():
            return NEUTRAL_SCORE
        return text_similarity(preferred, actual)

    @staticmethod
    def amenities_match(required: Sequence[str], offered: Sequence[str]) -> int:
        """Share of required amenities found in the listing, substring either way."""
        required = [_lower(a) for a in required or () if _lower(a)]
        offered = [_lower(a) for a in offered or () if _lower(a)]
        if not required or not offered:
            return NEUTRAL_SCORE
        found = [r for r in required if any(r in o or o in r for o in offered)]
        return _score(len(found) / len(required) * 100)

    @staticmethod
    def duration_match(low, high, months) -> int:
        if low is None or high is None or months is None:
            return NEUTRAL_SCORE
        return range_match(months, low, high)


class FavorScorer(BaseScorer):
    category = "favors"

    def missing_preferences(self, preferences, listing):
        return default_result(
            self.category, listing, preferences.user_id, reason="No specific favor preferences set"
        )

    def dimensions(self, prefs, favor):
        return [
            CompatibilityDimension(
                "Favor Type", self.favor_type_match(prefs, favor), 0.3,
                "How well the favor type matches your preferences",
            ),
            CompatibilityDimension(
                "Compensation", self.compensation_match(prefs, favor), 0.2,
                "How well the compensation matches your expectations",
            ),
            CompatibilityDimension(
                "Time Commitment", self.time_commitment_match(prefs, favor), 0.2,
                "How well the time commitment matches your availability",
            ),
            CompatibilityDimension(
                "Distance", self.distance_match(prefs, favor), 0.2,
                "How close the favor is to your location",
            ),
            CompatibilityDimension(
                "Reciprocity", self.reciprocity_match(prefs, favor), 0.1,
                "How well the reciprocity matches your preferences",
            ),
        ]

    @staticmethod
    def favor_type_match(prefs, favor) -> int:
        wanted = _get(prefs, "favor_types", "favorTypes", default=[])
        favor_type = _get(favor, "favor_type", "favorType")
        if not wanted or not favor_type:
            return NEUTRAL_SCORE
        if favor_type in wanted:
            return 100
        return text_similarity(" ".join(wanted), favor_type)

    @staticmethod
    def compensation_match(prefs, favor) -> int:
        """
        100 for the preferred compensation type, 60 for any other offer.

        A monetary offer below the user's minimum scores its share of that
        minimum, never under 50.
        """
        wanted = _get(prefs, "compensation_preference", "compensationPreference")
        if not wanted or not _get(favor, "compensation"):
            return NEUTRAL_SCORE
        offered = _get(favor, "compensation_type", "compensationType")
        if wanted != offered:
            return 60
        minimum = _opt_float(_get(prefs, "min_compensation", "minCompensation"))
        amount = _opt_float(_get(favor, "compensation_amount", "compensationAmount"))
        if offered == "monetary" and minimum and amount is not None and amount < minimum:
            return max(50, _score(amount / minimum * 100))
        return 100

    @staticmethod
    def time_commitment_match(prefs, favor) -> int:
        """80-100 within the limit (shorter is better), 0-80 over it."""
        limit = _opt_float(_get(prefs, "max_time_commitment", "maxTimeCommitment"))
        hours = _opt_float(_get(favor, "estimated_time", "estimatedTime"))
        if not limit or not hours:
            return NEUTRAL_SCORE
        if hours <= limit:
            return _score(80 + (1 - hours / limit) * 20)
        return _score(80 - (hours - limit) / limit * 100)

    @staticmethod
    def distance_match(prefs, favor) -> int:
        max_distance = _opt_float(_get(prefs, "max_distance", "maxDistance"))
        distance = _opt_float(_get(favor, "distance"))
        if not max_distance or not distance:
            return NEUTRAL_SCORE
        return distance_match(distance, max_distance)

    @staticmethod
    def reciprocity_match(prefs, favor) -> int:
        wanted = _get(prefs, "reciprocity_preference", "reciprocityPreference")
        offered = _get(favor, "reciprocity")
        if not wanted or not offered:
            return NEUTRAL_SCORE
        if wanted == offered:
            return 100
        return 90 if wanted == "either" else 30


class HolidayScorer(BaseScorer):
    category = "holiday"
    preference_label = "holiday"

    DEFAULT_DURATION_DAYS = {"min": 1, "max": 30}

    def dimensions(self, prefs, holiday):
        destination = _get(holiday, "destination")
        season = _get(holiday, "season")
        price = _opt_float(_get(holiday, "price"))
        days = _opt_float(_get(holiday, "duration"))

        destination_score = choice_match(
            _get(prefs, "preferred_destinations", "preferredDestinations", default=[]), destination
        )
        activities = _get(prefs, "preferred_activities", "preferredActivities", default=[])
        offered = _get(holiday, "activities", default=[])
        activity_score = array_overlap(activities, offered) if activities and offered else NEUTRAL_SCORE
        budget_score = budget_match(_opt_float(_get(prefs, "max_budget", "maxBudget")), price)
        duration_score = bounded_range_match(
            days, _get(prefs, "preferred_duration", "preferredDuration", default=self.DEFAULT_DURATION_DAYS)
        )
        season_score = choice_match(
            _get(prefs, "preferred_seasons", "preferredSeasons", default=[]), season, partial=30
        )

        return [
            CompatibilityDimension("Destination", destination_score, 0.3, _describe(destination_score, (
                f"{destination} is one of your preferred destinations",
                f"{destination} is similar to your preferred destinations",
                f"{destination} is different from your usual preferences",
                f"{destination} is different from your usual preferences",
            ))),
            CompatibilityDimension("Activities", activity_score, 0.25, _describe(activity_score, (
                "Activities match your preferences perfectly",
                "Most activities align with your preferences",
                "Some activities match your preferences",
                "Activities differ from your usual preferences",
            ))),
            CompatibilityDimension("Budget", budget_score, 0.25, _describe(budget_score, (
                f"The price ({_money(price)}) is well within your budget",
                f"The price ({_money(price)}) is close to your budget",
                f"The price ({_money(price)}) is somewhat above your budget",
                f"The price ({_money(price)}) is significantly above your budget",
            ))),
            CompatibilityDimension("Duration", duration_score, 0.1, _describe(duration_score, (
                f"The {_num(days)} day duration is perfect for your needs",
                f"The {_num(days)} day duration is close to your preference",
                f"The {_num(days)} day duration is somewhat different from your preference",
                f"The {_num(days)} day duration is very different from your preference",
            ))),
            CompatibilityDimension(
                "Season", season_score, 0.1,
                f"{season} is your preferred travel season" if season_score >= 90
                else f"{season} is different from your preferred travel seasons",
            ),
        ]


class ArtScorer(BaseScorer):
    category = "art"
    preference_label = "art"

    def dimensions(self, prefs, art):
        medium = _get(art, "medium")
        artist = _get(art, "artist")
        art_format = _get(art, "format")
        price = _opt_float(_get(art, "price"))

        medium_score = choice_match(_get(prefs, "preferred_mediums", "preferredMediums", default=[]), medium)
        styles = _get(prefs, "preferred_styles", "preferredStyles", default=[])
        listed_styles = _get(art, "style", default=[])
        if isinstance(listed_styles, str):
            listed_styles = [listed_styles]
        style_score = array_overlap(styles, listed_styles) if styles and listed_styles else NEUTRAL_SCORE
        price_score = budget_match(_opt_float(_get(prefs, "max_price", "maxPrice")), price)
        # Unknown artists are neutral rather than a mismatch
        artist_score = choice_match(
            _get(prefs, "favorite_artists", "favoriteArtists", default=[]), artist, partial=50, miss=50
        )
        preferred_format = _get(prefs, "preferred_format", "preferredFormat")
        format_score = choice_match([preferred_format] if preferred_format else [], art_format, partial=30)

        return [
            CompatibilityDimension("Medium", medium_score, 0.3, _describe(medium_score, (
                f"{medium} is one of your preferred mediums",
                f"{medium} is similar to your preferred mediums",
                f"{medium} is different from your usual preferences",
                f"{medium} is different from your usual preferences",
            ))),
            CompatibilityDimension("Style", style_score, 0.25, _describe(style_score, (
                "Style matches your preferences perfectly",
                "Style mostly aligns with your preferences",
                "Style somewhat matches your preferences",
                "Style differs from your usual preferences",
            ))),
            CompatibilityDimension("Price", price_score, 0.2, _describe(price_score, (
                f"The price ({_money(price)}) is well within your budget",
                f"The price ({_money(price)}) is close to your budget",
                f"The price ({_money(price)}) is somewhat above your budget",
                f"The price ({_money(price)}) is significantly above your budget",
            ))),
            CompatibilityDimension(
                "Artist", artist_score, 0.15,
                f"{artist} is one of your favorite artists" if artist_score >= 90
                else f"{artist} is not in your list of favorite artists",
            ),
            CompatibilityDimension(
                "Format", format_score, 0.1,
                f"{art_format} format matches your preference" if format_score >= 90
                else f"{art_format} format differs from your preferred format",
            ),
        ]


GIVEAWAY_CONDITIONS = ("poor", "fair", "good", "very good", "like new", "new")


class GiveawayScorer(BaseScorer):
    category = "giveaways"
    preference_label = "giveaway"

    DEFAULT_DISTANCE = 10.0
    DEFAULT_MAX_DISTANCE = 20.0

    def dimensions(self, prefs, item):
        item_type = _get(item, "item_type", "itemType")
        condition = _get(item, "condition")
        distance = _opt_float(_get(item, "distance")) or self.DEFAULT_DISTANCE

        type_score = choice_match(
            _get(prefs, "interested_item_types", "interestedItemTypes", default=[]), item_type
        )
        condition_score = self.condition_match(_get(prefs, "min_condition", "minCondition", default="any"), condition)
        distance_score = distance_match(
            distance, _opt_float(_get(prefs, "max_distance", "maxDistance")) or self.DEFAULT_MAX_DISTANCE
        )

        return [
            CompatibilityDimension("Item Type", type_score, 0.4, _describe(type_score, (
                f"{item_type} is one of your interested item types",
                f"{item_type} is similar to your interested item types",
                f"{item_type} is different from your usual interests",
                f"{item_type} is different from your usual interests",
            ))),
            CompatibilityDimension("Condition", condition_score, 0.3, _describe(condition_score, (
                f"The {condition} condition exceeds your requirements",
                f"The {condition} condition meets your requirements",
                f"The {condition} condition is slightly below your requirements",
                f"The {condition} condition is below your minimum requirements",
            ))),
            CompatibilityDimension("Distance", distance_score, 0.3, _describe(distance_score, (
                f"Located very close to you ({distance:g} miles)",
                f"Located within reasonable distance ({distance:g} miles)",
                f"Located somewhat far from you ({distance:g} miles)",
                f"Located quite far from your preferred area ({distance:g} miles)",
            ))),
        ]

    @staticmethod
    def condition_match(minimum: Optional[str], condition: Optional[str]) -> int:
        """80 at the minimum, +5 per grade above it, -20 per grade below."""
        wanted, actual = _lower(minimum), _lower(condition)
        if not wanted or not actual:
            return NEUTRAL_SCORE
        if wanted == "any":
            return 100
        if wanted not in GIVEAWAY_CONDITIONS or actual not in GIVEAWAY_CONDITIONS:
            return NEUTRAL_SCORE
        gap = GIVEAWAY_CONDITIONS.index(actual) - GIVEAWAY_CONDITIONS.index(wanted)
        if gap >= 0:
            return min(100, 80 + gap * 5)
        return max(0, 80 + gap * 20)


LEARNING_LEVELS = ("beginner", "intermediate", "advanced", "expert")


class LearningScorer(BaseScorer):
    category = "learning"
    preference_label = "learning"

    DEFAULT_DURATION_WEEKS = {"min": 1, "max": 52}

    def dimensions(self, prefs, course):
        subject = _get(course, "subject")
        course_format = _get(course, "format")
        level = _get(course, "level")
        price = _opt_float(_get(course, "price"))
        weeks = _opt_float(_get(course, "duration_weeks", "durationWeeks"))

        subject_score = choice_match(
            _get(prefs, "interested_subjects", "interestedSubjects", default=[]), subject
        )
        format_score = choice_match(
            _get(prefs, "preferred_formats", "preferredFormats", default=[]), course_format, partial=30
        )
        level_score = self.level_match(_get(prefs, "preferred_level", "preferredLevel", default="any"), level)
        price_score = budget_match(_opt_float(_get(prefs, "max_price", "maxPrice")), price)
        duration_score = bounded_range_match(
            weeks, _get(prefs, "preferred_duration", "preferredDuration", default=self.DEFAULT_DURATION_WEEKS)
        )

        return [
            CompatibilityDimension("Subject", subject_score, 0.35, _describe(subject_score, (
                f"{subject} is one of your interested subjects",
                f"{subject} is similar to your interested subjects",
                f"{subject} is different from your usual interests",
                f"{subject} is different from your usual interests",
            ))),
            CompatibilityDimension(
                "Format", format_score, 0.2,
                f"{course_format} format matches your preference" if format_score >= 90
                else f"{course_format} format differs from your preferred formats",
            ),
            CompatibilityDimension("Level", level_score, 0.2, _describe(level_score, (
                f"The {level} level is perfect for you",
                f"The {level} level is close to your preference",
                f"The {level} level is somewhat different from your preference",
                f"The {level} level is very different from your preference",
            ))),
            CompatibilityDimension("Price", price_score, 0.15, _describe(price_score, (
                f"The price ({_money(price)}) is well within your budget",
                f"The price ({_money(price)}) is close to your budget",
                f"The price ({_money(price)}) is somewhat above your budget",
                f"The price ({_money(price)}) is significantly above your budget",
            ))),
            CompatibilityDimension("Duration", duration_score, 0.1, _describe(duration_score, (
                f"The {_num(weeks)} week duration is perfect for your needs",
                f"The {_num(weeks)} week duration is close to your preference",
                f"The {_num(weeks)} week duration is somewhat different from your preference",
                f"The {_num(weeks)} week duration is very different from your preference",
            ))),
        ]

    @staticmethod
    def level_match(preferred: Optional[str], level: Optional[str]) -> int:
        wanted, actual = _lower(preferred), _lower(level)
        if not wanted or not actual:
            return NEUTRAL_SCORE
        if wanted in ("any", actual):
            return 100
        if wanted not in LEARNING_LEVELS or actual not in LEARNING_LEVELS:
            return NEUTRAL_SCORE
        gap = abs(LEARNING_LEVELS.index(wanted) - LEARNING_LEVELS.index(actual))
        return _score(100 - gap / (len(LEARNING_LEVELS) - 1) * 100)


# Least to most frequent
FREQUENCIES = ("one-time", "yearly", "quarterly", "monthly", "bi-weekly", "weekly", "daily")


class CommunityScorer(BaseScorer):
    category = "community"
    preference_label = "community"

    DEFAULT_DISTANCE = 10.0
    DEFAULT_MAX_DISTANCE = 20.0
    DEFAULT_GROUP_SIZE = {"min": 0, "max": 100}

    def dimensions(self, prefs, event):
        activity = _get(event, "activity_type", "activityType")
        age_group = _get(event, "age_group", "ageGroup")
        frequency = _get(event, "frequency")
        size = _opt_float(_get(event, "group_size", "groupSize"))
        distance = _opt_float(_get(event, "distance")) or self.DEFAULT_DISTANCE

        activity_score = choice_match(
            _get(prefs, "interested_activities", "interestedActivities", default=[]), activity
        )
        distance_score = distance_match(
            distance, _opt_float(_get(prefs, "max_distance", "maxDistance")) or self.DEFAULT_MAX_DISTANCE
        )
        size_score = bounded_range_match(
            size, _get(prefs, "preferred_group_size", "preferredGroupSize", default=self.DEFAULT_GROUP_SIZE)
        )
        age_score = choice_match(
            _get(prefs, "preferred_age_groups", "preferredAgeGroups", default=[]), age_group, partial=30
        )
        frequency_score = self.frequency_match(
            _get(prefs, "preferred_frequency", "preferredFrequency"), frequency
        )

        return [
            CompatibilityDimension("Activity Type", activity_score, 0.3, _describe(activity_score, (
                f"{activity} is one of your interested activities",
                f"{activity} is similar to your interested activities",
                f"{activity} is different from your usual interests",
                f"{activity} is different from your usual interests",
            ))),
            CompatibilityDimension("Distance", distance_score, 0.25, _describe(distance_score, (
                f"Located very close to you ({distance:g} miles)",
                f"Located within reasonable distance ({distance:g} miles)",
                f"Located somewhat far from you ({distance:g} miles)",
                f"Located quite far from your preferred area ({distance:g} miles)",
            ))),
            CompatibilityDimension("Group Size", size_score, 0.15, _describe(size_score, (
                f"The group size ({_num(size)} people) is perfect for you",
                f"The group size ({_num(size)} people) is close to your preference",
                f"The group size ({_num(size)} people) is somewhat different from your preference",
                f"The group size ({_num(size)} people) is very different from your preference",
            ))),
            CompatibilityDimension(
                "Age Group", age_score, 0.15,
                f"The {age_group} age group matches your preference" if age_score >= 90
                else f"The {age_group} age group differs from your preferred age groups",
            ),
            CompatibilityDimension("Frequency", frequency_score, 0.15, _describe(frequency_score, (
                f"The {frequency} frequency matches your preference",
                f"The {frequency} frequency is close to your preference",
                f"The {frequency} frequency is somewhat different from your preference",
                f"The {frequency} frequency is very different from your preference",
            ))),
        ]

    @staticmethod
    def frequency_match(preferred: Optional[str], frequency: Optional[str]) -> int:
        """100 for the same frequency, losing up to 70 points across the scale."""
        wanted, actual = _lower(preferred), _lower(frequency)
        if not wanted or not actual:
            return NEUTRAL_SCORE
        if wanted == actual:
            return 100
        if wanted not in FREQUENCIES or actual not in FREQUENCIES:
            return NEUTRAL_SCORE
        gap = abs(FREQUENCIES.index(wanted) - FREQUENCIES.index(actual))
        return _score(100 - gap / (len(FREQUENCIES) - 1) * 70)
