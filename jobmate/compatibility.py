"""
Compatibility engine: routes a listing to its category scorer.

Scores are 0-100. Results are cached per user, category and listing.
"""

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Union

from .cache import CompatibilityCache
from .logger import get_logger
from .models import CompatibilityDimension, CompatibilityResult, UserPreferences
from .scorers import (
    ArtScorer,
    BaseScorer,
    CommunityScorer,
    FavorScorer,
    GiveawayScorer,
    HolidayScorer,
    JobScorer,
    LearningScorer,
    MarketplaceScorer,
    RentalScorer,
    ServiceScorer,
    default_result,
)

SUGGESTION_SCORE = 50
SUGGESTION_MIN_WEIGHT = 0.2

CATEGORY_SUGGESTIONS = {
    "jobs": {
        "skill": "Consider adding more relevant skills to your profile that match this job listing.",
        "location": "This job is outside your preferred location range. Consider expanding your location preferences.",
        "salary": "The salary range for this job differs from your preferences. Adjust your expected salary range for better matches.",
    },
    "services": {
        "service type": "This service type differs from the ones you usually book. Add it to your service preferences if you're interested.",
        "price": "This service costs more than your budget. Consider raising your maximum price.",
        "rating": "This provider's rating is below your minimum. Lower your rating threshold to see more providers.",
    },
    "marketplace": {
        "price": "This item is outside your preferred price range. Consider adjusting your budget preferences.",
        "item type": "This item category doesn't match your preferred categories. Update your interests for better matches.",
        "condition": "This item's condition is below your minimum. Relax your condition preference for more options.",
    },
}

GENERAL_SUGGESTIONS = [
    "Complete your profile to improve match accuracy.",
    "Add more specific preferences in your settings.",
]


class CompatibilityEngine:
    def __init__(self, cache: Optional[CompatibilityCache] = None):
        self.cache = cache if cache is not None else CompatibilityCache()
        self.scorers: Dict[str, BaseScorer] = {
            scorer.category: scorer
            for scorer in (
                JobScorer(), ServiceScorer(), MarketplaceScorer(), RentalScorer(), FavorScorer(),
                HolidayScorer(), ArtScorer(), GiveawayScorer(), LearningScorer(), CommunityScorer(),
            )
        }

    def calculate_compatibility(
        self,
        listing_id: str,
        category: str,
        listing: Mapping[str, Any],
        user_preferences: Union[UserPreferences, Mapping[str, Any]],
        use_cache: bool = True,
    ) -> CompatibilityResult:
        """
        Score a listing against a user's preferences.

        Unsupported categories get a neutral result rather than an error.
        """
        if not isinstance(user_preferences, UserPreferences):
            user_preferences = UserPreferences.from_dict(user_preferences)
        user_id = user_preferences.user_id
        logger = get_logger()

        if use_cache and user_id and listing_id:
            cached = self.cache.get(user_id, listing_id, category)
            if cached is not None:
                logger.debug("Using cached compatibility score", category=category, listing_id=listing_id)
                return cached

        listing = {**listing, "id": listing_id}
        scorer = self.scorers.get(category)
        if scorer is None:
            logger.debug("No scorer for category", category=category)
            result = default_result(category, listing, user_id)
        else:
            result = scorer.calculate_score(user_preferences, listing)

        if use_cache and user_id and listing_id:
            self.cache.set(result)
        return result

    def calculate_detailed_compatibility(
        self,
        listing_id: str,
        category: str,
        listing: Mapping[str, Any],
        user_preferences: Union[UserPreferences, Mapping[str, Any]],
        use_cache: bool = True,
        include_improvement_suggestions: bool = True,
    ) -> CompatibilityResult:
        """Like calculate_compatibility, with category-specific advice for weak dimensions."""
        result = self.calculate_compatibility(
            listing_id, category, listing, user_preferences, use_cache=use_cache
        )
        if not include_improvement_suggestions:
            return result
        return replace(result, improvement_suggestions=category_suggestions(category, result))


def category_suggestions(category: str, result: CompatibilityResult) -> List[str]:
    weak = [
        d.name.lower()
        for d in result.dimensions
        if d.score < SUGGESTION_SCORE and d.weight >= SUGGESTION_MIN_WEIGHT
    ]
    hints = CATEGORY_SUGGESTIONS.get(category)
    if hints is None:
        return ["Update your preferences to get more personalized matches."]

    suggestions = [text for keyword, text in hints.items() if any(keyword in name for name in weak)]
    return suggestions or list(GENERAL_SUGGESTIONS)


def score_description(score: float) -> str:
    if score >= 90:
        return "Excellent Match"
    if score >= 80:
        return "Great Match"
    if score >= 70:
        return "Good Match"
    if score >= 60:
        return "Decent Match"
    if score >= 50:
        return "Moderate Match"
    if score >= 40:
        return "Fair Match"
    return "Low Match"


def top_dimensions(result: CompatibilityResult, count: int = 3) -> List[CompatibilityDimension]:
    return sorted(result.dimensions, key=lambda d: d.score, reverse=True)[:count]


def improvement_areas(result: CompatibilityResult, count: int = 3) -> List[CompatibilityDimension]:
    return sorted(result.dimensions, key=lambda d: d.score)[:count]
