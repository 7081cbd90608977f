"""
Weight preferences for the six match factors.

Users tune factor importance with sliders; whatever they send is
renormalized here so the weights applied by the scorer always sum to 1.
"""

import math
from typing import Dict, Mapping, Optional

FACTORS = (
    "skill_match",
    "location_proximity",
    "reputation_score",
    "price_match",
    "availability_match",
    "urgency_compatibility",
)

DEFAULT_WEIGHTS: Dict[str, float] = {
    "skill_match": 0.30,
    "location_proximity": 0.20,
    "reputation_score": 0.15,
    "price_match": 0.15,
    "availability_match": 0.10,
    "urgency_compatibility": 0.10,
}

# Slider names used by the preferences UI
ALIASES = {
    "skills": "skill_match",
    "location": "location_proximity",
    "reputation": "reputation_score",
    "price": "price_match",
    "availability": "availability_match",
    "urgency": "urgency_compatibility",
}

PRIORITY_SHIFT = 0.10
SECONDARY_SHIFT = 0.05

WeightPreferences = Dict[str, float]


def resolve_factor(name: str) -> str:
    """Map a factor name or slider alias to its canonical factor name."""
    key = name.strip()
    key = ALIASES.get(key, key)
    if key not in FACTORS:
        raise ValueError(
            f"Unknown weight factor: {name!r} (expected one of {', '.join(FACTORS)})"
        )
    return key


def _rescale(raw: Mapping[str, float]) -> WeightPreferences:
    total = sum(raw.values())
    if total <= 0:
        return dict(DEFAULT_WEIGHTS)
    return {factor: raw.get(factor, 0.0) / total for factor in FACTORS}


def normalize_weights(weights: Optional[Mapping[str, float]]) -> WeightPreferences:
    """
    Renormalize user weights so they sum to 1.

    Args:
        weights: Factor (or alias) -> non-negative number. Any scale works,
            e.g. 0-10 slider values. Missing factors count as 0.

    Returns:
        Dict with every factor present, summing to 1. Empty or all-zero
        input yields the defaults.

    Raises:
        ValueError: On unknown factors, negative or non-finite values
    """
    if not weights:
        return dict(DEFAULT_WEIGHTS)

    raw: Dict[str, float] = {}
    for name, value in weights.items():
        factor = resolve_factor(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Weight for {name!r} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise ValueError(f"Weight for {name!r} must be finite, got {value}")
        if value < 0:
            raise ValueError(f"Weight for {name!r} must be non-negative, got {value}")
        raw[factor] = raw.get(factor, 0.0) + float(value)

    return _rescale(raw)


def apply_priorities(
    weights: Optional[Mapping[str, float]] = None,
    prioritize_location: bool = False,
    prioritize_rate: bool = False,
    prioritize_urgent: bool = False,
) -> WeightPreferences:
    """
    Shift weight toward the factors a specialist has prioritized.

    Each toggle moves weight between factors without changing the total;
    factors that would go negative are clamped to 0 and the result is
    renormalized.
    """
    adjusted = normalize_weights(weights)

    if prioritize_location:
        adjusted["location_proximity"] += PRIORITY_SHIFT
        adjusted["skill_match"] -= SECONDARY_SHIFT
        adjusted["price_match"] -= SECONDARY_SHIFT

    if prioritize_rate:
        adjusted["price_match"] += PRIORITY_SHIFT
        adjusted["location_proximity"] -= SECONDARY_SHIFT
        adjusted["reputation_score"] -= SECONDARY_SHIFT

    if prioritize_urgent:
        adjusted["urgency_compatibility"] += PRIORITY_SHIFT
        adjusted["availability_match"] += SECONDARY_SHIFT
        adjusted["reputation_score"] -= SECONDARY_SHIFT
        adjusted["location_proximity"] -= SECONDARY_SHIFT
        adjusted["skill_match"] -= SECONDARY_SHIFT

    return _rescale({factor: max(0.0, value) for factor, value in adjusted.items()})


def adjust_weight(
    weights: Optional[Mapping[str, float]], factor: str, value: float
) -> WeightPreferences:
    """
    Move one slider and rebalance the others.

    The chosen factor is pinned to value; the remaining factors share
    1 - value in proportion to their current weights (evenly if they are
    all zero).

    Raises:
        ValueError: If value is outside [0, 1] or the factor is unknown
    """
    target = resolve_factor(factor)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"Weight for {factor!r} must be a number, got {value!r}")
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Weight for {factor!r} must be within [0, 1], got {value}")

    current = normalize_weights(weights)
    others = [f for f in FACTORS if f != target]
    remainder = 1.0 - value
    others_total = sum(current[f] for f in others)

    result = {target: float(value)}
    for f in others:
        if others_total > 0:
            result[f] = remainder * current[f] / others_total
        else:
            result[f] = remainder / len(others)
    return {f: result[f] for f in FACTORS}


def weights_sum_to_one(weights: Mapping[str, float], tolerance: float = 1e-9) -> bool:
    return abs(sum(weights.values()) - 1.0) <= tolerance
