from typing import Iterable, List, Optional


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def normalize_skill(skill: str) -> str:
    return normalize_text(skill)


def normalize_skills(skills: Iterable[str]) -> List[str]:
    """Normalize and dedupe skills while preserving order."""
    seen = set()
    result = []
    for skill in skills:
        if not isinstance(skill, str):
            continue
        s = normalize_skill(skill)
        if s and s not in seen:
            seen.add(s)
            result.append(s)
    return result


URGENCY_LEVELS = ("low", "medium", "high")

HIGH_SYNS = {"high", "urgent", "asap", "emergency", "immediate"}
MEDIUM_SYNS = {"medium", "normal", "standard", "moderate"}
LOW_SYNS = {"low", "flexible", "whenever", "no rush"}


def normalize_urgency(value: Optional[str]) -> Optional[str]:
    """Map an urgency label to low/medium/high; None if unknown or empty."""
    if not isinstance(value, str):
        return None
    v = normalize_text(value)
    if v in HIGH_SYNS:
        return "high"
    if v in MEDIUM_SYNS:
        return "medium"
    if v in LOW_SYNS:
        return "low"
    return None


RESPONSE_TIME_LABELS = {
    "fast": 15.0,
    "quick": 15.0,
    "normal": 60.0,
    "slow": 240.0,
}


def response_time_minutes(value) -> Optional[float]:
    """Response time in minutes from a number or a fast/normal/slow label."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        return RESPONSE_TIME_LABELS.get(normalize_text(value))
    return None
