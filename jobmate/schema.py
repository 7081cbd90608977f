from typing import Any, Dict, List, Tuple

from .normalize import normalize_urgency

JOB_REQUIRED_STR_FIELDS = ["id", "title"]
JOB_OPTIONAL_STR_FIELDS = ["description", "status", "urgency_level", "category"]
SPECIALIST_REQUIRED_STR_FIELDS = ["id"]

JOB_STATUSES = ("open", "in_progress", "completed", "cancelled")


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in data:
            return data[k]
    return None


def _check_coordinates(data: Dict[str, Any], errors: List[str]) -> None:
    loc = data.get("location")
    source = loc if isinstance(loc, dict) else data
    lat = _pick(source, "lat", "latitude")
    lng = _pick(source, "lng", "lon", "longitude")
    if lat is None and lng is None:
        return
    if lat is None or lng is None:
        errors.append("Location needs both 'lat' and 'lng'")
        return
    if not _is_number(lat) or not -90 <= lat <= 90:
        errors.append("Field 'lat' must be a number within [-90, 90]")
    if not _is_number(lng) or not -180 <= lng <= 180:
        errors.append("Field 'lng' must be a number within [-180, 180]")


def _check_non_negative(data: Dict[str, Any], errors: List[str], name: str, *keys: str):
    value = _pick(data, name, *keys)
    if value is None:
        return None
    if not _is_number(value) or value < 0:
        errors.append(f"Field '{name}' must be a non-negative number")
        return None
    return value


def _check_string_list(data: Dict[str, Any], errors: List[str], name: str, *keys: str) -> None:
    value = _pick(data, name, *keys)
    if value is None:
        return
    if not isinstance(value, list):
        errors.append(f"Field '{name}' must be a list")
        return
    for item in value:
        if isinstance(item, dict):
            item = item.get("name")
        if not _is_non_empty_str(item):
            errors.append(f"Field '{name}' must contain non-empty strings")
            return


def _check_required(data: Dict[str, Any], fields: List[str], errors: List[str]) -> None:
    for f in fields:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]) and not (f == "id" and _is_number(data[f])):
            errors.append(f"Field '{f}' must be a non-empty string")


def _check_schedule(schedule: Any, errors: List[str], name: str) -> None:
    if schedule is None:
        return
    if not isinstance(schedule, list):
        errors.append(f"Field '{name}' must be a list of time slots")
        return
    for i, slot in enumerate(schedule):
        if not isinstance(slot, dict):
            errors.append(f"{name}[{i}]: time slot must be an object")
            continue
        day = slot.get("day")
        start = _pick(slot, "start_hour", "startHour")
        end = _pick(slot, "end_hour", "endHour")
        if day is None or start is None or end is None:
            errors.append(f"{name}[{i}]: time slot needs 'day', 'start_hour' and 'end_hour'")
            continue
        if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
            errors.append(f"{name}[{i}]: 'day' must be an integer within [0, 6]")
        if not _is_number(start) or not _is_number(end) or not 0 <= start < end <= 24:
            errors.append(f"{name}[{i}]: hours must satisfy 0 <= start < end <= 24")


def _check_customer(customer: Any, errors: List[str]) -> None:
    if customer is None:
        return
    if not isinstance(customer, dict):
        errors.append("Field 'customer' must be an object")
        return
    reputation = customer.get("reputation")
    if reputation is None:
        return
    if not isinstance(reputation, dict):
        errors.append("Field 'customer.reputation' must be an object")
        return
    for key in ("overall_rating", "overallRating", "rating", "reliability",
                "communication", "fair_payment", "fairPayment", "respectfulness"):
        value = reputation.get(key)
        if value is not None and (not _is_number(value) or not 0 <= value <= 5):
            errors.append(f"Field 'customer.reputation.{key}' must be a number within [0, 5]")
    total = _pick(reputation, "total_ratings", "totalRatings")
    if total is not None and (not isinstance(total, int) or isinstance(total, bool) or total < 0):
        errors.append("Field 'customer.reputation.total_ratings' must be a non-negative integer")


def validate_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, dict):
        return ["Job must be a JSON object"]
    errors: List[str] = []

    _check_required(data, JOB_REQUIRED_STR_FIELDS, errors)

    for f in JOB_OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    _check_coordinates(data, errors)
    budget_min = _check_non_negative(data, errors, "budget_min", "budgetMin")
    budget_max = _check_non_negative(data, errors, "budget_max", "budgetMax")
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        errors.append("Field 'budget_min' must not exceed 'budget_max'")

    _check_string_list(data, errors, "required_skills", "requiredSkills")

    _check_schedule(data.get("schedule"), errors, "schedule")
    _check_customer(_pick(data, "customer", "client"), errors)

    return errors


def validate_job_strict(data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Stricter check used before a job is published: urgency and status
    must be recognised values.

    Returns:
        (is_valid, errors)
    """
    errors = validate_job(data)
    if errors and errors[0] == "Job must be a JSON object":
        return False, errors

    urgency = _pick(data, "urgency_level", "urgencyLevel")
    if urgency is None:
        errors.append("Missing required field: urgency_level")
    elif normalize_urgency(urgency) is None:
        errors.append(f"Unknown urgency level: {urgency!r}")

    status = data.get("status", "open")
    if not isinstance(status, str) or status.lower() not in JOB_STATUSES:
        errors.append(f"Unknown job status: {status!r}")

    return (not errors, errors)


def validate_specialist(data: Dict[str, Any]) -> List[str]:
    """Same contract as validate_job, for specialist profiles."""
    if not isinstance(data, dict):
        return ["Specialist must be a JSON object"]
    errors: List[str] = []

    _check_required(data, SPECIALIST_REQUIRED_STR_FIELDS, errors)
    _check_coordinates(data, errors)
    _check_string_list(data, errors, "skills")
    _check_non_negative(data, errors, "hourly_rate", "hourlyRate")
    completed = _check_non_negative(data, errors, "completed_jobs", "completedJobs")
    if completed is not None and not float(completed).is_integer():
        errors.append("Field 'completed_jobs' must be a whole number")

    availability = data.get("availability")
    if availability is not None:
        if not isinstance(availability, dict):
            errors.append("Field 'availability' must be an object")
        else:
            _check_schedule(availability.get("schedule"), errors, "availability.schedule")

    premium = data.get("premium")
    if premium is not None:
        if not isinstance(premium, dict):
            errors.append("Field 'premium' must be an object")
        else:
            boost = _pick(premium, "boost_factor", "boostFactor")
            if boost is not None and (not _is_number(boost) or boost <= 0):
                errors.append("Field 'premium.boost_factor' must be a positive number")

    rating = data.get("rating")
    if rating is not None and (not _is_number(rating) or not 0 <= rating <= 5):
        errors.append("Field 'rating' must be a number within [0, 5]")

    prefs = _pick(data, "rate_preferences", "ratePreferences")
    if prefs is not None:
        if not isinstance(prefs, dict):
            errors.append("Field 'rate_preferences' must be an object")
        else:
            low = _check_non_negative(prefs, errors, "min")
            high = _check_non_negative(prefs, errors, "max")
            _check_non_negative(prefs, errors, "preferred")
            if low is not None and high is not None and low > high:
                errors.append("Rate preference 'min' must not exceed 'max'")

    return errors
