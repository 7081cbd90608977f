"""
Tests for schema.py - job and specialist validation.
"""

import pytest

from jobmate.schema import validate_job, validate_job_strict, validate_specialist


class TestValidateJob:
    """Test job validation."""

    def test_valid_job(self, job_data):
        assert validate_job(job_data) == []

    def test_minimal_job(self):
        assert validate_job({"id": "j1", "title": "Mow lawn"}) == []

    def test_missing_required_fields(self):
        errors = validate_job({"description": "no id or title"})
        assert "Missing required field: id" in errors
        assert "Missing required field: title" in errors

    def test_numeric_id_allowed(self):
        assert validate_job({"id": 12, "title": "t"}) == []

    def test_empty_title(self):
        errors = validate_job({"id": "j", "title": "   "})
        assert errors == ["Field 'title' must be a non-empty string"]

    def test_bad_coordinates(self):
        errors = validate_job({"id": "j", "title": "t", "location": {"lat": 95, "lng": 10}})
        assert any("lat" in e for e in errors)

    def test_half_a_location(self):
        errors = validate_job({"id": "j", "title": "t", "lat": 10})
        assert errors == ["Location needs both 'lat' and 'lng'"]

    def test_budget_order(self):
        errors = validate_job({"id": "j", "title": "t", "budgetMin": 100, "budgetMax": 50})
        assert "Field 'budget_min' must not exceed 'budget_max'" in errors

    def test_negative_budget(self):
        errors = validate_job({"id": "j", "title": "t", "budget_min": -5})
        assert "Field 'budget_min' must be a non-negative number" in errors

    def test_skills_must_be_strings(self):
        errors = validate_job({"id": "j", "title": "t", "requiredSkills": ["ok", 3]})
        assert "Field 'required_skills' must contain non-empty strings" in errors

    def test_optional_string_types(self):
        errors = validate_job({"id": "j", "title": "t", "category": 5})
        assert "Field 'category' must be a string if provided" in errors

    def test_not_an_object(self):
        assert validate_job(["not", "a", "dict"]) == ["Job must be a JSON object"]

    @pytest.mark.parametrize("slot,message", [
        ({"day": 9, "startHour": 9, "endHour": 12}, "'day' must be an integer within [0, 6]"),
        ({"day": "mon", "startHour": 9, "endHour": 12}, "'day' must be an integer within [0, 6]"),
        ({"startHour": 9, "endHour": 12}, "time slot needs 'day', 'start_hour' and 'end_hour'"),
        ({"day": 1, "startHour": 18, "endHour": 9}, "hours must satisfy 0 <= start < end <= 24"),
        ({"day": 1, "startHour": 20, "endHour": 25}, "hours must satisfy 0 <= start < end <= 24"),
        ("monday", "time slot must be an object"),
    ])
    def test_schedule_slots(self, slot, message):
        errors = validate_job({"id": "j", "title": "t", "schedule": [slot]})
        assert errors == [f"schedule[0]: {message}"]

    def test_schedule_must_be_list(self):
        errors = validate_job({"id": "j", "title": "t", "schedule": "weekdays"})
        assert errors == ["Field 'schedule' must be a list of time slots"]

    def test_customer_reputation(self):
        errors = validate_job({"id": "j", "title": "t", "customer": {
            "id": "c", "reputation": {"overallRating": 4, "reliability": "good", "totalRatings": "many"},
        }})
        assert errors == [
            "Field 'customer.reputation.reliability' must be a number within [0, 5]",
            "Field 'customer.reputation.total_ratings' must be a non-negative integer",
        ]

    def test_customer_must_be_object(self):
        errors = validate_job({"id": "j", "title": "t", "customer": "dana"})
        assert errors == ["Field 'customer' must be an object"]


class TestValidateJobStrict:
    """Test strict job validation."""

    def test_valid(self, job_data):
        is_valid, errors = validate_job_strict(job_data)
        assert is_valid
        assert errors == []

    def test_requires_urgency(self):
        is_valid, errors = validate_job_strict({"id": "j", "title": "t"})
        assert not is_valid
        assert "Missing required field: urgency_level" in errors

    def test_unknown_urgency_and_status(self):
        is_valid, errors = validate_job_strict(
            {"id": "j", "title": "t", "urgency_level": "whenever-ish", "status": "archived"}
        )
        assert not is_valid
        assert len(errors) == 2

    def test_includes_basic_errors(self):
        is_valid, errors = validate_job_strict({"title": "t", "urgencyLevel": "low"})
        assert not is_valid
        assert errors == ["Missing required field: id"]


class TestValidateSpecialist:
    """Test specialist validation."""

    def test_valid_specialist(self, specialist_data):
        assert validate_specialist(specialist_data) == []

    def test_missing_id(self):
        assert "Missing required field: id" in validate_specialist({"skills": []})

    @pytest.mark.parametrize("rating", [-1, 5.5, "great"])
    def test_rating_range(self, rating):
        errors = validate_specialist({"id": "s", "rating": rating})
        assert errors == ["Field 'rating' must be a number within [0, 5]"]

    def test_rate_preferences(self):
        errors = validate_specialist({"id": "s", "ratePreferences": {"min": 80, "max": 40}})
        assert errors == ["Rate preference 'min' must not exceed 'max'"]

    def test_negative_hourly_rate(self):
        errors = validate_specialist({"id": "s", "hourlyRate": -10})
        assert errors == ["Field 'hourly_rate' must be a non-negative number"]

    def test_availability_slots(self):
        errors = validate_specialist({"id": "s", "availability": {"schedule": [
            {"day": 1, "startHour": 8, "endHour": 17},
            {"day": 2, "startHour": 18, "endHour": 9},
        ]}})
        assert errors == ["availability.schedule[1]: hours must satisfy 0 <= start < end <= 24"]

    def test_availability_must_be_object(self):
        errors = validate_specialist({"id": "s", "availability": [1, 2]})
        assert errors == ["Field 'availability' must be an object"]

    def test_completed_jobs_whole_number(self):
        errors = validate_specialist({"id": "s", "completedJobs": 2.5})
        assert errors == ["Field 'completed_jobs' must be a whole number"]

    def test_boost_factor(self):
        errors = validate_specialist({"id": "s", "premium": {"isPremium": True, "boostFactor": "big"}})
        assert errors == ["Field 'premium.boost_factor' must be a positive number"]
