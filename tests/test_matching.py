"""
Tests for matching.py - job/specialist scoring.
"""

import pytest

from jobmate.matching import (
    calculate_availability_match,
    calculate_location_proximity,
    calculate_match_score,
    calculate_matches_for_specialist,
    calculate_price_match,
    calculate_reputation_score,
    calculate_skill_match,
    calculate_urgency_compatibility,
    generate_explanations,
    premium_boost,
    rank_specialists_for_job,
)
from jobmate.models import Availability, Job, MatchFactors, MatchPreferences, Specialist
from jobmate.weights import FACTORS, weights_sum_to_one


@pytest.fixture
def job(job_data):
    return Job.from_dict(job_data)


@pytest.fixture
def specialist(specialist_data):
    return Specialist.from_dict(specialist_data)


class TestSkillMatch:
    """Test skill overlap scoring."""

    def test_full_overlap(self):
        assert calculate_skill_match(["Plumbing", "Tiling"], ["tiling", "plumbing"]) == pytest.approx(1.0)

    def test_no_overlap(self):
        assert calculate_skill_match(["Plumbing"], ["Painting"]) == 0.0

    def test_partial_substring_credit(self):
        """'plumbing' inside 'emergency plumbing' earns only the partial share."""
        score = calculate_skill_match(["plumbing"], ["emergency plumbing"])
        assert score == pytest.approx(0.3)

    def test_half_exact(self):
        score = calculate_skill_match(["plumbing", "roofing"], ["plumbing"])
        assert score == pytest.approx(0.7 * 0.5 + 0.3 * 0.5)

    def test_empty_side_is_neutral(self):
        assert calculate_skill_match([], ["plumbing"]) == 0.5
        assert calculate_skill_match(["plumbing"], []) == 0.5


class TestLocationProximity:
    """Test distance falloff."""

    def test_same_place(self):
        assert calculate_location_proximity(0.0, 50) == 1.0

    def test_linear_falloff(self):
        assert calculate_location_proximity(25.0, 50) == pytest.approx(0.5)

    def test_beyond_max_is_zero(self):
        assert calculate_location_proximity(80.0, 50) == 0.0

    def test_unknown_distance_is_neutral(self):
        assert calculate_location_proximity(None, 50) == 0.5

    def test_default_max_distance(self):
        assert calculate_location_proximity(10.0) == pytest.approx(0.8)


class TestReputation:
    """Test combined reputation factor."""

    def test_both_sides_averaged(self, job, specialist):
        specialist_part = 0.7 * 4.8 / 5 + 0.3
        client_part = (4.6 * 0.3 + 4.8 * 0.25 + 4.5 * 0.2 + 4.7 * 0.15 + 4.9 * 0.1) / 5
        expected = (specialist_part + client_part) / 2
        assert calculate_reputation_score(job, specialist) == pytest.approx(expected)

    def test_unknown_is_neutral(self):
        assert calculate_reputation_score(Job(id="j", title="t"), Specialist(id="s")) == 0.5

    def test_only_specialist_known(self):
        s = Specialist(id="s", rating=5.0, completed_jobs=20)
        assert calculate_reputation_score(Job(id="j", title="t"), s) == pytest.approx(1.0)


class TestPriceMatch:
    """Test budget vs rate scoring."""

    def _job(self, low, high=None):
        return Job(id="j", title="t", budget_min=low, budget_max=high)

    def test_preferred_rate_within_budget(self):
        s = Specialist(id="s", hourly_rate=50)
        assert calculate_price_match(self._job(40, 60), s) == 1.0

    def test_ranges_overlap(self):
        s = Specialist.from_dict({"id": "s", "ratePreferences": {"min": 55, "max": 80, "preferred": 70}})
        assert calculate_price_match(self._job(40, 60), s) == 0.7

    def test_cheaper_than_budget(self):
        s = Specialist(id="s", hourly_rate=20)
        assert calculate_price_match(self._job(40, 60), s) == pytest.approx(0.4 + 0.3 * 20 / 40)

    def test_pricier_than_budget(self):
        s = Specialist(id="s", hourly_rate=90)
        assert calculate_price_match(self._job(40, 60), s) == pytest.approx(0.7 * (1 - 30 / 60))

    def test_far_over_budget_is_zero(self):
        s = Specialist(id="s", hourly_rate=500)
        assert calculate_price_match(self._job(40, 60), s) == 0.0

    def test_missing_budget_max_defaults(self):
        """Budget 40 with no max is treated as 40-60."""
        s = Specialist(id="s", hourly_rate=58)
        assert calculate_price_match(self._job(40), s) == 1.0

    def test_missing_data_is_neutral(self):
        assert calculate_price_match(self._job(None), Specialist(id="s", hourly_rate=50)) == 0.5
        assert calculate_price_match(self._job(40, 60), Specialist(id="s")) == 0.5


class TestAvailabilityMatch:
    """Test weekly schedule coverage."""

    def test_full_coverage(self, job, specialist):
        assert calculate_availability_match(job, specialist) == 1.0

    def test_partial_coverage(self, job):
        s = Specialist.from_dict({
            "id": "s",
            "availability": {"schedule": [{"day": 1, "startHour": 10, "endHour": 11}]},
        })
        assert calculate_availability_match(job, s) == pytest.approx(1 / 3)

    def test_overlapping_slots_not_double_counted(self, job):
        s = Specialist.from_dict({
            "id": "s",
            "availability": {"schedule": [
                {"day": 1, "startHour": 9, "endHour": 11},
                {"day": 1, "startHour": 10, "endHour": 12},
            ]},
        })
        assert calculate_availability_match(job, s) == pytest.approx(1.0)

    def test_other_day_does_not_count(self, job):
        s = Specialist.from_dict({
            "id": "s",
            "availability": {"schedule": [{"day": 2, "startHour": 9, "endHour": 12}]},
        })
        assert calculate_availability_match(job, s) == 0.0

    def test_no_specialist_availability(self, job):
        assert calculate_availability_match(job, Specialist(id="s")) == 0.5

    def test_empty_schedule_is_neutral(self, job):
        s = Specialist.from_dict({"id": "s", "availability": {}})
        assert calculate_availability_match(job, s) == 0.5
        assert calculate_availability_match(job, Specialist(id="s", availability=Availability())) == 0.5

    def test_flexible_job(self, specialist):
        assert calculate_availability_match(Job(id="j", title="t"), specialist) == 0.8


class TestUrgency:
    """Test urgency compatibility."""

    def test_levels(self):
        s = Specialist(id="s")
        assert calculate_urgency_compatibility(Job(id="j", title="t", urgency_level="low"), s) == 0.3
        assert calculate_urgency_compatibility(Job(id="j", title="t", urgency_level="normal"), s) == 0.6
        assert calculate_urgency_compatibility(Job(id="j", title="t", urgency_level="ASAP"), s) == 0.9

    def test_high_urgency_rewards_fast_response(self):
        job = Job(id="j", title="t", urgency_level="high")
        fast = calculate_urgency_compatibility(job, Specialist(id="s", response_time=15))
        slow = calculate_urgency_compatibility(job, Specialist(id="s", response_time="slow"))
        assert fast == pytest.approx(0.9 * 0.4 + 0.75 * 0.6)
        assert slow == pytest.approx(0.9 * 0.4)

    def test_no_urgency_is_neutral(self):
        assert calculate_urgency_compatibility(Job(id="j", title="t"), Specialist(id="s")) == 0.5


class TestPremiumBoost:
    """Test premium multipliers."""

    def test_levels(self):
        for level, boost in (("basic", 1.1), ("pro", 1.2), ("elite", 1.3)):
            s = Specialist.from_dict({"id": "s", "premium": {"isPremium": True, "premiumLevel": level}})
            assert premium_boost(s) == boost

    def test_explicit_boost_factor(self):
        s = Specialist.from_dict({
            "id": "s",
            "premium": {"isPremium": True, "premiumLevel": "pro", "boostFactor": 1.05},
        })
        assert premium_boost(s) == 1.05

    def test_boost_factor_without_level(self):
        s = Specialist.from_dict({"id": "s", "premium": {"isPremium": True, "boostFactor": 1.25}})
        assert premium_boost(s) == 1.25

    def test_unknown_level_without_factor(self):
        s = Specialist.from_dict({"id": "s", "premium": {"isPremium": True, "premiumLevel": "gold"}})
        assert premium_boost(s) == 1.0

    def test_not_premium(self):
        assert premium_boost(Specialist(id="s")) == 1.0
        s = Specialist.from_dict({"id": "s", "premium": {"isPremium": False, "premiumLevel": "elite"}})
        assert premium_boost(s) == 1.0


class TestCalculateMatchScore:
    """Test the combined match score."""

    def test_strong_match(self, job, specialist):
        result = calculate_match_score(job, specialist)

        assert 90 <= result.score <= 100
        assert 0.0 <= result.raw_score <= 1.0
        assert result.score == round(result.raw_score * 100)
        assert result.factors.skill_match == pytest.approx(1.0)
        assert result.factors.price_match == 1.0
        assert result.distance_km == pytest.approx(4.4, abs=0.2)
        assert weights_sum_to_one(result.weights)

    def test_deterministic(self, job, specialist):
        first = calculate_match_score(job, specialist)
        second = calculate_match_score(job, specialist)
        assert first == second

    def test_raw_score_is_weighted_sum(self, job, specialist):
        result = calculate_match_score(job, specialist)
        values = result.factors.as_dict()
        expected = sum(values[f] * result.weights[f] for f in FACTORS)
        assert result.raw_score == pytest.approx(expected)

    def test_custom_weights_are_normalized(self, job, specialist):
        result = calculate_match_score(job, specialist, weights={"skills": 8, "location": 2})
        assert result.weights["skill_match"] == pytest.approx(0.8)
        assert result.weights["location_proximity"] == pytest.approx(0.2)
        assert result.weights["price_match"] == 0.0

    def test_invalid_weights_raise(self, job, specialist):
        with pytest.raises(ValueError):
            calculate_match_score(job, specialist, weights={"skills": -1})

    def test_location_priority_shifts_weight(self, job, specialist):
        base = calculate_match_score(job, specialist)
        prioritized = calculate_match_score(
            job, specialist, MatchPreferences(prioritize_location=True)
        )
        assert prioritized.weights["location_proximity"] > base.weights["location_proximity"]

    def test_premium_boost_is_capped(self, job, specialist_data):
        specialist_data["premium"] = {"isPremium": True, "premiumLevel": "elite"}
        result = calculate_match_score(job, Specialist.from_dict(specialist_data))
        assert result.score == 100
        assert result.boost == 1.3

    def test_max_distance_preference(self, job, specialist):
        near = calculate_match_score(job, specialist, MatchPreferences(max_distance_km=5))
        assert near.factors.location_proximity < 0.2

    def test_minimal_inputs_are_neutral(self):
        result = calculate_match_score(Job(id="j", title="t"), Specialist(id="s"))
        assert result.raw_score == pytest.approx(0.5)
        assert result.score == 50
        assert result.distance_km is None

    def test_to_dict_is_json_friendly(self, job, specialist):
        data = calculate_match_score(job, specialist).to_dict()
        assert set(data["factors"]) == set(FACTORS)
        assert isinstance(data["explanations"], list)


class TestExplanations:
    """Test explanation text."""

    def test_strong_match_explanations(self, job, specialist):
        result = calculate_match_score(job, specialist)
        text = " ".join(result.explanations)
        assert "excellent match" in text
        assert "km" in text
        assert "urgent job" in text
        assert "excellent reputation" in text

    def test_missing_location(self):
        factors = MatchFactors(0.5, 0.5, 0.5, 0.5, 0.5, 0.5)
        lines = generate_explanations(factors, Job(id="j", title="t"), Specialist(id="s"))
        assert "Location information not available." in lines

    def test_premium_mentioned(self, job, specialist_data):
        specialist_data["premium"] = {"isPremium": True, "premiumLevel": "pro"}
        result = calculate_match_score(job, Specialist.from_dict(specialist_data))
        assert any("20% boost" in line for line in result.explanations)

    def test_partial_availability_needs_published_slots(self, job):
        factors = MatchFactors(0.5, 0.5, 0.5, 0.5, 0.2, 0.5)
        without = generate_explanations(factors, job, Specialist(id="s", availability=Availability()))
        assert "Your availability only partly covers the requested times." not in without

        offered = Specialist.from_dict({
            "id": "s", "availability": {"schedule": [{"day": 1, "startHour": 9, "endHour": 10}]},
        })
        assert "Your availability only partly covers the requested times." in generate_explanations(factors, job, offered)


class TestRanking:
    """Test sorting of many jobs or specialists."""

    def test_jobs_sorted_by_score(self, job, specialist):
        weak = Job(id="job-0", title="Paint fence", category="Painting", urgency_level="low")
        matches = calculate_matches_for_specialist(specialist, [weak, job])
        assert [m.job.id for m in matches] == ["job-1", "job-0"]

    def test_ties_broken_by_job_id(self, specialist):
        jobs = [Job(id="b", title="t"), Job(id="a", title="t")]
        matches = calculate_matches_for_specialist(specialist, jobs)
        assert [m.job.id for m in matches] == ["a", "b"]

    def test_rank_specialists(self, job, specialist):
        novice = Specialist(id="spec-2", skills=["Gardening"])
        ranked = rank_specialists_for_job(job, [novice, specialist])
        assert [s.id for s, _ in ranked] == ["spec-1", "spec-2"]
