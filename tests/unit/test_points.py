"""Point arithmetic and completion step error conversion."""

from __future__ import annotations

import pytest

from learnplay.points import (
    CompletionError,
    calculate_points,
    clamp_percentage,
    completion_step,
    round_half_up,
)
from learnplay.store import StoreError


class TestRoundHalfUp:
    def test_half_goes_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3

    def test_below_half_goes_down(self):
        assert round_half_up(12.49) == 12


class TestClampPercentage:
    def test_within_range_unchanged(self):
        assert clamp_percentage(42.0) == 42.0

    def test_clamps_both_ends(self):
        assert clamp_percentage(150) == 100.0
        assert clamp_percentage(-20) == 0.0


class TestCalculatePoints:
    def test_full_score_earns_full_reward(self):
        assert calculate_points(100, 150) == 150

    def test_half_score(self):
        assert calculate_points(50, 150) == 75

    def test_zero_score(self):
        assert calculate_points(0, 200) == 0

    def test_over_100_is_clamped(self):
        assert calculate_points(150, 100) == 100

    def test_negative_is_clamped(self):
        assert calculate_points(-10, 100) == 0

    def test_rounds_half_up(self):
        """25% of 50 is 12.5, which rounds to 13."""
        assert calculate_points(25, 50) == 13

    @pytest.mark.parametrize("score", [0, 33.3, 50, 99.9, 100, 250])
    def test_never_exceeds_reward(self, score):
        assert 0 <= calculate_points(score, 150) <= 150


class TestCompletionStep:
    def test_store_error_becomes_completion_error(self):
        with pytest.raises(CompletionError) as exc_info:
            with completion_step("user_activities", 75, CompletionError):
                raise StoreError("connection reset", table="user_activities", operation="insert")

        assert exc_info.value.step == "user_activities"
        assert exc_info.value.points_earned == 75
        assert isinstance(exc_info.value.__cause__, StoreError)

    def test_other_errors_pass_through(self):
        with pytest.raises(ValueError):
            with completion_step("user_progress", 10, CompletionError):
                raise ValueError("bad")

    def test_success_is_silent(self):
        with completion_step("user_stats", 10, CompletionError):
            pass
