"""Tests for the score tracker."""

import pytest
from neuralreinforcement.network import Score
from neuralreinforcement.network.score import SCORE_MEAN_GAIN, SCORE_VARIANCE_GAIN


class TestScore:
    """Test cases for Score."""

    def test_initial_state(self):
        """Test that a new tracker is all zeros."""
        score = Score()
        assert (score.last, score.diff, score.mean, score.var) == (0.0, 0.0, 0.0, 0.0)
        assert score.sigma == 0.0

    def test_update_returns_diff_before_update(self):
        """Test that the advantage is measured against the previous mean."""
        score = Score()
        assert score.update(10.0) == 10.0
        assert score.mean == pytest.approx(SCORE_MEAN_GAIN * 10.0)
        assert score.update(10.0) == pytest.approx(5.0)
        assert score.last == 10.0

    def test_variance_update(self):
        """Test the slow variance filter."""
        score = Score()
        score.update(2.0)
        assert score.var == pytest.approx(SCORE_VARIANCE_GAIN * 4.0)

    def test_mean_converges_to_constant(self):
        """Test that a constant sample makes the diff vanish quickly."""
        score = Score()
        for _ in range(60):
            score.update(3.0)
        assert score.mean == pytest.approx(3.0, abs=1e-9)
        assert abs(score.diff) < 1e-9

    def test_negative_rewards(self):
        """Test that the tracker follows negative rewards."""
        score = Score()
        for _ in range(50):
            score.update(-250.0)
        assert score.mean == pytest.approx(-250.0, rel=1e-9)
