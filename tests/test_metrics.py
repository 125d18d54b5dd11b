"""Tests for services/metrics.py - metric records and composite scoring."""

import pytest

from services.metrics import (
    ConsistencyMetrics,
    FormMetrics,
    KineticChainMetrics,
    SpeedMetrics,
    SwingMetrics,
    normalize_score,
)


class TestNormalizeScore:
    """Tests for normalize_score."""

    def test_inside_range(self):
        assert normalize_score(60, (45, 90), 20) == 20.0

    def test_range_bounds_inclusive(self):
        assert normalize_score(45, (45, 90), 20) == 20.0
        assert normalize_score(90, (45, 90), 20) == 20.0

    def test_below_range(self):
        # 30 is a third below 45
        assert normalize_score(30, (45, 90), 30) == pytest.approx(20.0)

    def test_above_range(self):
        assert normalize_score(135, (45, 90), 20) == pytest.approx(10.0)

    def test_penalty_capped(self):
        assert normalize_score(500, (45, 90), 20) == 0.0
        assert normalize_score(-10, (45, 90), 20) == 0.0

    def test_zero_low_bound(self):
        assert normalize_score(-1, (0, 10), 10) == 0.0

    def test_inverse(self):
        assert normalize_score(0, (0, 10), 10, inverse=True) == 10.0
        assert normalize_score(5, (0, 10), 10, inverse=True) == pytest.approx(5.0)
        assert normalize_score(12, (0, 10), 10, inverse=True) == 0.0


class TestFormMetrics:
    """Tests for FormMetrics derived values."""

    def test_x_factor(self):
        form = FormMetrics(40.0, 95.0, 30.0, 35.0, 70.0, 90.0)
        assert form.x_factor == 55.0

    def test_spine_deviation(self):
        form = FormMetrics(40.0, 95.0, 30.0, 22.0, 70.0, 90.0)
        assert form.spine_angle_deviation == 8.0

    def test_perfect_composite(self):
        form = FormMetrics(60.0, 100.0, 30.0, 30.0, 70.0, 90.0)
        assert form.composite_score == pytest.approx(100.0)

    def test_zero_composite(self):
        assert FormMetrics.zero().composite_score == pytest.approx(10.0)

    def test_round_trip(self):
        form = FormMetrics(40.0, 95.0, 30.0, 35.0, 70.0, 90.0)
        assert FormMetrics.from_dict(form.to_dict()) == form


class TestSpeedMetrics:
    """Tests for SpeedMetrics derived values."""

    def test_speed_efficiency(self):
        assert SpeedMetrics(100.0, 1000.0, 80.0, 0.3, 85.0).speed_efficiency == pytest.approx(85.0)

    def test_efficiency_without_peak(self):
        assert SpeedMetrics.zero().speed_efficiency == 0.0

    def test_perfect_composite(self):
        assert SpeedMetrics(100.0, 1000.0, 80.0, 0.3, 95.0).composite_score == pytest.approx(100.0)

    def test_zero_composite(self):
        assert SpeedMetrics.zero().composite_score == 0.0

    def test_kinetic_chain_serialized(self):
        chain = KineticChainMetrics(0.1, -0.05, 70.0)
        speed = SpeedMetrics(100.0, 1000.0, 80.0, 0.3, 95.0, kinetic_chain=chain)
        data = speed.to_dict()
        assert data["kinetic_chain"]["is_proper_sequence"] is False
        assert SpeedMetrics.from_dict(data) == speed


class TestConsistencyMetrics:
    """Tests for ConsistencyMetrics composite scoring."""

    def test_perfect(self):
        assert ConsistencyMetrics(0.0, 0.0, 100.0).composite_score == pytest.approx(100.0)

    def test_worst(self):
        assert ConsistencyMetrics(10.0, 0.5, 0.0).composite_score == 0.0

    def test_repeatability_clamped(self):
        assert ConsistencyMetrics(10.0, 0.5, 150.0).composite_score == pytest.approx(40.0)

    def test_default_swing_count(self):
        assert ConsistencyMetrics(1.0, 0.01, 90.0).swing_count == 2


class TestSwingMetrics:
    """Tests for the overall score and serialization."""

    def test_overall_renormalized_without_consistency(self):
        form = FormMetrics(60.0, 100.0, 30.0, 30.0, 70.0, 90.0)
        metrics = SwingMetrics(form, SpeedMetrics.zero())
        # (100 * 0.4 + 0 * 0.3) / 0.7
        assert metrics.overall_score == pytest.approx(400.0 / 7.0)

    def test_overall_with_consistency(self):
        form = FormMetrics(60.0, 100.0, 30.0, 30.0, 70.0, 90.0)
        metrics = SwingMetrics(form, SpeedMetrics.zero(), ConsistencyMetrics(0.0, 0.0, 100.0))
        assert metrics.overall_score == pytest.approx(70.0)

    def test_round_trip(self):
        metrics = SwingMetrics(
            FormMetrics(40.0, 95.0, 30.0, 35.0, 70.0, 90.0),
            SpeedMetrics(100.0, 1000.0, 80.0, 0.3, 95.0),
            ConsistencyMetrics(1.0, 0.01, 90.0),
        )
        restored = SwingMetrics.from_dict(metrics.to_dict())
        assert restored == metrics
        assert restored.created_at == metrics.created_at

    def test_to_dict_includes_overall(self):
        metrics = SwingMetrics(FormMetrics.zero(), SpeedMetrics.zero())
        data = metrics.to_dict()
        assert data["consistency_metrics"] is None
        assert data["overall_score"] == pytest.approx(metrics.overall_score)
