"""Tests for services/metrics_calculator.py - decimation, phase estimation and orchestration."""

import pytest

from services.metrics_calculator import (
    PRESET_FAST,
    PRESET_STANDARD,
    InsufficientFramesError,
    MetricsCalculator,
    MetricsCalculatorConfig,
    MetricsCalculatorError,
)
from services.models import DetectedSwingPhase, Sport, SwingPhase, SwingSession
from services.phase_detector import build_detected_phases, create_detector
from services.repository import InMemorySessionRepository
from utils.biomechanics import create_sample_frame


def sample_frames(count):
    return [create_sample_frame(timestamp=i / 30.0) for i in range(count)]


def spans(phases):
    return [(p.start_frame_index, p.end_frame_index) for p in phases]


class TestConfig:
    """Tests for MetricsCalculatorConfig validation."""

    def test_defaults(self):
        config = MetricsCalculatorConfig()
        assert config.decimation_factor == 1
        assert config.streaming_min_frames == 10
        assert config.estimator_min_frames == 10
        assert config.estimator_fractions == (0.35, 0.45, 0.75, 0.80)

    def test_presets(self):
        assert PRESET_STANDARD.decimation_factor == 1
        assert PRESET_FAST.decimation_factor == 2

    @pytest.mark.parametrize("kwargs", [
        {"decimation_factor": 0},
        {"decimation_factor": 1.5},
        {"streaming_min_frames": 0},
        {"estimator_min_frames": 5},
        {"estimator_fractions": (0.3, 0.5, 0.7)},
        {"estimator_fractions": (0.5, 0.4, 0.7, 0.8)},
        {"estimator_fractions": (0.35, 0.45, 0.75, 1.0)},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            MetricsCalculatorConfig(**kwargs)

    def test_kwargs_build_config(self):
        calculator = MetricsCalculator(decimation_factor=3)
        assert calculator.config.decimation_factor == 3

    def test_repr(self):
        assert "decimation_factor=2" in repr(PRESET_FAST)


class TestDecimation:
    """Frame decimation and phase rescaling."""

    def test_factor_one_keeps_every_frame(self):
        frames = sample_frames(10)
        processed = MetricsCalculator().decimate_frames(frames)
        assert processed == frames
        assert processed is not frames

    def test_factor_two_keeps_even_frames(self):
        frames = sample_frames(10)
        processed = MetricsCalculator(decimation_factor=2).decimate_frames(frames)
        assert processed == frames[::2]
        assert len(processed) == 5

    def test_factor_three_starts_with_first(self):
        frames = sample_frames(10)
        processed = MetricsCalculator(decimation_factor=3).decimate_frames(frames)
        assert [f.timestamp for f in processed] == [frames[i].timestamp for i in (0, 3, 6, 9)]

    def test_rescale_phases(self, golf_swing):
        analysis = create_detector(Sport.GOLF).process_frames(golf_swing)
        phases = build_detected_phases(analysis, golf_swing)
        rescaled = MetricsCalculator(decimation_factor=2).rescale_phases(phases, 30)

        assert spans(rescaled) == [(0, 5), (6, 10), (11, 12), (13, 13), (14, 14), (14, 29)]
        assert [p.phase for p in rescaled] == [p.phase for p in phases]
        assert rescaled[4].start_time == phases[4].start_time

    def test_rescale_is_identity_without_decimation(self, golf_swing):
        analysis = create_detector(Sport.GOLF).process_frames(golf_swing)
        phases = build_detected_phases(analysis, golf_swing)
        assert MetricsCalculator().rescale_phases(phases, len(golf_swing)) == phases


class TestPhaseEstimation:
    """Fixed-fraction fallback phases."""

    def test_twenty_frames(self):
        phases = MetricsCalculator().estimate_phases(sample_frames(20))
        assert [p.phase for p in phases] == list(SwingPhase)
        assert spans(phases) == [(0, 0), (1, 6), (7, 8), (9, 14), (15, 15), (16, 19)]

    def test_ten_frames(self):
        phases = MetricsCalculator().estimate_phases(sample_frames(10))
        assert spans(phases) == [(0, 0), (1, 2), (3, 3), (4, 6), (7, 7), (8, 9)]

    def test_too_few_frames(self):
        assert MetricsCalculator().estimate_phases(sample_frames(9)) == []

    def test_starts_forced_strictly_increasing(self):
        calculator = MetricsCalculator(estimator_min_frames=6)
        phases = calculator.estimate_phases(sample_frames(6))
        assert spans(phases) == [(0, 0), (1, 1), (2, 2), (3, 3), (4, 4), (5, 5)]

    def test_late_fractions_on_short_swing(self):
        """Starts pushed past the last frame drop their phases instead of indexing out of range."""
        calculator = MetricsCalculator(
            estimator_min_frames=6, estimator_fractions=(0.9, 0.95, 0.97, 0.99)
        )
        phases = calculator.estimate_phases(sample_frames(6))
        assert [p.phase for p in phases] == [
            SwingPhase.SETUP, SwingPhase.BACKSWING, SwingPhase.TRANSITION,
        ]
        assert spans(phases) == [(0, 0), (1, 4), (5, 5)]

    def test_late_fractions_still_produce_metrics(self):
        calculator = MetricsCalculator(
            estimator_min_frames=6, estimator_fractions=(0.9, 0.95, 0.97, 0.99)
        )
        metrics = calculator.calculate_metrics(sample_frames(6), Sport.GOLF)
        assert metrics.consistency_metrics is None

    def test_times_follow_frames(self):
        frames = sample_frames(20)
        phases = MetricsCalculator().estimate_phases(frames)
        assert phases[2].start_time == frames[7].timestamp
        assert phases[-1].end_time == frames[-1].timestamp


class TestCalculateMetrics:
    """End-to-end metrics calculation."""

    def test_empty_frames_raise(self):
        with pytest.raises(InsufficientFramesError):
            MetricsCalculator().calculate_metrics([], Sport.GOLF)

    def test_insufficient_frames_is_calculator_error(self):
        assert issubclass(InsufficientFramesError, MetricsCalculatorError)

    def test_no_repository_no_consistency(self, golf_swing):
        metrics = MetricsCalculator().calculate_metrics(golf_swing, Sport.GOLF)
        assert metrics.consistency_metrics is None
        assert metrics.speed_metrics.peak_speed > 0

    def test_repository_without_baseline(self, golf_swing):
        calculator = MetricsCalculator(repository=InMemorySessionRepository())
        metrics = calculator.calculate_metrics(golf_swing, "golf")
        assert metrics.consistency_metrics is None

    def test_consistency_against_own_baseline(self, golf_swing):
        repository = InMemorySessionRepository()
        baseline_metrics = MetricsCalculator().calculate_metrics(golf_swing, Sport.GOLF)
        repository.save_as_ideal_baseline(
            SwingSession(Sport.GOLF, frames=golf_swing, metrics=baseline_metrics), Sport.GOLF
        )

        metrics = MetricsCalculator(repository=repository).calculate_metrics(golf_swing, Sport.GOLF)
        assert metrics.consistency_metrics is not None
        assert metrics.consistency_metrics.repeatability_score == pytest.approx(100.0)
        assert metrics.consistency_metrics.position_variance == pytest.approx(0.0)

    def test_detected_phases_drive_impact_speed(self, golf_swing):
        analysis = create_detector(Sport.GOLF).process_frames(golf_swing)
        phases = build_detected_phases(analysis, golf_swing)
        metrics = MetricsCalculator().calculate_metrics(golf_swing, Sport.GOLF, phases)

        # Impact at frame 28: the fastest step of the swing
        assert metrics.speed_metrics.impact_speed == pytest.approx(metrics.speed_metrics.peak_speed)
        assert metrics.speed_metrics.speed_efficiency == pytest.approx(100.0)

    def test_decimated_phases_stay_in_range(self, golf_swing):
        analysis = create_detector(Sport.GOLF).process_frames(golf_swing)
        phases = build_detected_phases(analysis, golf_swing)
        metrics = MetricsCalculator(decimation_factor=2).calculate_metrics(
            golf_swing, Sport.GOLF, phases
        )
        assert metrics.speed_metrics.peak_speed > 0
        assert 0.0 <= metrics.overall_score <= 100.0

    def test_supplied_phases_are_used(self):
        frames = sample_frames(12)
        phases = [DetectedSwingPhase(SwingPhase.IMPACT, 0.1, 0.1, 3, 3)]
        metrics = MetricsCalculator().calculate_metrics(frames, Sport.TENNIS, phases)
        assert metrics.form_metrics.hip_rotation_angle == pytest.approx(0.0)


class TestStreamingMetrics:
    """Partial metrics for live feedback."""

    def test_pending_below_minimum(self):
        assert MetricsCalculator().calculate_streaming_metrics(sample_frames(9), Sport.GOLF) is None

    def test_partial_metrics(self, golf_swing):
        metrics = MetricsCalculator().calculate_streaming_metrics(golf_swing[:20], Sport.GOLF)
        assert metrics is not None
        assert metrics.consistency_metrics is None
        assert metrics.speed_metrics.peak_speed > 0

    def test_custom_minimum(self):
        calculator = MetricsCalculator(streaming_min_frames=3)
        assert calculator.calculate_streaming_metrics(sample_frames(3), Sport.GOLF) is not None
