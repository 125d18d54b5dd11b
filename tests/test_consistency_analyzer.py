"""Tests for services/consistency_analyzer.py - comparison against the ideal baseline."""

from unittest.mock import MagicMock

import pytest

from services.consistency_analyzer import MAX_POSITION_VARIANCE, ConsistencyAnalyzer
from services.metrics import FormMetrics, SpeedMetrics, SwingMetrics
from services.models import PoseFrame, Sport, SwingSession
from services.repository import InMemorySessionRepository, RepositoryError
from utils.biomechanics import create_sample_frame


def make_metrics(peak=100.0, impact=95.0, average=60.0, time_to_peak=0.3, hip=60.0):
    return SwingMetrics(
        form_metrics=FormMetrics(hip, 100.0, 30.0, 32.0, 70.0, 90.0),
        speed_metrics=SpeedMetrics(peak, 1000.0, average, time_to_peak, impact),
    )


def shifted(frames, offset):
    """Copy of frames with every joint moved offset meters along x."""
    result = []
    for frame in frames:
        joints = {name: pos + [offset, 0.0, 0.0] for name, pos in frame.joints.items()}
        result.append(PoseFrame(frame.timestamp, joints, frame.confidence))
    return result


@pytest.fixture
def swing_frames():
    return [create_sample_frame(timestamp=i / 30.0) for i in range(20)]


@pytest.fixture
def repository(swing_frames):
    repo = InMemorySessionRepository()
    baseline = SwingSession(Sport.GOLF, frames=swing_frames, metrics=make_metrics())
    repo.save_as_ideal_baseline(baseline, Sport.GOLF)
    return repo


class TestBaselineLookup:
    """Missing or failing baselines give no consistency result."""

    def test_no_baseline(self, swing_frames):
        analyzer = ConsistencyAnalyzer(InMemorySessionRepository())
        assert analyzer.analyze(swing_frames, make_metrics(), Sport.GOLF) is None

    def test_baseline_for_other_sport(self, repository, swing_frames):
        analyzer = ConsistencyAnalyzer(repository)
        assert analyzer.analyze(swing_frames, make_metrics(), Sport.TENNIS) is None

    def test_baseline_without_metrics(self, swing_frames):
        repo = InMemorySessionRepository()
        repo.save_as_ideal_baseline(SwingSession(Sport.GOLF, frames=swing_frames), Sport.GOLF)
        assert ConsistencyAnalyzer(repo).analyze(swing_frames, make_metrics(), Sport.GOLF) is None

    def test_repository_error(self, swing_frames):
        repo = MagicMock()
        repo.get_ideal_baseline.side_effect = RepositoryError("connection refused")
        assert ConsistencyAnalyzer(repo).analyze(swing_frames, make_metrics(), Sport.GOLF) is None

    def test_sport_name_without_baseline(self, swing_frames):
        analyzer = ConsistencyAnalyzer(InMemorySessionRepository())
        assert analyzer.analyze(swing_frames, make_metrics(), "golf") is None

    def test_sport_name_finds_baseline(self, repository, swing_frames):
        result = ConsistencyAnalyzer(repository).analyze(swing_frames, make_metrics(), "Golf")
        assert result.repeatability_score == 100.0

    def test_unknown_sport_name(self, repository, swing_frames):
        with pytest.raises(ValueError, match="Must be one of"):
            ConsistencyAnalyzer(repository).analyze(swing_frames, make_metrics(), "cricket")


class TestIdenticalSwing:
    """A swing identical to its baseline is perfectly consistent."""

    def test_zero_variance(self, repository, swing_frames):
        result = ConsistencyAnalyzer(repository).analyze(swing_frames, make_metrics(), Sport.GOLF)
        assert result.speed_variance == 0.0
        assert result.position_variance == 0.0
        assert result.repeatability_score == 100.0
        assert result.swing_count == 2

    def test_perfect_composite(self, repository, swing_frames):
        result = ConsistencyAnalyzer(repository).analyze(swing_frames, make_metrics(), Sport.GOLF)
        assert result.composite_score == pytest.approx(100.0)


class TestVariance:
    """Speed and position variance against the baseline."""

    def test_speed_variance_weights(self):
        current = SpeedMetrics(110.0, 1000.0, 70.0, 0.3, 85.0)
        baseline = SpeedMetrics(100.0, 1000.0, 60.0, 0.3, 95.0)
        assert ConsistencyAnalyzer.speed_variance(current, baseline) == pytest.approx(10.0)

    def test_position_variance_offset(self, repository, swing_frames):
        analyzer = ConsistencyAnalyzer(repository)
        assert analyzer.position_variance(shifted(swing_frames, 0.05), swing_frames) == pytest.approx(0.05)

    def test_different_lengths_sample_matching_progress(self, swing_frames):
        analyzer = ConsistencyAnalyzer(InMemorySessionRepository())
        assert analyzer.position_variance(swing_frames[:12], swing_frames) == pytest.approx(0.0)

    def test_empty_frames(self, swing_frames):
        analyzer = ConsistencyAnalyzer(InMemorySessionRepository())
        assert analyzer.position_variance([], swing_frames) == MAX_POSITION_VARIANCE

    def test_no_shared_tracked_joints(self, swing_frames):
        untracked = [
            PoseFrame(f.timestamp, f.joints, {name: 0.0 for name in f.joints})
            for f in swing_frames
        ]
        analyzer = ConsistencyAnalyzer(InMemorySessionRepository())
        assert analyzer.position_variance(untracked, swing_frames) == MAX_POSITION_VARIANCE

    def test_form_variance(self):
        current = FormMetrics(50.0, 90.0, 30.0, 40.0, 60.0, 80.0)
        baseline = FormMetrics(60.0, 100.0, 30.0, 30.0, 70.0, 90.0)
        assert ConsistencyAnalyzer.form_variance(current, baseline) == pytest.approx(10.0)


class TestRepeatability:
    """Penalty schedule of the repeatability score."""

    def test_speed_penalty(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        metrics = make_metrics()
        assert analyzer.repeatability_score(7.5, 0.0, metrics, metrics) == pytest.approx(92.5)

    def test_speed_penalty_capped(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        metrics = make_metrics()
        assert analyzer.repeatability_score(50.0, 0.0, metrics, metrics) == pytest.approx(70.0)

    def test_position_penalty(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        metrics = make_metrics()
        assert analyzer.repeatability_score(0.0, 0.2, metrics, metrics) == pytest.approx(85.0)

    def test_timing_penalty(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        assert analyzer.repeatability_score(
            0.0, 0.0, make_metrics(time_to_peak=0.4), make_metrics(time_to_peak=0.3)
        ) == pytest.approx(90.0)

    def test_form_penalty(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        # Hip differs by 50 degrees: form variance 10, penalty 2
        assert analyzer.repeatability_score(
            0.0, 0.0, make_metrics(hip=10.0), make_metrics(hip=60.0)
        ) == pytest.approx(98.0)

    def test_clamped_to_zero(self, repository):
        analyzer = ConsistencyAnalyzer(repository)
        score = analyzer.repeatability_score(
            50.0, 1.0, make_metrics(hip=0.0, time_to_peak=1.0), make_metrics(hip=1000.0)
        )
        assert score == 0.0

    def test_shifted_swing_end_to_end(self, repository, swing_frames):
        analyzer = ConsistencyAnalyzer(repository)
        result = analyzer.analyze(shifted(swing_frames, 0.2), make_metrics(), Sport.GOLF)
        assert result.position_variance == pytest.approx(0.2)
        assert result.repeatability_score == pytest.approx(85.0)
