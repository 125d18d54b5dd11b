"""
Swing consistency analysis.

Compares a swing against the stored ideal baseline for its sport. When no
baseline exists, or the lookup fails, there is no consistency result at
all (None), which is different from a zero score.
"""

import logging
from typing import Optional

import numpy as np

from services.metrics import ConsistencyMetrics
from services.models import Sport
from services.repository import RepositoryError

logger = logging.getLogger(__name__)

KEY_JOINTS = (
    "left_shoulder",
    "right_shoulder",
    "left_hip",
    "right_hip",
    "left_wrist",
    "right_wrist",
    "left_elbow",
    "right_elbow",
)

MAX_SAMPLE_POINTS = 10

# Variance reported when two frames share no tracked key joint
MAX_POSITION_VARIANCE = 1.0


class ConsistencyAnalyzer:
    """
    Scores a swing's similarity to the sport's ideal baseline.

    Args:
        repository: SessionRepository used to look up baselines.
    """

    def __init__(self, repository):
        self.repository = repository

    def analyze(self, current_frames, current_metrics, sport) -> Optional[ConsistencyMetrics]:
        """
        Compare a swing to the ideal baseline.

        Args:
            current_frames: Ordered PoseFrame sequence of the swing.
            current_metrics: SwingMetrics of the swing (form and speed).
            sport: Sport (or its name) whose baseline to compare against.

        Returns:
            ConsistencyMetrics, or None when no usable baseline is stored or
            the lookup failed.
        """
        sport = Sport.parse(sport)

        try:
            baseline = self.repository.get_ideal_baseline(sport)
        except RepositoryError as e:
            logger.warning("Baseline lookup failed for %s: %s", sport.value, e)
            return None

        if baseline is None or baseline.metrics is None:
            logger.info("No ideal baseline for %s; skipping consistency", sport.value)
            return None

        baseline_metrics = baseline.metrics
        speed_variance = self.speed_variance(
            current_metrics.speed_metrics, baseline_metrics.speed_metrics
        )
        position_variance = self.position_variance(current_frames, baseline.frames)
        repeatability = self.repeatability_score(
            speed_variance, position_variance, current_metrics, baseline_metrics
        )

        return ConsistencyMetrics(
            speed_variance=speed_variance,
            position_variance=position_variance,
            repeatability_score=repeatability,
            swing_count=2,
        )

    @staticmethod
    def speed_variance(current, baseline) -> float:
        """Weighted absolute difference of peak, impact and average speed (0.4/0.4/0.2)."""
        return (
            abs(current.peak_speed - baseline.peak_speed) * 0.4
            + abs(current.impact_speed - baseline.impact_speed) * 0.4
            + abs(current.average_speed - baseline.average_speed) * 0.2
        )

    def position_variance(self, current_frames, baseline_frames) -> float:
        """
        Mean key-joint distance between the two swings at matching progress.

        Up to MAX_SAMPLE_POINTS points are sampled at the same fractional
        position through each sequence, so swings of different lengths
        compare phase to phase.
        """
        if not current_frames or not baseline_frames:
            return MAX_POSITION_VARIANCE

        samples = min(len(current_frames), len(baseline_frames), MAX_SAMPLE_POINTS)
        total = 0.0

        for i in range(samples):
            fraction = i / samples
            current = current_frames[int(fraction * (len(current_frames) - 1))]
            baseline = baseline_frames[int(fraction * (len(baseline_frames) - 1))]
            total += self._joint_position_variance(current, baseline)

        return total / samples

    @staticmethod
    def _joint_position_variance(current, baseline) -> float:
        distances = []
        for joint in KEY_JOINTS:
            a = current.position(joint)
            b = baseline.position(joint)
            if a is None or b is None:
                continue
            distances.append(float(np.linalg.norm(a - b)))

        if not distances:
            return MAX_POSITION_VARIANCE
        return float(np.mean(distances))

    @staticmethod
    def form_variance(current, baseline) -> float:
        """Mean absolute difference across five form measurements."""
        differences = [
            abs(current.hip_rotation_angle - baseline.hip_rotation_angle),
            abs(current.shoulder_rotation_angle - baseline.shoulder_rotation_angle),
            abs(current.spine_angle_at_impact - baseline.spine_angle_at_impact),
            abs(current.weight_transfer_percentage - baseline.weight_transfer_percentage),
            abs(current.arm_extension_score - baseline.arm_extension_score),
        ]
        return sum(differences) / len(differences)

    def repeatability_score(
        self, speed_variance, position_variance, current_metrics, baseline_metrics
    ) -> float:
        """
        Start from 100 and subtract consistency penalties.

        Speed variance over 5 mph costs 3 points per mph (max 30), position
        variance over 0.1 costs 150 points per unit (max 30), form variance
        costs 0.2 points per unit, and time-to-peak differences over 0.05s
        cost 200 points per second (max 20). Clamped to 0-100.
        """
        score = 100.0

        if speed_variance >= 10:
            score -= 30
        elif speed_variance > 5:
            score -= (speed_variance - 5) * 3

        if position_variance >= 0.3:
            score -= 30
        elif position_variance > 0.1:
            score -= (position_variance - 0.1) * 150

        score -= self.form_variance(current_metrics.form_metrics, baseline_metrics.form_metrics) * 0.2

        timing_variance = abs(
            current_metrics.speed_metrics.time_to_peak_speed
            - baseline_metrics.speed_metrics.time_to_peak_speed
        )
        if timing_variance >= 0.15:
            score -= 20
        elif timing_variance > 0.05:
            score -= (timing_variance - 0.05) * 200

        return max(0.0, min(100.0, score))
