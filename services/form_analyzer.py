"""
Swing form analysis.

Measures hip and shoulder rotation, spine angle, weight transfer and
arm extension at key frames of the swing. Key frames come from the
detected phases when available, otherwise from fixed fractions of the
frame sequence. Any measurement whose joints are untracked at the
relevant frame is reported as 0.0.
"""

import logging

import numpy as np

from services.metrics import FormMetrics
from services.models import SwingPhase
from utils.biomechanics import arm_extension, hip_center, line_rotation, spine_angle

logger = logging.getLogger(__name__)

# Hip center displacement that counts as a full (100%) weight transfer
FULL_TRANSFER_DISPLACEMENT = 0.3

ARM_EXTENSION_WEIGHTS = {"backswing": 0.2, "impact": 0.5, "follow_through": 0.3}


def _find_phase(phases, phase):
    return next((p for p in phases or [] if p.phase == phase), None)


class FormAnalyzer:
    """Computes FormMetrics from a swing's frames and phases."""

    def analyze(self, frames, phases=None) -> FormMetrics:
        """
        Analyze swing form.

        Args:
            frames: Ordered PoseFrame sequence for one swing.
            phases: Detected phases, or None/empty to use fallback key frames.

        Returns:
            FormMetrics (all zero if frames is empty).
        """
        if not frames:
            return FormMetrics.zero()

        setup = frames[0]
        impact = self.impact_frame(frames, phases)
        backswing = self.backswing_frame(frames, phases)
        follow_through = self.follow_through_frame(frames, phases)

        metrics = FormMetrics(
            hip_rotation_angle=self._or_zero(line_rotation(setup, impact, "left_hip", "right_hip")),
            shoulder_rotation_angle=self._or_zero(
                line_rotation(setup, impact, "left_shoulder", "right_shoulder")
            ),
            spine_angle_at_address=self._or_zero(spine_angle(setup)),
            spine_angle_at_impact=self._or_zero(spine_angle(impact)),
            weight_transfer_percentage=self.weight_transfer(setup, impact),
            arm_extension_score=self.arm_extension_score(backswing, impact, follow_through),
        )

        logger.debug(
            "Form: hip=%.1f shoulder=%.1f transfer=%.1f extension=%.1f",
            metrics.hip_rotation_angle,
            metrics.shoulder_rotation_angle,
            metrics.weight_transfer_percentage,
            metrics.arm_extension_score,
        )
        return metrics

    @staticmethod
    def _or_zero(value) -> float:
        return 0.0 if value is None else float(value)

    def weight_transfer(self, setup, impact) -> float:
        """
        Weight transfer percentage from setup to impact.

        Lateral (x) and forward (z) displacement of the hip center, scaled
        so that FULL_TRANSFER_DISPLACEMENT maps to 100 and clamped to 0-100.
        """
        start = hip_center(setup)
        end = hip_center(impact)
        if start is None or end is None:
            return 0.0

        lateral = abs(end[0] - start[0])
        forward = abs(end[2] - start[2])
        shift = float(np.hypot(lateral, forward))

        return min(shift / FULL_TRANSFER_DISPLACEMENT * 100.0, 100.0)

    def arm_extension_score(self, backswing, impact, follow_through) -> float:
        """Weighted extension of the better arm at backswing, impact and follow-through."""
        return (
            self._best_arm_extension(backswing) * ARM_EXTENSION_WEIGHTS["backswing"]
            + self._best_arm_extension(impact) * ARM_EXTENSION_WEIGHTS["impact"]
            + self._best_arm_extension(follow_through) * ARM_EXTENSION_WEIGHTS["follow_through"]
        )

    def _best_arm_extension(self, frame) -> float:
        left = arm_extension(frame, "left")
        right = arm_extension(frame, "right")
        return max(self._or_zero(left), self._or_zero(right))

    # Key frame lookup

    def impact_frame(self, frames, phases):
        impact = _find_phase(phases, SwingPhase.IMPACT)
        if impact is not None:
            return frames[min(impact.start_frame_index, len(frames) - 1)]
        return frames[min(int(len(frames) * 0.7), len(frames) - 1)]

    def backswing_frame(self, frames, phases):
        backswing = _find_phase(phases, SwingPhase.BACKSWING)
        if backswing is not None:
            return frames[min(backswing.end_frame_index, len(frames) - 1)]
        return frames[min(int(len(frames) * 0.3), len(frames) - 1)]

    def follow_through_frame(self, frames, phases):
        follow_through = _find_phase(phases, SwingPhase.FOLLOW_THROUGH)
        if follow_through is not None:
            return frames[min(follow_through.end_frame_index, len(frames) - 1)]
        return frames[-1]
