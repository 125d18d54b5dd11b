"""
Swing speed analysis.

Builds a hand speed curve (the faster wrist per frame pair, in mph) and
derives peak, impact and power-phase speed, peak acceleration, time to
peak and a kinetic chain sequencing diagnostic.
"""

import logging
from typing import List, Optional

from services.metrics import KineticChainMetrics, SpeedMetrics
from services.models import SwingPhase
from utils.biomechanics import line_angle, segment_angular_velocity
from utils.geometry import joint_speed

logger = logging.getLogger(__name__)

MPS_TO_MPH = 2.23694

# Segment orientation functions for the kinetic chain, in firing order
CHAIN_SEGMENTS = {
    "hips": lambda f: line_angle(f, "left_hip", "right_hip"),
    "shoulders": lambda f: line_angle(f, "left_shoulder", "right_shoulder"),
    "hands": lambda f: line_angle(f, "left_wrist", "right_wrist"),
}


class SpeedAnalyzer:
    """Computes SpeedMetrics from a swing's frames and phases."""

    def analyze(self, frames, phases=None) -> SpeedMetrics:
        """
        Analyze swing speed.

        Args:
            frames: Ordered PoseFrame sequence for one swing.
            phases: Detected phases, or None/empty for fallback windows.

        Returns:
            SpeedMetrics; all zero when fewer than 3 frames are supplied.
        """
        if len(frames) < 3:
            return SpeedMetrics.zero()

        phases = phases or []
        speeds = self.hand_speeds(frames)
        accelerations = self.accelerations(speeds, frames)

        peak_speed = max(speeds)
        peak_index = speeds.index(peak_speed)

        metrics = SpeedMetrics(
            peak_speed=peak_speed,
            peak_acceleration=max(accelerations) if accelerations else 0.0,
            average_speed=self.power_phase_speed(speeds, phases),
            time_to_peak_speed=frames[peak_index + 1].timestamp - frames[0].timestamp,
            impact_speed=self.impact_speed(speeds, phases),
            kinetic_chain=self.kinetic_chain(frames, phases),
        )

        logger.debug(
            "Speed: peak=%.1f mph impact=%.1f mph time_to_peak=%.3fs",
            metrics.peak_speed,
            metrics.impact_speed,
            metrics.time_to_peak_speed,
        )
        return metrics

    def hand_speeds(self, frames) -> List[float]:
        """
        Hand speed per consecutive frame pair, in mph.

        Sample i covers frames i and i+1. Pairs without positive elapsed
        time, or without a wrist tracked in both frames, contribute 0.
        """
        speeds = []
        for previous, current in zip(frames, frames[1:]):
            left = joint_speed(current, previous, "left_wrist") or 0.0
            right = joint_speed(current, previous, "right_wrist") or 0.0
            speeds.append(max(left, right) * MPS_TO_MPH)
        return speeds

    def accelerations(self, speeds, frames) -> List[float]:
        """Finite-difference acceleration of the speed curve, in mph/s."""
        accelerations = []
        for i in range(1, len(speeds)):
            dt = frames[i + 1].timestamp - frames[i].timestamp
            if dt <= 0:
                accelerations.append(0.0)
                continue
            accelerations.append((speeds[i] - speeds[i - 1]) / dt)
        return accelerations

    def power_phase_speed(self, speeds, phases) -> float:
        """
        Mean hand speed over the Downswing and Impact phases.

        Falls back to the last 30% of speed samples (at least one) when
        neither phase was detected.
        """
        power_phases = [p for p in phases if p.phase in (SwingPhase.DOWNSWING, SwingPhase.IMPACT)]

        if not power_phases:
            count = max(1, int(len(speeds) * 0.3))
            window = speeds[-count:]
            return sum(window) / len(window)

        samples = []
        for phase in power_phases:
            # Speed sample i ends at frame i+1
            start = max(0, phase.start_frame_index - 1)
            end = min(len(speeds) - 1, phase.end_frame_index - 1)
            samples.extend(speeds[start:end + 1])

        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def impact_speed(self, speeds, phases) -> float:
        impact = next((p for p in phases if p.phase == SwingPhase.IMPACT), None)
        if impact is not None:
            index = max(0, min(impact.start_frame_index - 1, len(speeds) - 1))
        else:
            index = min(int(len(speeds) * 0.7), len(speeds) - 1)
        return speeds[index]

    def kinetic_chain(self, frames, phases) -> Optional[KineticChainMetrics]:
        """
        Time the hip, shoulder and hand rotation peaks in the power window.

        The window spans the Transition and Downswing phases. Returns None
        when neither phase was detected or a segment never rotates
        measurably in the window.
        """
        window_phases = [
            p for p in phases if p.phase in (SwingPhase.TRANSITION, SwingPhase.DOWNSWING)
        ]
        if not window_phases:
            return None

        start = min(p.start_frame_index for p in window_phases)
        end = min(max(p.end_frame_index for p in window_phases), len(frames) - 1)
        window = frames[start:end + 1]
        if len(window) < 2:
            return None

        peak_times = {}
        for name, angle_fn in CHAIN_SEGMENTS.items():
            peak_time = self._peak_angular_velocity_time(window, angle_fn)
            if peak_time is None:
                logger.debug("Kinetic chain: no measurable %s rotation", name)
                return None
            peak_times[name] = peak_time

        hip_to_shoulder = peak_times["shoulders"] - peak_times["hips"]
        shoulder_to_hand = peak_times["hands"] - peak_times["shoulders"]

        return KineticChainMetrics(
            hip_to_shoulder_delay=hip_to_shoulder,
            shoulder_to_hand_delay=shoulder_to_hand,
            sequence_score=self.sequence_score(hip_to_shoulder, shoulder_to_hand),
        )

    @staticmethod
    def _peak_angular_velocity_time(window, angle_fn) -> Optional[float]:
        best_velocity = 0.0
        peak_time = None
        for previous, current in zip(window, window[1:]):
            velocity = segment_angular_velocity(current, previous, angle_fn)
            if velocity is not None and velocity > best_velocity:
                best_velocity = velocity
                peak_time = current.timestamp
        return peak_time

    @staticmethod
    def sequence_score(hip_to_shoulder: float, shoulder_to_hand: float) -> float:
        """
        Score kinetic chain sequencing out of 100.

        Each delay should fall within 0.05-0.15s. A reversed pair costs 30
        points, a delay over 0.15s costs 20 and a delay under 0.05s costs 10.
        """
        score = 100.0
        for delay in (hip_to_shoulder, shoulder_to_hand):
            if delay < 0:
                score -= 30
            elif delay > 0.15:
                score -= 20
            elif delay < 0.05:
                score -= 10
        return max(0.0, score)
