"""
Swing phase detection state machine.

Feeds pose frames one at a time through a per-sport strategy and records
transitions Setup -> Backswing -> Transition -> Downswing -> Impact ->
FollowThrough. The detector never moves backward or skips a phase, and
never raises for bad frames: a frame that does not satisfy the current
phase's exit rule leaves the state unchanged.
"""

import logging
from collections import deque
from typing import Callable, List, Optional

from services.detectors.batting import BattingStrategy
from services.detectors.golf import GOLF_CLUBS, GolfStrategy
from services.detectors.racquet import STROKE_TYPES, RacquetStrategy
from services.models import (
    DetectedSwingPhase,
    PhaseTransition,
    PoseFrame,
    Sport,
    SwingAnalysis,
    SwingPhase,
)

logger = logging.getLogger(__name__)

HISTORY_LENGTH = 30  # ~1 second at 30fps


class DetectorConfig:
    """
    Configuration for swing phase detection.

    Attributes:
        left_handed: Mirror lateral motion checks (batting side for
            baseball/softball).
        minimum_confidence: Frames with lower overall pose confidence never
            trigger a transition.
        golf_club: Club in use for golf ('driver', 'iron', 'wedge', 'putter').
        stroke_type: Fixed stroke type for tennis/pickleball, or None to
            classify it from the setup pose.
    """

    def __init__(
        self,
        left_handed=False,
        minimum_confidence=0.5,
        golf_club="driver",
        stroke_type=None,
    ):
        """
        Initialize detector configuration.

        Args:
            left_handed: Left-handed player (default: False).
            minimum_confidence: Frame confidence gate, 0.0-1.0 (default: 0.5).
            golf_club: Golf club type (default: 'driver').
            stroke_type: Racquet stroke override (default: None).

        Raises:
            ValueError: If any parameter is out of valid range.
        """
        if not isinstance(left_handed, bool):
            raise ValueError("left_handed must be a boolean")
        if not 0.0 <= minimum_confidence <= 1.0:
            raise ValueError("minimum_confidence must be between 0.0 and 1.0")
        if golf_club not in GOLF_CLUBS:
            raise ValueError(f"golf_club must be one of: {', '.join(GOLF_CLUBS)}")
        if stroke_type is not None and stroke_type not in STROKE_TYPES:
            raise ValueError(f"stroke_type must be one of: {', '.join(STROKE_TYPES)}")

        self.left_handed = left_handed
        self.minimum_confidence = minimum_confidence
        self.golf_club = golf_club
        self.stroke_type = stroke_type

    def __repr__(self):
        """String representation of configuration."""
        return (
            f"DetectorConfig("
            f"left_handed={self.left_handed}, "
            f"minimum_confidence={self.minimum_confidence}, "
            f"golf_club={self.golf_club}, "
            f"stroke_type={self.stroke_type})"
        )


# Preset configurations
PRESET_STANDARD = DetectorConfig()

PRESET_LEFT_HANDED = DetectorConfig(left_handed=True)

PRESET_LENIENT = DetectorConfig(minimum_confidence=0.3)

STRATEGIES = {
    sport: strategy
    for strategy in (GolfStrategy, RacquetStrategy, BattingStrategy)
    for sport in strategy.sports
}


class PhaseDetector:
    """
    Drives one swing through the phase state machine.

    One instance owns its history and analysis state; frames must be fed
    in non-decreasing timestamp order from a single caller. Call reset()
    between swings.
    """

    def __init__(
        self,
        sport,
        config: Optional[DetectorConfig] = None,
        on_transition: Optional[Callable[[PhaseTransition, SwingAnalysis], None]] = None,
        **kwargs,
    ):
        """
        Initialize phase detector.

        Args:
            sport: Sport (or its name) to detect phases for.
            config: DetectorConfig instance. If None, creates from kwargs
                or uses PRESET_STANDARD.
            on_transition: Optional callback invoked with the new transition
                and a snapshot of the analysis after every recorded
                transition.
            **kwargs: Config parameters used when config is None.
        """
        if config is None:
            config = DetectorConfig(**kwargs) if kwargs else PRESET_STANDARD

        self.sport = Sport.parse(sport)
        self.config = config
        self.on_transition = on_transition
        self._minimum_confidence = config.minimum_confidence
        self.strategy = STRATEGIES[self.sport](self.sport, config)

        self._history = deque(maxlen=HISTORY_LENGTH)
        self.analysis = SwingAnalysis()

        logger.info(
            "Phase Detector: sport=%s, left_handed=%s, minimum_confidence=%s",
            self.sport.value,
            config.left_handed,
            self._minimum_confidence,
        )

    @property
    def minimum_confidence(self) -> float:
        return self._minimum_confidence

    @minimum_confidence.setter
    def minimum_confidence(self, value: float):
        if not 0.0 <= value <= 1.0:
            raise ValueError("minimum_confidence must be between 0.0 and 1.0")
        self._minimum_confidence = value

    @property
    def history(self) -> List[PoseFrame]:
        return list(self._history)

    def detect_phase(self, pose: PoseFrame, pose_history=None) -> SwingAnalysis:
        """
        Process the newest pose frame.

        Args:
            pose: Newest PoseFrame.
            pose_history: Optional frames preceding pose. When given they
                replace the detector's own trailing history.

        Returns:
            The detector's SwingAnalysis, advanced by at most one phase.
        """
        if pose_history is not None:
            self._history.clear()
            self._history.extend(pose_history)
        self._history.append(pose)

        self.analysis.confidence = pose.overall_confidence

        if pose.overall_confidence < self._minimum_confidence:
            logger.debug(
                "Skipping low-confidence frame at t=%.3f (%.2f < %.2f)",
                pose.timestamp,
                pose.overall_confidence,
                self._minimum_confidence,
            )
            return self.analysis

        current = self.analysis.current_phase
        next_phase = current.next_phase
        if next_phase is None:
            return self.analysis

        history = list(self._history)
        self.strategy.observe(pose, history, self.analysis)

        if self.strategy.should_advance(current, pose, history, self.analysis):
            self._transition_to(next_phase, pose)

        return self.analysis

    def process_frames(self, frames) -> SwingAnalysis:
        """Feed a whole recorded swing through detect_phase."""
        for frame in frames:
            self.detect_phase(frame)
        return self.analysis

    def reset(self):
        """Clear history and return to Setup for a new swing."""
        self._history.clear()
        self.analysis = SwingAnalysis()
        self.strategy.reset()

    def _transition_to(self, phase: SwingPhase, pose: PoseFrame):
        if phase == self.analysis.current_phase:
            return

        transition = PhaseTransition(
            from_phase=self.analysis.current_phase,
            to_phase=phase,
            timestamp=pose.timestamp,
            confidence=pose.overall_confidence,
        )
        self.analysis.transitions.append(transition)
        self.analysis.current_phase = phase
        self.analysis.phase_start_time = pose.timestamp

        logger.debug(
            "%s: %s -> %s at t=%.3f",
            self.sport.value,
            transition.from_phase.value,
            phase.value,
            pose.timestamp,
        )

        if self.on_transition is not None:
            self.on_transition(transition, self.analysis.snapshot())


def create_detector(sport, config: Optional[DetectorConfig] = None, **kwargs) -> PhaseDetector:
    """
    Create a phase detector for a sport.

    Baseball and softball use left_handed as the batting side.

    Args:
        sport: Sport or sport name.
        config: Optional DetectorConfig.
        **kwargs: DetectorConfig parameters (and on_transition).

    Returns:
        Configured PhaseDetector.
    """
    on_transition = kwargs.pop("on_transition", None)
    return PhaseDetector(sport, config=config, on_transition=on_transition, **kwargs)


def build_detected_phases(analysis: SwingAnalysis, frames) -> List[DetectedSwingPhase]:
    """
    Convert recorded transitions into contiguous phase spans.

    Setup starts at the first frame; every reached phase starts at the
    first frame at or after its transition timestamp and ends where the
    next phase begins. The final phase runs to the last frame, so the
    spans cover every frame exactly once.

    Args:
        analysis: SwingAnalysis produced over frames.
        frames: The frame sequence the detector processed.

    Returns:
        List of DetectedSwingPhase in canonical order. Empty if frames is
        empty.
    """
    frames = list(frames)
    if not frames:
        return []

    last_index = len(frames) - 1
    starts = [(SwingPhase.SETUP, 0)]

    for transition in analysis.transitions:
        index = next(
            (i for i, f in enumerate(frames) if f.timestamp >= transition.timestamp),
            None,
        )
        if index is None:
            break
        index = max(index, starts[-1][1] + 1)
        if index > last_index:
            break
        starts.append((transition.to_phase, index))

    phases = []
    for i, (phase, start) in enumerate(starts):
        end = starts[i + 1][1] - 1 if i + 1 < len(starts) else last_index
        phases.append(
            DetectedSwingPhase(
                phase=phase,
                start_time=frames[start].timestamp,
                end_time=frames[end].timestamp,
                start_frame_index=start,
                end_frame_index=end,
            )
        )
    return phases
