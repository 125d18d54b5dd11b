"""
Swing metrics orchestration.

Decimates the input frames, supplies phase boundaries when none are
given, runs the form, speed and consistency analyzers and merges their
results into SwingMetrics. The streaming path reuses the same analyzers
to produce partial (form + speed) metrics for live feedback.
"""

import logging
from typing import List, Optional

from services.consistency_analyzer import ConsistencyAnalyzer
from services.form_analyzer import FormAnalyzer
from services.metrics import SwingMetrics
from services.models import DetectedSwingPhase, Sport, SwingPhase
from services.speed_analyzer import SpeedAnalyzer

logger = logging.getLogger(__name__)


class MetricsCalculatorError(Exception):
    """Base error for metrics calculation."""


class InsufficientFramesError(MetricsCalculatorError):
    """Raised when there are no frames to analyze."""

    def __init__(self, message="Not enough frames to calculate metrics"):
        super().__init__(message)


class MetricsCalculatorConfig:
    """
    Configuration for metrics calculation.

    Attributes:
        decimation_factor: Keep every Nth frame (1 keeps all frames).
        streaming_min_frames: Frames required before streaming metrics
            are produced.
        estimator_min_frames: Frames required by the fallback phase
            estimator.
        estimator_fractions: Start fractions of Transition, Downswing,
            Impact and FollowThrough for the fallback phase estimator.
    """

    def __init__(
        self,
        decimation_factor=1,
        streaming_min_frames=10,
        estimator_min_frames=10,
        estimator_fractions=(0.35, 0.45, 0.75, 0.80),
    ):
        """
        Initialize metrics calculator configuration.

        Raises:
            ValueError: If any parameter is out of valid range.
        """
        if not isinstance(decimation_factor, int) or decimation_factor < 1:
            raise ValueError("decimation_factor must be an integer of at least 1")
        if streaming_min_frames < 1:
            raise ValueError("streaming_min_frames must be at least 1")
        if estimator_min_frames < len(SwingPhase):
            raise ValueError(f"estimator_min_frames must be at least {len(SwingPhase)}")

        fractions = tuple(estimator_fractions)
        if len(fractions) != 4:
            raise ValueError("estimator_fractions must have 4 values")
        if any(not 0.0 < f < 1.0 for f in fractions) or list(fractions) != sorted(fractions):
            raise ValueError("estimator_fractions must be increasing values between 0.0 and 1.0")

        self.decimation_factor = decimation_factor
        self.streaming_min_frames = streaming_min_frames
        self.estimator_min_frames = estimator_min_frames
        self.estimator_fractions = fractions

    def __repr__(self):
        """String representation of configuration."""
        return (
            f"MetricsCalculatorConfig("
            f"decimation_factor={self.decimation_factor}, "
            f"streaming_min_frames={self.streaming_min_frames}, "
            f"estimator_min_frames={self.estimator_min_frames}, "
            f"estimator_fractions={self.estimator_fractions})"
        )


# Preset configurations
PRESET_STANDARD = MetricsCalculatorConfig()

PRESET_FAST = MetricsCalculatorConfig(decimation_factor=2)


class MetricsCalculator:
    """
    Coordinates metric calculation across all analyzers.

    Consistency is only computed when a repository is supplied.
    """

    def __init__(self, repository=None, config=None, **kwargs):
        """
        Initialize metrics calculator.

        Args:
            repository: Optional SessionRepository for baseline lookups.
            config: MetricsCalculatorConfig instance. If None, creates from
                kwargs or uses PRESET_STANDARD.
            **kwargs: Config parameters used when config is None.
        """
        if config is None:
            config = MetricsCalculatorConfig(**kwargs) if kwargs else PRESET_STANDARD

        self.config = config
        self.form_analyzer = FormAnalyzer()
        self.speed_analyzer = SpeedAnalyzer()
        self.consistency_analyzer = (
            ConsistencyAnalyzer(repository) if repository is not None else None
        )

    def calculate_metrics(self, frames, sport, phases=None) -> SwingMetrics:
        """
        Calculate complete metrics for one swing.

        Args:
            frames: Ordered PoseFrame sequence.
            sport: Sport of the swing.
            phases: Detected phases indexed against frames. When None, phases
                are estimated from fixed fractions of the swing.

        Returns:
            SwingMetrics; consistency is None without a usable baseline.

        Raises:
            InsufficientFramesError: If frames is empty.
        """
        if not frames:
            raise InsufficientFramesError()

        sport = Sport.parse(sport)
        processed = self.decimate_frames(frames)

        if phases is None:
            detected = self.estimate_phases(processed)
        else:
            detected = self.rescale_phases(phases, len(processed))

        logger.info(
            "Calculating %s metrics: %d frames (%d after decimation), %d phases",
            sport.value,
            len(frames),
            len(processed),
            len(detected),
        )

        form = self.form_analyzer.analyze(processed, detected)
        speed = self.speed_analyzer.analyze(processed, detected)

        consistency = None
        if self.consistency_analyzer is not None:
            base_metrics = SwingMetrics(form_metrics=form, speed_metrics=speed)
            consistency = self.consistency_analyzer.analyze(processed, base_metrics, sport)

        return SwingMetrics(
            form_metrics=form,
            speed_metrics=speed,
            consistency_metrics=consistency,
        )

    def calculate_streaming_metrics(self, frames, sport) -> Optional[SwingMetrics]:
        """
        Partial metrics for a growing frame buffer.

        Returns:
            Form and speed metrics (consistency always None), or None while
            fewer than streaming_min_frames frames have arrived.
        """
        if len(frames) < self.config.streaming_min_frames:
            return None

        processed = self.decimate_frames(frames)
        detected = self.estimate_phases(processed)

        logger.debug(
            "Streaming %s metrics over %d frames", Sport.parse(sport).value, len(processed)
        )

        return SwingMetrics(
            form_metrics=self.form_analyzer.analyze(processed, detected),
            speed_metrics=self.speed_analyzer.analyze(processed, detected),
            consistency_metrics=None,
        )

    def decimate_frames(self, frames) -> list:
        """Keep every decimation_factor-th frame, starting with the first."""
        if self.config.decimation_factor <= 1:
            return list(frames)
        return list(frames[:: self.config.decimation_factor])

    def rescale_phases(self, phases, frame_count: int) -> List[DetectedSwingPhase]:
        """Map phase frame indices onto the decimated frame sequence."""
        factor = self.config.decimation_factor
        if factor <= 1 or frame_count == 0:
            return list(phases)

        last = frame_count - 1
        return [
            DetectedSwingPhase(
                phase=p.phase,
                start_time=p.start_time,
                end_time=p.end_time,
                start_frame_index=min(p.start_frame_index // factor, last),
                end_frame_index=min(p.end_frame_index // factor, last),
            )
            for p in phases
        ]

    def estimate_phases(self, frames) -> List[DetectedSwingPhase]:
        """
        Fixed-fraction phase estimate used when no detector output is given.

        Setup covers the first frame, Backswing starts on the second, and
        the remaining phases start at estimator_fractions of the frame
        count. Each phase ends where the next begins, and FollowThrough runs
        to the last frame. This is a golf-tempo heuristic, not a substitute
        for PhaseDetector.

        Returns:
            Contiguous phases covering every frame, or an empty list below
            estimator_min_frames frames. Phases whose start would fall past
            the last frame are dropped, so fractions close to 1.0 on short
            swings can yield fewer than six.
        """
        total = len(frames)
        if total < self.config.estimator_min_frames:
            return []

        starts = [0, 1] + [int(total * f) for f in self.config.estimator_fractions]
        for i in range(1, len(starts)):
            starts[i] = max(starts[i], starts[i - 1] + 1)
        starts = [s for s in starts if s < total]

        phases = []
        for i, (phase, start) in enumerate(zip(SwingPhase, starts)):
            end = starts[i + 1] - 1 if i + 1 < len(starts) else total - 1
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
