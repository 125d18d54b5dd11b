"""
Swing analysis data models.

Provides the pose frame carrier consumed by every analysis stage, the
canonical swing phase enumeration, the detector's runtime state
(SwingAnalysis) and the stored SwingSession record.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

# Joints with confidence at or below this value are treated as absent.
TRACKING_THRESHOLD = 0.3


class Sport(Enum):
    """Supported sports for swing analysis."""

    GOLF = "golf"
    TENNIS = "tennis"
    PICKLEBALL = "pickleball"
    BASEBALL = "baseball"
    SOFTBALL = "softball"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def optimal_speed(self) -> Dict[str, float]:
        """Minimum and optimal peak hand speed in mph."""
        return _OPTIMAL_SPEEDS[self]

    @classmethod
    def parse(cls, value) -> "Sport":
        """
        Resolve a sport from its name.

        Raises:
            ValueError: If value is not a supported sport.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Invalid sport: {value}. "
                f"Must be one of: {', '.join(s.value for s in cls)}"
            ) from None


_OPTIMAL_SPEEDS = {
    Sport.GOLF: {"minimum": 80.0, "optimal": 110.0},
    Sport.BASEBALL: {"minimum": 65.0, "optimal": 85.0},
    Sport.SOFTBALL: {"minimum": 60.0, "optimal": 75.0},
    Sport.TENNIS: {"minimum": 70.0, "optimal": 90.0},
    Sport.PICKLEBALL: {"minimum": 40.0, "optimal": 55.0},
}


class SwingPhase(Enum):
    """Distinct phases of a swing motion, in canonical order."""

    SETUP = "setup"
    BACKSWING = "backswing"
    TRANSITION = "transition"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow_through"

    @property
    def order_index(self) -> int:
        return _PHASE_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def typical_duration_percentage(self) -> float:
        """Approximate share of total swing duration."""
        return _TYPICAL_DURATIONS[self]

    @property
    def next_phase(self) -> Optional["SwingPhase"]:
        """The phase that follows this one, or None for FOLLOW_THROUGH."""
        idx = self.order_index
        if idx + 1 < len(_PHASE_ORDER):
            return _PHASE_ORDER[idx + 1]
        return None


_PHASE_ORDER = list(SwingPhase)

_TYPICAL_DURATIONS = {
    SwingPhase.SETUP: 0.0,
    SwingPhase.BACKSWING: 0.35,
    SwingPhase.TRANSITION: 0.10,
    SwingPhase.DOWNSWING: 0.30,
    SwingPhase.IMPACT: 0.05,
    SwingPhase.FOLLOW_THROUGH: 0.20,
}


@dataclass(frozen=True, eq=False)
class PoseFrame:
    """
    One timestamped snapshot of body joint positions.

    Attributes:
        timestamp: Seconds from the start of the session.
        joints: Joint name to 3D position (meters).
        confidence: Joint name to detection confidence (0.0-1.0).
    """

    timestamp: float
    joints: Dict[str, np.ndarray] = field(default_factory=dict)
    confidence: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        joints = {
            name: np.asarray(pos, dtype=float).reshape(3)
            for name, pos in self.joints.items()
        }
        object.__setattr__(self, "joints", joints)
        object.__setattr__(self, "confidence", dict(self.confidence))
        object.__setattr__(self, "timestamp", float(self.timestamp))

    def is_tracked(self, joint: str) -> bool:
        """True if the joint is present with confidence above the tracking threshold."""
        return joint in self.joints and self.confidence.get(joint, 0.0) > TRACKING_THRESHOLD

    def position(self, joint: str) -> Optional[np.ndarray]:
        """Position of a tracked joint, or None if absent or untracked."""
        if not self.is_tracked(joint):
            return None
        return self.joints[joint]

    @property
    def overall_confidence(self) -> float:
        """Average confidence across all reported joints."""
        if not self.confidence:
            return 0.0
        return sum(self.confidence.values()) / len(self.confidence)

    def has_minimum_quality(self, threshold: float = 0.5) -> bool:
        return self.overall_confidence >= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "joints": {
                name: {
                    "x": float(pos[0]),
                    "y": float(pos[1]),
                    "z": float(pos[2]),
                    "confidence": self.confidence.get(name, 0.0),
                }
                for name, pos in self.joints.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseFrame":
        """
        Build a frame from its landmark dictionary form.

        Each joint is {'x', 'y', 'z', 'confidence'}; 'visibility' is accepted
        in place of 'confidence', and a joint without either is fully trusted.

        Raises:
            ValueError: If the timestamp or a coordinate is missing.
        """
        if "timestamp" not in data:
            raise ValueError("frame is missing 'timestamp'")

        joints = {}
        confidence = {}
        for name, landmark in (data.get("joints") or {}).items():
            try:
                joints[name] = (landmark["x"], landmark["y"], landmark.get("z", 0.0))
            except (KeyError, TypeError):
                raise ValueError(f"joint '{name}' must have 'x' and 'y' coordinates") from None
            confidence[name] = float(
                landmark.get("confidence", landmark.get("visibility", 1.0))
            )

        return cls(timestamp=data["timestamp"], joints=joints, confidence=confidence)


@dataclass(frozen=True)
class DetectedSwingPhase:
    """A swing phase with its time span and frame index range."""

    phase: SwingPhase
    start_time: float
    end_time: float
    start_frame_index: int
    end_frame_index: int

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def frame_count(self) -> int:
        return self.end_frame_index - self.start_frame_index + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "start_frame_index": self.start_frame_index,
            "end_frame_index": self.end_frame_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectedSwingPhase":
        return cls(
            phase=SwingPhase(data["phase"]),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            start_frame_index=int(data["start_frame_index"]),
            end_frame_index=int(data["end_frame_index"]),
        )


@dataclass(frozen=True)
class PhaseTransition:
    """A recorded move from one swing phase to the next."""

    from_phase: Optional[SwingPhase]
    to_phase: SwingPhase
    timestamp: float
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_phase": self.from_phase.value if self.from_phase else None,
            "to_phase": self.to_phase.value,
            "timestamp": self.timestamp,
            "confidence": self.confidence,
        }


class SwingAnalysis:
    """
    Live phase-detection state owned by a single detector.

    Attributes:
        current_phase: Phase the swing is currently in.
        phase_start_time: Timestamp at which current_phase began.
        transitions: Ordered list of PhaseTransition records.
        confidence: Overall pose confidence of the latest frame.
    """

    def __init__(
        self,
        current_phase: SwingPhase = SwingPhase.SETUP,
        phase_start_time: float = 0.0,
        transitions: Optional[List[PhaseTransition]] = None,
        confidence: float = 0.0,
    ):
        self.current_phase = current_phase
        self.phase_start_time = phase_start_time
        self.transitions = list(transitions) if transitions else []
        self.confidence = confidence

    def current_phase_duration(self, timestamp: float) -> float:
        return timestamp - self.phase_start_time

    def phase_duration(self, phase: SwingPhase) -> Optional[float]:
        """
        Time spent in a phase that has been both entered and left.

        Returns:
            Duration in seconds, or None if the phase is still open or never
            reached.
        """
        start = next((t.timestamp for t in self.transitions if t.to_phase == phase), None)
        end = next((t.timestamp for t in self.transitions if t.from_phase == phase), None)

        if start is None or end is None:
            return None
        return end - start

    @property
    def total_duration(self) -> float:
        if not self.transitions:
            return 0.0
        return self.transitions[-1].timestamp - self.transitions[0].timestamp

    def snapshot(self) -> "SwingAnalysis":
        """Independent copy safe to hand to observers."""
        return SwingAnalysis(
            current_phase=self.current_phase,
            phase_start_time=self.phase_start_time,
            transitions=list(self.transitions),
            confidence=self.confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_phase": self.current_phase.value,
            "phase_start_time": self.phase_start_time,
            "transitions": [t.to_dict() for t in self.transitions],
            "confidence": self.confidence,
        }

    def __repr__(self) -> str:
        return (
            f"SwingAnalysis(current_phase={self.current_phase.value}, "
            f"transitions={len(self.transitions)}, "
            f"confidence={self.confidence:.2f})"
        )


class SwingSession:
    """
    A recorded swing: its frames, analysis metrics and user annotations.

    Attributes:
        id: Session identifier.
        sport: Sport the swing belongs to.
        recorded_at: Recording time (UTC).
        frames: Ordered list of PoseFrame objects.
        metrics: SwingMetrics, or None until analyzed.
        notes: Free-text user notes.
        tags: Category tags.
        is_favorite: Favorite flag.
    """

    def __init__(
        self,
        sport: Sport,
        frames: Optional[List[PoseFrame]] = None,
        metrics=None,
        session_id: Optional[str] = None,
        recorded_at: Optional[datetime] = None,
        notes: str = "",
        tags: Optional[List[str]] = None,
        is_favorite: bool = False,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.sport = sport
        self.recorded_at = recorded_at or datetime.now(timezone.utc)
        self.frames = list(frames) if frames else []
        self.metrics = metrics
        self.notes = notes
        self.tags = list(tags) if tags else []
        self.is_favorite = is_favorite

    @property
    def duration(self) -> float:
        if not self.frames:
            return 0.0
        return self.frames[-1].timestamp - self.frames[0].timestamp

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def average_frame_confidence(self) -> float:
        if not self.frames:
            return 0.0
        return sum(f.overall_confidence for f in self.frames) / len(self.frames)

    @property
    def has_valid_analysis(self) -> bool:
        return bool(self.frames) and self.metrics is not None

    @property
    def quality_score(self) -> float:
        """
        Quality indicator for the session (0-100).

        40% mean frame confidence, 30% frame count adequacy (30 frames is
        enough), 30% for having analysis metrics.
        """
        if not self.has_valid_analysis:
            return 0.0

        score = self.average_frame_confidence * 40
        score += min(self.frame_count / 30.0, 1.0) * 30
        score += 30
        return score

    def add_frame(self, frame: PoseFrame) -> None:
        self.frames.append(frame)

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    def toggle_favorite(self) -> None:
        self.is_favorite = not self.is_favorite

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sport": self.sport.value,
            "recorded_at": self.recorded_at.isoformat(),
            "frames": [f.to_dict() for f in self.frames],
            "metrics": self.metrics.to_dict() if self.metrics is not None else None,
            "notes": self.notes,
            "tags": self.tags,
            "is_favorite": self.is_favorite,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwingSession":
        from services.metrics import SwingMetrics

        recorded_at = data.get("recorded_at")
        metrics = data.get("metrics")

        return cls(
            sport=Sport.parse(data["sport"]),
            frames=[PoseFrame.from_dict(f) for f in data.get("frames") or []],
            metrics=SwingMetrics.from_dict(metrics) if metrics else None,
            session_id=data.get("id"),
            recorded_at=datetime.fromisoformat(recorded_at) if recorded_at else None,
            notes=data.get("notes") or "",
            tags=data.get("tags") or [],
            is_favorite=bool(data.get("is_favorite", False)),
        )

    def __repr__(self) -> str:
        return (
            f"SwingSession(id={self.id}, sport={self.sport.value}, "
            f"frames={self.frame_count}, analyzed={self.metrics is not None})"
        )
