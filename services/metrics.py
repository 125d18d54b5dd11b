"""
Swing metric records and composite scoring.

Each record holds raw measurements plus a composite_score in [0, 100]
computed by weighted normalization against fixed optimal ranges.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def normalize_score(value: float, optimal: Tuple[float, float], weight: float, inverse: bool = False) -> float:
    """
    Score a value against its optimal range, scaled by weight.

    Args:
        value: Measured value.
        optimal: (low, high) optimal range, inclusive.
        weight: Component weight out of 100.
        inverse: If True, lower is better: at or below low scores full marks,
            at or above high scores zero, linear in between.

    Returns:
        Weighted contribution in [0, weight].
    """
    low, high = optimal

    if inverse:
        if value <= low:
            normalized = 100.0
        elif value >= high:
            normalized = 0.0
        else:
            normalized = 100.0 * (1 - (value - low) / (high - low))
    elif low <= value <= high:
        normalized = 100.0
    elif value < low:
        penalty = min((low - value) / low, 1.0) if low > 0 else 1.0
        normalized = 100.0 * (1 - penalty)
    else:
        penalty = min((value - high) / high, 1.0) if high > 0 else 1.0
        normalized = 100.0 * (1 - penalty)

    return normalized * (weight / 100.0)


@dataclass(frozen=True)
class FormMetrics:
    """
    Swing form and technique measurements.

    Attributes:
        hip_rotation_angle: Hip line rotation from setup to impact (degrees).
        shoulder_rotation_angle: Shoulder line rotation from setup to impact (degrees).
        spine_angle_at_address: Spine tilt from vertical at setup (degrees).
        spine_angle_at_impact: Spine tilt from vertical at impact (degrees).
        weight_transfer_percentage: Hip center shift, 0-100.
        arm_extension_score: Weighted elbow extension, 0-100.
    """

    hip_rotation_angle: float
    shoulder_rotation_angle: float
    spine_angle_at_address: float
    spine_angle_at_impact: float
    weight_transfer_percentage: float
    arm_extension_score: float

    @classmethod
    def zero(cls) -> "FormMetrics":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    @property
    def x_factor(self) -> float:
        return abs(self.shoulder_rotation_angle - self.hip_rotation_angle)

    @property
    def spine_angle_deviation(self) -> float:
        return abs(self.spine_angle_at_impact - self.spine_angle_at_address)

    @property
    def composite_score(self) -> float:
        score = 0.0
        score += normalize_score(self.hip_rotation_angle, (45, 90), 20)
        score += normalize_score(self.shoulder_rotation_angle, (90, 110), 20)
        score += normalize_score(self.weight_transfer_percentage, (60, 80), 20)
        score += normalize_score(self.arm_extension_score, (80, 100), 15)
        score += normalize_score(self.x_factor, (20, 40), 15)
        score += normalize_score(self.spine_angle_deviation, (0, 10), 10, inverse=True)
        return score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hip_rotation_angle": self.hip_rotation_angle,
            "shoulder_rotation_angle": self.shoulder_rotation_angle,
            "spine_angle_at_address": self.spine_angle_at_address,
            "spine_angle_at_impact": self.spine_angle_at_impact,
            "weight_transfer_percentage": self.weight_transfer_percentage,
            "arm_extension_score": self.arm_extension_score,
            "x_factor": self.x_factor,
            "spine_angle_deviation": self.spine_angle_deviation,
            "composite_score": self.composite_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormMetrics":
        return cls(
            hip_rotation_angle=float(data["hip_rotation_angle"]),
            shoulder_rotation_angle=float(data["shoulder_rotation_angle"]),
            spine_angle_at_address=float(data["spine_angle_at_address"]),
            spine_angle_at_impact=float(data["spine_angle_at_impact"]),
            weight_transfer_percentage=float(data["weight_transfer_percentage"]),
            arm_extension_score=float(data["arm_extension_score"]),
        )


@dataclass(frozen=True)
class KineticChainMetrics:
    """
    Hip, shoulder and hand peak timing during the power phase.

    Delays are in seconds; a negative delay means the segments peaked out
    of order.
    """

    hip_to_shoulder_delay: float
    shoulder_to_hand_delay: float
    sequence_score: float

    @property
    def is_proper_sequence(self) -> bool:
        return self.hip_to_shoulder_delay >= 0 and self.shoulder_to_hand_delay >= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hip_to_shoulder_delay": self.hip_to_shoulder_delay,
            "shoulder_to_hand_delay": self.shoulder_to_hand_delay,
            "sequence_score": self.sequence_score,
            "is_proper_sequence": self.is_proper_sequence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KineticChainMetrics":
        return cls(
            hip_to_shoulder_delay=float(data["hip_to_shoulder_delay"]),
            shoulder_to_hand_delay=float(data["shoulder_to_hand_delay"]),
            sequence_score=float(data["sequence_score"]),
        )


@dataclass(frozen=True)
class SpeedMetrics:
    """
    Hand speed measurements in mph, mph/s and seconds.

    kinetic_chain is a diagnostic and does not feed composite_score.
    """

    peak_speed: float
    peak_acceleration: float
    average_speed: float
    time_to_peak_speed: float
    impact_speed: float
    kinetic_chain: Optional[KineticChainMetrics] = None

    @classmethod
    def zero(cls) -> "SpeedMetrics":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0)

    @property
    def speed_efficiency(self) -> float:
        """Impact speed as a percentage of peak speed."""
        if self.peak_speed <= 0:
            return 0.0
        return self.impact_speed / self.peak_speed * 100

    @property
    def composite_score(self) -> float:
        score = 0.0
        score += normalize_score(self.peak_speed, (80, 120), 30)
        score += normalize_score(self.speed_efficiency, (90, 100), 30)
        score += normalize_score(self.peak_acceleration, (800, 1500), 20)
        score += normalize_score(self.time_to_peak_speed, (0.2, 0.4), 20)
        return score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "peak_speed": self.peak_speed,
            "peak_acceleration": self.peak_acceleration,
            "average_speed": self.average_speed,
            "time_to_peak_speed": self.time_to_peak_speed,
            "impact_speed": self.impact_speed,
            "speed_efficiency": self.speed_efficiency,
            "kinetic_chain": self.kinetic_chain.to_dict() if self.kinetic_chain else None,
            "composite_score": self.composite_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeedMetrics":
        chain = data.get("kinetic_chain")
        return cls(
            peak_speed=float(data["peak_speed"]),
            peak_acceleration=float(data["peak_acceleration"]),
            average_speed=float(data["average_speed"]),
            time_to_peak_speed=float(data["time_to_peak_speed"]),
            impact_speed=float(data["impact_speed"]),
            kinetic_chain=KineticChainMetrics.from_dict(chain) if chain else None,
        )


@dataclass(frozen=True)
class ConsistencyMetrics:
    """Comparison of a swing against the stored ideal baseline."""

    speed_variance: float
    position_variance: float
    repeatability_score: float
    swing_count: int = 2

    @property
    def composite_score(self) -> float:
        score = 0.0
        score += normalize_score(self.speed_variance, (0, 5), 30, inverse=True)
        score += normalize_score(self.position_variance, (0, 0.1), 30, inverse=True)
        score += max(0.0, min(self.repeatability_score, 100.0)) * 0.4
        return score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "speed_variance": self.speed_variance,
            "position_variance": self.position_variance,
            "repeatability_score": self.repeatability_score,
            "swing_count": self.swing_count,
            "composite_score": self.composite_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsistencyMetrics":
        return cls(
            speed_variance=float(data["speed_variance"]),
            position_variance=float(data["position_variance"]),
            repeatability_score=float(data["repeatability_score"]),
            swing_count=int(data.get("swing_count", 2)),
        )


@dataclass(frozen=True)
class SwingMetrics:
    """Form, speed and optional consistency metrics for one swing."""

    form_metrics: FormMetrics
    speed_metrics: SpeedMetrics
    consistency_metrics: Optional[ConsistencyMetrics] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def overall_score(self) -> float:
        """
        Weighted overall score (0-100).

        Form 40%, speed 30%, consistency 30% when present; weights are
        renormalized over the components available.
        """
        score = self.form_metrics.composite_score * 0.4
        weights = 0.4

        score += self.speed_metrics.composite_score * 0.3
        weights += 0.3

        if self.consistency_metrics is not None:
            score += self.consistency_metrics.composite_score * 0.3
            weights += 0.3

        return score / weights

    def to_dict(self) -> Dict[str, Any]:
        return {
            "form_metrics": self.form_metrics.to_dict(),
            "speed_metrics": self.speed_metrics.to_dict(),
            "consistency_metrics": (
                self.consistency_metrics.to_dict() if self.consistency_metrics else None
            ),
            "created_at": self.created_at.isoformat(),
            "overall_score": self.overall_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwingMetrics":
        consistency = data.get("consistency_metrics")
        created_at = data.get("created_at")

        kwargs = {}
        if created_at:
            kwargs["created_at"] = datetime.fromisoformat(created_at)

        return cls(
            form_metrics=FormMetrics.from_dict(data["form_metrics"]),
            speed_metrics=SpeedMetrics.from_dict(data["speed_metrics"]),
            consistency_metrics=ConsistencyMetrics.from_dict(consistency) if consistency else None,
            **kwargs,
        )
