"""
Swing score generation.

Turns SwingMetrics into a sport-weighted overall score, a letter grade
and prioritized improvement suggestions.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from services.models import Sport

logger = logging.getLogger(__name__)

# (form, speed, consistency); each triple sums to 1.0
SPORT_WEIGHTS = {
    Sport.GOLF: (0.45, 0.30, 0.25),
    Sport.BASEBALL: (0.35, 0.45, 0.20),
    Sport.SOFTBALL: (0.35, 0.45, 0.20),
    Sport.TENNIS: (0.40, 0.35, 0.25),
    Sport.PICKLEBALL: (0.35, 0.30, 0.35),
}


class LetterGrade(Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    D_MINUS = "D-"
    F = "F"

    @property
    def numeric_value(self) -> int:
        """13 for A+ down to 1 for F."""
        return len(_GRADE_FLOORS) - list(LetterGrade).index(self)

    @classmethod
    def from_score(cls, score: float) -> "LetterGrade":
        """Map a 0-100 score to a grade; bucket lower bounds are inclusive."""
        for floor, grade in _GRADE_FLOORS:
            if score >= floor:
                return grade
        return cls.F


_GRADE_FLOORS = [
    (97, LetterGrade.A_PLUS),
    (93, LetterGrade.A),
    (90, LetterGrade.A_MINUS),
    (87, LetterGrade.B_PLUS),
    (83, LetterGrade.B),
    (80, LetterGrade.B_MINUS),
    (77, LetterGrade.C_PLUS),
    (73, LetterGrade.C),
    (70, LetterGrade.C_MINUS),
    (67, LetterGrade.D_PLUS),
    (63, LetterGrade.D),
    (60, LetterGrade.D_MINUS),
    (float("-inf"), LetterGrade.F),
]


class SuggestionCategory(Enum):
    FORM = "form"
    SPEED = "speed"
    TEMPO = "tempo"
    CONSISTENCY = "consistency"


class SuggestionPriority(Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(frozen=True)
class ImprovementSuggestion:
    category: SuggestionCategory
    title: str
    description: str
    priority: SuggestionPriority
    metric: str
    metric_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.name.lower(),
            "metric": self.metric,
            "metric_value": self.metric_value,
        }


@dataclass(frozen=True)
class ComponentScores:
    form: float
    speed: float
    consistency: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"form": self.form, "speed": self.speed, "consistency": self.consistency}


@dataclass(frozen=True)
class ScoreResult:
    """Final score for one analyzed swing."""

    overall_score: float
    grade: LetterGrade
    component_scores: ComponentScores
    suggestions: List[ImprovementSuggestion]
    sport: Sport
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": round(self.overall_score, 2),
            "grade": self.grade.value,
            "component_scores": self.component_scores.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "sport": self.sport.value,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class ScoreGenerator:
    """Generates scores, grades and suggestions from swing metrics."""

    def generate_score(self, metrics, sport) -> ScoreResult:
        """
        Score a swing.

        Args:
            metrics: SwingMetrics for the swing.
            sport: Sport used for weighting and speed targets.

        Returns:
            ScoreResult with overall score, grade, component scores and
            suggestions sorted by descending priority.
        """
        sport = Sport.parse(sport)
        overall = self.weighted_score(metrics, sport)
        grade = LetterGrade.from_score(overall)
        suggestions = self.improvement_suggestions(metrics, sport)

        consistency = metrics.consistency_metrics
        components = ComponentScores(
            form=metrics.form_metrics.composite_score,
            speed=metrics.speed_metrics.composite_score,
            consistency=consistency.composite_score if consistency is not None else None,
        )

        logger.info(
            "Scored %s swing: %.1f (%s), %d suggestions",
            sport.value,
            overall,
            grade.value,
            len(suggestions),
        )

        return ScoreResult(
            overall_score=overall,
            grade=grade,
            component_scores=components,
            suggestions=suggestions,
            sport=sport,
        )

    @staticmethod
    def weighted_score(metrics, sport: Sport) -> float:
        """Sport-weighted score, renormalized when consistency is absent."""
        form_weight, speed_weight, consistency_weight = SPORT_WEIGHTS[sport]

        score = metrics.form_metrics.composite_score * form_weight
        score += metrics.speed_metrics.composite_score * speed_weight
        total_weight = form_weight + speed_weight

        if metrics.consistency_metrics is not None:
            score += metrics.consistency_metrics.composite_score * consistency_weight
            total_weight += consistency_weight

        return max(0.0, min(100.0, score / total_weight))

    def improvement_suggestions(self, metrics, sport: Sport) -> List[ImprovementSuggestion]:
        suggestions = self._form_suggestions(metrics.form_metrics)
        suggestions += self._speed_suggestions(metrics.speed_metrics, sport)
        if metrics.consistency_metrics is not None:
            suggestions += self._consistency_suggestions(metrics.consistency_metrics)

        # sorted() is stable, so equal priorities keep rule order
        return sorted(suggestions, key=lambda s: s.priority.value, reverse=True)

    def _form_suggestions(self, form) -> List[ImprovementSuggestion]:
        suggestions = []
        hip = form.hip_rotation_angle

        if hip < 45:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Increase Hip Rotation",
                "Your hip rotation is limited. Focus on rotating your hips more during the backswing.",
                SuggestionPriority.HIGH,
                f"Hip Rotation: {int(hip)}°",
                hip,
            ))
        elif hip > 90:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Control Hip Rotation",
                "Excessive hip rotation can lead to loss of control. Focus on stability.",
                SuggestionPriority.MEDIUM,
                f"Hip Rotation: {int(hip)}°",
                hip,
            ))

        if form.shoulder_rotation_angle < 90:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Increase Shoulder Turn",
                "More shoulder rotation will help generate power. Focus on a fuller backswing.",
                SuggestionPriority.HIGH,
                f"Shoulder Rotation: {int(form.shoulder_rotation_angle)}°",
                form.shoulder_rotation_angle,
            ))

        if form.x_factor < 20:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Improve Hip-Shoulder Separation",
                "Work on creating more separation between hip and shoulder rotation for increased power.",
                SuggestionPriority.HIGH,
                f"X-Factor: {int(form.x_factor)}°",
                form.x_factor,
            ))

        if form.weight_transfer_percentage < 60:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Improve Weight Transfer",
                "Focus on shifting your weight more effectively from back to front foot.",
                SuggestionPriority.HIGH,
                f"Weight Transfer: {int(form.weight_transfer_percentage)}%",
                form.weight_transfer_percentage,
            ))

        if form.spine_angle_deviation > 10:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Maintain Spine Angle",
                "Your spine angle changes too much during the swing. Focus on maintaining posture.",
                SuggestionPriority.MEDIUM,
                f"Spine Deviation: {int(form.spine_angle_deviation)}°",
                form.spine_angle_deviation,
            ))

        if form.arm_extension_score < 80:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.FORM,
                "Extend Arms More",
                "Work on keeping your lead arm extended for better arc and power.",
                SuggestionPriority.MEDIUM,
                f"Arm Extension: {int(form.arm_extension_score)}/100",
                form.arm_extension_score,
            ))

        return suggestions

    def _speed_suggestions(self, speed, sport: Sport) -> List[ImprovementSuggestion]:
        suggestions = []

        if speed.peak_speed < sport.optimal_speed["minimum"]:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.SPEED,
                "Increase Swing Speed",
                "Your swing speed is below optimal. Focus on building rotational power and tempo.",
                SuggestionPriority.HIGH,
                f"Peak Speed: {int(speed.peak_speed)} mph",
                speed.peak_speed,
            ))

        if speed.speed_efficiency < 90:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.SPEED,
                "Improve Impact Timing",
                "You're losing speed before impact. Work on timing and acceleration through the ball.",
                SuggestionPriority.HIGH,
                f"Impact Efficiency: {int(speed.speed_efficiency)}%",
                speed.speed_efficiency,
            ))

        if speed.time_to_peak_speed < 0.2:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.TEMPO,
                "Slow Down Your Tempo",
                "Your swing is too rushed. Focus on a smoother, more controlled tempo.",
                SuggestionPriority.MEDIUM,
                f"Time to Peak: {speed.time_to_peak_speed:.2f}s",
                speed.time_to_peak_speed,
            ))
        elif speed.time_to_peak_speed > 0.4:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.TEMPO,
                "Quicken Your Tempo",
                "Your swing is too slow. Work on a more dynamic, athletic tempo.",
                SuggestionPriority.MEDIUM,
                f"Time to Peak: {speed.time_to_peak_speed:.2f}s",
                speed.time_to_peak_speed,
            ))

        return suggestions

    def _consistency_suggestions(self, consistency) -> List[ImprovementSuggestion]:
        suggestions = []

        if consistency.speed_variance > 5:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.CONSISTENCY,
                "Improve Speed Consistency",
                "Your swing speed varies too much. Focus on maintaining a consistent tempo.",
                SuggestionPriority.MEDIUM,
                f"Speed Variance: {consistency.speed_variance:.1f} mph",
                consistency.speed_variance,
            ))

        if consistency.position_variance > 0.1:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.CONSISTENCY,
                "Improve Swing Path Consistency",
                "Your swing path is inconsistent. Focus on repeating the same positions.",
                SuggestionPriority.HIGH,
                f"Position Variance: {consistency.position_variance:.2f}",
                consistency.position_variance,
            ))

        if consistency.repeatability_score < 70:
            suggestions.append(ImprovementSuggestion(
                SuggestionCategory.CONSISTENCY,
                "Work on Repeatability",
                "Focus on drilling the same swing repeatedly to build muscle memory.",
                SuggestionPriority.HIGH,
                f"Repeatability: {int(consistency.repeatability_score)}/100",
                consistency.repeatability_score,
            ))

        return suggestions
