"""
Shared rules for per-sport swing phase strategies.

A strategy answers one question per frame: has the swing left its
current phase? PhaseDetector owns the history and the state machine;
strategies only keep the sport-specific markers (address confirmed,
backswing peak, load depth) they need between frames.
"""

from services.models import SwingPhase
from utils.biomechanics import hand_position
from utils.geometry import joint_speed


class PhaseStrategy:
    """
    Base class for sport-specific transition rules.

    Subclasses implement one exit check per non-terminal phase:
    leave_setup, leave_backswing, leave_transition, leave_downswing and
    leave_impact. Each receives the newest frame and the trailing history
    (newest last, including the frame itself) and returns True when the
    swing should advance to the next phase.
    """

    sports = ()

    def __init__(self, sport, config):
        self.sport = sport
        self.config = config
        self.left_handed = config.left_handed
        self.reset()

    def reset(self):
        """Clear per-swing markers."""

    def observe(self, pose, history, analysis):
        """Hook called for every accepted frame before the exit check."""

    def should_advance(self, phase, pose, history, analysis) -> bool:
        check = {
            SwingPhase.SETUP: self.leave_setup,
            SwingPhase.BACKSWING: self.leave_backswing,
            SwingPhase.TRANSITION: self.leave_transition,
            SwingPhase.DOWNSWING: self.leave_downswing,
            SwingPhase.IMPACT: self.leave_impact,
        }.get(phase)

        if check is None:
            return False
        return check(pose, history, analysis)

    def leave_setup(self, pose, history, analysis) -> bool:
        raise NotImplementedError

    def leave_backswing(self, pose, history, analysis) -> bool:
        raise NotImplementedError

    def leave_transition(self, pose, history, analysis) -> bool:
        raise NotImplementedError

    def leave_downswing(self, pose, history, analysis) -> bool:
        raise NotImplementedError

    def leave_impact(self, pose, history, analysis) -> bool:
        raise NotImplementedError

    # Shared helpers

    def hand(self, frame):
        return hand_position(frame)

    @staticmethod
    def previous(history):
        """Frame before the newest one, or None."""
        if len(history) < 2:
            return None
        return history[-2]

    @staticmethod
    def hand_speed(current, previous):
        """Right wrist speed in m/s, falling back to the left wrist."""
        speed = joint_speed(current, previous, "right_wrist")
        if speed is None:
            speed = joint_speed(current, previous, "left_wrist")
        return speed

    def hand_movement(self, current, previous):
        """Displacement of the hand proxy between two frames, or None."""
        now = self.hand(current)
        before = self.hand(previous)
        if now is None or before is None:
            return None
        return now - before

    def last_three(self, history):
        """Hand proxy positions of the last three frames, or None."""
        if len(history) < 3:
            return None
        positions = [self.hand(f) for f in history[-3:]]
        if any(p is None for p in positions):
            return None
        return positions

    def lateral(self, dx: float) -> float:
        """Flip a lateral displacement so positive means the right-handed direction."""
        return -dx if self.left_handed else dx

    @staticmethod
    def reference_hip(frame):
        """Left hip position, or the right one when the left is untracked."""
        hip = frame.position("left_hip")
        if hip is None:
            hip = frame.position("right_hip")
        return hip
