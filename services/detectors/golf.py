"""
Golf swing phase rules.

Address is confirmed by a still hand position; the backswing moves the
hands up and away from the target, the top is a height reversal with the
hands above the shoulders, and impact is a fast pass through the zone
about 30cm above the hips.
"""

import logging
import math
from typing import Optional

from services.detectors.base import PhaseStrategy
from services.models import Sport, SwingPhase
from utils.biomechanics import hands_above_shoulders, hip_center, is_static_position

logger = logging.getLogger(__name__)

GOLF_CLUBS = ("driver", "iron", "wedge", "putter")


class GolfStrategy(PhaseStrategy):
    """Phase rules for a golf swing."""

    sports = (Sport.GOLF,)

    ADDRESS_STILLNESS = 0.05
    BACKSWING_SPEED = 1.0  # m/s
    DOWNSWING_SPEED = 3.0
    IMPACT_SPEED = 5.0
    MIN_TRANSITION_DWELL = 0.1  # seconds
    MOVEMENT_EPSILON = 0.01
    IMPACT_HEIGHT_ABOVE_HIPS = 0.3
    IMPACT_HEIGHT_TOLERANCE = 0.15

    def __init__(self, sport, config):
        super().__init__(sport, config)
        self.club = config.golf_club

    def reset(self):
        self.address_confirmed = False
        self.backswing_peak_height = 0.0
        self.transition_time = None

    def leave_setup(self, pose, history, analysis) -> bool:
        if not self.address_confirmed:
            if is_static_position(history, self.ADDRESS_STILLNESS):
                self.address_confirmed = True
                logger.debug("Address confirmed at t=%.3f", pose.timestamp)
            return False

        previous = self.previous(history)
        if previous is None:
            return False

        movement = self.hand_movement(pose, previous)
        if movement is None:
            return False

        moving_up = movement[1] > self.MOVEMENT_EPSILON
        moving_back = self.lateral(movement[0]) > self.MOVEMENT_EPSILON
        if not (moving_up and moving_back):
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed <= self.BACKSWING_SPEED:
            return False

        self.backswing_peak_height = float(self.hand(pose)[1])
        return True

    def leave_backswing(self, pose, history, analysis) -> bool:
        hand = self.hand(pose)
        if hand is None:
            return False

        self.backswing_peak_height = max(self.backswing_peak_height, float(hand[1]))

        recent = self.last_three(history)
        if recent is None:
            return False

        h1, h2, h3 = recent
        was_rising = h2[1] > h1[1]
        now_falling = h3[1] < h2[1]

        if was_rising and now_falling and hands_above_shoulders(pose):
            self.transition_time = pose.timestamp
            return True
        return False

    def leave_transition(self, pose, history, analysis) -> bool:
        if self.transition_time is None:
            return False
        if pose.timestamp - self.transition_time <= self.MIN_TRANSITION_DWELL:
            return False

        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed <= self.DOWNSWING_SPEED:
            return False

        movement = self.hand_movement(pose, previous)
        if movement is None:
            return False

        moving_down = movement[1] < -self.MOVEMENT_EPSILON
        moving_forward = self.lateral(movement[0]) < -self.MOVEMENT_EPSILON
        return moving_down and moving_forward

    def leave_downswing(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        hand = self.hand(pose)
        speed = self.hand_speed(pose, previous)
        if hand is None or speed is None or speed <= self.IMPACT_SPEED:
            return False

        hip = self.reference_hip(pose)
        if hip is None:
            return False

        impact_height = hip[1] + self.IMPACT_HEIGHT_ABOVE_HIPS
        return abs(hand[1] - impact_height) < self.IMPACT_HEIGHT_TOLERANCE

    def leave_impact(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed >= self.IMPACT_SPEED:
            return False

        movement = self.hand_movement(pose, previous)
        return movement is not None and movement[1] > 0

    # Golf read-outs

    def is_at_address(self, pose) -> bool:
        """
        Check for an address posture.

        Hands must be below the hip center and the hip-to-shoulder line
        tilted forward between 30 and 60 degrees from horizontal depth.
        """
        hand = self.hand(pose)
        center = hip_center(pose)
        if hand is None or center is None:
            return False

        shoulder = pose.position("left_shoulder")
        if shoulder is None:
            shoulder = pose.position("right_shoulder")
        hip = self.reference_hip(pose)
        if shoulder is None or hip is None:
            return False

        tilt = math.degrees(math.atan2(shoulder[1] - hip[1], abs(shoulder[2] - hip[2])))
        return hand[1] < center[1] and 30 < tilt < 60

    def swing_tempo(self, analysis) -> Optional[float]:
        """Backswing to downswing duration ratio, or None until both are complete."""
        backswing = analysis.phase_duration(SwingPhase.BACKSWING)
        downswing = analysis.phase_duration(SwingPhase.DOWNSWING)

        if backswing is None or downswing is None or downswing <= 0:
            return None
        return backswing / downswing
