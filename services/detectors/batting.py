"""
Baseball and softball swing phase rules.

Backswing is the load (hands drift back toward the catcher), the
transition is the load reversal with the front foot down, and the
downswing starts when the hands drive forward while the hips open.
Batting side mirrors every lateral check.
"""

import logging
import math
from typing import Optional

import numpy as np

from services.detectors.base import PhaseStrategy
from services.models import Sport
from utils.biomechanics import hip_line_angle, hip_shoulder_separation, is_static_position

logger = logging.getLogger(__name__)


class BattingStrategy(PhaseStrategy):
    """Phase rules for a baseball or softball swing."""

    sports = (Sport.BASEBALL, Sport.SOFTBALL)

    STANCE_STILLNESS = 0.05
    MIN_STANCE_WIDTH = 0.4
    MAX_FOOT_HEIGHT_DIFFERENCE = 0.05
    FRONT_FOOT_GROUND_HEIGHT = 0.1
    LOAD_SPEED = 1.2  # m/s
    SWING_SPEED = 4.0
    CONTACT_SPEED = 7.0
    FOLLOW_THROUGH_RATIO = 0.8
    HIPS_OPENING = 0.05  # rad per frame, ~3 degrees

    def reset(self):
        self.stance_confirmed = False
        self.load_depth = 0.0

    @property
    def batting_side(self) -> str:
        return "left" if self.left_handed else "right"

    @property
    def front_ankle(self) -> str:
        return "right_ankle" if self.left_handed else "left_ankle"

    def leave_setup(self, pose, history, analysis) -> bool:
        if not self.stance_confirmed:
            if self.is_in_batting_stance(pose, history):
                self.stance_confirmed = True
                logger.debug("Batting stance confirmed (%s side)", self.batting_side)
            return False

        previous = self.previous(history)
        if previous is None:
            return False

        movement = self.hand_movement(pose, previous)
        speed = self.hand_speed(pose, previous)
        if movement is None or speed is None:
            return False

        moving_back = self.lateral(movement[0]) > 0.015
        moving_up = movement[1] > 0.01

        if moving_back and moving_up and speed > self.LOAD_SPEED:
            self.load_depth = float(self.hand(pose)[0])
            return True
        return False

    def leave_backswing(self, pose, history, analysis) -> bool:
        hand = self.hand(pose)
        if hand is None:
            return False

        if self.left_handed:
            self.load_depth = min(self.load_depth, float(hand[0]))
        else:
            self.load_depth = max(self.load_depth, float(hand[0]))

        recent = self.last_three(history)
        if recent is None:
            return False
        h1, h2, h3 = recent

        loading = self.lateral(h2[0] - h1[0]) > 0
        unloading = self.lateral(h3[0] - h2[0]) < 0
        return loading and unloading and self.is_front_foot_planted(pose)

    def leave_transition(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed <= self.SWING_SPEED:
            return False

        movement = self.hand_movement(pose, previous)
        if movement is None:
            return False

        moving_forward = self.lateral(movement[0]) < -0.02
        return moving_forward and self.are_hips_opening(pose, previous)

    def leave_downswing(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        hand = self.hand(pose)
        if speed is None or hand is None or speed <= self.CONTACT_SPEED:
            return False

        return self.in_contact_zone(hand, pose)

    def leave_impact(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed >= self.CONTACT_SPEED * self.FOLLOW_THROUGH_RATIO:
            return False

        movement = self.hand_movement(pose, previous)
        if movement is None:
            return False
        return abs(movement[0]) > 0.01 or abs(movement[1]) > 0.01

    def is_in_batting_stance(self, pose, history) -> bool:
        """
        Still hands, feet wider than 40cm and level within 5cm.

        Args:
            pose: Newest frame.
            history: Trailing frames used for the stillness check.
        """
        if not is_static_position(history, self.STANCE_STILLNESS):
            return False

        left_foot = pose.position("left_ankle")
        right_foot = pose.position("right_ankle")
        if left_foot is None or right_foot is None or self.reference_hip(pose) is None:
            return False

        feet_apart = np.linalg.norm(left_foot - right_foot) > self.MIN_STANCE_WIDTH
        weight_centered = abs(left_foot[1] - right_foot[1]) < self.MAX_FOOT_HEIGHT_DIFFERENCE
        return bool(feet_apart and weight_centered)

    def is_front_foot_planted(self, pose) -> bool:
        foot = pose.position(self.front_ankle)
        return foot is not None and foot[1] < self.FRONT_FOOT_GROUND_HEIGHT

    def are_hips_opening(self, current, previous) -> bool:
        """
        True when the hip line turned more than ~3 degrees in the batting-side
        direction since the previous frame.

        Only the hips are measured, so shoulders turning with them do not
        hide the rotation.
        """
        now = hip_line_angle(current)
        before = hip_line_angle(previous)
        if now is None or before is None:
            return False

        # Wrap into [-pi, pi] across the atan2 branch cut
        turn = (now - before + math.pi) % (2 * math.pi) - math.pi
        if self.left_handed:
            turn = -turn
        return turn > self.HIPS_OPENING

    def in_contact_zone(self, hand, pose) -> bool:
        """Hands within 30cm of belt height (40cm above the hips) and at least 10cm in front of them."""
        hip = self.reference_hip(pose)
        if hip is None:
            return False

        contact_height = hip[1] + 0.4
        in_height_range = abs(hand[1] - contact_height) < 0.3
        in_front_of_body = hand[2] > hip[2] + 0.1
        return in_height_range and in_front_of_body

    # Batting read-outs

    def has_proper_stance(self, pose, history) -> bool:
        return self.is_in_batting_stance(pose, history[-10:])

    def stride_length(self, start, end) -> Optional[float]:
        """Front foot travel between two frames, or None if the ankle is untracked."""
        before = start.position(self.front_ankle)
        after = end.position(self.front_ankle)
        if before is None or after is None:
            return None
        return float(np.linalg.norm(after - before))

    def hip_shoulder_separation(self, pose) -> Optional[float]:
        return hip_shoulder_separation(pose)
