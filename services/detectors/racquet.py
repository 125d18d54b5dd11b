"""
Tennis and pickleball stroke phase rules.

Tracks the dominant wrist. While the player is in setup the stroke type
is classified every frame (serve, forehand or backhand) unless a fixed
stroke type is configured; the serve follows a vertical path, while
groundstrokes follow a lateral one.
"""

import logging

from services.detectors.base import PhaseStrategy
from services.models import Sport, SwingPhase
from utils.biomechanics import dominant_hand_position, hip_center, is_static_position

logger = logging.getLogger(__name__)

STROKE_TYPES = ("forehand", "backhand", "serve", "volley", "overhead")

# (preparation, swing, contact) hand speed thresholds in m/s
SPEED_THRESHOLDS = {
    Sport.TENNIS: (1.5, 4.0, 6.0),
    Sport.PICKLEBALL: (1.0, 3.0, 4.5),
}


class RacquetStrategy(PhaseStrategy):
    """Phase rules for tennis and pickleball strokes."""

    sports = (Sport.TENNIS, Sport.PICKLEBALL)

    READY_STILLNESS = 0.08
    SERVE_HEIGHT_ABOVE_SHOULDER = 0.4
    FOREHAND_OFFSET = 0.1
    FOLLOW_THROUGH_RATIO = 0.7

    def __init__(self, sport, config):
        self.fixed_stroke_type = config.stroke_type
        self.preparation_speed, self.swing_speed, self.contact_speed = SPEED_THRESHOLDS[sport]
        super().__init__(sport, config)

    def reset(self):
        self.ready_confirmed = False
        self.max_reach_height = 0.0
        self.stroke_start_time = None
        self.stroke_type = self.fixed_stroke_type or "forehand"

    def hand(self, frame):
        return dominant_hand_position(frame, self.left_handed)

    @property
    def dominant_shoulder(self) -> str:
        return "left_shoulder" if self.left_handed else "right_shoulder"

    @property
    def is_serve(self) -> bool:
        return self.stroke_type in ("serve", "overhead")

    def observe(self, pose, history, analysis):
        if analysis.current_phase == SwingPhase.SETUP and self.fixed_stroke_type is None:
            self.stroke_type = self.classify_stroke(pose)

    def classify_stroke(self, pose) -> str:
        """
        Classify the upcoming stroke from the dominant hand position.

        Returns:
            'serve' when the hand is well above the shoulders, 'forehand'
            when it sits on the dominant side of the body, 'backhand'
            otherwise. Defaults to 'forehand' when joints are untracked.
        """
        hand = self.hand(pose)
        shoulder = pose.position(self.dominant_shoulder)
        if hand is None or shoulder is None:
            return "forehand"

        if hand[1] > shoulder[1] + self.SERVE_HEIGHT_ABOVE_SHOULDER:
            return "serve"

        center = hip_center(pose)
        if center is None:
            return "forehand"

        offset = self.lateral(hand[0] - center[0])
        return "forehand" if offset > self.FOREHAND_OFFSET else "backhand"

    def leave_setup(self, pose, history, analysis) -> bool:
        if not self.ready_confirmed:
            if is_static_position(history, self.READY_STILLNESS):
                self.ready_confirmed = True
                logger.debug("Ready position confirmed (%s)", self.stroke_type)
            return False

        previous = self.previous(history)
        if previous is None:
            return False

        movement = self.hand_movement(pose, previous)
        speed = self.hand_speed(pose, previous)
        if movement is None or speed is None or speed <= self.preparation_speed:
            return False

        if self.is_serve:
            if movement[1] <= 0.02:
                return False
            self.max_reach_height = float(self.hand(pose)[1])
        elif self.lateral(movement[0]) >= -0.02:
            return False

        self.stroke_start_time = pose.timestamp
        return True

    def leave_backswing(self, pose, history, analysis) -> bool:
        hand = self.hand(pose)
        if hand is None:
            return False

        if self.is_serve:
            self.max_reach_height = max(self.max_reach_height, float(hand[1]))

        recent = self.last_three(history)
        if recent is None:
            return False
        h1, h2, h3 = recent

        if self.is_serve:
            was_rising = h2[1] > h1[1]
            now_falling = h3[1] < h2[1]
            return was_rising and now_falling and hand[1] > self.max_reach_height - 0.05

        moved_back = self.lateral(h1[0] - h2[0]) > 0
        moving_forward = self.lateral(h3[0] - h2[0]) > 0
        return moved_back and moving_forward

    def leave_transition(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        if speed is None or speed <= self.swing_speed:
            return False

        movement = self.hand_movement(pose, previous)
        if movement is None:
            return False

        if self.is_serve:
            return movement[1] < -0.01
        return self.lateral(movement[0]) > 0.01

    def leave_downswing(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        hand = self.hand(pose)
        if speed is None or hand is None or speed <= self.contact_speed:
            return False

        return self.in_contact_zone(hand, pose)

    def leave_impact(self, pose, history, analysis) -> bool:
        previous = self.previous(history)
        if previous is None:
            return False

        speed = self.hand_speed(pose, previous)
        return speed is not None and speed < self.contact_speed * self.FOLLOW_THROUGH_RATIO

    def in_contact_zone(self, hand, pose) -> bool:
        """
        Check whether the dominant hand is where the ball is struck.

        Serves make contact more than 30cm above the dominant shoulder.
        Groundstrokes make contact between waist height (30cm above the
        hips) and 20cm above the shoulder, at least 20cm in front of or
        behind the body center.
        """
        shoulder = pose.position(self.dominant_shoulder)
        if shoulder is None:
            return False

        if self.is_serve:
            return hand[1] > shoulder[1] + 0.3

        hip = self.reference_hip(pose)
        center = hip_center(pose)
        if hip is None or center is None:
            return False

        waist_height = hip[1] + 0.3
        in_height_range = waist_height < hand[1] < shoulder[1] + 0.2
        in_front_of_body = abs(hand[2] - center[2]) > 0.2
        return in_height_range and in_front_of_body

    def is_in_ready_position(self, pose) -> bool:
        """Both wrists level (within 15cm) and in front of the hips."""
        left = pose.position("left_wrist")
        right = pose.position("right_wrist")
        center = hip_center(pose)
        if left is None or right is None or center is None:
            return False

        hands_level = abs(left[1] - right[1]) < 0.15
        both_in_front = left[2] > center[2] and right[2] > center[2]
        return hands_level and both_in_front
