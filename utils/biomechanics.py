"""
Biomechanical utility functions for swing phase detection and analysis.

Provides hand position proxies, hip/shoulder line rotation, spine angle,
arm extension and static-position checks over PoseFrame objects. Untracked
joints make a helper return None (or False for predicates) rather than a
zero position.
"""

import math
from typing import Optional, Sequence

import numpy as np

from services.models import PoseFrame
from utils.geometry import (
    angle_between_vectors,
    horizontal_projection,
    joint_angle,
    midpoint,
)

VERTICAL_AXIS = np.array([0.0, 1.0, 0.0])


def hand_position(frame) -> Optional[np.ndarray]:
    """
    Representative hand position for a frame.

    Args:
        frame: PoseFrame to read wrists from.

    Returns:
        Mean of both wrists when both are tracked, the single tracked wrist
        otherwise, or None when neither is tracked.
    """
    left = frame.position("left_wrist")
    right = frame.position("right_wrist")

    if left is not None and right is not None:
        return midpoint(left, right)
    if left is not None:
        return left
    return right


def dominant_hand_position(frame, left_handed: bool = False) -> Optional[np.ndarray]:
    """Position of the dominant wrist, or None if it is untracked."""
    return frame.position("left_wrist" if left_handed else "right_wrist")


def hip_center(frame) -> Optional[np.ndarray]:
    """Midpoint of both hips, or None if either hip is untracked."""
    left = frame.position("left_hip")
    right = frame.position("right_hip")

    if left is None or right is None:
        return None
    return midpoint(left, right)


def shoulder_center(frame) -> Optional[np.ndarray]:
    """Midpoint of both shoulders, or None if either shoulder is untracked."""
    left = frame.position("left_shoulder")
    right = frame.position("right_shoulder")

    if left is None or right is None:
        return None
    return midpoint(left, right)


def _line_vector(frame, left_joint: str, right_joint: str) -> Optional[np.ndarray]:
    left = frame.position(left_joint)
    right = frame.position(right_joint)

    if left is None or right is None:
        return None
    return right - left


def line_rotation(start, end, left_joint: str, right_joint: str) -> Optional[float]:
    """
    Rotation of a left-right joint line between two frames.

    Both lines (right minus left) are projected onto the horizontal (x, z)
    plane before measuring the angle between them.

    Args:
        start: Reference PoseFrame (usually setup).
        end: Later PoseFrame (usually impact).
        left_joint: Name of the left joint, e.g. 'left_hip'.
        right_joint: Name of the right joint, e.g. 'right_hip'.

    Returns:
        Rotation in degrees (0-180), or None if a joint is untracked or a
        projected line has zero length.
    """
    start_line = _line_vector(start, left_joint, right_joint)
    end_line = _line_vector(end, left_joint, right_joint)

    if start_line is None or end_line is None:
        return None

    return angle_between_vectors(
        horizontal_projection(start_line), horizontal_projection(end_line)
    )


def hip_shoulder_separation(frame) -> Optional[float]:
    """
    Angle between the hip line and the shoulder line in the horizontal plane.

    Returns:
        Separation in degrees, or None if any hip or shoulder is untracked.
    """
    hips = _line_vector(frame, "left_hip", "right_hip")
    shoulders = _line_vector(frame, "left_shoulder", "right_shoulder")

    if hips is None or shoulders is None:
        return None

    return angle_between_vectors(horizontal_projection(hips), horizontal_projection(shoulders))


def line_angle(frame, left_joint: str, right_joint: str) -> Optional[float]:
    """
    Orientation of a left-right joint line around the vertical axis.

    Returns:
        Angle in radians from atan2(dz, dx), or None if a joint is
        untracked or the joints coincide in the horizontal plane.
    """
    line = _line_vector(frame, left_joint, right_joint)
    if line is None or (line[0] == 0 and line[2] == 0):
        return None
    return math.atan2(line[2], line[0])


def shoulder_line_angle(frame) -> Optional[float]:
    """Orientation of the shoulder line around the vertical axis, in radians."""
    return line_angle(frame, "left_shoulder", "right_shoulder")


def hip_line_angle(frame) -> Optional[float]:
    """Orientation of the hip line around the vertical axis, in radians."""
    return line_angle(frame, "left_hip", "right_hip")


def spine_angle(frame) -> Optional[float]:
    """
    Spine tilt from vertical.

    Measured as the angle between the hip-center-to-head vector and the
    vertical axis.

    Returns:
        Angle in degrees (0 = upright), or None if the head or a hip is
        untracked.
    """
    head = frame.position("head")
    center = hip_center(frame)

    if head is None or center is None:
        return None

    return angle_between_vectors(head - center, VERTICAL_AXIS)


def arm_extension(frame, side: str = "right") -> Optional[float]:
    """
    Elbow extension score for one arm.

    The shoulder-elbow-wrist angle maps linearly onto 0-100, with a fully
    straight arm (180 degrees) scoring 100.

    Args:
        frame: PoseFrame to measure.
        side: Which arm to measure - 'left' or 'right'.

    Returns:
        Extension score (0-100), or None if a joint is untracked.
    """
    angle = joint_angle(frame, f"{side}_shoulder", f"{side}_elbow", f"{side}_wrist")
    if angle is None:
        return None
    return min(angle / 180.0 * 100.0, 100.0)


def hands_above_shoulders(frame, margin: float = 0.1) -> bool:
    """True if the hand proxy is more than margin above mean shoulder height."""
    hands = hand_position(frame)
    shoulders = shoulder_center(frame)

    if hands is None or shoulders is None:
        return False
    return hands[1] > shoulders[1] + margin


def is_static_position(
    frames: Sequence[PoseFrame], threshold: float, window: int = 10
) -> bool:
    """
    Check whether the hand proxy stayed put over the trailing window.

    Args:
        frames: Ordered frames, most recent last.
        threshold: Maximum allowed distance from the window's first hand
            position.
        window: Number of trailing frames to inspect (default: 10).

    Returns:
        True if at least window frames exist and every hand position in the
        window lies within threshold of the first. False if any frame in the
        window has no tracked wrist.
    """
    if len(frames) < window:
        return False

    positions = [hand_position(f) for f in frames[-window:]]
    if any(p is None for p in positions):
        return False

    reference = positions[0]
    return all(np.linalg.norm(p - reference) <= threshold for p in positions[1:])


def segment_angular_velocity(current, previous, angle_fn) -> Optional[float]:
    """
    Angular velocity of a body segment between two frames.

    Args:
        current: Later PoseFrame.
        previous: Earlier PoseFrame.
        angle_fn: Function mapping a frame to an orientation in radians
            (e.g. hip_line_angle).

    Returns:
        Absolute angular velocity in degrees per second, or None if the
        orientation is unavailable or the frames are not strictly ordered.
    """
    dt = current.timestamp - previous.timestamp
    if dt <= 0:
        return None

    current_angle = angle_fn(current)
    previous_angle = angle_fn(previous)
    if current_angle is None or previous_angle is None:
        return None

    # Wrap into [-pi, pi] so crossing the atan2 branch cut is not a spike
    delta = (current_angle - previous_angle + math.pi) % (2 * math.pi) - math.pi
    return abs(math.degrees(delta)) / dt


def create_sample_frame(timestamp: float = 0.0, confidence: float = 0.9) -> PoseFrame:
    """
    Create a sample frame for testing purposes.

    Returns:
        PoseFrame of an upright athlete facing the camera, hips at y=1.0 and
        hands together in front of the body.
    """
    joints = {
        "head": (0.0, 1.75, 0.0),
        "neck": (0.0, 1.55, 0.0),
        "left_shoulder": (-0.2, 1.5, 0.0),
        "right_shoulder": (0.2, 1.5, 0.0),
        "left_elbow": (-0.15, 1.35, 0.15),
        "right_elbow": (0.15, 1.35, 0.15),
        "left_wrist": (0.0, 1.2, 0.3),
        "right_wrist": (0.0, 1.2, 0.3),
        "left_hip": (-0.15, 1.0, 0.0),
        "right_hip": (0.15, 1.0, 0.0),
        "left_knee": (-0.15, 0.55, 0.05),
        "right_knee": (0.15, 0.55, 0.05),
        "left_ankle": (-0.25, 0.1, 0.0),
        "right_ankle": (0.25, 0.1, 0.0),
        "root": (0.0, 1.0, 0.0),
    }
    return PoseFrame(
        timestamp=timestamp,
        joints=joints,
        confidence={name: confidence for name in joints},
    )
