"""
Geometry utility functions for swing analysis.

Provides angle, velocity, and distance calculations over 3D joint
positions. Every function is total over its inputs: degenerate vectors,
untracked joints, and non-positive time deltas yield None instead of
NaN, infinity, or an exception.
"""

from typing import Optional, Sequence

import numpy as np


def _as_vector(point) -> np.ndarray:
    """Convert a sequence or {'x','y','z'} dict into a float numpy vector."""
    if isinstance(point, dict):
        coords = [point["x"], point["y"]]
        if "z" in point:
            coords.append(point["z"])
        return np.asarray(coords, dtype=float)
    return np.asarray(point, dtype=float)


def angle_between_vectors(v1: Sequence[float], v2: Sequence[float]) -> Optional[float]:
    """
    Calculate the angle between two 2D or 3D vectors.

    Args:
        v1: First vector.
        v2: Second vector.

    Returns:
        Angle in degrees (0-180), or None if either vector has zero length.
    """
    a = _as_vector(v1)
    b = _as_vector(v2)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return None

    cosine_angle = np.dot(a / norm_a, b / norm_b)
    cosine_angle = np.clip(cosine_angle, -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine_angle)))


def calculate_angle(point_a, point_b, point_c) -> Optional[float]:
    """
    Calculate the angle at point B formed by points A, B, C.

    Args:
        point_a: First point (sequence or dict with 'x', 'y'[, 'z']).
        point_b: Vertex point.
        point_c: Third point.

    Returns:
        Angle in degrees (0-180), or None if B coincides with A or C.
    """
    a = _as_vector(point_a)
    b = _as_vector(point_b)
    c = _as_vector(point_c)

    return angle_between_vectors(a - b, c - b)


def joint_angle(frame, joint_a: str, vertex: str, joint_c: str) -> Optional[float]:
    """
    Calculate the angle at a vertex joint formed by two other joints.

    Args:
        frame: PoseFrame to read positions from.
        joint_a: First endpoint joint name.
        vertex: Vertex joint name.
        joint_c: Second endpoint joint name.

    Returns:
        Angle in degrees (0-180), or None if any joint is untracked.
    """
    a = frame.position(joint_a)
    b = frame.position(vertex)
    c = frame.position(joint_c)

    if a is None or b is None or c is None:
        return None

    return calculate_angle(a, b, c)


def calculate_velocity(current_pos, previous_pos, time_delta: float) -> Optional[float]:
    """
    Calculate scalar velocity between two positions.

    Args:
        current_pos: Current position.
        previous_pos: Previous position.
        time_delta: Time between positions in seconds.

    Returns:
        Velocity in units per second. Returns None if time_delta <= 0.
    """
    if time_delta <= 0:
        return None

    displacement = _as_vector(current_pos) - _as_vector(previous_pos)
    return float(np.linalg.norm(displacement)) / time_delta


def joint_velocity(current, previous, joint: str) -> Optional[np.ndarray]:
    """
    Finite-difference velocity vector of a joint between two frames.

    Args:
        current: Later PoseFrame.
        previous: Earlier PoseFrame.
        joint: Joint name.

    Returns:
        Velocity vector in units per second, or None when the joint is
        untracked in either frame or the frames are not strictly ordered.
    """
    current_pos = current.position(joint)
    previous_pos = previous.position(joint)

    if current_pos is None or previous_pos is None:
        return None

    delta_time = current.timestamp - previous.timestamp
    if delta_time <= 0:
        return None

    return (current_pos - previous_pos) / delta_time


def joint_speed(current, previous, joint: str) -> Optional[float]:
    """Magnitude of joint_velocity, or None."""
    velocity = joint_velocity(current, previous, joint)
    if velocity is None:
        return None
    return float(np.linalg.norm(velocity))


def joint_distance(frame, joint_a: str, joint_b: str) -> Optional[float]:
    """
    Euclidean distance between two joints of the same frame.

    Returns:
        Distance in position units, or None if either joint is untracked.
    """
    a = frame.position(joint_a)
    b = frame.position(joint_b)

    if a is None or b is None:
        return None

    return float(np.linalg.norm(a - b))


def midpoint(point_a, point_b) -> np.ndarray:
    """Midpoint of two positions."""
    return (_as_vector(point_a) + _as_vector(point_b)) / 2.0


def horizontal_projection(vector) -> np.ndarray:
    """
    Project a 3D vector onto the horizontal (x, z) plane.

    Returns:
        2D vector (x, z).
    """
    v = _as_vector(vector)
    return np.array([v[0], v[2]])
