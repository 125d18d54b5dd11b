"""
Shared swing fixtures.

Each builder moves the wrists of the sample pose through a scripted
trajectory at 30fps so that every phase rule of the sport fires on a
known frame.
"""

import math

import pytest

from services.models import PoseFrame
from utils.biomechanics import create_sample_frame

FPS = 30.0


def build_frames(steps, start_hand=(0.0, 1.2, 0.3), overrides=None, confidence=0.9,
                 move_left_wrist=True):
    """
    Build frames from per-frame wrist displacements.

    Args:
        steps: List of (dx, dy) wrist displacements, one per frame. The
            first frame's step is ignored.
        start_hand: Starting wrist position.
        overrides: Optional {frame_index: {joint: position}} applied after
            the wrists are placed; a None key applies to every frame.
        confidence: Confidence for every joint.
        move_left_wrist: Move the left wrist along with the right one.
    """
    overrides = overrides or {}
    frames = []
    x, y, z = start_hand

    for i, (dx, dy) in enumerate(steps):
        if i > 0:
            x += dx
            y += dy

        base = create_sample_frame(timestamp=i / FPS, confidence=confidence)
        joints = dict(base.joints)
        joints["right_wrist"] = (x, y, z)
        if move_left_wrist:
            joints["left_wrist"] = (x, y, z)
        else:
            joints["left_wrist"] = start_hand
        joints.update(overrides.get(None, {}))
        joints.update(overrides.get(i, {}))

        frames.append(PoseFrame(
            timestamp=base.timestamp,
            joints=joints,
            confidence={name: confidence for name in joints},
        ))
    return frames


def golf_steps(mirror=False):
    """
    Wrist steps for a full golf swing (60 frames).

    Address is confirmed at frame 9, backswing starts at 12, the top is
    at 22, downswing at 26, impact at 28 and follow-through at 29.
    """
    steps = [(0.0, 0.0)] * 12
    steps += [(0.04, 0.06)] * 10
    steps += [(-0.01, -0.02)] * 4
    steps += [(-0.08, -0.12)] * 2
    steps += [(-0.12, -0.15)]
    steps += [(-0.05, 0.05)]
    steps += [(-0.005, 0.01)] * 30
    if mirror:
        steps = [(-dx, dy) for dx, dy in steps]
    return steps


def tennis_forehand_steps():
    """
    Dominant wrist steps for a forehand (30 frames).

    Backswing at frame 12, transition at 16, downswing at 17, impact at
    18 and follow-through at 19.
    """
    steps = [(0.0, 0.0)] * 12
    steps += [(-0.06, 0.0)] * 4
    steps += [(0.03, 0.0)]
    steps += [(0.15, 0.0)]
    steps += [(0.21, 0.0)]
    steps += [(0.05, 0.0)]
    steps += [(0.0, 0.0)] * 10
    return steps


def batting_steps(mirror=False):
    """
    Hand steps for a baseball swing (25 frames).

    Load at frame 12, transition at 14, swing at 15, contact at 16 and
    follow-through at 17.
    """
    steps = [(0.0, 0.0)] * 12
    steps += [(0.04, 0.02)] * 2
    steps += [(-0.01, 0.0)]
    steps += [(-0.14, 0.0)]
    steps += [(-0.25, 0.0)]
    steps += [(-0.05, 0.0)]
    steps += [(0.0, 0.0)] * 7
    if mirror:
        steps = [(-dx, dy) for dx, dy in steps]
    return steps


def turned_line(half_width, height, angle):
    """Left and right joint positions of a line turned by angle (radians) about the vertical."""
    dx = half_width * math.cos(angle)
    dz = half_width * math.sin(angle)
    return (-dx, height, -dz), (dx, height, dz)


def batting_overrides(mirror=False, turn_shoulders=False, turn_per_frame=0.2):
    """
    Planted feet for every frame and hips opened from frame 15 on.

    By default the hips snap open once at frame 15. With turn_shoulders
    the hips keep turning by turn_per_frame radians every frame and the
    shoulders turn with them, so hip-shoulder separation never changes.
    """
    sign = -1.0 if mirror else 1.0
    overrides = {None: {"left_ankle": (-0.25, 0.05, 0.0), "right_ankle": (0.25, 0.05, 0.0)}}
    for i in range(15, 25):
        if turn_shoulders:
            angle = sign * turn_per_frame * (i - 14)
            left_hip, right_hip = turned_line(0.15, 1.0, angle)
            left_shoulder, right_shoulder = turned_line(0.2, 1.5, angle)
            overrides[i] = {
                "left_hip": left_hip,
                "right_hip": right_hip,
                "left_shoulder": left_shoulder,
                "right_shoulder": right_shoulder,
            }
        else:
            overrides[i] = {
                "left_hip": (-0.15, 1.0, -0.03 * sign),
                "right_hip": (0.15, 1.0, 0.03 * sign),
            }
    return overrides


def serve_steps():
    """
    Dominant wrist heights for a serve (30 frames).

    Toss and reach at frame 12, top at 16, drive down at 17, contact at 18
    and follow-through at 19.
    """
    steps = [(0.0, 0.0)] * 12
    steps += [(0.0, 0.06)] * 4
    steps += [(0.0, -0.03)]
    steps += [(0.0, -0.15)]
    steps += [(0.0, -0.21)]
    steps += [(0.0, -0.05)]
    steps += [(0.0, 0.0)] * 10
    return steps


def pickleball_forehand_steps():
    """
    Dominant wrist steps for a pickleball dink-to-drive forehand (30 frames).

    Slower than a tennis forehand: backswing at frame 12, transition at
    16, downswing at 17, contact at 18 and follow-through at 19.
    """
    steps = [(0.0, 0.0)] * 12
    steps += [(-0.04, 0.0)] * 4
    steps += [(0.02, 0.0)]
    steps += [(0.11, 0.0)]
    steps += [(0.16, 0.0)]
    steps += [(0.03, 0.0)]
    steps += [(0.0, 0.0)] * 10
    return steps


@pytest.fixture
def golf_swing():
    return build_frames(golf_steps())


@pytest.fixture
def left_handed_golf_swing():
    return build_frames(golf_steps(mirror=True))


@pytest.fixture
def tennis_forehand():
    return build_frames(
        tennis_forehand_steps(), start_hand=(0.3, 1.4, 0.3), move_left_wrist=False
    )


@pytest.fixture
def batting_swing():
    return build_frames(batting_steps(), overrides=batting_overrides())


@pytest.fixture
def mirrored_batting_swing():
    return build_frames(batting_steps(mirror=True), overrides=batting_overrides(mirror=True))


@pytest.fixture
def rotating_batting_swing():
    return build_frames(batting_steps(), overrides=batting_overrides(turn_shoulders=True))


@pytest.fixture
def tennis_serve():
    return build_frames(serve_steps(), start_hand=(0.3, 2.0, 0.3), move_left_wrist=False)


@pytest.fixture
def pickleball_forehand():
    return build_frames(
        pickleball_forehand_steps(), start_hand=(0.3, 1.4, 0.3), move_left_wrist=False
    )
