"""
Camera moves for still-image clips.

A move is a pure function of progress in [0, 1]. Forward moves ease out
(fast start, gentle landing), the pull-back eases in, and the zoom never goes
past 6% so the photographed scene stays recognisable.
"""

import enum
from dataclasses import dataclass

MAX_ZOOM = 0.06
ORBIT_OFFSET = 0.03  # fraction of canvas width


class CameraAngle(str, enum.Enum):
    AUTO = "auto"
    WIDE_SHOT = "wide-shot"
    PUSH_IN = "push-in"
    PUSH_OUT = "push-out"
    ORBIT_LEFT = "orbit-left"
    ORBIT_RIGHT = "orbit-right"
    # Vendor vocabulary
    ZOOM_IN = "zoom-in"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"


# Vendor names -> canvas moves
_CANVAS_ALIASES = {
    CameraAngle.ZOOM_IN: CameraAngle.PUSH_IN,
    CameraAngle.PAN_LEFT: CameraAngle.ORBIT_LEFT,
    CameraAngle.PAN_RIGHT: CameraAngle.ORBIT_RIGHT,
}

# Canvas moves -> vendor names. push-out has no vendor equivalent.
_VENDOR_ALIASES = {
    CameraAngle.PUSH_IN: CameraAngle.ZOOM_IN,
    CameraAngle.ORBIT_LEFT: CameraAngle.PAN_LEFT,
    CameraAngle.ORBIT_RIGHT: CameraAngle.PAN_RIGHT,
    CameraAngle.PUSH_OUT: CameraAngle.AUTO,
}


def canvas_angle(angle: CameraAngle) -> CameraAngle:
    return _CANVAS_ALIASES.get(CameraAngle(angle), CameraAngle(angle))


def vendor_angle(angle: CameraAngle) -> CameraAngle:
    return _VENDOR_ALIASES.get(CameraAngle(angle), CameraAngle(angle))


@dataclass(frozen=True)
class Transform:
    scale: float
    offset_x: float  # fraction of canvas width
    offset_y: float  # fraction of canvas height


IDENTITY = Transform(scale=1.0, offset_x=0.0, offset_y=0.0)


def ease_out(t: float) -> float:
    return 1 - (1 - t) ** 3


def ease_in(t: float) -> float:
    return t ** 3


def get_transform(angle: CameraAngle, progress: float) -> Transform:
    """Transform for `angle` at `progress` (clamped to [0, 1])."""
    p = min(max(progress, 0.0), 1.0)
    move = canvas_angle(angle)

    if move in (CameraAngle.PUSH_IN, CameraAngle.AUTO):
        return Transform(1 + MAX_ZOOM * ease_out(p), 0.0, 0.0)
    if move == CameraAngle.PUSH_OUT:
        return Transform(1 + MAX_ZOOM * (1 - ease_in(p)), 0.0, 0.0)
    if move == CameraAngle.ORBIT_RIGHT:
        # Camera moves right, so the image slides left.
        t = ease_out(p)
        return Transform(1 + MAX_ZOOM * t, -ORBIT_OFFSET * t, 0.0)
    if move == CameraAngle.ORBIT_LEFT:
        t = ease_out(p)
        return Transform(1 + MAX_ZOOM * t, ORBIT_OFFSET * t, 0.0)
    return IDENTITY


def frame_progress(frame_index: int, fps: int, duration: float) -> float:
    """Progress of a frame from its presentation time, not from a frame count."""
    if duration <= 0:
        return 1.0
    return min((frame_index / fps) / duration, 1.0)
