"""Screen geometry: object mapping, circle outlines and the central circle."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

Point = tuple[float, float]

_CAMERA_X_OFFSET = 1107.0
_CAMERA_Y_OFFSET = 543.0
_CAMERA_SPAN = 1020.0
_DRIFT_THRESHOLD = 0.05
_SCREEN_CENTER: Point = (0.5, 0.5)


@dataclass(frozen=True)
class Box:
    """A detected object's bounding box in camera pixels."""

    x: float
    y: float
    width: float
    height: float


def lerp(a: Point, b: Point, t: float) -> Point:
    """Linear interpolation between two points."""
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _check_segments(segments: int) -> None:
    if segments < 1:
        raise ValueError("segments must be at least 1")


def circle_fan(cx: float, cy: float, radius: float, segments: int = 64) -> list[Point]:
    """Vertices of a triangle fan filling a circle: the centre, then the rim.

    The rim is closed, so it holds ``segments + 1`` points.
    """
    _check_segments(segments)
    vertices: list[Point] = [(cx, cy)]
    for i in range(segments + 1):
        theta = 2.0 * math.pi * i / segments
        vertices.append((cx + radius * math.cos(theta), cy + radius * math.sin(theta)))
    return vertices


def ring_strip(
    cx: float,
    cy: float,
    r_inner: float,
    r_outer: float,
    segments: int = 64,
    rotation: float = 0.0,
) -> list[tuple[int, Point, Point]]:
    """Vertex pairs of a triangle strip forming a ring.

    Each entry is ``(colour index, outer point, inner point)``; the colour
    index alternates between 0 and 1 so neighbouring segments differ.
    """
    _check_segments(segments)
    step = 2.0 * math.pi / segments
    strip: list[tuple[int, Point, Point]] = []
    for i in range(segments + 1):
        theta = i * step + rotation
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        strip.append(
            (
                i % 2,
                (cx + cos_t * r_outer, cy + sin_t * r_outer),
                (cx + cos_t * r_inner, cy + sin_t * r_inner),
            )
        )
    return strip


def box_to_screen(box: Box, width: int, height: int) -> Point:
    """Map a camera bounding box to the mirrored projector position of its marker."""
    x_center = box.x + box.width * 4 / 5.0
    y_center = box.y - box.height * 1 / 5.0
    # The horizontal margin is computed in whole pixels.
    margin = int((width - height) / 2)
    cx = (x_center - _CAMERA_X_OFFSET) / _CAMERA_SPAN * height + margin
    cx = width - cx
    cy = (y_center - _CAMERA_Y_OFFSET) / _CAMERA_SPAN * height
    return (cx, cy)


def collision_push(
    center: Point,
    radius: float,
    obstacles: Iterable[Point],
    obstacle_radius: float,
) -> Point:
    """Sum of pushes moving a circle out of overlapping obstacles, half the overlap each."""
    push_x = push_y = 0.0
    min_dist = radius + obstacle_radius
    for ox, oy in obstacles:
        dx = center[0] - ox
        dy = center[1] - oy
        dist_sq = dx * dx + dy * dy
        if 0.0 < dist_sq < min_dist * min_dist:
            dist = math.sqrt(dist_sq)
            strength = (min_dist - dist) * 0.5
            push_x += dx / dist * strength
            push_y += dy / dist * strength
    return (push_x, push_y)


def calibration_points(width: int, height: int) -> list[Point]:
    """Corners of the centred square the camera sees, for projector calibration."""
    left = width / 2.0 - height / 2.0
    right = width / 2.0 + height / 2.0
    return [(left, 0.0), (right, 0.0), (left, float(height)), (right, float(height))]


@dataclass
class CentralCircle:
    """The circle that is pushed around by objects and drifts back to the centre.

    ``center`` and ``radius`` are relative to the window size.
    """

    center: Point = field(default=_SCREEN_CENTER)
    radius: float = 0.1
    drift_speed: float = 0.1

    def pixel_radius(self, width: int, height: int) -> float:
        return self.radius * min(width, height)

    def reset(self) -> None:
        """Put the circle back in the middle of the window."""
        self.center = _SCREEN_CENTER

    def step(
        self,
        obstacles: Iterable[Point],
        obstacle_radius: float,
        width: int,
        height: int,
        collision_enabled: bool = True,
    ) -> Point:
        """Advance one frame and return the circle's pixel position."""
        radius = self.pixel_radius(width, height)
        pos_x = self.center[0] * width
        pos_y = self.center[1] * height

        if collision_enabled:
            push = collision_push((pos_x, pos_y), radius, obstacles, obstacle_radius)
        else:
            push = (0.0, 0.0)

        pos_x += push[0]
        pos_y += push[1]
        pos_x = max(radius, min(width - radius, pos_x))
        pos_y = max(radius, min(height - radius, pos_y))

        if math.hypot(*push) < _DRIFT_THRESHOLD:
            self.center = lerp(self.center, _SCREEN_CENTER, self.drift_speed)
            pos_x = self.center[0] * width
            pos_y = self.center[1] * height

        self.center = (pos_x / width, pos_y / height)
        return (pos_x, pos_y)


__all__ = [
    "Box",
    "CentralCircle",
    "Point",
    "box_to_screen",
    "calibration_points",
    "circle_fan",
    "collision_push",
    "lerp",
    "ring_strip",
]