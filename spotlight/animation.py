"""Time-driven animations: ring rotation and the growing dispense marker."""

from __future__ import annotations

import random
from dataclasses import dataclass, field


@dataclass
class RotationSettings:
    """How the ring rotates; angles in radians, times in seconds."""

    random_rotation: bool = True
    min_rotation: float = 6.0
    max_rotation: float = 12.0
    randomize_direction: bool = True
    direction: int = 1
    randomize_rotation_time: bool = True
    rotation_time: float = 1.0
    min_rotation_time: float = 0.5
    max_rotation_time: float = 5.0
    randomize_rotation_delay: bool = True
    rotation_delay: float = 0.0
    min_rotation_delay: float = 0.0
    max_rotation_delay: float = 5.0


class RotationAnimator:
    """Alternates between rotating the ring to a new angle and pausing."""

    def __init__(
        self,
        settings: RotationSettings | None = None,
        rng: random.Random | None = None,
        theta: float = 0.0,
    ) -> None:
        self.settings = settings if settings is not None else RotationSettings()
        self.rng = rng if rng is not None else random.Random()
        self.theta = theta
        self.running = False
        self.in_rotation = False
        self.in_delay = False
        self.start_theta = 0.0
        self.target_theta = 0.0
        self.start_time = -1.0
        self.actual_rotation_time = 1.0
        self.actual_rotation_delay = 0.0

    def start(self, now: float) -> None:
        self.running = True
        self.start_time = now

    def stop(self) -> None:
        self.running = False
        self.in_rotation = False
        self.in_delay = False

    def _uniform(self, low: float, high: float) -> float:
        return low + self.rng.random() * (high - low)

    def _begin_rotation(self, now: float) -> None:
        s = self.settings
        self.start_theta = self.theta
        if s.random_rotation:
            magnitude = self._uniform(s.min_rotation, s.max_rotation)
            if s.randomize_direction:
                direction = self.rng.choice((1, -1))
            else:
                direction = s.direction
            self.target_theta = self.theta + direction * magnitude
        if s.randomize_rotation_time:
            self.actual_rotation_time = self._uniform(
                s.min_rotation_time, s.max_rotation_time
            )
        else:
            self.actual_rotation_time = s.rotation_time
        if s.randomize_rotation_delay:
            self.actual_rotation_delay = self._uniform(
                s.min_rotation_delay, s.max_rotation_delay
            )
        else:
            self.actual_rotation_delay = s.rotation_delay
        self.start_time = now
        self.in_rotation = True

    def update(self, now: float) -> float:
        """Advance to time ``now`` and return the current rotation angle."""
        if not self.running:
            return self.theta

        if not self.in_rotation and not self.in_delay:
            self._begin_rotation(now)

        if self.in_rotation:
            if self.actual_rotation_time > 0:
                t = (now - self.start_time) / self.actual_rotation_time
            else:
                t = 1.0
            if t >= 1.0:
                self.theta = self.target_theta
                self.in_rotation = False
                self.in_delay = True
                self.start_time = now
            else:
                self.theta = self.start_theta + t * (self.target_theta - self.start_theta)
        elif self.in_delay and now - self.start_time >= self.actual_rotation_delay:
            self.in_delay = False

        return self.theta


@dataclass
class DynamicCircle:
    """A circle that grows after each dispense, lingers at full size, then vanishes.

    Radii are relative to the smaller window side; times are in seconds.
    """

    max_duration: float = 3.0
    max_radius: float = 0.2
    linger_duration: float = 1.0
    start_time: float = field(default=-1.0)

    def trigger(self, now: float) -> None:
        """Restart growth from zero at time ``now``."""
        self.start_time = now

    def radius_at(self, now: float) -> float:
        """Radius at time ``now``; zero once growth and lingering are over."""
        elapsed = now - self.start_time
        if elapsed > self.linger_duration + self.max_duration:
            return 0.0
        return min(self.max_radius, elapsed / self.max_duration * self.max_radius)


__all__ = ["DynamicCircle", "RotationAnimator", "RotationSettings"]