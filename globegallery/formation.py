"""Scatter to sphere formation.

Every thumbnail owns two fixed endpoints: a random scatter position and its
place on the sphere.  The displayed position is a plain linear blend of the
two driven by a single progress value; any easing belongs to how the
progress evolves, which is the job of :class:`FormationTracker`.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from .layouts import Vec3

__all__ = ["FormationTracker", "clamp01", "interpolate", "interpolate_layout"]


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def interpolate(scatter: Vec3, sphere: Vec3, progress: float) -> Vec3:
    return (
        scatter[0] + (sphere[0] - scatter[0]) * progress,
        scatter[1] + (sphere[1] - scatter[1]) * progress,
        scatter[2] + (sphere[2] - scatter[2]) * progress,
    )


def interpolate_layout(
    scatter_layout: Sequence[Vec3],
    sphere_layout: Sequence[Vec3],
    progress: float,
) -> List[Vec3]:
    """Blend two index aligned layouts; extra entries on either side are ignored."""

    return [interpolate(s, p, progress) for s, p in zip(scatter_layout, sphere_layout)]


class FormationTracker:
    """Pointer travel accumulator with idle decay.

    Each pointer move adds ``distance / px_for_full``.  Once nothing happened
    for ``idle_grace_ms`` the value loses ``decay_step`` on every
    ``decay_tick_ms`` tick until it reaches zero.  The value is clamped to
    [0, 1] after every update.
    """

    def __init__(
        self,
        *,
        px_for_full: float = 10000.0,
        decay_step: float = 0.01,
        idle_grace_ms: float = 5000.0,
        decay_tick_ms: float = 50.0,
        now_ms: float = 0.0,
    ) -> None:
        self.px_for_full = max(1e-6, float(px_for_full))
        self.decay_step = max(0.0, float(decay_step))
        self.idle_grace_ms = max(0.0, float(idle_grace_ms))
        self.decay_tick_ms = max(1.0, float(decay_tick_ms))
        self._value = 0.0
        self._last_activity_ms = float(now_ms)
        self._last_tick_ms = float(now_ms)
        self._interacting = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def interacting(self) -> bool:
        return self._interacting

    @property
    def last_activity_ms(self) -> float:
        return self._last_activity_ms

    def set_value(self, value: float) -> None:
        self._value = clamp01(float(value))

    def reset(self, now_ms: Optional[float] = None) -> None:
        self._value = 0.0
        if now_ms is not None:
            self.touch(now_ms)

    def touch(self, now_ms: float) -> None:
        """Restart the idle grace period."""

        self._last_activity_ms = float(now_ms)

    def set_interacting(self, active: bool, now_ms: float) -> None:
        self._interacting = bool(active)
        self.touch(now_ms)

    def add_movement(self, dx: float, dy: float, now_ms: float) -> float:
        distance = math.hypot(dx, dy)
        if math.isfinite(distance) and distance > 0.0:
            self._value = clamp01(self._value + distance / self.px_for_full)
        self.touch(now_ms)
        return self._value

    def idle(self, now_ms: float) -> bool:
        if self._interacting:
            return False
        return now_ms - self._last_activity_ms >= self.idle_grace_ms

    def decay(self, now_ms: float) -> bool:
        """Run one decay tick; return True when the value changed."""

        if self._value <= 0.0 or not self.idle(now_ms):
            return False
        self._value = clamp01(self._value - self.decay_step)
        return True

    def advance(self, now_ms: float) -> bool:
        """Run every decay tick that fell due up to ``now_ms``."""

        if now_ms < self._last_tick_ms:
            self._last_tick_ms = float(now_ms)
            return False
        ticks = int((now_ms - self._last_tick_ms) // self.decay_tick_ms)
        changed = False
        for k in range(1, ticks + 1):
            if self.decay(self._last_tick_ms + k * self.decay_tick_ms):
                changed = True
        self._last_tick_ms += ticks * self.decay_tick_ms
        return changed

    def resync(self, now_ms: float) -> None:
        """Drop decay ticks owed for a period where the tracker was frozen."""

        self._last_tick_ms = float(now_ms)
