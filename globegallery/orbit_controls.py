"""User driven orbit rotation around a target point."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

from .layouts import Vec3, vec_add, vec_length, vec_sub

__all__ = ["Camera", "CameraPose", "OrbitControls"]

_POLAR_EPS = 1e-3


@dataclass(frozen=True)
class CameraPose:
    """Camera position plus the point it looks at."""

    position: Vec3
    target: Vec3


@dataclass
class Camera:
    position: Vec3 = (0.0, 0.0, 5.0)
    target: Vec3 = (0.0, 0.0, 0.0)
    fov: float = 75.0
    up: Vec3 = field(default=(0.0, 1.0, 0.0))

    def look_at(self, target: Vec3) -> None:
        self.target = (float(target[0]), float(target[1]), float(target[2]))

    def pose(self) -> CameraPose:
        return CameraPose(self.position, self.target)

    def apply(self, pose: CameraPose) -> None:
        self.position = pose.position
        self.target = pose.target


def _to_spherical(offset: Vec3) -> Tuple[float, float, float]:
    radius = vec_length(offset)
    if radius <= 1e-12:
        return 0.0, 0.0, math.pi / 2.0
    theta = math.atan2(offset[0], offset[2])
    phi = math.acos(max(-1.0, min(1.0, offset[1] / radius)))
    return radius, theta, phi


def _from_spherical(radius: float, theta: float, phi: float) -> Vec3:
    sin_phi = math.sin(phi)
    return (
        radius * sin_phi * math.sin(theta),
        radius * math.cos(phi),
        radius * sin_phi * math.cos(theta),
    )


class OrbitControls:
    """Drag to rotate the camera around ``target`` with damped inertia.

    The controls only write the camera transform from :meth:`update` and only
    while :attr:`enabled` is set; whoever animates the camera clears the flag
    for the duration.
    """

    def __init__(
        self,
        camera: Camera,
        *,
        target: Vec3 = (0.0, 0.0, 0.0),
        damping_factor: float = 0.05,
        rotate_speed: float = 0.005,
        enable_zoom: bool = False,
        min_distance: float = 0.5,
        max_distance: float = 50.0,
    ) -> None:
        self.camera = camera
        self.target: Vec3 = target
        self.enabled = True
        self.damping_factor = max(0.0, min(1.0, float(damping_factor)))
        self.rotate_speed = float(rotate_speed)
        self.enable_zoom = bool(enable_zoom)
        self.min_distance = float(min_distance)
        self.max_distance = float(max_distance)
        self.dragging = False
        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._scale = 1.0

    def begin_drag(self) -> None:
        if self.enabled:
            self.dragging = True

    def end_drag(self) -> None:
        self.dragging = False

    def drag(self, dx: float, dy: float) -> None:
        if not self.enabled:
            return
        self._delta_theta -= dx * self.rotate_speed
        self._delta_phi -= dy * self.rotate_speed

    def zoom(self, factor: float) -> None:
        if not (self.enabled and self.enable_zoom) or factor <= 0.0:
            return
        self._scale *= factor

    def reset(self, target: Vec3 = (0.0, 0.0, 0.0)) -> None:
        """Drop pending inertia and orbit around ``target`` from now on."""

        self.target = target
        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._scale = 1.0
        self.dragging = False

    def update(self) -> bool:
        """Apply one frame of rotation; return True when the camera moved."""

        if not self.enabled:
            self._delta_theta = 0.0
            self._delta_phi = 0.0
            self._scale = 1.0
            return False
        if abs(self._delta_theta) < 1e-7 and abs(self._delta_phi) < 1e-7 and self._scale == 1.0:
            return False
        radius, theta, phi = _to_spherical(vec_sub(self.camera.position, self.target))
        if self.damping_factor > 0.0:
            theta += self._delta_theta * self.damping_factor
            phi += self._delta_phi * self.damping_factor
        else:
            theta += self._delta_theta
            phi += self._delta_phi
        phi = max(_POLAR_EPS, min(math.pi - _POLAR_EPS, phi))
        radius = max(self.min_distance, min(self.max_distance, radius * self._scale))
        self.camera.position = vec_add(self.target, _from_spherical(radius, theta, phi))
        self.camera.look_at(self.target)
        if self.damping_factor > 0.0:
            self._delta_theta *= 1.0 - self.damping_factor
            self._delta_phi *= 1.0 - self.damping_factor
        else:
            self._delta_theta = 0.0
            self._delta_phi = 0.0
        self._scale = 1.0
        return True
