from __future__ import annotations

import math
import random
from typing import Callable, Dict, List, Optional, Tuple

__all__ = [
    "Vec3",
    "LAYOUT_GENERATORS",
    "GOLDEN_RATIO",
    "generate_grid_layout",
    "generate_layout",
    "generate_scatter_layout",
    "generate_sphere_layout",
    "spherical_to_cartesian",
    "vec_add",
    "vec_length",
    "vec_mix",
    "vec_normalize",
    "vec_scale",
    "vec_sub",
]

Vec3 = Tuple[float, float, float]
LayoutGenerator = Callable[[int, float], List[Vec3]]

GOLDEN_RATIO = (1.0 + math.sqrt(5.0)) / 2.0

# Scatter box half extents, as a multiple of the sphere radius.
_SCATTER_SPREAD_XY = 1.5
_SCATTER_SPREAD_Z = 0.75


def vec_add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def vec_sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def vec_scale(vec: Vec3, scale: float) -> Vec3:
    return (vec[0] * scale, vec[1] * scale, vec[2] * scale)


def vec_length(vec: Vec3) -> float:
    return math.sqrt(vec[0] ** 2 + vec[1] ** 2 + vec[2] ** 2)


def vec_mix(a: Vec3, b: Vec3, t: float) -> Vec3:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, a[2] + (b[2] - a[2]) * t)


def vec_normalize(vec: Vec3, fallback: Optional[Vec3] = None) -> Vec3:
    """Return ``vec`` scaled to unit length.

    A zero length vector has no direction; ``fallback`` is returned in that
    case (or the zero vector itself when no fallback is given).
    """

    length = vec_length(vec)
    if length <= 1e-12:
        return fallback if fallback is not None else (0.0, 0.0, 0.0)
    return (vec[0] / length, vec[1] / length, vec[2] / length)


def spherical_to_cartesian(radius: float, theta: float, phi: float) -> Vec3:
    """Physics convention: ``theta`` is the azimuth, ``phi`` the polar angle from +Y."""

    sin_phi = math.sin(phi)
    return (
        radius * sin_phi * math.cos(theta),
        radius * math.cos(phi),
        radius * sin_phi * math.sin(theta),
    )


def generate_sphere_layout(count: int, radius: float) -> List[Vec3]:
    """Fibonacci spiral placement of ``count`` points on a sphere of ``radius``.

    The polar angle follows ``acos(1 - 2t)`` so every point covers the same
    surface area; the azimuth advances by a full golden-ratio turn per index.
    The first point always sits on the +Y pole.
    """

    count = max(0, int(count))
    radius = float(radius)
    angle_increment = 2.0 * math.pi * GOLDEN_RATIO
    out: List[Vec3] = []
    for i in range(count):
        t = i / count
        phi = math.acos(1.0 - 2.0 * t)
        theta = angle_increment * i
        out.append(spherical_to_cartesian(radius, theta, phi))
    return out


def generate_scatter_layout(
    count: int,
    radius: float,
    rng: Optional[random.Random] = None,
) -> List[Vec3]:
    """Uniform random positions inside a box sized after ``radius``.

    Not reproducible on purpose: callers generate it once per session and keep
    it.  Tests may pass a seeded ``rng``.
    """

    rand = rng.random if rng is not None else random.random
    count = max(0, int(count))
    half_xy = float(radius) * _SCATTER_SPREAD_XY
    half_z = float(radius) * _SCATTER_SPREAD_Z
    out: List[Vec3] = []
    for _ in range(count):
        x = (rand() - 0.5) * 2.0 * half_xy
        y = (rand() - 0.5) * 2.0 * half_xy
        z = (rand() - 0.5) * 2.0 * half_z
        out.append((x, y, z))
    return out


def generate_grid_layout(count: int, radius: float) -> List[Vec3]:
    """Latitude rings around the sphere, truncated once ``count`` points exist.

    Rings never hold fewer than three points, so small counts may return
    fewer rings than computed and large counts can fall short of ``count``.
    """

    count = max(0, int(count))
    if count == 0:
        return []
    rows = math.ceil(math.sqrt(count * 0.5))
    cols = math.ceil(count / rows)
    out: List[Vec3] = []
    for i in range(rows):
        phi = math.pi * (i + 1) / (rows + 1)
        # half-up rounding; round() would send 2.5 to 2
        ring = max(3, int(math.floor(cols * math.sin(phi) + 0.5)))
        for j in range(ring):
            theta = 2.0 * math.pi * j / ring
            out.append(spherical_to_cartesian(float(radius), theta, phi))
            if len(out) >= count:
                return out
    return out


LAYOUT_GENERATORS: Dict[str, LayoutGenerator] = {
    "fibonacci": generate_sphere_layout,
    "grid": generate_grid_layout,
}


def generate_layout(mode: str, count: int, radius: float) -> List[Vec3]:
    generator = LAYOUT_GENERATORS.get((mode or "").strip().lower())
    if generator is None:
        raise ValueError(
            f"Unknown layout mode {mode!r}; expected one of {sorted(LAYOUT_GENERATORS)}"
        )
    return generator(count, radius)
