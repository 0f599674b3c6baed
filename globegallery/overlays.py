"""Guide geometry drawn around the thumbnails: neighbour graphs and lat/long lines."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Set, Tuple

from .layouts import Vec3, spherical_to_cartesian, vec_length, vec_sub

__all__ = [
    "EDGE_BUILDERS",
    "Edge",
    "Segment",
    "connect_delaunay",
    "connect_geodesic",
    "connect_nearest_neighbors",
    "edge_segments",
    "lat_long_segments",
]

Edge = Tuple[int, int]
Segment = Tuple[Vec3, Vec3]


def _neighbours(positions: Sequence[Vec3], index: int) -> List[int]:
    origin = positions[index]
    others = [j for j in range(len(positions)) if j != index]
    return sorted(others, key=lambda j: vec_length(vec_sub(origin, positions[j])))


def _collect(pairs: Iterable[Edge]) -> List[Edge]:
    edges: Set[Edge] = set()
    for a, b in pairs:
        edges.add((a, b) if a < b else (b, a))
    return sorted(edges)


def connect_nearest_neighbors(positions: Sequence[Vec3], k: int = 4) -> List[Edge]:
    """Link every position to its ``k`` closest peers (undirected, deduplicated)."""

    k = max(0, int(k))
    return _collect(
        (i, j) for i in range(len(positions)) for j in _neighbours(positions, i)[:k]
    )


def connect_geodesic(positions: Sequence[Vec3]) -> List[Edge]:
    # seven neighbours approximates the valence of an icosphere vertex
    return connect_nearest_neighbors(positions, 7)


def connect_delaunay(positions: Sequence[Vec3]) -> List[Edge]:
    """Triangle-ish mesh: six links picked among the eight closest peers."""

    pairs: List[Edge] = []
    for i in range(len(positions)):
        candidates = _neighbours(positions, i)[:8]
        pairs.extend((i, j) for j in candidates[:6])
    return _collect(pairs)


EDGE_BUILDERS = {
    "nearest": connect_nearest_neighbors,
    "geodesic": connect_geodesic,
    "delaunay": connect_delaunay,
}


def edge_segments(positions: Sequence[Vec3], edges: Iterable[Edge]) -> List[Segment]:
    out: List[Segment] = []
    for a, b in edges:
        if 0 <= a < len(positions) and 0 <= b < len(positions):
            out.append((positions[a], positions[b]))
    return out


def lat_long_segments(
    radius: float,
    latitude_count: int = 5,
    longitude_count: int = 8,
    segments: int = 64,
) -> List[Segment]:
    """Line segments for ``latitude_count - 1`` rings and ``longitude_count`` meridians."""

    segments = max(3, int(segments))
    out: List[Segment] = []
    for lat in range(1, max(1, int(latitude_count))):
        phi = math.pi * lat / latitude_count
        for i in range(segments):
            a = spherical_to_cartesian(radius, 2.0 * math.pi * i / segments, phi)
            b = spherical_to_cartesian(radius, 2.0 * math.pi * (i + 1) / segments, phi)
            out.append((a, b))
    for lon in range(max(0, int(longitude_count))):
        theta = 2.0 * math.pi * lon / longitude_count
        for i in range(segments):
            a = spherical_to_cartesian(radius, theta, math.pi * i / segments)
            b = spherical_to_cartesian(radius, theta, math.pi * (i + 1) / segments)
            out.append((a, b))
    return out
