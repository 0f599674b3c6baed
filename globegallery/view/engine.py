"""Frame engine behind the gallery view widget.

The engine is free of Qt so the whole per-frame pipeline (idle decay, orbit
inertia, camera move, formation blend, projection) can run headless.  The
widget only forwards input and paints the :class:`RenderItem` list returned
by :meth:`GalleryEngine.step`.
"""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..camera import CameraTransitionController
from ..config import coerce_float, default_settings, merge_settings, setting
from ..diagnostics import debug
from ..formation import FormationTracker, interpolate_layout
from ..layouts import (
    Vec3,
    generate_layout,
    generate_scatter_layout,
    vec_normalize,
    vec_sub,
)
from ..media import DEFAULT_MEDIA, MediaItem, MediaPreloader, PreloadState
from ..orbit_controls import Camera, OrbitControls
from ..overlays import EDGE_BUILDERS, edge_segments, lat_long_segments
from ..view_mode import GalleryStateMachine, ViewMode

__all__ = ["GalleryEngine", "RenderItem", "ScreenLine"]

# Pointer travel below this many pixels between press and release is a click.
CLICK_SLOP_PX = 4.0
_NEAR_PLANE = 0.01
# Thumbnails seen edge-on keep this fraction of their width.
MIN_FACING = 0.15

ScreenLine = Tuple[float, float, float, float, float]


@dataclass
class RenderItem:
    """Thumbnail projected on screen."""

    index: int
    item: MediaItem
    sx: float
    sy: float
    half_size: float
    depth: float
    world: Vec3
    opacity: float
    scale: float
    facing: float = 1.0
    selected: bool = False
    hovered: bool = False

    @property
    def half_width(self) -> float:
        return self.half_size * max(MIN_FACING, self.facing)

    def contains(self, x: float, y: float) -> bool:
        return abs(x - self.sx) <= self.half_width and abs(y - self.sy) <= self.half_size


def _dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _as_vec3(value: object, fallback: Vec3) -> Vec3:
    if isinstance(value, Sequence) and not isinstance(value, str) and len(value) >= 3:
        return (
            coerce_float(value[0], fallback[0]),
            coerce_float(value[1], fallback[1]),
            coerce_float(value[2], fallback[2]),
        )
    return fallback


class _Projector:
    """Pinhole projection for one frame of the camera."""

    def __init__(self, camera: Camera, width: int, height: int) -> None:
        self.eye = camera.position
        self.forward = vec_normalize(vec_sub(camera.target, camera.position), fallback=(0.0, 0.0, -1.0))
        right = _cross(self.forward, camera.up)
        # looking straight along the up axis (focus on a pole item)
        self.right = vec_normalize(right, fallback=(1.0, 0.0, 0.0))
        self.up = _cross(self.right, self.forward)
        fov = max(1.0, min(179.0, float(camera.fov)))
        self.focal = (height / 2.0) / math.tan(math.radians(fov) / 2.0)
        self.cx = width / 2.0
        self.cy = height / 2.0

    def project(self, point: Vec3) -> Optional[Tuple[float, float, float]]:
        rel = vec_sub(point, self.eye)
        depth = _dot(rel, self.forward)
        if depth <= _NEAR_PLANE:
            return None
        inv = self.focal / depth
        sx = self.cx + _dot(rel, self.right) * inv
        sy = self.cy - _dot(rel, self.up) * inv
        if not (math.isfinite(sx) and math.isfinite(sy)):
            return None
        return sx, sy, depth


class GalleryEngine:
    """Owns the layouts, the state machine and the camera for one gallery view."""

    def __init__(
        self,
        media: Optional[Sequence[MediaItem]] = None,
        settings: Optional[Mapping[str, Any]] = None,
        *,
        clock: Callable[[], float] = time.perf_counter,
        rng: Optional[random.Random] = None,
        preloader: Optional[MediaPreloader] = None,
    ) -> None:
        self.state: Dict[str, Any] = default_settings()
        if settings:
            merge_settings(self.state, settings)
        self._clock = clock
        self._start_time = clock()
        self._last_ms = 0.0

        catalogue = list(media) if media is not None else list(DEFAULT_MEDIA)
        limit = int(coerce_float(setting(self.state, "layout.count", 0), 0.0))
        if limit > 0:
            catalogue = catalogue[:limit]
        if not catalogue:
            raise ValueError("The gallery needs at least one media item")
        self.media: List[MediaItem] = catalogue
        self.radius = coerce_float(setting(self.state, "layout.radius"), 2.0)
        self.layout_mode = str(setting(self.state, "layout.mode", "fibonacci"))
        self.scatter_layout: List[Vec3] = generate_scatter_layout(len(self.media), self.radius, rng)
        self.sphere_layout: List[Vec3] = generate_layout(self.layout_mode, len(self.media), self.radius)

        home = _as_vec3(setting(self.state, "camera.homePosition"), (0.0, 0.0, 5.0))
        self.camera = Camera(position=home, fov=coerce_float(setting(self.state, "camera.fov"), 75.0))
        self.orbit = OrbitControls(
            self.camera,
            damping_factor=coerce_float(setting(self.state, "orbit.dampingFactor"), 0.05),
            rotate_speed=coerce_float(setting(self.state, "orbit.rotateSpeed"), 0.005),
            enable_zoom=bool(setting(self.state, "orbit.enableZoom", False)),
        )
        self.transitions = CameraTransitionController(
            self.camera,
            self.orbit,
            duration=coerce_float(setting(self.state, "transition.durationMs"), 800.0) / 1000.0,
            standoff=coerce_float(setting(self.state, "camera.standoff"), 1.5),
            clock=lambda: self.now_ms / 1000.0,
        )
        formation = FormationTracker(
            px_for_full=coerce_float(setting(self.state, "formation.pxForFull"), 10000.0),
            decay_step=coerce_float(setting(self.state, "formation.decayStep"), 0.01),
            idle_grace_ms=coerce_float(setting(self.state, "formation.idleGraceMs"), 5000.0),
            decay_tick_ms=coerce_float(setting(self.state, "formation.decayTickMs"), 50.0),
        )
        self.machine = GalleryStateMachine(
            self.sphere_layout,
            self.transitions,
            formation=formation,
            item_ids=[item.id for item in self.media],
            reset_on_focus=bool(setting(self.state, "formation.resetOnFocus", False)),
            selected_opacity=coerce_float(setting(self.state, "appearance.selectedOpacity"), 1.0),
            dimmed_opacity=coerce_float(setting(self.state, "appearance.dimmedOpacity"), 0.3),
            idle_opacity=coerce_float(setting(self.state, "appearance.idleOpacity"), 0.95),
            hover_opacity=coerce_float(setting(self.state, "appearance.hoverOpacity"), 1.0),
        )
        self.preloader = preloader if preloader is not None else MediaPreloader()
        self.machine.subscribe("selection", self._on_selection_changed)

        self.hovered: Optional[int] = None
        self._scales: List[float] = [1.0] * len(self.media)
        self._pointer: Optional[Tuple[float, float]] = None
        self._press_at: Optional[Tuple[float, float]] = None
        self._press_travel = 0.0
        self._items: List[RenderItem] = []
        self._guide_segments = self._build_guides()
        self._edges: Optional[List[Tuple[int, int]]] = None
        self.overlay_draw: List[ScreenLine] = []
        self._last_item_count = -1

    # ------------------------------------------------------------------ helpers
    @property
    def now_ms(self) -> float:
        return (self._clock() - self._start_time) * 1000.0

    @property
    def mode(self) -> ViewMode:
        return self.machine.mode

    @property
    def preload_state(self) -> PreloadState:
        return self.preloader.state

    @property
    def items(self) -> List[RenderItem]:
        return list(self._items)

    def _on_selection_changed(self, item_id: object) -> None:
        index = self.machine.selected_index
        self.preloader.request(self.media[index] if index is not None else None)

    def _build_guides(self):
        overlay = self.state.get("overlay", {})
        if not isinstance(overlay, Mapping):
            overlay = {}
        segments = []
        if overlay.get("guides"):
            segments.extend(
                lat_long_segments(
                    self.radius,
                    int(coerce_float(overlay.get("latitudeCount"), 5)),
                    int(coerce_float(overlay.get("longitudeCount"), 8)),
                    int(coerce_float(overlay.get("segments"), 64)),
                )
            )
        return segments

    def _edge_list(self):
        mode = str(setting(self.state, "overlay.edges", "none") or "none").lower()
        builder = EDGE_BUILDERS.get(mode)
        if builder is None:
            return []
        if mode == "nearest":
            k = int(coerce_float(setting(self.state, "overlay.neighbours"), 4))
            return builder(self.sphere_layout, k)
        return builder(self.sphere_layout)

    def set_layout_mode(self, mode: str) -> bool:
        """Swap the sphere layout; refused while a thumbnail is focused."""

        if self.machine.mode is not ViewMode.OVERVIEW:
            debug("layout switch to %r refused outside overview" % mode)
            return False
        layout = generate_layout(mode, len(self.media), self.radius)
        self.layout_mode = mode
        self.sphere_layout = layout
        self.machine.replace_layout(layout)
        self._edges = None
        debug("layout switched to %s (%d positions)" % (mode, len(layout)))
        return True

    # --------------------------------------------------------------------- input
    def pointer_pressed(self, x: float, y: float) -> None:
        self._pointer = (x, y)
        self._press_at = (x, y)
        self._press_travel = 0.0
        if self.orbit.enabled:
            self.orbit.begin_drag()
            self.machine.orbit_interaction_started(self.now_ms)

    def pointer_moved(self, x: float, y: float) -> None:
        if self._pointer is not None:
            dx = x - self._pointer[0]
            dy = y - self._pointer[1]
            self.machine.pointer_moved(dx, dy, self.now_ms)
            if self._press_at is not None:
                self._press_travel += math.hypot(dx, dy)
                if self.orbit.dragging:
                    self.orbit.drag(dx, dy)
        self._pointer = (x, y)
        hit = self.pick(x, y)
        self.hovered = hit.index if hit is not None else None

    def pointer_released(self, x: float, y: float) -> Optional[int]:
        """Finish a press; return the clicked item index when it was a click."""

        clicked: Optional[int] = None
        was_drag = self.orbit.dragging
        if self._press_at is not None and self._press_travel < CLICK_SLOP_PX:
            hit = self.pick(x, y)
            if hit is not None:
                clicked = hit.index
                self.machine.select(hit.index, self.now_ms)
        self._press_at = None
        self._press_travel = 0.0
        self.orbit.end_drag()
        if was_drag:
            self.machine.orbit_interaction_ended(self.now_ms)
        return clicked

    def key_pressed(self, key: str) -> bool:
        name = (key or "").lower()
        now = self.now_ms
        if name in {"escape", "esc"}:
            return self.machine.close(now)
        if name in {"right", "arrowright"}:
            return self.machine.next(now)
        if name in {"left", "arrowleft"}:
            return self.machine.previous(now)
        return False

    def pick(self, x: float, y: float) -> Optional[RenderItem]:
        # items are painted back to front; the last hit is the visible one
        hit: Optional[RenderItem] = None
        for item in self._items:
            if item.contains(x, y):
                hit = item
        return hit

    # --------------------------------------------------------------------- frame
    def current_positions(self) -> List[Vec3]:
        count = min(len(self.scatter_layout), len(self.sphere_layout))
        return interpolate_layout(self.scatter_layout[:count], self.sphere_layout[:count], self.machine.progress)

    def step(self, width: int, height: int) -> List[RenderItem]:
        if width <= 0 or height <= 0:
            return []
        now = self.now_ms
        dt = max(0.0, (now - self._last_ms) / 1000.0)
        self._last_ms = now

        self.machine.tick(now)
        self.orbit.update()
        self.transitions.tick(dt)

        projector = _Projector(self.camera, width, height)
        thumb = coerce_float(setting(self.state, "appearance.thumbSize"), 0.6)
        hover_scale = coerce_float(setting(self.state, "appearance.hoverScale"), 1.3)
        scale_lerp = coerce_float(setting(self.state, "appearance.scaleLerp"), 0.1)
        overview = self.machine.mode is ViewMode.OVERVIEW

        items: List[RenderItem] = []
        for idx, world in enumerate(self.current_positions()):
            hovered = overview and idx == self.hovered
            target_scale = hover_scale if hovered else 1.0
            self._scales[idx] += (target_scale - self._scales[idx]) * scale_lerp
            projected = projector.project(world)
            if projected is None:
                continue
            sx, sy, depth = projected
            # thumbnails face away from the sphere centre; width shrinks as they turn
            outward = vec_normalize(world, fallback=(0.0, 0.0, 1.0))
            to_eye = vec_normalize(vec_sub(self.camera.position, world), fallback=outward)
            facing = abs(_dot(outward, to_eye))
            items.append(
                RenderItem(
                    index=idx,
                    item=self.media[idx],
                    sx=sx,
                    sy=sy,
                    half_size=0.5 * thumb * self._scales[idx] * projector.focal / depth,
                    depth=depth,
                    world=world,
                    opacity=self.machine.item_opacity(idx, hovered),
                    scale=self._scales[idx],
                    facing=facing,
                    selected=self.machine.is_selected(idx),
                    hovered=hovered,
                )
            )
        items.sort(key=lambda it: it.depth, reverse=True)
        self._items = items
        self.overlay_draw = self._project_overlays(projector)

        if len(items) != self._last_item_count:
            debug(
                "step rendered %d of %d items (mode=%s progress=%.3f width=%d height=%d)"
                % (len(items), len(self.media), self.machine.mode.value, self.machine.progress, width, height)
            )
            self._last_item_count = len(items)
        return items

    def _project_overlays(self, projector: _Projector) -> List[ScreenLine]:
        lines: List[ScreenLine] = []
        if self._edges is None:
            self._edges = self._edge_list()
        edges = self._edges
        segments = list(self._guide_segments)
        segments.extend(edge_segments(self.sphere_layout, edges))
        for a, b in segments:
            pa = projector.project(a)
            pb = projector.project(b)
            if pa is None or pb is None:
                continue
            lines.append((pa[0], pa[1], pb[0], pb[1], (pa[2] + pb[2]) / 2.0))
        return lines
