"""Eased camera moves between the orbit overview and a focused thumbnail.

The controller owns the camera transform while a move is running and while a
thumbnail stays focused; during that time the orbit controls are disabled so
the two never write the camera on the same frame.  Moves are driven by
``tick(dt)`` with wall-clock seconds, so the animation length does not depend
on the frame rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .diagnostics import debug
from .formation import clamp01
from .layouts import Vec3, vec_length, vec_mix, vec_normalize, vec_scale
from .orbit_controls import Camera, CameraPose, OrbitControls

__all__ = [
    "CameraState",
    "CameraTransitionController",
    "DEFAULT_DIRECTION",
    "ORIGIN",
    "TransitionState",
    "ease_in_out",
    "focus_pose",
]

ORIGIN: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_DIRECTION: Vec3 = (0.0, 0.0, 1.0)


class CameraState(Enum):
    IDLE = "idle"
    ANIMATING_IN = "animating_in"
    ANIMATING_OUT = "animating_out"
    HOLDING = "holding"


def ease_in_out(progress: float) -> float:
    """Quadratic ease-in-out; symmetric so ``f(x) == 1 - f(1 - x)``."""

    p = clamp01(progress)
    if p < 0.5:
        return 2.0 * p * p
    return 1.0 - ((-2.0 * p + 2.0) ** 2) / 2.0


def focus_pose(item_position: Vec3, standoff: float) -> CameraPose:
    """Camera pose ``standoff`` units outside ``item_position``, looking back at it."""

    direction = vec_normalize(item_position, fallback=DEFAULT_DIRECTION)
    if vec_length(item_position) <= 1e-12:
        debug("focus_pose: item sits on the origin, using +Z as viewing axis")
    distance = vec_length(item_position) + float(standoff)
    return CameraPose(vec_scale(direction, distance), item_position)


@dataclass
class TransitionState:
    kind: CameraState
    start: Vec3
    end: Vec3
    look_target: Vec3
    started_at: float
    duration: float
    item_index: Optional[int] = None

    def progress(self, now: float) -> float:
        return clamp01((now - self.started_at) / self.duration)

    def position(self, now: float) -> Vec3:
        return vec_mix(self.start, self.end, ease_in_out(self.progress(now)))


class CameraTransitionController:
    """State machine moving the camera between home and focus poses."""

    def __init__(
        self,
        camera: Camera,
        orbit: OrbitControls,
        *,
        duration: float = 0.8,
        standoff: float = 1.5,
        on_focus_complete: Optional[Callable[[Optional[int]], None]] = None,
        on_home_complete: Optional[Callable[[], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if duration <= 0.0:
            raise ValueError(f"Transition duration must be positive, got {duration!r}")
        self.camera = camera
        self.orbit = orbit
        self.duration = float(duration)
        self.standoff = float(standoff)
        self.on_focus_complete = on_focus_complete
        self.on_home_complete = on_home_complete
        self._state = CameraState.IDLE
        self._transition: Optional[TransitionState] = None
        self._home_pose: Optional[CameraPose] = None
        self._fallback_home = camera.pose()
        # seconds; with a clock source, moves are stamped when they are requested
        self._time_source = clock
        self._clock = float(clock()) if clock is not None else 0.0

    # ------------------------------------------------------------------ state
    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def transition(self) -> Optional[TransitionState]:
        return self._transition

    @property
    def home_pose(self) -> Optional[CameraPose]:
        return self._home_pose

    @property
    def now(self) -> float:
        if self._time_source is not None:
            self._clock = max(self._clock, float(self._time_source()))
        return self._clock

    @property
    def owns_camera(self) -> bool:
        return self._state is not CameraState.IDLE

    # --------------------------------------------------------------- requests
    def focus(self, item_position: Vec3, item_index: Optional[int] = None) -> TransitionState:
        """Start moving toward ``item_position``, abandoning any running move."""

        if self._home_pose is None:
            self._home_pose = self.camera.pose()
        pose = focus_pose(item_position, self.standoff)
        return self._start(CameraState.ANIMATING_IN, pose.position, pose.target, item_index)

    def return_home(self) -> TransitionState:
        """Start moving back to the pose captured when the focus episode began."""

        home = self._home_pose or self._fallback_home
        return self._start(CameraState.ANIMATING_OUT, home.position, ORIGIN, None)

    def _start(
        self,
        kind: CameraState,
        end: Vec3,
        look_target: Vec3,
        item_index: Optional[int],
    ) -> TransitionState:
        now = self.now
        if self._transition is not None:
            debug(
                "camera: %s superseded at %.0f%% by %s"
                % (
                    self._transition.kind.value,
                    self._transition.progress(now) * 100.0,
                    kind.value,
                )
            )
        self.orbit.end_drag()
        self.orbit.enabled = False
        # start from the live transform so an interrupted move never jumps
        self._transition = TransitionState(
            kind=kind,
            start=self.camera.position,
            end=end,
            look_target=look_target,
            started_at=now,
            duration=self.duration,
            item_index=item_index,
        )
        self._state = kind
        return self._transition

    # ------------------------------------------------------------------ frame
    def tick(self, dt: float) -> bool:
        """Advance the clock (by ``dt`` seconds, or to the clock source); return True when the camera was written."""

        if self._time_source is not None:
            self._clock = max(self._clock, float(self._time_source()))
        elif dt > 0.0:
            self._clock += dt
        transition = self._transition
        if transition is None:
            return False
        self.camera.position = transition.position(self._clock)
        self.camera.look_at(transition.look_target)
        if transition.progress(self._clock) >= 1.0:
            self._finish(transition)
        return True

    def _finish(self, transition: TransitionState) -> None:
        self._transition = None
        self.camera.position = transition.end
        if transition.kind is CameraState.ANIMATING_IN:
            self._state = CameraState.HOLDING
            debug("camera: focus reached (item=%s)" % transition.item_index)
            if self.on_focus_complete is not None:
                self.on_focus_complete(transition.item_index)
            return
        self._state = CameraState.IDLE
        self._home_pose = None
        self.camera.look_at(ORIGIN)
        self.orbit.reset(ORIGIN)
        self.orbit.enabled = True
        debug("camera: home reached, orbit controls released")
        if self.on_home_complete is not None:
            self.on_home_complete()
