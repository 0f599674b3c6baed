"""Top level gallery state: overview, camera transition, focused item.

``GalleryStateMachine`` turns input events (selection, navigation, pointer
travel, orbit drags) into mode changes, camera requests and the formation
progress published to the presentation layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .camera import CameraState, CameraTransitionController
from .diagnostics import debug
from .formation import FormationTracker
from .layouts import Vec3

__all__ = ["GalleryStateMachine", "ViewMode"]

Listener = Callable[[object], None]


class ViewMode(Enum):
    OVERVIEW = "overview"
    TRANSITIONING = "transitioning"
    FOCUSED = "focused"


class GalleryStateMachine:
    """Owns the view mode, the selection and the formation progress.

    ``next()`` / ``previous()`` only move an existing selection; with nothing
    selected they do nothing.  Formation progress is frozen outside of
    overview unless ``reset_on_focus`` asks for it to drop back to zero when
    a focus episode starts.
    """

    EVENTS = ("mode", "selection", "progress")

    def __init__(
        self,
        sphere_layout: Sequence[Vec3],
        camera: CameraTransitionController,
        *,
        formation: Optional[FormationTracker] = None,
        item_ids: Optional[Sequence[str]] = None,
        reset_on_focus: bool = False,
        selected_opacity: float = 1.0,
        dimmed_opacity: float = 0.3,
        idle_opacity: float = 0.95,
        hover_opacity: float = 1.0,
        now_ms: float = 0.0,
    ) -> None:
        self.sphere_layout: List[Vec3] = list(sphere_layout)
        self.camera = camera
        self.formation = formation if formation is not None else FormationTracker(now_ms=now_ms)
        self.item_ids: List[str] = list(item_ids) if item_ids is not None else [
            str(i) for i in range(len(self.sphere_layout))
        ]
        self.reset_on_focus = bool(reset_on_focus)
        self.selected_opacity = float(selected_opacity)
        self.dimmed_opacity = float(dimmed_opacity)
        self.idle_opacity = float(idle_opacity)
        self.hover_opacity = float(hover_opacity)
        self._mode = ViewMode.OVERVIEW
        self._selected: Optional[int] = None
        self._now_ms = float(now_ms)
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in self.EVENTS}
        camera.on_focus_complete = self._on_focus_complete
        camera.on_home_complete = self._on_home_complete

    # ------------------------------------------------------------- observers
    def subscribe(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}; expected one of {self.EVENTS}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, value: object) -> None:
        for callback in list(self._listeners[event]):
            callback(value)

    # ------------------------------------------------------------ properties
    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected

    @property
    def selected_id(self) -> Optional[str]:
        if self._selected is None or self._selected >= len(self.item_ids):
            return None
        return self.item_ids[self._selected]

    @property
    def progress(self) -> float:
        return self.formation.value

    @property
    def item_count(self) -> int:
        return len(self.sphere_layout)

    def is_selected(self, index: int) -> bool:
        return self._selected is not None and index == self._selected

    def item_opacity(self, index: int, hovered: bool = False) -> float:
        if self._mode is ViewMode.OVERVIEW:
            return self.hover_opacity if hovered else self.idle_opacity
        if self.is_selected(index):
            return self.selected_opacity
        return self.dimmed_opacity

    def replace_layout(self, sphere_layout: Sequence[Vec3]) -> bool:
        """Swap the target positions; only allowed in overview with nothing selected."""

        if self._mode is not ViewMode.OVERVIEW or self._selected is not None:
            return False
        self.sphere_layout = list(sphere_layout)
        return True

    # ---------------------------------------------------------------- clock
    def _stamp(self, now_ms: Optional[float]) -> float:
        if now_ms is not None:
            self._now_ms = max(self._now_ms, float(now_ms))
        return self._now_ms

    def _set_mode(self, mode: ViewMode) -> None:
        if mode is self._mode:
            return
        debug("view mode: %s -> %s" % (self._mode.value, mode.value))
        self._mode = mode
        self._emit("mode", mode)

    def _set_selected(self, index: Optional[int]) -> None:
        if index == self._selected:
            return
        self._selected = index
        self._emit("selection", self.selected_id)

    # ------------------------------------------------------------ selection
    def _valid_index(self, index: object) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < self.item_count

    def select(self, index: Optional[int], now_ms: Optional[float] = None) -> bool:
        """Focus item ``index`` (``None`` closes); return True when accepted."""

        self._stamp(now_ms)
        if index is None:
            return self.close()
        if not self._valid_index(index):
            debug("select: ignoring invalid item index %r (count=%d)" % (index, self.item_count))
            return False
        if index == self._selected and self._mode is not ViewMode.OVERVIEW:
            if self._mode is ViewMode.FOCUSED or self.camera.state is CameraState.ANIMATING_IN:
                return False
        if self._mode is ViewMode.OVERVIEW and self.reset_on_focus and self.formation.value > 0.0:
            self.formation.reset()
            self._emit("progress", self.formation.value)
        self._set_selected(index)
        self._set_mode(ViewMode.TRANSITIONING)
        self.camera.focus(self.sphere_layout[index], index)
        return True

    def close(self, now_ms: Optional[float] = None) -> bool:
        self._stamp(now_ms)
        if self._mode is ViewMode.OVERVIEW:
            return False
        if self._selected is None and self.camera.state is CameraState.ANIMATING_OUT:
            return False
        self._set_selected(None)
        self._set_mode(ViewMode.TRANSITIONING)
        self.camera.return_home()
        return True

    def next(self, now_ms: Optional[float] = None) -> bool:
        return self._step_selection(1, now_ms)

    def previous(self, now_ms: Optional[float] = None) -> bool:
        return self._step_selection(-1, now_ms)

    def _step_selection(self, delta: int, now_ms: Optional[float]) -> bool:
        if self._selected is None or self.item_count == 0:
            debug("navigation ignored: nothing selected")
            return False
        return self.select((self._selected + delta) % self.item_count, now_ms)

    # ------------------------------------------------------------ formation
    def pointer_moved(self, dx: float, dy: float, now_ms: Optional[float] = None) -> float:
        now = self._stamp(now_ms)
        if self._mode is not ViewMode.OVERVIEW:
            return self.formation.value
        before = self.formation.value
        after = self.formation.add_movement(dx, dy, now)
        if after != before:
            self._emit("progress", after)
        return after

    def orbit_interaction_started(self, now_ms: Optional[float] = None) -> None:
        self.formation.set_interacting(True, self._stamp(now_ms))

    def orbit_interaction_ended(self, now_ms: Optional[float] = None) -> None:
        self.formation.set_interacting(False, self._stamp(now_ms))

    def tick(self, now_ms: float) -> float:
        """Run the idle decay due up to ``now_ms`` (overview only)."""

        now = self._stamp(now_ms)
        if self._mode is not ViewMode.OVERVIEW:
            self.formation.resync(now)
            return self.formation.value
        if self.formation.advance(now):
            self._emit("progress", self.formation.value)
        return self.formation.value

    # ------------------------------------------------------- camera signals
    def _on_focus_complete(self, item_index: Optional[int]) -> None:
        if self._mode is ViewMode.TRANSITIONING and item_index == self._selected:
            self._set_mode(ViewMode.FOCUSED)

    def _on_home_complete(self) -> None:
        if self._selected is not None:
            return
        self.formation.resync(self._now_ms)
        self.formation.touch(self._now_ms)
        self._set_mode(ViewMode.OVERVIEW)
