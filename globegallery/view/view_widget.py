"""Qt widgets painting the gallery engine.

Two backends share the same behaviour: an OpenGL widget (hardware clear plus
QPainter) and a plain raster ``QWidget``.  :func:`GalleryViewWidget` picks
one, honouring ``GLOBEGALLERY_FORCE_BACKEND`` (``opengl`` or ``raster``).
"""

from __future__ import annotations

import hashlib
import os
from typing import Mapping, Optional, Sequence, Tuple

from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import coerce_float, setting
from ..diagnostics import warn
from ..formation import clamp01
from ..media import MediaItem
from ..view_mode import ViewMode
from .engine import GalleryEngine, RenderItem

__all__ = ["GalleryViewWidget"]

_KEY_NAMES = {
    QtCore.Qt.Key_Escape: "escape",
    QtCore.Qt.Key_Right: "right",
    QtCore.Qt.Key_Left: "left",
}


def _create_opengl_functions() -> Tuple[Optional[object], Optional[BaseException]]:
    """Return ``(functions, error)`` for ``QOpenGLFunctions``; ``functions`` is None on failure."""

    factory = getattr(QtGui, "QOpenGLFunctions", None)
    if factory is None:
        return None, AttributeError("PyQt5.QtGui has no attribute 'QOpenGLFunctions'")
    try:
        functions = factory()
        functions.initializeOpenGLFunctions()
    except Exception as exc:  # pragma: no cover - depends on runtime GL state
        return None, exc
    return functions, None


def _placeholder_color(item: MediaItem) -> QtGui.QColor:
    # stable hue per item id until the thumbnail pixels are available
    digest = hashlib.md5(item.id.encode("utf-8")).digest()
    hue = digest[0] / 255.0
    return QtGui.QColor.fromHslF(hue, 0.45, 0.55)


class _ViewWidgetBase:
    """Common behaviour shared by both the OpenGL and raster backends."""

    def _init_view_widget(
        self,
        media: Optional[Sequence[MediaItem]] = None,
        settings: Optional[Mapping[str, object]] = None,
    ) -> None:
        self.engine = GalleryEngine(media=media, settings=settings)
        self._transparent = bool(setting(self.engine.state, "system.transparent", False))
        self.setAttribute(QtCore.Qt.WA_NoSystemBackground, self._transparent)
        self.setAttribute(QtCore.Qt.WA_TranslucentBackground, self._transparent)
        self.setAttribute(QtCore.Qt.WA_OpaquePaintEvent, False)
        self.setAutoFillBackground(False)
        self.setMouseTracking(True)
        self.setFocusPolicy(QtCore.Qt.StrongFocus)
        self._gl: Optional[object] = None
        self._frame_interval_ms = 0
        self._timer = QtCore.QTimer(self)
        self._timer.timeout.connect(self._on_frame)
        self._apply_frame_interval(int(coerce_float(setting(self.engine.state, "system.frameIntervalMs"), 16)))

    def _apply_frame_interval(self, interval_ms: int) -> None:
        interval_ms = max(int(interval_ms), 0)
        self._frame_interval_ms = interval_ms
        if interval_ms <= 0:
            self._timer.stop()
        elif self._timer.isActive():
            self._timer.setInterval(interval_ms)
        else:
            self._timer.start(interval_ms)

    def _on_frame(self) -> None:
        if self.engine.preloader.pending is not None:
            self.engine.preloader.run_pending()
        self.update()

    def _apply_clear_color(self) -> None:
        if self._gl is None:
            return
        alpha = 0.0 if self._transparent else 1.0
        self._gl.glClearColor(0.0, 0.0, 0.0, alpha)

    # ------------------------------------------------------------------ API
    def set_transparent(self, enabled: bool) -> None:  # pragma: no cover - simple setter
        self._transparent = bool(enabled)
        self.setAttribute(QtCore.Qt.WA_NoSystemBackground, enabled)
        self.setAttribute(QtCore.Qt.WA_TranslucentBackground, enabled)
        self.setAutoFillBackground(not enabled)
        self._apply_clear_color()
        self.update()

    def set_layout_mode(self, mode: str) -> bool:
        changed = self.engine.set_layout_mode(mode)
        if changed:
            self.update()
        return changed

    # ------------------------------------------------------------------ input
    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == QtCore.Qt.LeftButton:
            self.engine.pointer_pressed(event.x(), event.y())
        event.accept()

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        self.engine.pointer_moved(event.x(), event.y())
        cursor = QtCore.Qt.PointingHandCursor if self.engine.hovered is not None else QtCore.Qt.ArrowCursor
        self.setCursor(cursor)
        event.accept()

    def mouseReleaseEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == QtCore.Qt.LeftButton:
            self.engine.pointer_released(event.x(), event.y())
        event.accept()

    def wheelEvent(self, event: QtGui.QWheelEvent) -> None:  # type: ignore[override]
        steps = event.angleDelta().y() / 120.0
        if steps and self.engine.orbit.enabled:
            self.engine.orbit.zoom(0.9 ** steps)
        event.accept()

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:  # type: ignore[override]
        name = _KEY_NAMES.get(event.key())
        if name is not None and self.engine.key_pressed(name):
            event.accept()
            return
        if event.key() == QtCore.Qt.Key_G:
            target = "grid" if self.engine.layout_mode != "grid" else "fibonacci"
            self.set_layout_mode(target)
            event.accept()
            return
        event.ignore()

    # -------------------------------------------------------------- rendering
    def _render_with_painter(self, painter: QtGui.QPainter) -> None:
        painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
        if self._transparent:
            painter.setCompositionMode(QtGui.QPainter.CompositionMode_Source)
            painter.fillRect(self.rect(), QtCore.Qt.transparent)
            painter.setCompositionMode(QtGui.QPainter.CompositionMode_SourceOver)
        else:
            painter.fillRect(self.rect(), QtGui.QColor("black"))
        width = max(1, self.width())
        height = max(1, self.height())

        items = self.engine.step(width, height)

        if self.engine.overlay_draw:
            pen = QtGui.QPen(QtGui.QColor(255, 255, 255, 60), 1.0)
            pen.setCosmetic(True)
            painter.setPen(pen)
            for x1, y1, x2, y2, _depth in self.engine.overlay_draw:
                painter.drawLine(QtCore.QLineF(x1, y1, x2, y2))

        for item in items:
            self._draw_item(painter, item)

        if self.engine.mode is ViewMode.FOCUSED:
            self._draw_caption(painter, width, height)

    def _draw_item(self, painter: QtGui.QPainter, item: RenderItem) -> None:
        size = item.half_size
        if size < 0.5:
            return
        half_w = item.half_width
        rect = QtCore.QRectF(item.sx - half_w, item.sy - size, half_w * 2.0, size * 2.0)
        color = _placeholder_color(item.item)
        color.setAlphaF(clamp01(item.opacity))
        painter.setBrush(color)
        if item.selected:
            pen = QtGui.QPen(QtGui.QColor(255, 255, 255, 220), 2.0)
        else:
            pen = QtGui.QPen(QtCore.Qt.NoPen)
        painter.setPen(pen)
        painter.drawRoundedRect(rect, size * 0.08, size * 0.08)
        if item.item.is_video:
            self._draw_play_marker(painter, item.sx, item.sy, size * 0.3, item.opacity)

    def _draw_play_marker(self, painter: QtGui.QPainter, cx: float, cy: float, radius: float, opacity: float) -> None:
        backdrop = QtGui.QColor(0, 0, 0)
        backdrop.setAlphaF(clamp01(0.6 * opacity))
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(backdrop)
        painter.drawEllipse(QtCore.QPointF(cx, cy), radius, radius)
        triangle = QtGui.QPolygonF(
            [
                QtCore.QPointF(cx - radius * 0.35, cy - radius * 0.5),
                QtCore.QPointF(cx - radius * 0.35, cy + radius * 0.5),
                QtCore.QPointF(cx + radius * 0.55, cy),
            ]
        )
        fg = QtGui.QColor(255, 255, 255)
        fg.setAlphaF(clamp01(opacity))
        painter.setBrush(fg)
        painter.drawPolygon(triangle)

    def _draw_caption(self, painter: QtGui.QPainter, width: int, height: int) -> None:
        index = self.engine.machine.selected_index
        if index is None:
            return
        item = self.engine.media[index]
        preload = self.engine.preload_state
        if preload.is_loading:
            status = "Loading..."
        elif preload.error:
            status = "Failed to load"
        else:
            status = ""
        text = item.title if not status else f"{item.title}  ({status})"
        painter.setPen(QtGui.QColor(255, 255, 255, 230))
        painter.drawText(
            QtCore.QRectF(0, height - 48, width, 32),
            QtCore.Qt.AlignHCenter | QtCore.Qt.AlignVCenter,
            text,
        )


class _OpenGLViewWidget(QtWidgets.QOpenGLWidget, _ViewWidgetBase):
    """OpenGL-backed renderer when the system can create a GL context."""

    def __init__(self, parent=None, media=None, settings=None) -> None:
        QtWidgets.QOpenGLWidget.__init__(self, parent)
        self._init_view_widget(media, settings)

    def initializeGL(self) -> None:  # pragma: no cover - requires GUI context
        self._gl, error = _create_opengl_functions()
        if error is not None:
            warn(f"OpenGL initialisation failed: {error}. Falling back to raster clear handling.")
        self._apply_clear_color()

    def set_transparent(self, enabled: bool) -> None:  # pragma: no cover - trivial wrapper
        super().set_transparent(enabled)
        self._apply_clear_color()

    def paintGL(self) -> None:  # pragma: no cover - requires GUI context
        if self._gl is not None:
            # GL_COLOR_BUFFER_BIT
            self._gl.glClear(0x00004000)
        painter = QtGui.QPainter(self)
        try:
            self._render_with_painter(painter)
        finally:
            painter.end()


class _RasterViewWidget(QtWidgets.QWidget, _ViewWidgetBase):
    """Fallback renderer using the traditional raster ``QWidget`` backend."""

    def __init__(self, parent=None, media=None, settings=None) -> None:
        QtWidgets.QWidget.__init__(self, parent)
        self._init_view_widget(media, settings)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        del event
        painter = QtGui.QPainter(self)
        try:
            self._render_with_painter(painter)
        finally:
            painter.end()


def _should_use_opengl(force_backend: Optional[str]) -> bool:
    if force_backend == "raster":
        return False
    if force_backend == "opengl":
        return True
    env_backend = os.environ.get("GLOBEGALLERY_FORCE_BACKEND", "").strip().lower()
    if env_backend == "raster":
        return False
    if env_backend == "opengl":
        return True
    return hasattr(QtWidgets, "QOpenGLWidget")


def GalleryViewWidget(
    parent: Optional[QtWidgets.QWidget] = None,
    *,
    media: Optional[Sequence[MediaItem]] = None,
    settings: Optional[Mapping[str, object]] = None,
    force_backend: Optional[str] = None,
) -> QtWidgets.QWidget:
    """Factory returning the best available renderer widget.

    ``force_backend`` accepts ``"opengl"`` or ``"raster"``; both widgets expose
    the same ``engine`` attribute and public methods.
    """

    if _should_use_opengl(force_backend):
        try:
            widget = _OpenGLViewWidget(parent, media, settings)
            setattr(widget, "backend_name", "opengl")
            return widget
        except Exception as exc:
            warn(f"Unable to initialise OpenGL backend ({exc!r}). Using raster widget instead.")
    widget = _RasterViewWidget(parent, media, settings)
    setattr(widget, "backend_name", "raster")
    return widget
