import argparse
import os
import sys
import traceback
from pathlib import Path
from typing import NoReturn, Optional, Sequence


def _handle_qt_import_error(exc: ImportError) -> NoReturn:
    """Exit with a helpful message when the Qt bindings cannot be imported."""

    details = str(exc)
    message_lines = [
        "Unable to start GlobeGallery: importing PyQt5 failed.",
        "Check that PyQt5 is installed and that the OpenGL system libraries are available.",
    ]
    if "libGL.so.1" in details:
        message_lines.append("Hint: the libGL.so.1 system library is missing. Install the Mesa/OpenGL packages.")
    message_lines.append(f"Original error: {details}")
    raise SystemExit("\n".join(message_lines)) from exc


try:
    from PyQt5 import QtCore, QtGui, QtWidgets
    from PyQt5.QtCore import Qt
    from PyQt5.QtGui import QSurfaceFormat
except ImportError as exc:  # pragma: no cover - environment dependent
    _handle_qt_import_error(exc)

from .config import load_settings
from .diagnostics import install_debug_silencer
from .host import GalleryHost
from .media import DEFAULT_MEDIA, load_media_catalog
from .view.view_widget import GalleryViewWidget

EXCEPTION_LOG = "run_exception.txt"


class GalleryWindow(QtWidgets.QMainWindow):
    def __init__(self, screen: QtGui.QScreen, media=None, settings=None):
        super().__init__(None)
        self.setWindowTitle("GlobeGallery")
        self._target_screen = screen
        self.view = GalleryViewWidget(self, media=media, settings=settings)
        self.host = GalleryHost(self.view.engine.machine, self)
        self.host.modeChanged.connect(self._on_mode_changed)
        w = QtWidgets.QWidget()
        lay = QtWidgets.QVBoxLayout(w)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addWidget(self.view)
        self.setCentralWidget(w)
        self._apply_screen_geometry(screen)
        QtWidgets.QShortcut(QtGui.QKeySequence("Ctrl+Q"), self, activated=self.close)
        self.view.setFocus(Qt.OtherFocusReason)

    def _apply_screen_geometry(self, screen: QtGui.QScreen):
        geometry = screen.geometry()
        width = int(geometry.width() * 0.8)
        height = int(geometry.height() * 0.8)
        left = geometry.left() + (geometry.width() - width) // 2
        top = geometry.top() + (geometry.height() - height) // 2
        self.setGeometry(left, top, width, height)

    def _on_mode_changed(self, mode: str) -> None:
        self.statusBar().showMessage(mode)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="globegallery", description="3D sphere media gallery")
    parser.add_argument("--settings", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--media", type=Path, default=None, help="JSON media catalogue")
    parser.add_argument("--backend", choices=("opengl", "raster"), default=None)
    parser.add_argument("--headless", action="store_true", help="load everything, open no window")
    return parser.parse_args(argv)


def _write_unhandled(exc_type, exc_value, exc_tb):
    try:
        with Path(EXCEPTION_LOG).open("w", encoding="utf-8") as f:
            traceback.print_exception(exc_type, exc_value, exc_tb, file=f)
    except OSError:
        pass
    sys.__excepthook__(exc_type, exc_value, exc_tb)


def main(argv: Optional[Sequence[str]] = None, headless: bool = False) -> int:
    """Start the application and return the exit code.

    With ``headless`` (or ``--headless``) the settings and the media
    catalogue are loaded and validated, then 0 is returned without creating a
    QApplication.
    """

    args = parse_args(argv)
    install_debug_silencer()
    settings = load_settings(args.settings)
    media = load_media_catalog(args.media) if args.media is not None else list(DEFAULT_MEDIA)
    if headless or args.headless:
        return 0

    sys.excepthook = _write_unhandled
    fmt = QSurfaceFormat()
    fmt.setAlphaBufferSize(8)
    QSurfaceFormat.setDefaultFormat(fmt)
    QtWidgets.QApplication.setAttribute(QtCore.Qt.AA_EnableHighDpiScaling, True)
    QtWidgets.QApplication.setAttribute(QtCore.Qt.AA_UseHighDpiPixmaps, True)
    app = QtWidgets.QApplication(sys.argv[:1])
    if args.backend is not None:
        os.environ["GLOBEGALLERY_FORCE_BACKEND"] = args.backend
    window = GalleryWindow(QtGui.QGuiApplication.primaryScreen(), media=media, settings=settings)
    window.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
