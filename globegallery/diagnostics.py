"""Tagged console diagnostics shared by the engine and the Qt host.

The gallery reports state changes with plain tagged lines on the standard
streams.  DEBUG lines are verbose (one per mode change, cancelled transition,
ignored selection...) so the application entry point installs
:class:`DebugSilencer` on ``sys.stdout`` / ``sys.stderr`` unless the
``GLOBEGALLERY_DEBUG`` environment variable is set.
"""

from __future__ import annotations

import io
import os
import sys

__all__ = [
    "DEBUG_MARKER",
    "WARN_MARKER",
    "DebugSilencer",
    "debug",
    "debug_enabled",
    "install_debug_silencer",
    "warn",
]

DEBUG_MARKER = "[GlobeGallery][DEBUG]"
WARN_MARKER = "[GlobeGallery][WARN]"


def debug(message: str) -> None:
    print(f"{DEBUG_MARKER} {message}", flush=True)


def warn(message: str) -> None:
    print(f"{WARN_MARKER} {message}", file=sys.stderr, flush=True)


def debug_enabled() -> bool:
    return os.environ.get("GLOBEGALLERY_DEBUG", "").strip().lower() in {"1", "true", "yes"}


class DebugSilencer(io.TextIOBase):
    """Text stream proxy that drops the gallery's DEBUG lines.

    Output is held until a newline arrives so a tagged line printed in several
    ``write`` calls is judged as a whole; complete lines containing ``marker``
    (the ``[GlobeGallery][DEBUG]`` tag by default) never reach ``stream``.
    Everything else, WARN lines included, passes through unchanged.
    """

    def __init__(self, stream: io.TextIOBase, marker: str) -> None:
        super().__init__()
        self._stream = stream
        self._marker = marker
        self._buffer: str = ""

    def write(self, text: str) -> int:  # type: ignore[override]
        pieces = (self._buffer + text).splitlines(keepends=True)
        self._buffer = ""
        if pieces and not pieces[-1].endswith(("\n", "\r")):
            self._buffer = pieces.pop()
        for line in pieces:
            self._emit(line)
        return len(text)

    def flush(self) -> None:  # type: ignore[override]
        if self._buffer:
            self._emit(self._buffer)
            self._buffer = ""
        self._stream.flush()

    def _emit(self, chunk: str) -> None:
        if self._marker not in chunk:
            self._stream.write(chunk)

    def writelines(self, lines) -> None:  # type: ignore[override]
        for line in lines:
            self.write(line)

    def close(self) -> None:  # type: ignore[override]
        self.flush()
        super().close()

    def __getattr__(self, name):
        return getattr(self._stream, name)


def install_debug_silencer(marker: str = DEBUG_MARKER) -> None:
    """Hide DEBUG lines on both standard streams unless debugging is requested."""

    if debug_enabled():
        return
    if marker and not isinstance(sys.stdout, DebugSilencer):
        sys.stdout = DebugSilencer(sys.stdout, marker)
    if marker and not isinstance(sys.stderr, DebugSilencer):
        sys.stderr = DebugSilencer(sys.stderr, marker)
