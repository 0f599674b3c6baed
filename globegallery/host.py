from __future__ import annotations

from PyQt5.QtCore import QObject, pyqtSignal, pyqtSlot

from .view_mode import GalleryStateMachine, ViewMode


class GalleryHost(QObject):
    """Qt facing mirror of the gallery state.

    The state machine publishes plain callbacks; the host turns them into Qt
    signals so widgets (or a web channel) can bind to them.
    """

    modeChanged = pyqtSignal(str)
    selectionChanged = pyqtSignal(object)
    progressChanged = pyqtSignal(float)
    stateChanged = pyqtSignal('QVariant')

    def __init__(self, machine: GalleryStateMachine, parent=None):
        super().__init__(parent)
        self._machine = machine
        machine.subscribe("mode", self._on_mode)
        machine.subscribe("selection", self._on_selection)
        machine.subscribe("progress", self._on_progress)

    @property
    def machine(self) -> GalleryStateMachine:
        return self._machine

    def _snapshot(self) -> dict:
        return {
            "mode": self._machine.mode.value,
            "selectedId": self._machine.selected_id,
            "selectedIndex": self._machine.selected_index,
            "progress": float(self._machine.progress),
        }

    def _on_mode(self, mode: ViewMode) -> None:
        self.modeChanged.emit(mode.value)
        self.stateChanged.emit(self._snapshot())

    def _on_selection(self, item_id) -> None:
        self.selectionChanged.emit(item_id)
        self.stateChanged.emit(self._snapshot())

    def _on_progress(self, value: float) -> None:
        self.progressChanged.emit(float(value))

    @pyqtSlot(result='QVariant')
    def getState(self):
        return self._snapshot()

    @pyqtSlot(int, result=bool)
    def select(self, index):
        return self._machine.select(int(index))

    @pyqtSlot(result=bool)
    def close(self):
        return self._machine.close()

    @pyqtSlot(result=bool)
    def next(self):
        return self._machine.next()

    @pyqtSlot(result=bool)
    def previous(self):
        return self._machine.previous()
