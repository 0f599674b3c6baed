import pytest

pytest.importorskip("PyQt5.QtCore")

from globegallery.host import GalleryHost  # noqa: E402


def test_host_mirrors_state_machine(gallery):
    machine, controller, _orbit, _camera = gallery
    host = GalleryHost(machine)
    modes, selections, progress = [], [], []
    host.modeChanged.connect(modes.append)
    host.selectionChanged.connect(selections.append)
    host.progressChanged.connect(progress.append)

    machine.pointer_moved(600, 800, 0)
    assert host.select(4) is True
    controller.tick(1.0)
    assert modes == ["transitioning", "focused"]
    assert selections == ["4"]
    assert progress == [pytest.approx(0.1)]
    state = host.getState()
    assert state["mode"] == "focused"
    assert state["selectedIndex"] == 4

    assert host.next() is True
    assert machine.selected_index == 5
    assert host.close() is True
    assert selections[-1] is None
