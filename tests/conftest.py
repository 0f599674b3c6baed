import pytest

from globegallery.camera import CameraTransitionController
from globegallery.layouts import generate_sphere_layout
from globegallery.orbit_controls import Camera, OrbitControls
from globegallery.view_mode import GalleryStateMachine


class FakeClock:
    """Manually advanced ``perf_counter`` replacement (seconds)."""

    def __init__(self, start: float = 100.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rig():
    """Camera, orbit controls and transition controller at the default home pose."""

    camera = Camera()
    orbit = OrbitControls(camera)
    controller = CameraTransitionController(camera, orbit)
    return camera, orbit, controller


@pytest.fixture
def gallery(rig):
    camera, orbit, controller = rig
    layout = generate_sphere_layout(15, 2.0)
    machine = GalleryStateMachine(layout, controller)
    return machine, controller, orbit, camera
