import pytest

from globegallery.camera import CameraState, CameraTransitionController, ease_in_out, focus_pose
from globegallery.orbit_controls import Camera, OrbitControls


class TestEasing:
    def test_endpoints(self):
        assert ease_in_out(0.0) == 0.0
        assert ease_in_out(1.0) == 1.0
        assert ease_in_out(0.5) == pytest.approx(0.5)
        assert ease_in_out(0.25) == pytest.approx(0.125)

    @pytest.mark.parametrize("x", [0.0, 0.1, 0.3, 0.45, 0.7, 0.99])
    def test_symmetric(self, x):
        assert ease_in_out(x) == pytest.approx(1.0 - ease_in_out(1.0 - x))

    def test_clamped(self):
        assert ease_in_out(-1.0) == 0.0
        assert ease_in_out(2.0) == 1.0


class TestFocusPose:
    def test_outward_standoff(self):
        pose = focus_pose((0.0, 2.0, 0.0), 1.5)
        assert pose.position == pytest.approx((0.0, 3.5, 0.0))
        assert pose.target == (0.0, 2.0, 0.0)

    def test_item_at_origin_uses_plus_z(self):
        pose = focus_pose((0.0, 0.0, 0.0), 1.5)
        assert pose.position == pytest.approx((0.0, 0.0, 1.5))


class TestTransitionController:
    def test_non_positive_duration_rejected(self):
        camera = Camera()
        with pytest.raises(ValueError):
            CameraTransitionController(camera, OrbitControls(camera), duration=0.0)

    def test_focus_disables_orbit_and_eases(self, rig):
        camera, orbit, controller = rig
        reached = []
        controller.on_focus_complete = reached.append
        controller.focus((0.0, 2.0, 0.0), 0)
        assert controller.state is CameraState.ANIMATING_IN
        assert orbit.enabled is False

        controller.tick(0.4)
        assert camera.position == pytest.approx((0.0, 1.75, 2.5))
        assert camera.target == (0.0, 2.0, 0.0)
        assert reached == []

        controller.tick(0.4)
        assert camera.position == pytest.approx((0.0, 3.5, 0.0))
        assert controller.state is CameraState.HOLDING
        assert reached == [0]
        assert orbit.enabled is False

    def test_duration_is_frame_rate_independent(self, rig):
        camera, _orbit, controller = rig
        controller.focus((0.0, 2.0, 0.0), 0)
        for _ in range(40):
            controller.tick(0.01)
        assert camera.position == pytest.approx((0.0, 1.75, 2.5), abs=1e-6)

    def test_restart_starts_from_live_pose(self, rig):
        camera, _orbit, controller = rig
        reached = []
        controller.on_focus_complete = reached.append
        controller.focus((0.0, 2.0, 0.0), 0)
        controller.tick(0.2)
        live = camera.position
        transition = controller.focus((2.0, 0.0, 0.0), 1)
        assert transition.start == live
        controller.tick(1.0)
        assert camera.position == pytest.approx((3.5, 0.0, 0.0))
        assert reached == [1]

    def test_return_home_restores_first_pose(self, rig):
        camera, orbit, controller = rig
        homes = []
        controller.on_home_complete = lambda: homes.append(True)
        controller.focus((0.0, 2.0, 0.0), 0)
        controller.tick(1.0)
        controller.focus((2.0, 0.0, 0.0), 1)
        controller.tick(1.0)
        controller.return_home()
        assert controller.state is CameraState.ANIMATING_OUT
        controller.tick(1.0)
        assert camera.position == pytest.approx((0.0, 0.0, 5.0))
        assert camera.target == (0.0, 0.0, 0.0)
        assert controller.state is CameraState.IDLE
        assert controller.home_pose is None
        assert orbit.enabled is True
        assert homes == [True]

    def test_focus_during_return_cancels_home_callback(self, rig):
        _camera, orbit, controller = rig
        homes = []
        controller.on_home_complete = lambda: homes.append(True)
        controller.focus((0.0, 2.0, 0.0), 0)
        controller.tick(1.0)
        controller.return_home()
        controller.tick(0.3)
        controller.focus((2.0, 0.0, 0.0), 1)
        controller.tick(1.0)
        assert homes == []
        assert orbit.enabled is False

    def test_idle_tick_does_nothing(self, rig):
        camera, _orbit, controller = rig
        assert controller.tick(0.016) is False
        assert camera.position == (0.0, 0.0, 5.0)


class TestClockSource:
    def test_move_is_stamped_at_request_time(self, clock):
        camera = Camera()
        controller = CameraTransitionController(camera, OrbitControls(camera), clock=clock)
        controller.tick(0.0)
        clock.advance(2.0)
        transition = controller.focus((0.0, 2.0, 0.0), 0)
        assert transition.started_at == pytest.approx(clock.value)
        clock.advance(0.4)
        controller.tick(0.016)
        assert controller.state is CameraState.ANIMATING_IN
        assert camera.position == pytest.approx((0.0, 1.75, 2.5))
        clock.advance(0.5)
        controller.tick(0.016)
        assert controller.state is CameraState.HOLDING
