import pytest

from globegallery.camera import CameraState, CameraTransitionController
from globegallery.layouts import generate_sphere_layout
from globegallery.orbit_controls import Camera, OrbitControls
from globegallery.view_mode import GalleryStateMachine, ViewMode


def _focus(machine, controller, index, now_ms=0):
    assert machine.select(index, now_ms) is True
    controller.tick(1.0)
    assert machine.mode is ViewMode.FOCUSED


class TestSelection:
    def test_initial_state(self, gallery):
        machine, _controller, orbit, _camera = gallery
        assert machine.mode is ViewMode.OVERVIEW
        assert machine.selected_index is None
        assert machine.progress == 0.0
        assert orbit.enabled is True

    def test_select_focuses_and_keeps_progress(self, gallery):
        machine, controller, orbit, camera = gallery
        machine.formation.set_value(0.4)
        assert machine.select(3, 0) is True
        assert machine.mode is ViewMode.TRANSITIONING
        assert machine.selected_index == 3
        assert machine.selected_id == "3"
        assert orbit.enabled is False
        controller.tick(1.0)
        assert machine.mode is ViewMode.FOCUSED
        assert machine.progress == pytest.approx(0.4)
        assert camera.target == machine.sphere_layout[3]

    @pytest.mark.parametrize("index", [15, -1, True, "3", 2.0])
    def test_invalid_index_is_ignored(self, gallery, index):
        machine, _controller, orbit, _camera = gallery
        assert machine.select(index) is False
        assert machine.mode is ViewMode.OVERVIEW
        assert machine.selected_index is None
        assert orbit.enabled is True

    def test_reselecting_focused_item_is_noop(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 2)
        assert machine.select(2) is False
        assert machine.mode is ViewMode.FOCUSED

    def test_select_none_closes(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 2)
        assert machine.select(None) is True
        assert machine.selected_index is None
        assert machine.mode is ViewMode.TRANSITIONING


class TestNavigation:
    def test_next_without_selection_is_noop(self, gallery):
        machine, _controller, _orbit, _camera = gallery
        machine.formation.set_value(0.4)
        assert machine.next() is False
        assert machine.previous() is False
        assert machine.mode is ViewMode.OVERVIEW
        assert machine.selected_index is None
        assert machine.progress == pytest.approx(0.4)

    def test_next_wraps_around(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 14)
        assert machine.next() is True
        assert machine.selected_index == 0
        controller.tick(1.0)
        assert machine.mode is ViewMode.FOCUSED

    def test_previous_wraps_around(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 0)
        machine.previous()
        assert machine.selected_index == 14

    def test_navigation_mid_transition_retargets(self, gallery):
        machine, controller, _orbit, camera = gallery
        machine.select(3)
        controller.tick(0.2)
        machine.next()
        controller.tick(1.0)
        assert machine.mode is ViewMode.FOCUSED
        assert machine.selected_index == 4
        assert camera.target == machine.sphere_layout[4]


class TestClose:
    def test_close_returns_to_overview(self, gallery):
        machine, controller, orbit, camera = gallery
        _focus(machine, controller, 5)
        assert machine.close() is True
        assert machine.mode is ViewMode.TRANSITIONING
        assert machine.selected_index is None
        controller.tick(1.0)
        assert machine.mode is ViewMode.OVERVIEW
        assert orbit.enabled is True
        assert camera.position == pytest.approx((0.0, 0.0, 5.0))

    def test_close_in_overview_is_noop(self, gallery):
        machine, _controller, _orbit, _camera = gallery
        assert machine.close() is False

    def test_close_twice_while_returning(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 5)
        machine.close()
        controller.tick(0.3)
        assert machine.close() is False
        assert controller.state is CameraState.ANIMATING_OUT

    def test_select_during_return_refocuses(self, gallery):
        machine, controller, _orbit, _camera = gallery
        _focus(machine, controller, 5)
        machine.close()
        controller.tick(0.3)
        assert machine.select(7) is True
        assert controller.state is CameraState.ANIMATING_IN
        controller.tick(1.0)
        assert machine.mode is ViewMode.FOCUSED
        assert machine.selected_index == 7


class TestFormationProgress:
    def test_pointer_moves_in_overview(self, gallery):
        machine, _controller, _orbit, _camera = gallery
        seen = []
        machine.subscribe("progress", seen.append)
        machine.pointer_moved(3000, 4000, 10)
        assert machine.progress == pytest.approx(0.5)
        assert seen == [pytest.approx(0.5)]

    def test_progress_frozen_while_focused(self, gallery):
        machine, controller, _orbit, _camera = gallery
        machine.formation.set_value(0.4)
        _focus(machine, controller, 3)
        machine.pointer_moved(5000, 0, 100)
        machine.tick(100000)
        assert machine.progress == pytest.approx(0.4)

    def test_progress_frozen_while_transitioning(self, gallery):
        machine, controller, _orbit, _camera = gallery
        machine.formation.set_value(0.4)
        machine.select(3, 0)
        controller.tick(0.3)
        assert machine.mode is ViewMode.TRANSITIONING
        assert machine.pointer_moved(5000, 0, 100) == pytest.approx(0.4)
        machine.tick(100000)
        assert machine.mode is ViewMode.TRANSITIONING
        assert machine.progress == pytest.approx(0.4)

    def test_decay_resumes_after_grace_period(self, gallery):
        machine, controller, _orbit, _camera = gallery
        machine.formation.set_value(0.4)
        _focus(machine, controller, 3)
        machine.close(60000)
        controller.tick(1.0)
        assert machine.mode is ViewMode.OVERVIEW
        machine.tick(64000)
        assert machine.progress == pytest.approx(0.4)
        machine.tick(65000)
        assert machine.progress == pytest.approx(0.39)

    def test_orbit_drag_postpones_decay(self, gallery):
        machine, _controller, _orbit, _camera = gallery
        machine.pointer_moved(5000, 0, 0)
        machine.orbit_interaction_started(1000)
        machine.tick(20000)
        assert machine.progress == pytest.approx(0.5)

    def test_reset_on_focus_variant(self):
        camera = Camera()
        controller = CameraTransitionController(camera, OrbitControls(camera))
        machine = GalleryStateMachine(generate_sphere_layout(15, 2.0), controller, reset_on_focus=True)
        machine.formation.set_value(0.4)
        machine.select(3)
        assert machine.progress == 0.0


class TestOpacityAndEvents:
    def test_opacity_rules(self, gallery):
        machine, controller, _orbit, _camera = gallery
        assert machine.item_opacity(0) == pytest.approx(0.95)
        assert machine.item_opacity(0, hovered=True) == pytest.approx(1.0)
        _focus(machine, controller, 3)
        assert machine.item_opacity(3) == pytest.approx(1.0)
        assert machine.item_opacity(4) == pytest.approx(0.3)

    def test_mode_and_selection_events(self, gallery):
        machine, controller, _orbit, _camera = gallery
        modes, selections = [], []
        machine.subscribe("mode", modes.append)
        machine.subscribe("selection", selections.append)
        _focus(machine, controller, 3)
        machine.close()
        controller.tick(1.0)
        assert modes == [ViewMode.TRANSITIONING, ViewMode.FOCUSED, ViewMode.TRANSITIONING, ViewMode.OVERVIEW]
        assert selections == ["3", None]

    def test_unknown_event_rejected(self, gallery):
        machine = gallery[0]
        with pytest.raises(ValueError):
            machine.subscribe("zoom", print)

    def test_replace_layout_only_in_overview(self, gallery):
        machine, controller, _orbit, _camera = gallery
        smaller = generate_sphere_layout(5, 2.0)
        assert machine.replace_layout(smaller) is True
        assert machine.item_count == 5
        _focus(machine, controller, 1)
        assert machine.replace_layout(generate_sphere_layout(15, 2.0)) is False
