import pytest

from globegallery.formation import FormationTracker, interpolate, interpolate_layout


class TestInterpolate:
    def test_endpoints_and_midpoint(self):
        scatter = (4.0, -2.0, 1.0)
        sphere = (0.0, 2.0, 0.0)
        assert interpolate(scatter, sphere, 0.0) == scatter
        assert interpolate(scatter, sphere, 1.0) == sphere
        assert interpolate(scatter, sphere, 0.5) == pytest.approx((2.0, 0.0, 0.5))

    def test_layout_uses_shortest_side(self):
        out = interpolate_layout([(0.0, 0.0, 0.0)] * 3, [(1.0, 1.0, 1.0)] * 2, 0.25)
        assert out == [(0.25, 0.25, 0.25)] * 2


class TestFormationTracker:
    def test_movement_accumulates_distance(self):
        tracker = FormationTracker()
        assert tracker.add_movement(3000, 4000, 0) == pytest.approx(0.5)
        assert tracker.add_movement(-3000, -4000, 10) == pytest.approx(1.0)

    def test_value_is_clamped(self):
        tracker = FormationTracker()
        tracker.add_movement(50000, 0, 0)
        assert tracker.value == 1.0
        tracker.set_value(-3)
        assert tracker.value == 0.0

    def test_decay_waits_for_grace_period(self):
        tracker = FormationTracker()
        tracker.add_movement(5000, 0, 0)
        assert tracker.advance(4950) is False
        assert tracker.value == pytest.approx(0.5)
        assert tracker.advance(5000) is True
        assert tracker.value == pytest.approx(0.49)
        tracker.advance(5100)
        assert tracker.value == pytest.approx(0.47)

    def test_decay_floors_at_zero(self):
        tracker = FormationTracker()
        tracker.add_movement(150, 0, 0)
        tracker.advance(20000)
        assert tracker.value == 0.0

    def test_interaction_blocks_decay(self):
        tracker = FormationTracker()
        tracker.add_movement(5000, 0, 0)
        tracker.set_interacting(True, 100)
        tracker.advance(30000)
        assert tracker.value == pytest.approx(0.5)
        tracker.set_interacting(False, 30000)
        tracker.advance(34000)
        assert tracker.value == pytest.approx(0.5)

    def test_resync_drops_owed_ticks(self):
        tracker = FormationTracker()
        tracker.add_movement(5000, 0, 0)
        tracker.resync(60000)
        tracker.touch(60000)
        tracker.advance(64000)
        assert tracker.value == pytest.approx(0.5)
