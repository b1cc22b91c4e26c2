import pytest
from sem_detector.core import (
    ViewTransform, to_image_space, to_view_space, zoom_at_cursor,
    Particle, hit_test, HitRegion, EDGE_BAND,
)


@pytest.mark.parametrize("t", [
    ViewTransform(),
    ViewTransform(2.0, -30.0, 12.5),
    ViewTransform(7.3, 411.0, -95.25),
    ViewTransform(10.0, 0.0, 0.0),
])
def test_round_trip(t):
    for px, py in [(0, 0), (13.7, 250.1), (-5, 999)]:
        vx, vy = to_view_space(*to_image_space(px, py, t), t)
        assert vx == pytest.approx(px) and vy == pytest.approx(py)


def test_to_image_space_formula():
    t = ViewTransform(2.0, 10.0, 20.0)
    assert to_image_space(30.0, 40.0, t) == (10.0, 10.0)


def test_zoom_keeps_point_under_cursor():
    t = ViewTransform(1.5, -20.0, 8.0)
    mx, my = 123.0, 77.0
    before = to_image_space(mx, my, t)
    zoom_at_cursor(t, 3.25, mx, my)
    after = to_image_space(mx, my, t)
    assert t.zoom == 3.25
    assert after == pytest.approx(before)


def test_zoom_clamped_and_reset_at_one():
    t = ViewTransform(2.0, -50.0, -50.0)
    zoom_at_cursor(t, 25.0, 10, 10)
    assert t.zoom == 10.0
    zoom_at_cursor(t, 0.2, 10, 10)
    assert (t.zoom, t.pan_x, t.pan_y) == (1.0, 0.0, 0.0)


def test_hit_regions():
    r = 20.0
    p = Particle(1, 100.0, 100.0, r)
    eps = 0.01
    assert hit_test(100.0, 100.0, [p]).region is HitRegion.INTERIOR
    assert hit_test(100.0 + r + EDGE_BAND - eps, 100.0, [p]).region is HitRegion.EDGE
    assert hit_test(100.0 + r - EDGE_BAND + eps, 100.0, [p]).region is HitRegion.EDGE
    assert hit_test(100.0 + r + EDGE_BAND + eps, 100.0, [p]) is None
    assert hit_test(100.0, 100.0 + 100.0, [p]) is None


def test_small_particle_centre_is_interior():
    # radius < EDGE_BAND: the half-radius core still moves, the rest resizes
    for r in (5.0, 6.0, 9.0):
        p = Particle(1, 0.0, 0.0, r)
        assert hit_test(0.0, 0.0, [p]).region is HitRegion.INTERIOR
        assert hit_test(r / 2.0, 0.0, [p]).region is HitRegion.INTERIOR
        assert hit_test(r / 2.0 + 0.5, 0.0, [p]).region is HitRegion.EDGE
        assert hit_test(r + 1.0, 0.0, [p]).region is HitRegion.EDGE


def test_overlap_prefers_selected_then_order():
    a = Particle(1, 0.0, 0.0, 50.0)
    b = Particle(2, 10.0, 0.0, 50.0)
    assert hit_test(5.0, 0.0, [a, b]).particle.id == 1
    assert hit_test(5.0, 0.0, [a, b], selected_id=2).particle.id == 2
    # selected but missed -> fall back to iteration order
    c = Particle(3, 500.0, 500.0, 10.0)
    assert hit_test(5.0, 0.0, [a, b, c], selected_id=3).particle.id == 1


@pytest.mark.parametrize("sens", [0.01, 0.05, 0.16, 0.3, 0.5])
@pytest.mark.parametrize("steps", [1, 3, 7, 11])
def test_zoom_in_and_out_returns_to_identity(sens, steps):
    t = ViewTransform()
    for _ in range(steps):
        zoom_at_cursor(t, t.zoom + sens, 37.0, 91.0)
    for _ in range(steps):
        zoom_at_cursor(t, t.zoom - sens, 37.0, 91.0)
    assert t.is_identity
    assert not t.is_zoomed
