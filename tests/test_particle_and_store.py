import math
import pytest
from sem_detector.core import Particle, ParticleStore, MIN_RADIUS


def _check_derived(p: Particle):
    assert p.diameter == 2 * p.radius
    assert p.area == round(math.pi * p.radius ** 2)


def test_derived_fields_follow_radius():
    p = Particle(1, 10.0, 10.0, 10.0)
    _check_derived(p)
    assert p.area == 314
    p.set_radius(20.0)
    _check_derived(p)
    assert p.diameter == 40.0


def test_set_radius_clamps_to_minimum():
    p = Particle(1, 0.0, 0.0, 10.0)
    p.set_radius(0.5)
    assert p.radius == MIN_RADIUS
    p.set_radius(-30)
    assert p.radius == MIN_RADIUS
    _check_derived(p)


def test_add_ids_step_by_ten():
    s = ParticleStore()
    a = s.add(100, 50, 20)
    b = s.add(100, 50, 20)
    assert (a.id, b.id) == (10, 20)
    _check_derived(a)


def test_add_default_centres_on_image(store):
    p = store.add_default((300, 120), radius=2)
    assert (p.id, p.x, p.y, p.radius) == (12, 150.0, 60.0, 5.0)


def test_ids_not_reused_after_delete(store):
    p = store.add(0, 0, 10)
    assert p.id == 12
    store.remove(p.id)
    assert store.add(0, 0, 10).id == 22


def test_every_mutation_keeps_invariants(store):
    store.move(1, 70.0, 80.0)
    store.resize(2, 3.0)
    store.nudge_diameter(1, 5.0)
    store.nudge_position(2, -1.0, 2.0)
    for p in store:
        _check_derived(p)
        assert p.radius >= MIN_RADIUS
    assert store.find_by_id(1).diameter == pytest.approx(45.0)
    assert (store.find_by_id(2).x, store.find_by_id(2).y) == (149.0, 52.0)


def test_nudge_diameter_never_below_minimum(store):
    for _ in range(50):
        store.nudge_diameter(1, -10.0)
    assert store.find_by_id(1).radius == MIN_RADIUS


def test_remove_selected_clears_selection(store):
    store.select(2)
    assert store.selected.id == 2
    assert store.remove(2)
    assert store.selected_id is None
    assert store.find_by_id(2) is None


def test_remove_other_keeps_selection(store):
    store.select(1)
    store.remove(2)
    assert store.selected_id == 1


def test_update_missing_returns_none(store):
    assert store.update(999, lambda p: p.move_to(0, 0)) is None
    assert store.select(999) is None
    assert store.selected_id is None


def test_commit_and_discard(store):
    store.begin_edit()
    store.move(1, 1.0, 2.0)
    assert store.is_dirty
    assert store.committed[0].x == 50.0
    store.commit()
    assert store.committed[0].x == 1.0
    assert not store.is_dirty

    store.begin_edit()
    new = store.add(5, 5, 20)
    store.select(new.id)
    store.discard()
    assert store.find_by_id(new.id) is None
    assert store.selected_id is None
    assert len(store) == 2


def test_replace_all_resets_selection_and_ids(store):
    store.select(1)
    store.replace_all([Particle(1, 0, 0, 10), Particle(2, 0, 0, 10), Particle(3, 0, 0, 10)])
    assert store.selected_id is None
    assert store.next_id() == 13
