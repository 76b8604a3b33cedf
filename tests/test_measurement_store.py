"""MeasurementStore: lifecycle, derived metrics, locking, nearest-point search."""
import logging

import pytest

from inspector3d.core.event_bus import MEASUREMENT_CHANGED, MEASUREMENT_DELETED, EventBus
from inspector3d.geometry import kernel
from inspector3d.model.entities import Point
from inspector3d.model.measurement_store import MeasurementStore

PALETTE = ["#ff0000", "#00ff00", "#0000ff"]


@pytest.fixture
def store():
    return MeasurementStore(PALETTE)


def _expected_perimeter(m):
    return kernel.polyline_length(m.points, m.closed)


def _triangle(store):
    m = store.create_measurement()
    for p in [(0, 0, 0), (3, 0, 0), (0, 0, 4)]:
        store.add_point(m, p)
    return m


def test_create_assigns_sequential_ids_and_cycling_colors(store):
    ids = [store.create_measurement() for _ in range(4)]
    assert [m.id for m in ids] == ["M1", "M2", "M3", "M4"]
    assert [m.color for m in ids] == PALETTE + PALETTE[:1]
    assert store.current is ids[-1]


def test_ids_not_reused_after_delete(store):
    m1 = store.create_measurement()
    store.delete_measurement(m1.id)
    assert store.create_measurement().id == "M2"


def test_add_point_copies_and_updates_perimeter(store):
    m = store.create_measurement()
    p = Point(0, 0, 0)
    store.add_point(m, p)
    assert m.perimeter == 0.0
    p.x = 99
    assert m.points[0].x == 0
    store.add_point(m, (0, 0, 2))
    assert m.perimeter == pytest.approx(2.0)
    assert m.area == 0.0


def test_close_requires_three_points(store):
    m = store.create_measurement()
    assert store.close(m) is False
    store.add_point(m, (0, 0, 0))
    store.add_point(m, (1, 0, 0))
    assert store.close(m) is False
    assert m.closed is False


def test_close_computes_area_and_closing_segment(store):
    m = _triangle(store)
    assert m.perimeter == pytest.approx(8.0)
    assert store.close(m) is True
    assert m.closed
    assert m.area == pytest.approx(6.0)
    assert m.perimeter == pytest.approx(12.0)


def test_perimeter_consistent_after_every_mutation(store):
    m = _triangle(store)
    store.close(m)
    store.add_point(m, (-1, 0, 2))
    assert m.perimeter == pytest.approx(_expected_perimeter(m))
    store.move_point(m, 1, (4, 0, 0))
    assert m.perimeter == pytest.approx(_expected_perimeter(m))
    assert m.area == pytest.approx(kernel.polygon_area(m.points))
    store.insert_point(m, 1, (2, 0, -1))
    assert m.perimeter == pytest.approx(_expected_perimeter(m))
    store.delete_point(m, 0)
    assert m.perimeter == pytest.approx(_expected_perimeter(m))


def test_delete_below_three_reopens(store):
    m = _triangle(store)
    store.close(m)
    assert store.delete_point(m, 2) is True
    assert m.closed is False
    assert m.area == 0.0
    assert m.perimeter == pytest.approx(3.0)


def test_move_point_mutates_in_place(store):
    m = _triangle(store)
    original = m.points[0]
    store.move_point(m, 0, (1, 1, 1))
    assert m.points[0] is original
    assert original == Point(1, 1, 1)


def test_locked_measurement_rejects_mutation(store, caplog):
    m = _triangle(store)
    store.lock(m)
    before = [p.copy() for p in m.points]
    with caplog.at_level(logging.WARNING, logger="inspector3d"):
        assert store.move_point(m, 0, (9, 9, 9)) is False
        assert store.add_point(m, (5, 5, 5)) is False
        assert store.delete_point(m, 0) is False
        assert store.insert_point(m, 0, (5, 5, 5)) is False
        assert store.close(m) is False
        assert store.delete_measurement(m.id) is False
    assert m.points == before
    assert not m.closed
    assert "locked" in caplog.text
    store.unlock(m)
    assert store.move_point(m, 0, (9, 9, 9)) is True


def test_out_of_range_indices_are_noops(store):
    m = _triangle(store)
    assert store.delete_point(m, 5) is False
    assert store.move_point(m, -1, (0, 0, 0)) is False
    assert store.insert_point(m, 4, (0, 0, 0)) is False
    assert len(m.points) == 3


def test_find_nearest_point(store):
    m1 = _triangle(store)
    ref = store.find_nearest_point(Point(3.05, 0, 0), 0.1)
    assert ref.measurement is m1 and ref.index == 1
    assert store.find_nearest_point(Point(1.5, 0, 1.5), 0.1) is None


def test_find_nearest_point_tie_break_is_first_in_order(store):
    a = store.create_measurement()
    store.add_point(a, (-1, 0, 0))
    store.add_point(a, (1, 0, 0))
    b = store.create_measurement()
    store.add_point(b, (0, 0, 0.5))
    probe = Point(0, 0, 0)
    # all three candidates within tolerance; a[0] and a[1] tie at 1.0, b[0] is closest
    ref = store.find_nearest_point(probe, 2.0)
    assert ref.measurement is b
    # remove the closest; the tie between a[0] and a[1] resolves to a[0] every time
    store.delete_point(b, 0)
    results = {(r.measurement.id, r.index) for r in (store.find_nearest_point(probe, 2.0) for _ in range(5))}
    assert results == {("M1", 0)}


def test_switch_and_delete_adjusts_current(store):
    m1, m2, m3 = (store.create_measurement() for _ in range(3))
    assert store.switch_to(0) is m1
    assert store.switch_to(7) is None
    assert store.current is m1
    store.switch_to(2)
    store.delete_measurement(m2.id)
    assert store.current is m3


def test_events_emitted():
    bus = EventBus()
    seen = []
    bus.subscribe(MEASUREMENT_CHANGED, lambda name, m: seen.append((name, m.id)))
    bus.subscribe(MEASUREMENT_DELETED, lambda name, m: seen.append((name, m.id)))
    store = MeasurementStore(PALETTE, bus)
    m = store.create_measurement()
    store.add_point(m, (0, 0, 0))
    store.delete_measurement(m.id)
    assert seen == [(MEASUREMENT_CHANGED, "M1"), (MEASUREMENT_DELETED, "M1")]


def test_clear_keeps_locked(store):
    keep = store.create_measurement()
    store.create_measurement()
    store.lock(keep)
    assert store.clear() == 1
    assert store.measurements == [keep]


def test_export_record(store):
    m = _triangle(store)
    store.close(m)
    record = m.to_dict()
    assert record["id"] == "M1"
    assert record["points"][1] == {"x": 3.0, "y": 0.0, "z": 0.0}
    assert record["closed"] is True and record["locked"] is False
    assert record["area"] == pytest.approx(6.0)
    assert record["measurementType"] == "area"
    assert record["createdAt"]
