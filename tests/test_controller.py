"""InputController through a session: what each pointer/key event does in each mode."""
import pytest

from inspector3d import InspectionSession, PointerEvent, ToolMode
from inspector3d.interaction.controller import Action
from inspector3d.model.entities import Point, Relationship


class SurfaceStub:
    """Maps screen (x, y) to model (x, 0, y); None where the pointer misses the model."""

    def __init__(self):
        self.miss = False

    def __call__(self, x, y):
        return None if self.miss else Point(x, 0.0, y)


@pytest.fixture
def surface():
    return SurfaceStub()


@pytest.fixture
def session(surface):
    return InspectionSession(pick_surface_point=surface)


def click(session, x, y, **mods):
    return session.input.click(PointerEvent(x, y, **mods))


def test_view_mode_ignores_clicks(session):
    assert click(session, 1, 1).action is Action.NONE
    assert len(session.measurements) == 0


def test_click_starts_then_extends_measurement(session):
    session.toggle_mode(ToolMode.MEASURE)
    first = click(session, 0, 0)
    assert first.action is Action.POINT_ADDED
    click(session, 3, 0)
    m = session.measurements.current
    assert len(session.measurements) == 1
    assert m.points == [Point(0, 0, 0), Point(3, 0, 0)]
    assert m.perimeter == pytest.approx(3.0)


def test_miss_is_no_target(session, surface):
    session.toggle_mode(ToolMode.MEASURE)
    surface.miss = True
    assert click(session, 0, 0).action is Action.NO_TARGET
    assert len(session.measurements) == 0


def test_shift_click_deletes_nearest_point(session):
    session.toggle_mode(ToolMode.MEASURE)
    for x, y in [(0, 0), (3, 0), (3, 3)]:
        click(session, x, y)
    result = click(session, 3.05, 0, shift=True)
    assert result.action is Action.POINT_DELETED
    assert session.measurements.current.points == [Point(0, 0, 0), Point(3, 0, 3)]
    assert click(session, 10, 10, shift=True).action is Action.NO_TARGET


def test_ctrl_drag_moves_point_and_locks_camera(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    click(session, 2, 0)
    m = session.measurements.current

    started = session.input.press(PointerEvent(2.02, 0, ctrl=True))
    assert started.action is Action.EDIT_STARTED
    assert not session.camera.input_enabled

    for x in (2.5, 3.0, 4.0):
        assert session.input.move(PointerEvent(x, 0)).action is Action.POINT_MOVED
        assert m.perimeter == pytest.approx(x)

    # ctrl click that follows the press/release pair must not add a point
    assert click(session, 4.0, 0, ctrl=True).action is Action.NONE
    assert session.input.release().action is Action.EDIT_ENDED
    assert session.camera.input_enabled
    assert len(m.points) == 2


def test_release_without_movement_restores_camera(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    session.input.press(PointerEvent(0, 0, ctrl=True))
    assert not session.camera.input_enabled
    session.input.release()
    assert session.camera.input_enabled


def test_ctrl_press_away_from_points_does_nothing(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    assert session.input.press(PointerEvent(5, 5, ctrl=True)).action is Action.NO_TARGET
    assert session.camera.input_enabled


def test_locked_measurement_blocks_clicks(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    m = session.measurements.current
    session.measurements.lock(m)
    assert click(session, 1, 0).action is Action.REJECTED
    assert session.input.press(PointerEvent(0, 0, ctrl=True)).action is Action.REJECTED
    assert session.camera.input_enabled
    assert len(m.points) == 1


def test_measure_keys(session):
    session.toggle_mode(ToolMode.MEASURE)
    for x, y in [(0, 0), (3, 0), (0, 4)]:
        click(session, x, y)
    assert session.input.key("c").action is Action.MEASUREMENT_CLOSED
    assert session.measurements.current.area == pytest.approx(6.0)
    assert session.input.key("N").action is Action.MEASUREMENT_CREATED
    assert session.measurements.current.id == "M2"
    assert session.input.key("1").target.id == "M1"
    assert session.input.key("9").action is Action.NO_TARGET
    assert session.input.key("l").target is False
    assert session.input.key("l").target is True


def test_close_with_too_few_points_rejected(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    assert session.input.key("c").action is Action.REJECTED


def test_measure_keys_ignored_in_other_modes(session):
    session.toggle_mode(ToolMode.ANNOTATE)
    assert session.input.key("n").action is Action.NONE
    assert len(session.measurements) == 0


def test_annotate_click_computes_candidate_link(session):
    session.toggle_mode(ToolMode.MEASURE)
    for x, y in [(0, 0), (4, 0), (4, 4), (0, 4)]:
        click(session, x, y)
    session.input.key("c")
    session.toggle_mode(ToolMode.ANNOTATE)
    result = click(session, 2, 2)
    assert result.action is Action.ANNOTATION_PENDING
    assert result.link.relationship is Relationship.INSIDE
    assert session.input.pending.point == Point(2, 0, 2)


def test_reference_and_condition_clicks_set_pending(session):
    session.toggle_mode(ToolMode.REFERENCE)
    assert click(session, 1, 1).action is Action.REFERENCE_PENDING
    session.toggle_mode(ToolMode.CONDITION_SCORE)
    assert session.input.pending is None
    assert click(session, 2, 2).action is Action.CONDITION_SCORE_PENDING
    assert session.input.pending.mode is ToolMode.CONDITION_SCORE


def test_escape_clears_pending_and_editing(session):
    session.toggle_mode(ToolMode.MEASURE)
    click(session, 0, 0)
    session.input.press(PointerEvent(0, 0, ctrl=True))
    assert session.input.key("Escape").action is Action.RESET
    assert session.camera.input_enabled
    assert session.mode is ToolMode.MEASURE

    session.toggle_mode(ToolMode.ANNOTATE)
    click(session, 5, 5)
    session.input.key("escape")
    assert session.input.pending is None


def test_annotation_label_hit_selects_existing(session):
    session.camera.set_position(0, 0, 10)
    session.toggle_mode(ToolMode.ANNOTATE)
    click(session, 0, 0)
    annotation = session.save_annotation("Paint blistering")
    width, height = session.camera.viewport_size()
    # label of an annotation at the origin projects to the viewport center
    result = session.input.click(PointerEvent(width / 2 + 3, height / 2 - 3))
    assert result.action is Action.ANNOTATION_SELECTED
    assert result.target is annotation
