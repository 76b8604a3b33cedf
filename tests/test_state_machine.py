"""InteractionModeMachine: exclusive modes, edit sub-state, camera-input gate."""
from inspector3d.interaction.state_machine import EditTarget, InteractionModeMachine, ToolMode


def test_starts_in_view_with_camera_enabled():
    machine = InteractionModeMachine()
    assert machine.mode is ToolMode.VIEW
    assert machine.camera_input_enabled
    assert not machine.is_editing


def test_modes_are_exclusive():
    machine = InteractionModeMachine()
    for mode in ToolMode:
        machine.activate(mode)
        assert [m for m in ToolMode if machine.is_active(m)] == [mode]


def test_toggle_returns_to_view():
    machine = InteractionModeMachine()
    assert machine.toggle(ToolMode.MEASURE) is ToolMode.MEASURE
    assert machine.toggle(ToolMode.ANNOTATE) is ToolMode.ANNOTATE
    assert machine.toggle(ToolMode.ANNOTATE) is ToolMode.VIEW


def test_editing_only_in_measure_mode():
    machine = InteractionModeMachine()
    assert machine.begin_edit("M1", 0) is False
    machine.activate(ToolMode.MEASURE)
    assert machine.begin_edit("M1", 2) is True
    assert machine.editing == EditTarget("M1", 2)
    assert not machine.camera_input_enabled


def test_end_edit_always_restores_camera():
    machine = InteractionModeMachine()
    machine.activate(ToolMode.MEASURE)
    machine.begin_edit("M1", 0)
    machine.end_edit()
    assert machine.camera_input_enabled
    assert machine.editing is None
    # releasing again is harmless
    machine.end_edit()
    assert machine.camera_input_enabled


def test_switching_mode_ends_drag():
    machine = InteractionModeMachine()
    machine.activate(ToolMode.MEASURE)
    machine.begin_edit("M1", 0)
    machine.activate(ToolMode.REFERENCE)
    assert not machine.is_editing
    assert machine.camera_input_enabled


def test_reset_keeps_mode():
    machine = InteractionModeMachine()
    machine.activate(ToolMode.MEASURE)
    machine.begin_edit("M1", 1)
    machine.reset()
    assert machine.mode is ToolMode.MEASURE
    assert not machine.is_editing


def test_listeners_notified_and_failures_isolated():
    machine = InteractionModeMachine()
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    machine.subscribe(broken)
    machine.subscribe(lambda m: seen.append((m.mode, m.camera_input_enabled)))
    machine.activate(ToolMode.MEASURE)
    machine.begin_edit("M1", 0)
    machine.end_edit()
    assert seen == [
        (ToolMode.MEASURE, True),
        (ToolMode.MEASURE, False),
        (ToolMode.MEASURE, True),
    ]
    machine.unsubscribe(broken)
    machine.activate(ToolMode.MEASURE)  # no change, no notification
    assert len(seen) == 3
