"""EventBus: synchronous delivery in subscription order, failing handlers isolated."""
from inspector3d.core.event_bus import EventBus


def test_handlers_called_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe("x", lambda name, data: calls.append(("first", name, data)))
    bus.subscribe("x", lambda name, data: calls.append(("second", name, data)))
    bus.emit("x", 1)
    assert calls == [("first", "x", 1), ("second", "x", 1)]


def test_failing_handler_is_isolated(caplog):
    bus = EventBus()
    seen = []

    def broken(name, data):
        raise ValueError("bad handler")

    bus.subscribe("x", broken)
    bus.subscribe("x", lambda name, data: seen.append(data))
    bus.emit("x", 42)
    assert seen == [42]
    assert "bad handler" in caplog.text
    bus.unsubscribe("x", broken)
    bus.unsubscribe("x", broken)
    bus.emit("x", 43)
    assert seen == [42, 43]
