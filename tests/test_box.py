from eventbox import box
from eventbox.events.bus import EventBus
from eventbox.events.emitters import QueueScheduler


def test_default_bus_is_created_lazily_and_reused():
    first = box.get_event_bus()
    assert isinstance(first, EventBus)
    assert box.get_event_bus() is first


def test_module_shortcuts_drive_the_bound_bus():
    scheduler = QueueScheduler()
    bus = EventBus(scheduler=scheduler)
    box.bind(bus)
    calls = []

    token = box.subscribe("hello", calls.append)
    box.publish("hello", {"name": "Ada"})
    assert calls == []
    assert box.flush() == 1
    assert calls == [{"name": "Ada"}]

    box.unsubscribe("hello", token)
    assert not bus.has_subscribers("hello")


def test_module_default_emitter_and_reset():
    box.bind(EventBus(scheduler=QueueScheduler()))
    emitted = []
    box.subscribe({"a": print, "b": print})
    box.set_default_emitter(lambda handler, payload: emitted.append(payload))
    box.publish({"a": 1, "b": 2})
    assert emitted == [1, 2]

    box.set_default_emitter()
    box.reset_all()
    box.publish("a", 3)
    assert emitted == [1, 2]
    assert box.get_event_bus().topics() == ()
