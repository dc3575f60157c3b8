"""Process-wide default bus and module-level shortcuts to it.

Code that owns its own :class:`EventBus` should pass it around instead;
these helpers exist for callers that want one shared bus per process.
"""

from __future__ import annotations

from typing import Any, Optional

from eventbox.events.bus import EventBus
from eventbox.events.emitters import Emitter


_bus: Optional[EventBus] = None


def bind(bus: Optional[EventBus]) -> None:
    """Install ``bus`` as the process default; ``None`` drops it."""
    global _bus
    _bus = bus


def get_event_bus() -> EventBus:
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def subscribe(topic, handler=None, *, bind=None):
    return get_event_bus().subscribe(topic, handler, bind=bind)


def unsubscribe(topic, selector: object = None) -> EventBus:
    return get_event_bus().unsubscribe(topic, selector)


def publish(topic, payload: Any = None, *, emitter: Optional[Emitter] = None) -> EventBus:
    return get_event_bus().publish(topic, payload, emitter=emitter)


def set_default_emitter(emitter: Optional[Emitter] = None) -> EventBus:
    return get_event_bus().set_default_emitter(emitter)


def reset_all() -> EventBus:
    return get_event_bus().reset_all()


def flush() -> int:
    return get_event_bus().flush()
