import logging

import pytest

from eventbox import box
from eventbox.core.config import get_settings
from eventbox.events.bus import EventBus
from eventbox.events.emitters import QueueScheduler


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    for name in ("EVENTBOX_LOG_LEVEL", "EVENTBOX_DEFAULT_EMITTER"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger("eventbox")
    level = root.level
    get_settings.cache_clear()
    box.bind(None)
    yield
    box.bind(None)
    get_settings.cache_clear()
    root.setLevel(level)


@pytest.fixture
def scheduler():
    return QueueScheduler()


@pytest.fixture
def bus(scheduler):
    return EventBus(scheduler=scheduler)
