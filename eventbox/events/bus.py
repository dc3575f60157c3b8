from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Dict, Optional, Tuple, Union, overload

from eventbox.core.config import get_settings
from eventbox.core.errors import InvalidHandlerError, check_topic
from eventbox.core.log import get_logger
from eventbox.events.emitters import Emitter, LoopScheduler, Scheduler, deferred
from eventbox.events.registry import Handler, SubscriptionRegistry, Token


logger = get_logger(__name__)

Publisher = Callable[..., "EventBus"]


class EventBus:
    """In-process pub/sub event bus.

    - subscribe(topic, handler): register a handler, returns a Token
    - unsubscribe(topic, handler_or_token): remove one, or all with no selector
    - publish(topic, payload): schedule every handler subscribed to topic
    - set_default_emitter(emitter): swap how handlers get called

    Handlers never run inside ``publish`` unless a synchronous emitter is
    chosen explicitly. Handlers are captured when ``publish`` is called, so
    unsubscribing afterwards does not cancel emissions already scheduled.

    With the default scheduler, publishes made while no asyncio loop is
    running wait in a backlog. The backlog moves onto the loop at the next
    publish made inside one, or runs on ``flush()``. Hosts that never run a
    loop must call ``flush()`` or the backlog keeps growing.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        registry: Optional[SubscriptionRegistry] = None,
    ) -> None:
        if scheduler is None:
            scheduler = LoopScheduler(use_timer=get_settings().default_emitter == "later")
        self.scheduler = scheduler
        self.registry = registry if registry is not None else SubscriptionRegistry()
        self._builtin_emitter: Emitter = deferred(scheduler)
        self._emit: Emitter = self._builtin_emitter

    @property
    def default_emitter(self) -> Emitter:
        return self._emit

    def set_default_emitter(self, emitter: Optional[Emitter] = None) -> "EventBus":
        """Use ``emitter`` for publishes without an override; ``None`` restores the built-in one."""
        self._emit = emitter if emitter is not None else self._builtin_emitter
        return self

    @overload
    def subscribe(self, topic: str, handler: Handler, *, bind: Optional[object] = None) -> Token: ...

    @overload
    def subscribe(self, topic: Mapping, handler: None = None, *, bind: Optional[object] = None) -> Dict[str, Token]: ...

    def subscribe(self, topic, handler=None, *, bind=None):
        if isinstance(topic, Mapping):
            # Check every entry first so a bad one leaves nothing half-registered
            for key, value in topic.items():
                self._check_entry(key, value)
            return {key: self._add(key, value, bind) for key, value in topic.items()}
        return self._add(topic, handler, bind)

    def _check_entry(self, topic: object, handler: object) -> str:
        topic = check_topic(topic)
        if isinstance(handler, Mapping):
            for key in handler:
                check_topic(key)
        elif not callable(handler):
            raise InvalidHandlerError(topic, handler)
        return topic

    def _add(self, topic: object, handler: object, bind: Optional[object]) -> Token:
        topic = self._check_entry(topic, handler)
        if isinstance(handler, Mapping):
            # Relay: publishing `topic` publishes this mapping in turn
            handler = partial(self._relay, dict(handler))
            bind = None
        return self.registry.add(topic, handler, bind=bind)

    def _relay(self, topics: Dict[str, Any], _payload: Any = None) -> None:
        self.publish(topics)

    def unsubscribe(self, topic: Union[str, Mapping], selector: object = None) -> "EventBus":
        # Any falsy selector clears the whole topic
        if isinstance(topic, Mapping):
            for key, value in topic.items():
                self.registry.remove(key, value or None)
            return self
        self.registry.remove(topic, selector or None)
        return self

    def publish(
        self,
        topic: Union[str, Mapping],
        payload: Any = None,
        *,
        emitter: Optional[Emitter] = None,
    ) -> "EventBus":
        emit = emitter if emitter is not None else self._emit
        if isinstance(topic, Mapping):
            for key in topic:
                check_topic(key)
            for key, data in topic.items():
                self._fan_out(key, data, emit)
            return self
        self._fan_out(check_topic(topic), payload, emit)
        return self

    def _fan_out(self, topic: str, payload: Any, emit: Emitter) -> None:
        # Snapshot to avoid mutation during iteration
        handlers = self.registry.handlers(topic)
        if not handlers:
            logger.debug("[eventbox] no handlers topic=%s", topic)
            return
        for handler in handlers:
            try:
                emit(handler, payload)
            except Exception:
                logger.exception("[eventbox] emit failed topic=%s", topic)

    def with_emitter(self, emitter: Emitter) -> Publisher:
        """Return a ``publish`` that always uses ``emitter``."""
        return partial(self.publish, emitter=emitter)

    def reset_all(self) -> "EventBus":
        self.registry.clear()
        return self

    def flush(self) -> int:
        """Run emissions waiting in the scheduler's queue; returns how many ran."""
        return self.scheduler.run_pending()

    def topics(self) -> Tuple[str, ...]:
        return self.registry.topics()

    def has_subscribers(self, topic: str) -> bool:
        return topic in self.registry
