from __future__ import annotations

import itertools
from dataclasses import dataclass
from types import MethodType
from typing import Any, Callable, Dict, Iterator, Optional, Tuple


Handler = Callable[[Any], Any]


class Token(int):
    """Opaque subscription handle; unique per registry and never reused.

    ``owner`` identifies the issuing registry, so a token from one registry
    never selects a subscription in another.
    """

    owner: object

    def __new__(cls, value: int, owner: object = None) -> "Token":
        token = super().__new__(cls, value)
        token.owner = owner
        return token

    def __repr__(self) -> str:
        return f"Token({int(self)})"


@dataclass(frozen=True)
class Subscription:
    topic: str
    token: Token
    handler: Handler
    # The handler as passed in, before any context binding
    callback: Handler

    def matches(self, handler: object) -> bool:
        return self.callback == handler or self.handler == handler


class SubscriptionRegistry:
    """In-memory mapping of topic -> subscriptions, in subscription order.

    Topics with no subscriptions are dropped, so an absent topic and an
    emptied one look the same to every operation.
    """

    def __init__(self) -> None:
        self._topic_to_subs: Dict[str, Dict[Token, Subscription]] = {}
        self._counter = itertools.count(1)
        self._owner = object()

    def add(self, topic: str, handler: Handler, *, bind: Optional[object] = None) -> Token:
        token = Token(next(self._counter), self._owner)
        effective = MethodType(handler, bind) if bind is not None else handler
        subs = self._topic_to_subs.setdefault(topic, {})
        subs[token] = Subscription(topic=topic, token=token, handler=effective, callback=handler)
        return token

    def remove(self, topic: str, selector: object = None) -> int:
        """Remove subscriptions under ``topic`` and return how many went.

        ``selector`` is ``None`` (whole topic), a :class:`Token`, or a handler
        (every subscription of that handler). Anything unknown is a no-op.
        """
        if not isinstance(topic, str):
            return 0
        subs = self._topic_to_subs.get(topic)
        if not subs:
            return 0

        if selector is None:
            removed = len(subs)
            subs.clear()
        elif isinstance(selector, Token):
            if selector.owner is not self._owner:
                removed = 0
            else:
                removed = 1 if subs.pop(selector, None) is not None else 0
        elif callable(selector):
            doomed = [token for token, sub in subs.items() if sub.matches(selector)]
            for token in doomed:
                del subs[token]
            removed = len(doomed)
        else:
            removed = 0

        if not subs:
            self._topic_to_subs.pop(topic, None)
        return removed

    def snapshot(self, topic: str) -> Tuple[Subscription, ...]:
        # Copy so removals during a fan-out don't touch the iteration
        return tuple(self._topic_to_subs.get(topic, {}).values())

    def handlers(self, topic: str) -> Tuple[Handler, ...]:
        return tuple(sub.handler for sub in self.snapshot(topic))

    def find(self, token: Token) -> Optional[Subscription]:
        if getattr(token, "owner", None) is not self._owner:
            return None
        for subs in self._topic_to_subs.values():
            sub = subs.get(token)
            if sub is not None:
                return sub
        return None

    def topics(self) -> Tuple[str, ...]:
        return tuple(self._topic_to_subs)

    def count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._topic_to_subs.get(topic, {}))
        return sum(len(subs) for subs in self._topic_to_subs.values())

    def clear(self) -> None:
        # Tokens keep counting up so stale handles never alias new ones
        self._topic_to_subs.clear()

    def __contains__(self, topic: object) -> bool:
        return isinstance(topic, str) and topic in self._topic_to_subs

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Subscription]:
        for subs in list(self._topic_to_subs.values()):
            yield from list(subs.values())
