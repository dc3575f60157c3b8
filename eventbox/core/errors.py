from __future__ import annotations


class EventboxError(Exception):
    """Base class for errors raised at the eventbox call boundary."""


class InvalidTopicError(EventboxError, ValueError):
    def __init__(self, topic: object) -> None:
        super().__init__(f"topic must be a non-empty string, got {topic!r}")
        self.topic = topic


class InvalidHandlerError(EventboxError, TypeError):
    def __init__(self, topic: str, handler: object) -> None:
        super().__init__(f"handler for topic {topic!r} must be callable, got {type(handler).__name__}")
        self.topic = topic
        self.handler = handler


def check_topic(topic: object) -> str:
    if not isinstance(topic, str) or not topic:
        raise InvalidTopicError(topic)
    return topic
