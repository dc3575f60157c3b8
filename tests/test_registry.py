from eventbox.events.registry import SubscriptionRegistry, Token


def _noop(payload):
    return None


def test_tokens_are_unique_and_never_reused():
    registry = SubscriptionRegistry()
    first = registry.add("a", _noop)
    second = registry.add("b", _noop)
    assert isinstance(first, Token)
    assert second > first
    registry.remove("a", first)
    registry.clear()
    third = registry.add("a", _noop)
    assert third not in (first, second)
    assert third > second
    assert repr(first) == f"Token({int(first)})"


def test_duplicate_handlers_are_independent_entries():
    registry = SubscriptionRegistry()
    one = registry.add("topic", _noop)
    two = registry.add("topic", _noop)
    assert registry.count("topic") == 2
    assert registry.remove("topic", one) == 1
    assert registry.handlers("topic") == (_noop,)
    assert registry.find(two).token == two


def test_remove_by_token_twice_is_a_noop():
    registry = SubscriptionRegistry()
    token = registry.add("topic", _noop)
    assert registry.remove("topic", token) == 1
    assert registry.remove("topic", token) == 0
    assert "topic" not in registry


def test_remove_by_handler_drops_every_match():
    registry = SubscriptionRegistry()

    def other(payload):
        return None

    registry.add("topic", _noop)
    registry.add("topic", other)
    registry.add("topic", _noop)
    assert registry.remove("topic", _noop) == 2
    assert registry.handlers("topic") == (other,)


def test_remove_whole_topic_and_unknown_selectors():
    registry = SubscriptionRegistry()
    registry.add("topic", _noop)
    registry.add("topic", _noop)
    assert registry.remove("topic", "not-a-selector") == 0
    assert registry.remove("topic", 12345) == 0
    assert registry.remove("topic") == 2
    assert registry.remove("topic") == 0
    assert registry.remove("missing") == 0
    assert registry.remove(["unhashable"]) == 0
    assert registry.topics() == ()


def test_snapshot_is_isolated_from_later_removal():
    registry = SubscriptionRegistry()
    token = registry.add("topic", _noop)
    snapshot = registry.snapshot("topic")
    registry.remove("topic", token)
    assert [sub.token for sub in snapshot] == [token]
    assert registry.snapshot("topic") == ()


def test_bound_context_is_passed_first_and_removable_by_unbound_handler():
    registry = SubscriptionRegistry()
    seen = []

    def handler(ctx, payload):
        seen.append((ctx, payload))

    context = object()
    registry.add("topic", handler, bind=context)
    (bound,) = registry.handlers("topic")
    bound("data")
    assert seen == [(context, "data")]
    assert registry.remove("topic", handler) == 1


def test_insertion_order_and_counts():
    registry = SubscriptionRegistry()
    calls = [lambda p: 1, lambda p: 2, lambda p: 3]
    for fn in calls:
        registry.add("topic", fn)
    registry.add("other", _noop)
    assert registry.handlers("topic") == tuple(calls)
    assert registry.count() == len(registry) == 4
    assert [sub.topic for sub in registry] == ["topic"] * 3 + ["other"]


def test_tokens_are_scoped_to_their_registry():
    one = SubscriptionRegistry()
    two = SubscriptionRegistry()
    own = one.add("topic", _noop)
    foreign = two.add("topic", _noop)
    assert int(own) == int(foreign)
    assert one.remove("topic", foreign) == 0
    assert one.find(foreign) is None
    assert one.find(own).token is own
    assert one.remove("topic", own) == 1
