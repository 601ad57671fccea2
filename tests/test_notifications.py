"""Tests for state change notifications."""

from __future__ import annotations

from core.notifications import StateChange, StateChangeKind, StateNotifier


def test_publish_reaches_every_subscriber() -> None:
    notifier = StateNotifier()
    first: list[StateChange] = []
    second: list[StateChange] = []
    notifier.subscribe(first.append)
    notifier.subscribe(second.append)

    notifier.publish(StateChange(kind=StateChangeKind.FAVORITES, prompt_id="p1"))

    assert [change.prompt_id for change in first] == ["p1"]
    assert [change.kind for change in second] == [StateChangeKind.FAVORITES]


def test_failing_subscriber_does_not_block_others() -> None:
    notifier = StateNotifier()
    received: list[StateChange] = []

    def _explode(_: StateChange) -> None:
        raise RuntimeError("boom")

    notifier.subscribe(_explode)
    notifier.subscribe(received.append)

    notifier.publish(StateChange(kind=StateChangeKind.HISTORY))

    assert len(received) == 1


def test_subscription_can_be_closed() -> None:
    notifier = StateNotifier()
    events: list[StateChange] = []
    subscription = notifier.subscribe(events.append)
    subscription.close()
    subscription.close()

    notifier.publish(StateChange(kind=StateChangeKind.CLEARED))

    assert events == []
    assert not subscription.active
    assert notifier.subscriber_count == 0


def test_subscription_context_manager_unsubscribes() -> None:
    notifier = StateNotifier()
    events: list[StateChange] = []

    with notifier.subscribe(events.append):
        notifier.publish(StateChange(kind=StateChangeKind.RATING))
    notifier.publish(StateChange(kind=StateChangeKind.RATING))

    assert len(events) == 1


def test_history_is_bounded() -> None:
    notifier = StateNotifier(history_limit=2)
    for kind in (StateChangeKind.HISTORY, StateChangeKind.RATING, StateChangeKind.CACHE):
        notifier.publish(StateChange(kind=kind))

    assert [change.kind for change in notifier.history()] == [
        StateChangeKind.RATING,
        StateChangeKind.CACHE,
    ]


def test_persisted_flag_defaults_to_true() -> None:
    assert StateChange(kind=StateChangeKind.CACHE).persisted
    assert not StateChange(kind=StateChangeKind.CACHE, metadata={"persisted": False}).persisted
