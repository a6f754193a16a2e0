import pytest

from ortprep.core.config import settings
from ortprep.gamification.events import EVENT_CONFIG, EventBus, GamificationEventType


def test_every_kind_has_display_config():
    for kind in GamificationEventType:
        assert {"icon", "default_title"} <= set(EVENT_CONFIG[kind])


def test_publish_enqueues_in_order(event_bus):
    event_bus.publish("user-1", GamificationEventType.POINTS_EARNED, value=10)
    event_bus.publish("user-1", "lesson_completed", title="Fractions done")

    events = event_bus.pending("user-1")
    assert [e["type"] for e in events] == ["points_earned", "lesson_completed"]
    assert events[0]["title"] == "Points earned!"
    assert events[0]["icon"] == "sparkles"
    assert events[1]["title"] == "Fractions done"
    assert event_bus.pending("user-2") == []


def test_unknown_kind_rejected(event_bus):
    with pytest.raises(ValueError):
        event_bus.publish("user-1", "birthday")


def test_confetti_only_for_celebrations(event_bus):
    event_bus.publish("user-1", GamificationEventType.ACHIEVEMENT_UNLOCKED)
    assert not event_bus.confetti_pending("user-1")

    event_bus.publish("user-1", GamificationEventType.LEVEL_UP, value=2)
    assert event_bus.confetti_pending("user-1")


def test_dismiss(event_bus):
    kept = event_bus.publish("user-1", GamificationEventType.POINTS_EARNED, value=5)
    dropped = event_bus.publish("user-1", GamificationEventType.POINTS_EARNED, value=7)

    assert event_bus.dismiss("user-1", dropped["id"]) is True
    assert event_bus.dismiss("user-1", dropped["id"]) is False
    assert [e["id"] for e in event_bus.pending("user-1")] == [kept["id"]]


def test_drain_clears_queue_and_confetti(event_bus):
    event_bus.publish("user-1", GamificationEventType.PERFECT_SCORE, value=100)

    drained = event_bus.drain("user-1")

    assert drained["confetti"] is True
    assert len(drained["events"]) == 1
    assert event_bus.drain("user-1") == {"events": [], "confetti": False}


def test_failing_subscriber_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(user_id, event):
        raise RuntimeError("renderer gone")

    bus.subscribe(broken)
    bus.subscribe(lambda user_id, event: seen.append((user_id, event["type"])))

    bus.publish("user-1", GamificationEventType.STREAK_MILESTONE, value=7)

    assert seen == [("user-1", "streak_milestone")]
    assert len(bus.pending("user-1")) == 1


def test_queue_keeps_only_newest_events():
    bus = EventBus(max_queue_size=3)
    for points in range(10):
        bus.publish("user-1", GamificationEventType.POINTS_EARNED, value=points)

    assert [e["value"] for e in bus.pending("user-1")] == [7, 8, 9]
    assert [e["value"] for e in bus.drain("user-1")["events"]] == [7, 8, 9]


def test_queue_size_defaults_from_settings(event_bus):
    for _ in range(settings.EVENT_QUEUE_MAX_SIZE + 5):
        event_bus.publish("user-1", GamificationEventType.POINTS_EARNED, value=1)

    assert len(event_bus.pending("user-1")) == settings.EVENT_QUEUE_MAX_SIZE
