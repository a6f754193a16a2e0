"""In-process queue of gamification events awaiting display."""

from typing import Any, Callable, Deque, Dict, List, Optional, Union
from collections import deque
from datetime import datetime
from enum import Enum
import uuid

import structlog

from ortprep.core.config import settings

logger = structlog.get_logger()


class GamificationEventType(str, Enum):
    """Kinds of events shown to the learner."""
    POINTS_EARNED = "points_earned"
    STREAK_MILESTONE = "streak_milestone"
    LEVEL_UP = "level_up"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    LESSON_COMPLETED = "lesson_completed"
    TEST_COMPLETED = "test_completed"
    PERFECT_SCORE = "perfect_score"


EVENT_CONFIG: Dict[GamificationEventType, Dict[str, str]] = {
    GamificationEventType.POINTS_EARNED: {"icon": "sparkles", "default_title": "Points earned!"},
    GamificationEventType.STREAK_MILESTONE: {"icon": "flame", "default_title": "Streak continues!"},
    GamificationEventType.LEVEL_UP: {"icon": "star", "default_title": "New level!"},
    GamificationEventType.ACHIEVEMENT_UNLOCKED: {"icon": "trophy", "default_title": "Achievement unlocked!"},
    GamificationEventType.LESSON_COMPLETED: {"icon": "award", "default_title": "Lesson completed!"},
    GamificationEventType.TEST_COMPLETED: {"icon": "zap", "default_title": "Test completed!"},
    GamificationEventType.PERFECT_SCORE: {"icon": "trophy", "default_title": "Perfect score!"},
}

# Events that also fire the confetti effect
CONFETTI_EVENTS = {GamificationEventType.LEVEL_UP, GamificationEventType.PERFECT_SCORE}


class EventBus:
    """Per-user event queues with optional subscribers.

    The bus owns every event until the client dismisses or drains it.
    Subscribers are called synchronously on publish; a failing subscriber
    is logged and does not stop delivery to the others. Each user keeps at
    most ``max_queue_size`` events; the oldest are dropped first.
    """

    def __init__(self, max_queue_size: Optional[int] = None):
        self.max_queue_size = max_queue_size or settings.EVENT_QUEUE_MAX_SIZE
        self._queues: Dict[str, Deque[Dict[str, Any]]] = {}
        self._confetti: Dict[str, bool] = {}
        self._subscribers: List[Callable[[str, Dict[str, Any]], None]] = []

    def subscribe(self, callback: Callable[[str, Dict[str, Any]], None]):
        self._subscribers.append(callback)

    def publish(
        self,
        user_id: str,
        kind: Union[GamificationEventType, str],
        value: Optional[Union[int, str]] = None,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        """Enqueue an event for the user and notify subscribers."""
        kind = GamificationEventType(kind)
        config = EVENT_CONFIG[kind]
        event = {
            "id": str(uuid.uuid4()),
            "type": kind.value,
            "value": value,
            "title": title or config["default_title"],
            "description": description,
            "icon": config["icon"],
            "created_at": datetime.utcnow().isoformat(),
        }
        queue = self._queues.get(user_id)
        if queue is None:
            queue = self._queues[user_id] = deque(maxlen=self.max_queue_size)
        # A full queue drops its oldest event
        queue.append(event)
        if kind in CONFETTI_EVENTS:
            self.trigger_confetti(user_id)

        for callback in self._subscribers:
            try:
                callback(user_id, event)
            except Exception as e:
                logger.error("Event subscriber failed", event_type=kind.value, error=str(e))

        return event

    def trigger_confetti(self, user_id: str):
        self._confetti[user_id] = True

    def confetti_pending(self, user_id: str) -> bool:
        return self._confetti.get(user_id, False)

    def pending(self, user_id: str) -> List[Dict[str, Any]]:
        """Undismissed events in publish order."""
        return list(self._queues.get(user_id, []))

    def dismiss(self, user_id: str, event_id: str) -> bool:
        queue = self._queues.get(user_id, [])
        for idx, event in enumerate(queue):
            if event["id"] == event_id:
                del queue[idx]
                return True
        return False

    def drain(self, user_id: str) -> Dict[str, Any]:
        """Return and clear the user's events and confetti flag."""
        events = list(self._queues.pop(user_id, []))
        confetti = self._confetti.pop(user_id, False)
        return {"events": events, "confetti": confetti}
