"""
In-process change notifications for devices and readings.

Writers publish a small snapshot after their transaction commits; dashboard
consumers subscribe to a topic and receive every later snapshot until they
unsubscribe. Topics in use:

- ``devices``: ``{"event": "created" | "updated" | "deleted" | "seen", "device_id": id}``
- ``readings`` and ``readings:<device_id>``: the stored reading as a dict
"""

import threading
from typing import Any, Callable, Dict, List
import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[Dict[str, Any]], None]

DEVICES_TOPIC = "devices"
READINGS_TOPIC = "readings"

def device_readings_topic(device_id: int) -> str:
    return f"{READINGS_TOPIC}:{device_id}"

class Subscription:
    """Handle returned by ChangeFeed.subscribe"""

    def __init__(self, feed: "ChangeFeed", topic: str, callback: Callback):
        self.feed = feed
        self.topic = topic
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self.feed._remove(self)
            self.active = False

class ChangeFeed:
    """Topic based publish/subscribe"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Callback) -> Subscription:
        subscription = Subscription(self, topic, callback)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscription)
        return subscription

    def publish(self, topic: str, snapshot: Dict[str, Any]) -> int:
        """Deliver snapshot to every subscriber of topic; returns delivery count"""
        with self._lock:
            subscribers = list(self._subscribers.get(topic, []))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.callback(snapshot)
                delivered += 1
            except Exception as e:
                # A broken consumer must not fail the write that triggered it
                logger.error("Change feed subscriber failed", topic=topic, error=str(e))
        return delivered

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, []))

    def _remove(self, subscription: Subscription):
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.topic, None)

# Process-wide feed used by the registry and the reading store
change_feed = ChangeFeed()
