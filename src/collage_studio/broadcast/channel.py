"""
Broadcast Channel
=================

Throttled, replay-1, multi-consumer signal over working-set changes.

Behaviour:
    - Throttle: a value published while the last delivery is younger than
      the window is held as pending. Later publishes replace it. A single
      timer delivers the pending value when the window elapses.
    - Replay: the last delivered value is handed to every new subscriber
      synchronously on subscribe, before any newer value.
    - Fan-out: every delivered value reaches every active subscriber once,
      in subscription order. A failing subscriber is logged and skipped.
    - Idle: no timer exists while nothing is pending.

Ordering is never changed; throttling only drops superseded values.
"""

import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from collage_studio.broadcast.scheduler import AsyncioScheduler, Scheduler, TimerHandle


logger = logging.getLogger(__name__)


T = TypeVar("T")

DEFAULT_THROTTLE_WINDOW = 0.5


class Subscription:
    """
    Non-owning handle for one channel consumer.

    Disposing it detaches the consumer; the channel keeps running for
    everyone else.
    """

    def __init__(self, channel: "BroadcastChannel[Any]", callback: Callable[[Any], None]) -> None:
        self._channel = channel
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        if self._active:
            self._active = False
            self._channel._detach(self)


class BroadcastChannel(Generic[T]):
    """
    Throttled broadcast with replay depth 1.

    Attributes:
        window: Minimum seconds between deliveries
        latest: Last delivered value (replayed to new subscribers)
        has_value: Whether anything has been delivered yet

    Example:
        channel = BroadcastChannel(window=0.5)
        sub = channel.subscribe(render_preview)
        channel.subscribe(update_ui)

        channel.publish(snapshot)   # delivered now, or coalesced
        sub.dispose()
    """

    def __init__(
        self,
        window: float = DEFAULT_THROTTLE_WINDOW,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        """
        Initialize broadcast channel.

        Args:
            window: Throttle window in seconds. Must be >= 0.
            scheduler: Time source; defaults to the running asyncio loop
        """
        if window < 0:
            raise ValueError("window must be >= 0")

        self.window = window
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()

        self._subscriptions: List[Subscription] = []
        self._latest: Optional[T] = None
        self._has_value: bool = False
        self._last_delivery: Optional[float] = None

        self._pending: Optional[T] = None
        self._has_pending: bool = False
        self._timer: Optional[TimerHandle] = None
        self._closed: bool = False

        self._published: int = 0
        self._delivered: int = 0
        self._coalesced: int = 0

    @property
    def latest(self) -> Optional[T]:
        return self._latest

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, value: T) -> None:
        """
        Offer a new value.

        Delivered immediately if the window since the last delivery has
        elapsed, otherwise held until it does.
        """
        if self._closed:
            logger.debug("Publish on closed channel ignored")
            return

        self._published += 1

        if self._timer is not None:
            self._hold(value)
            return

        now = self._scheduler.now()
        if self._last_delivery is None or now - self._last_delivery >= self.window:
            self._deliver(value, now)
            return

        self._hold(value)
        delay = self._last_delivery + self.window - now
        self._timer = self._scheduler.call_later(delay, self._flush)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """
        Attach a consumer.

        The consumer immediately receives the last delivered value, if any.

        Args:
            callback: Called with each delivered value

        Returns:
            Subscription handle
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)

        if self._has_value:
            self._invoke(subscription, self._latest)

        return subscription

    def close(self) -> None:
        """Cancel any pending delivery and detach all consumers."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None
        self._has_pending = False
        for subscription in list(self._subscriptions):
            subscription.dispose()
        self._closed = True
        logger.info("BroadcastChannel closed")

    def metrics(self) -> dict:
        """
        Get channel metrics for observability.

        Returns:
            Dict with published, delivered, coalesced, subscribers, pending
        """
        return {
            "published": self._published,
            "delivered": self._delivered,
            "coalesced": self._coalesced,
            "subscribers": len(self._subscriptions),
            "pending": self._has_pending,
        }

    def _hold(self, value: T) -> None:
        if self._has_pending:
            self._coalesced += 1
        self._pending = value
        self._has_pending = True

    def _flush(self) -> None:
        self._timer = None
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        self._deliver(value, self._scheduler.now())

    def _deliver(self, value: T, now: float) -> None:
        self._latest = value
        self._has_value = True
        self._last_delivery = now
        self._delivered += 1

        for subscription in list(self._subscriptions):
            if subscription.active:
                self._invoke(subscription, value)

    def _invoke(self, subscription: Subscription, value: Any) -> None:
        try:
            subscription.callback(value)
        except Exception:
            logger.exception("Broadcast subscriber failed")

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
