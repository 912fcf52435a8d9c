"""
Broadcast Module
================

Throttled, replayed fan-out of working-set changes to consumers.

Components:
    - BroadcastChannel: Throttle window + replay depth 1 + fan-out
    - Subscription: Non-owning consumer handle
    - AsyncioScheduler: Event-loop time source and timers
"""

from collage_studio.broadcast.channel import (
    DEFAULT_THROTTLE_WINDOW,
    BroadcastChannel,
    Subscription,
)
from collage_studio.broadcast.scheduler import AsyncioScheduler, Scheduler


__all__ = [
    "DEFAULT_THROTTLE_WINDOW",
    "BroadcastChannel",
    "Subscription",
    "AsyncioScheduler",
    "Scheduler",
]
