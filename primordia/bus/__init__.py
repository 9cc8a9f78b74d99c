"""Event bus infrastructure — named channels and in-process pub/sub."""

from __future__ import annotations

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.bus import events

__all__ = [
    "EventBus",
    "Channels",
    "events",
]
