"""
Real-time fanout: pushes inventory and ledger changes to connected viewers.
"""

from ticketing.realtime.registry import ConnectionRegistry, Connection, GLOBAL_TOPIC, event_topic
from ticketing.realtime.publisher import EventPublisher, MessageKind

default_registry = ConnectionRegistry()
default_publisher = EventPublisher(default_registry)


def get_registry() -> ConnectionRegistry:
    return default_registry


def get_publisher() -> EventPublisher:
    return default_publisher


__all__ = [
    "ConnectionRegistry", "Connection", "EventPublisher", "MessageKind",
    "GLOBAL_TOPIC", "event_topic", "get_registry", "get_publisher",
]
