# fleet_trips/Services/event_sources/__init__.py
"""
Event Sources
=============
Transport adapters feeding raw payloads into the transaction engine.

Sources:
- KafkaEventSource: poll model (aiokafka), retry + circuit breaker
- MqttEventSource: push model (paho-mqtt), QoS 1 at-least-once

Both run each message on the shared worker thread pool and never let a
processing failure stop consumption.
"""

from .base import EventSource
from .kafka_source import KafkaEventSource
from .mqtt_source import MqttEventSource

__all__ = [
    'EventSource',
    'KafkaEventSource',
    'MqttEventSource',
]
