# fleet_trips/Services/event_sources/mqtt_source.py
"""
MQTT Event Source
=================
Push-model adapter over paho-mqtt's threaded network loop.

- Subscribes with QoS 1 (at-least-once) on every (re)connect
- on_message only submits the payload to the worker pool
- Unexpected disconnects, refused connects and failed reconnect attempts
  count as transport failures; once the circuit breaker opens, paho's reconnect delay is stretched to the cooldown
"""

import asyncio
from concurrent.futures import Executor
from typing import Any, Callable, Optional

import paho.mqtt.client as mqtt

from fleet_trips.Core.config import Settings, settings as default_settings
from fleet_trips.Core.exceptions import TransportError
from fleet_trips.Core.log_setup import get_logger
from fleet_trips.Services.circuit_breaker import CircuitBreaker
from fleet_trips.Services.event_sources.base import EventSource
from fleet_trips.Services.trip_engine import TripStateEngine

logger = get_logger(__name__)

SUBSCRIBE_QOS = 1

# paho defaults
_MIN_RECONNECT_DELAY = 1
_MAX_RECONNECT_DELAY = 120


def build_client(config: Settings) -> mqtt.Client:
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=config.MQTT_CLIENT_ID,
        clean_session=False,
    )
    if config.MQTT_USERNAME:
        client.username_pw_set(config.MQTT_USERNAME, config.MQTT_PASSWORD)
    return client


class MqttEventSource(EventSource):
    """MQTT subscriber feeding the transaction engine."""

    name = "mqtt"

    def __init__(
        self,
        engine: TripStateEngine,
        executor: Executor,
        *,
        config: Settings = default_settings,
        client_factory: Optional[Callable[[], Any]] = None,
        breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        super().__init__(
            engine,
            executor,
            breaker or CircuitBreaker(
                max_retries=config.MQTT_MAX_RETRIES,
                cooldown=config.MQTT_CIRCUIT_BREAKER_COOLDOWN,
                name=self.name,
            ),
        )
        self.config = config
        self._client_factory = client_factory or (lambda: build_client(config))
        self._client: Any = None
        self._stopping = False

    # ========================================
    # PAHO CALLBACKS (network thread)
    # ========================================
    def on_connect(self, client: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
        if reason_code.is_failure:
            logger.error("mqtt_connect_refused", reason=str(reason_code))
            self._record_transport_failure(client)
            return

        self.breaker.record_success()
        client.reconnect_delay_set(min_delay=_MIN_RECONNECT_DELAY, max_delay=_MAX_RECONNECT_DELAY)
        client.subscribe(self.config.MQTT_TOPIC, qos=SUBSCRIBE_QOS)
        logger.info("mqtt_subscribed", topic=self.config.MQTT_TOPIC, qos=SUBSCRIBE_QOS)

    def on_message(self, _client: Any, _userdata: Any, msg: Any) -> None:
        self.received += 1
        self.executor.submit(self.process_one, msg.payload)

    def on_disconnect(self, client: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
        if self._stopping:
            return

        logger.error("mqtt_disconnected", reason=str(reason_code))
        self._record_transport_failure(client)

    def on_connect_fail(self, client: Any, _userdata: Any) -> None:
        # paho reports failed reconnect attempts here, not through on_disconnect
        if self._stopping:
            return

        logger.error("mqtt_reconnect_failed", broker=self.config.MQTT_BROKER)
        self._record_transport_failure(client)

    def _record_transport_failure(self, client: Any) -> None:
        if self.breaker.record_failure():
            cooldown = int(self.breaker.cooldown)
            client.reconnect_delay_set(min_delay=cooldown, max_delay=cooldown)

    # ========================================
    # LIFECYCLE
    # ========================================
    async def start(self) -> None:
        client = self._client_factory()
        client.on_connect = self.on_connect
        client.on_message = self.on_message
        client.on_disconnect = self.on_disconnect
        client.on_connect_fail = self.on_connect_fail

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: client.connect(
                    self.config.MQTT_BROKER,
                    self.config.MQTT_PORT,
                    keepalive=self.config.MQTT_KEEPALIVE,
                ),
            )
        except OSError as e:
            raise TransportError(f"MQTT broker unreachable: {e}") from e

        client.loop_start()
        self._client = client
        self.running = True
        logger.info(
            "mqtt_client_started",
            broker=self.config.MQTT_BROKER,
            port=self.config.MQTT_PORT,
        )

    async def stop(self) -> None:
        self._stopping = True
        client = self._client
        self._client = None
        self.running = False
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
        logger.info("mqtt_client_stopped", received=self.received)
