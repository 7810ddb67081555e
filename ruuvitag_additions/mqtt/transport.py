"""
RuuviTag Additions - MQTT transport
paho-mqtt client wrapped for the asyncio consume loop
"""

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ruuvitag_additions.core.config import Settings
from ruuvitag_additions.core.errors import PublishError, TransportDisconnectedError, TransportError

logger = logging.getLogger(__name__)

# scheme -> (paho transport, TLS, default port)
_SCHEMES = {
    "tcp": ("tcp", False, 1883),
    "mqtt": ("tcp", False, 1883),
    "ssl": ("tcp", True, 8883),
    "mqtts": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}

# Queued by the network thread when the broker connection drops
_DISCONNECTED = object()


@dataclass(frozen=True)
class BrokerEndpoint:
    """Where and how to reach the broker."""

    host: str
    port: int
    transport: str = "tcp"
    tls: bool = False
    path: str = ""

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class InboundMessage:
    """One message received from the broker."""

    topic: str
    payload: bytes


def parse_broker_url(url: str) -> BrokerEndpoint:
    """
    Parse a broker URL such as tcp://broker:1883 or mqtts://broker.

    A URL without a scheme is treated as tcp://.
    """
    if "://" not in url:
        url = f"tcp://{url}"
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in _SCHEMES:
        raise ValueError(f"Unsupported broker URL scheme: {parsed.scheme!r}")
    if not parsed.hostname:
        raise ValueError(f"Broker URL has no host: {url!r}")

    transport, tls, default_port = _SCHEMES[scheme]
    return BrokerEndpoint(
        host=parsed.hostname,
        port=parsed.port or default_port,
        transport=transport,
        tls=tls,
        path=parsed.path if transport == "websockets" else "",
    )


class MQTTTransport:
    """Connects, subscribes, polls and publishes with QoS 0."""

    def __init__(self, settings: Settings):
        self.settings = settings
        try:
            self.endpoint = parse_broker_url(settings.mqtt_broker_url)
        except ValueError as e:
            raise TransportError(str(e)) from e
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.mqtt_client_id,
            transport=self.endpoint.transport,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue | None = None
        self._connected: asyncio.Future | None = None
        self._closing = False

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Called from the network thread on CONNACK."""
        if reason_code.is_failure:
            logger.error(f"❌ Broker refused connection: {reason_code}")
            error = TransportError(f"Broker refused connection: {reason_code}")
            self._loop.call_soon_threadsafe(self._resolve_connected, error)
            return
        logger.info(f"✅ Connected to MQTT broker: {self.endpoint}")
        self._loop.call_soon_threadsafe(self._resolve_connected, None)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        """Called from the network thread when the connection is gone."""
        if self._closing:
            logger.info("⏹️ Disconnected from MQTT broker")
            return
        logger.warning(f"⚠️ Disconnected from MQTT broker: {reason_code}")
        error = TransportDisconnectedError(f"Disconnected from MQTT broker: {reason_code}")
        self._loop.call_soon_threadsafe(self._resolve_connected, error)
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _DISCONNECTED)

    def _on_message(self, client, userdata, msg):
        """Called from the network thread for every inbound message."""
        message = InboundMessage(topic=msg.topic, payload=bytes(msg.payload))
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    def _resolve_connected(self, error: Exception | None) -> None:
        if self._connected is None or self._connected.done():
            return
        if error is None:
            self._connected.set_result(True)
        else:
            self._connected.set_exception(error)

    async def connect(self, timeout: float = 10.0) -> None:
        """
        Open the broker session and start the network thread.

        Raises:
            TransportError: connection failed, was refused or timed out
        """
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._connected = self._loop.create_future()

        self.client.username_pw_set(self.settings.mqtt_username, self.settings.mqtt_password)
        if self.endpoint.tls:
            self.client.tls_set()
        if self.endpoint.path:
            self.client.ws_set_options(path=self.endpoint.path)

        logger.info(f"📡 Connecting to {self.endpoint}")
        try:
            self.client.connect(self.endpoint.host, self.endpoint.port, self.settings.mqtt_keepalive)
        except (OSError, ValueError) as e:
            raise TransportError(f"Cannot connect to {self.endpoint}: {e}") from e

        self.client.loop_start()
        try:
            await asyncio.wait_for(self._connected, timeout)
        except asyncio.TimeoutError as e:
            self.close()
            raise TransportError(f"No CONNACK from {self.endpoint} within {timeout}s") from e
        except TransportError:
            self.close()
            raise

    def subscribe(self, topic_pattern: str) -> None:
        """Subscribe with QoS 0. Raises TransportError if paho rejects it."""
        result, _mid = self.client.subscribe(topic_pattern, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(f"Cannot subscribe to {topic_pattern}: rc={result}")
        logger.info(f"📡 Subscribed to: {topic_pattern}")

    async def receive(self, timeout: float) -> InboundMessage | None:
        """
        Wait up to `timeout` seconds for the next message.

        Returns:
            The message, or None if nothing arrived in time

        Raises:
            TransportDisconnectedError: the broker connection dropped
        """
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _DISCONNECTED:
            raise TransportDisconnectedError(f"Disconnected from MQTT broker {self.endpoint}")
        return item

    def publish(self, topic: str, payload: bytes) -> None:
        """Fire-and-forget publish with QoS 0. Raises PublishError on a non-success rc."""
        result = self.client.publish(topic, payload, qos=0, retain=False)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(topic, result.rc)

    def close(self) -> None:
        self._closing = True
        self.client.loop_stop()
        self.client.disconnect()
