"""
Pytest configuration and fixtures for RuuviTag Additions tests.
"""

import json
import sys
import threading
from pathlib import Path

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Queue this in FakeTransport.inbox to simulate a dropped connection
DISCONNECT = object()


class FakeTransport:
    """In-memory stand-in for MQTTTransport."""

    def __init__(self, shutdown: threading.Event):
        self.shutdown = shutdown
        self.inbox: list = []
        self.published: list[tuple[str, bytes]] = []
        self.failing_prefixes: list[str] = []
        self.receive_calls = 0
        self.shutdown_on_receive = False

    async def receive(self, timeout):
        self.receive_calls += 1
        if self.shutdown_on_receive:
            self.shutdown.set()
        if self.inbox:
            item = self.inbox.pop(0)
            if item is DISCONNECT:
                from ruuvitag_additions.core.errors import TransportDisconnectedError

                raise TransportDisconnectedError("Disconnected from MQTT broker")
            return item
        # Nothing left: behave like a signal arriving during the wait
        self.shutdown.set()
        return None

    def publish(self, topic: str, payload: bytes) -> None:
        from ruuvitag_additions.core.errors import PublishError

        for prefix in self.failing_prefixes:
            if topic.startswith(prefix):
                raise PublishError(topic, 4)
        self.published.append((topic, payload))

    @property
    def published_topics(self) -> list[str]:
        return [topic for topic, _ in self.published]


@pytest.fixture
def settings():
    """Settings for tests, independent of the environment."""
    from ruuvitag_additions.core.config import Settings

    return Settings(
        log_level="debug",
        mqtt_broker_url="tcp://localhost:1883",
        mqtt_username="bridge",
        mqtt_password="secret",
        mqtt_listen_topic="home/+/BTtoMQTT/#",
        mqtt_hass_discovery_topic="homeassistant/#",
        poll_timeout_seconds=0.01,
    )


@pytest.fixture
def shutdown():
    return threading.Event()


@pytest.fixture
def transport(shutdown):
    return FakeTransport(shutdown)


@pytest.fixture
def sample_reading_data():
    """RuuviTag reading as republished by the gateway."""
    return {
        "name": "Ruuvi 346C",
        "id": "D4:D8:D8:CB:34:6C",
        "rssi": -84,
        "brand": "Ruuvi",
        "model": "RuuviTag",
        "model_id": "RuuviTag_RAWv2",
        "type": "ACEL",
        "tempc": 20.0,
        "tempf": 68.0,
        "hum": 50.0,
        "pres": 1013.0,
        "accx": 0.0196133,
        "volt": 2.595,
        "mov": 33,
        "seq": 37604,
        "mac": "D4:D8:D8:CB:34:6C",
    }


@pytest.fixture
def make_message(sample_reading_data):
    """Build an inbound message, optionally overriding payload fields."""
    from ruuvitag_additions.mqtt.transport import InboundMessage

    def _make(topic="home/gateway/BTtoMQTT/D4D8D8CB346C", **overrides):
        data = {**sample_reading_data, **overrides}
        return InboundMessage(topic=topic, payload=json.dumps(data).encode())

    return _make
