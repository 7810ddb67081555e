"""
RuuviTag Additions - MQTT Enrichment Processor
Receives RuuviTag readings, publishes dew point and Home Assistant discovery
"""

import asyncio
import logging
import signal
import sys
import threading
from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ruuvitag_additions.core.config import Settings, get_settings
from ruuvitag_additions.core.errors import (
    DiscoveryPublishError,
    DiscoverySerializationError,
    ReadingParseError,
    RuuviAdditionsError,
    TransportDisconnectedError,
    TransportError,
)
from ruuvitag_additions.models.reading import EnrichedReading, Reading, parse_reading
from ruuvitag_additions.mqtt.transport import InboundMessage, MQTTTransport
from ruuvitag_additions.services.discovery import build_announcements
from ruuvitag_additions.services.registry import DeviceRegistry

logger = logging.getLogger(__name__)


class ProcessorState(str, Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class TerminationReason(str, Enum):
    GRACEFUL = "graceful"
    TRANSPORT_FATAL = "transport_fatal"
    INTERNAL_ERROR = "internal_error"


@dataclass
class ProcessorStats:
    """Counters since start."""

    received: int = 0
    rejected: int = 0
    enriched: int = 0
    enriched_failed: int = 0
    devices_announced: int = 0


class EnrichmentProcessor:
    """Processes RuuviTag readings from the broker, one message at a time."""

    def __init__(
        self,
        transport: MQTTTransport,
        settings: Settings,
        shutdown: threading.Event,
        registry: DeviceRegistry | None = None,
    ):
        self.transport = transport
        self.discovery_topic = settings.mqtt_hass_discovery_topic
        self.poll_timeout = settings.poll_timeout_seconds
        self.shutdown = shutdown
        self.registry = registry if registry is not None else DeviceRegistry()
        self.stats = ProcessorStats()
        self.state = ProcessorState.RUNNING
        self.reason: TerminationReason | None = None

    def _terminate(self, reason: TerminationReason) -> None:
        self.state = ProcessorState.TERMINATED
        self.reason = reason

    def handle_message(self, message: InboundMessage) -> None:
        """
        Parse, announce if new, then publish the enriched reading.

        Malformed messages are dropped and enriched publishing is best-effort.

        Raises:
            DiscoveryPublishError: announcing a new device failed
        """
        self.stats.received += 1
        try:
            reading = parse_reading(message.topic, message.payload)
        except ReadingParseError as e:
            self.stats.rejected += 1
            logger.debug(f"🗑️ Discarding message on {message.topic}: {e}")
            return

        logger.debug(f"📩 {reading}")

        if not self.registry.is_known(reading.device_id):
            self.registry.record(reading.device_id)
            logger.info(f"🆕 New device: {reading.device_id} ({reading.model_id})")
            self._announce(reading)

        self._publish_enriched(reading)

    def _announce(self, reading: Reading) -> None:
        announcements = build_announcements(self.discovery_topic, reading.device_id, reading.model_id)
        for announcement in announcements:
            try:
                self.transport.publish(announcement.topic, announcement.encode())
            except (DiscoverySerializationError, TransportError) as e:
                raise DiscoveryPublishError(
                    f"Cannot announce {reading.device_id} on {announcement.topic}: {e}"
                ) from e
            logger.debug(f"📣 Announced on {announcement.topic}")
        self.stats.devices_announced += 1

    def _publish_enriched(self, reading: Reading) -> None:
        enriched = EnrichedReading.from_reading(reading)
        try:
            self.transport.publish(enriched.topic, enriched.to_payload())
        except (PydanticSerializationError, TransportError) as e:
            self.stats.enriched_failed += 1
            logger.warning(f"⚠️ Failed to publish enriched reading for {reading.device_id}: {e}")
            return
        self.stats.enriched += 1
        logger.debug(f"📤 {enriched.topic}: dewpoint={enriched.dewpoint_celsius}°C")

    async def run(self) -> TerminationReason:
        """
        Consume loop. Returns GRACEFUL once the shutdown flag is seen.

        The flag is checked before and after every bounded wait, so a
        shutdown is honoured within one poll timeout.

        Raises:
            TransportDisconnectedError: the broker connection dropped
            DiscoveryPublishError: a new device could not be announced
        """
        self.state = ProcessorState.RUNNING
        logger.info("🚀 Starting enrichment processor...")

        try:
            while not self.shutdown.is_set():
                message = await self.transport.receive(timeout=self.poll_timeout)
                if self.shutdown.is_set():
                    break
                if message is None:
                    continue
                self.handle_message(message)
        except TransportDisconnectedError:
            self._terminate(TerminationReason.TRANSPORT_FATAL)
            raise
        except Exception:
            self._terminate(TerminationReason.INTERNAL_ERROR)
            raise

        self.state = ProcessorState.SHUTTING_DOWN
        logger.info(
            f"⏹️ Shutting down after {self.stats.received} messages, "
            f"{len(self.registry)} devices"
        )
        self._terminate(TerminationReason.GRACEFUL)
        return TerminationReason.GRACEFUL

    def stop(self) -> None:
        """Request shutdown; honoured at the next loop boundary."""
        self.shutdown.set()


async def serve(settings: Settings, shutdown: threading.Event) -> TerminationReason:
    """Connect, subscribe and run the processor until shutdown or a fatal error."""
    transport = MQTTTransport(settings)
    await transport.connect()
    try:
        transport.subscribe(settings.mqtt_listen_topic)
        processor = EnrichmentProcessor(transport, settings, shutdown)
        return await processor.run()
    finally:
        transport.close()
        logger.info("⏹️ Enrichment processor stopped")


def main() -> int:
    """Entry point. Returns the process exit status."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    shutdown = threading.Event()

    # Handle shutdown signals
    def signal_handler(sig, frame):
        shutdown.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        asyncio.run(serve(settings, shutdown))
    except RuuviAdditionsError as e:
        logger.error(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
