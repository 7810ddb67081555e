"""
RuuviTag Additions - Error types
"""


class RuuviAdditionsError(Exception):
    """Base class for all bridge errors."""


class ReadingParseError(RuuviAdditionsError):
    """Inbound payload is not a valid RuuviTag reading."""

    def __init__(self, error: Exception, payload: bytes):
        self.error = error
        self.payload = payload
        text = payload.decode("utf-8", errors="replace")
        super().__init__(f"Cannot parse message as RuuviTag reading: {error}\n{text}")


class DiscoverySerializationError(RuuviAdditionsError):
    """Discovery payload could not be encoded."""


class DiscoveryPublishError(RuuviAdditionsError):
    """Discovery announcement could not be published."""


class TransportError(RuuviAdditionsError):
    """MQTT connect, subscribe or publish failed."""


class TransportDisconnectedError(TransportError):
    """Connection to the broker was lost."""


class PublishError(TransportError):
    """Broker client rejected a publish."""

    def __init__(self, topic: str, rc: int):
        self.topic = topic
        self.rc = rc
        super().__init__(f"Publish to {topic} failed with rc={rc}")
