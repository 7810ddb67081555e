"""
Reading models - RuuviTag observations in and enriched readings out
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator
from pydantic_core import from_json

from ruuvitag_additions.core.errors import ReadingParseError
from ruuvitag_additions.services.dewpoint import compute_dewpoint, f32_repr, to_f32

# Where enriched readings are published, one subtopic per device
STATE_TOPIC_PREFIX = "home/Radd/RuuviTagAdditions"

# Sample gateway message:
# {"name": "Ruuvi 346C", "id": "D4:D8:D8:CB:34:6C", "rssi": -84, "brand": "Ruuvi",
#  "model": "RuuviTag", "model_id": "RuuviTag_RAWv2", "type": "ACEL", "tempc": -19.575,
#  "tempf": -3.235, "hum": 60.7725, "pres": 1010.48, "accx": 0.0196133, "accy": -0.0784532,
#  "accz": -1.03558224, "volt": 2.595, "tx": 4, "mov": 33, "seq": 37604,
#  "mac": "D4:D8:D8:CB:34:6C"}


def compact_device_id(device_id: str) -> str:
    """Device id without colon separators (D4:D8:... -> D4D8...)."""
    return device_id.replace(":", "")


def state_topic(device_id: str) -> str:
    """Topic carrying enriched readings for a device."""
    return f"{STATE_TOPIC_PREFIX}/{compact_device_id(device_id)}"


class Reading(BaseModel):
    """One RuuviTag observation as republished by the BLE gateway."""

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        strict=True,
        protected_namespaces=(),
    )

    topic: str = ""
    name: str
    device_id: str = Field(alias="id", min_length=1)
    brand: str
    model: str
    model_id: str
    reading_type: str = Field(alias="type")
    temperature_celsius: float = Field(alias="tempc")
    relative_humidity_percent: float = Field(alias="hum")
    pressure_millibar: float = Field(alias="pres")

    @field_validator("temperature_celsius", "relative_humidity_percent", "pressure_millibar")
    @classmethod
    def narrow_to_f32(cls, value: float) -> float:
        return to_f32(value)

    @property
    def other_data(self) -> dict[str, Any]:
        """Payload keys this bridge does not interpret, in arrival order."""
        return dict(self.model_extra or {})

    def __str__(self) -> str:
        return (
            f"{self.topic}: {self.name} ({self.model_id}; {self.reading_type}) "
            f"T={self.temperature_celsius}°C Rh={self.relative_humidity_percent}% "
            f"p={self.pressure_millibar}mbar"
        )


def parse_reading(topic: str, payload: bytes) -> Reading:
    """
    Parse an inbound MQTT message into a Reading.

    The origin topic always comes from the message, never from the body.

    Raises:
        ReadingParseError: payload is not JSON, not an object, or misses
            or mistypes a required field
    """
    try:
        # NaN/Infinity tokens are not JSON; nesting depth is bounded by the parser
        data = from_json(payload, allow_inf_nan=False)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        data["topic"] = topic
        return Reading.model_validate(data)
    except (ValueError, ValidationError, RecursionError) as e:
        raise ReadingParseError(e, payload) from e


class EnrichedReading(BaseModel):
    """Reading with the derived dew point, as published on the state topic."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        protected_namespaces=(),
    )

    topic: str = Field(default="", exclude=True)
    name: str
    device_id: str = Field(alias="id")
    brand: str
    model: str
    model_id: str
    mac: str
    reading_type: str = Field(alias="type")
    dewpoint_celsius: float = Field(alias="dewpoint")

    @field_validator("dewpoint_celsius")
    @classmethod
    def narrow_to_f32(cls, value: float) -> float:
        return to_f32(value)

    @field_serializer("dewpoint_celsius")
    def serialize_dewpoint(self, value: float) -> float:
        return f32_repr(value)

    @classmethod
    def from_reading(cls, reading: Reading) -> "EnrichedReading":
        """Derive the enriched reading; extra payload fields are not carried over."""
        return cls(
            topic=state_topic(reading.device_id),
            name=reading.name,
            device_id=reading.device_id,
            brand=reading.brand,
            model=reading.model,
            model_id=reading.model_id,
            mac=reading.device_id,
            reading_type=reading.reading_type,
            dewpoint_celsius=compute_dewpoint(
                reading.temperature_celsius,
                reading.relative_humidity_percent,
                reading.pressure_millibar,
            ),
        )

    def to_payload(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
