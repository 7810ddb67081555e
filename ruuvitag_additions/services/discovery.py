"""
Home Assistant discovery - config announcements for derived sensors
"""

from dataclasses import dataclass

from pydantic_core import PydanticSerializationError

from ruuvitag_additions.core.errors import DiscoverySerializationError
from ruuvitag_additions.models.discovery import DiscoveryDevice, DiscoveryPayload
from ruuvitag_additions.models.reading import compact_device_id, state_topic

MANUFACTURER = "Ruuvi"
VIA_DEVICE = "RuuviTag Additions"
STATE_CLASS = "measurement"

# (measurement, device class, unit of measurement)
# Home Assistant has no dew point device class; absolute_humidity is the
# closest class it accepts with a °C unit.
DERIVED_MEASUREMENTS = [
    ("dewpoint", "absolute_humidity", "°C"),
]


@dataclass(frozen=True)
class DiscoveryAnnouncement:
    """One discovery config message: topic plus payload."""

    topic: str
    payload: DiscoveryPayload

    def encode(self) -> bytes:
        """Serialize the payload to JSON bytes."""
        try:
            return self.payload.model_dump_json().encode("utf-8")
        except (PydanticSerializationError, UnicodeEncodeError) as e:
            raise DiscoverySerializationError(
                f"Unable to format hass discovery message: {e}"
            ) from e


def discovery_topic(discovery_topic_prefix: str, device_id: str, measurement: str) -> str:
    """Config topic for one measurement of a device."""
    return f"{discovery_topic_prefix}/sensor/{compact_device_id(device_id)}-{measurement}/config"


def build_announcements(
    discovery_topic_prefix: str,
    device_id: str,
    model_id: str,
) -> list[DiscoveryAnnouncement]:
    """
    Build discovery announcements for every derived measurement of a device.

    Args:
        discovery_topic_prefix: Discovery root without trailing /, + or #
        device_id: Tag hardware address, with or without colons
        model_id: Tag model variant (e.g. "RuuviTag_RAWv2")

    Returns:
        One announcement per entry of DERIVED_MEASUREMENTS, in order
    """
    compact_id = compact_device_id(device_id)
    device = DiscoveryDevice(
        ids=[compact_id],
        cns=[("mac", compact_id)],
        mf=MANUFACTURER,
        mdl=model_id,
        name=f"RuuviTag-{compact_id[-6:]}",
        via_device=VIA_DEVICE,
    )

    announcements = []
    for measurement, device_class, unit in DERIVED_MEASUREMENTS:
        payload = DiscoveryPayload(
            stat_t=state_topic(device_id),
            dev_cla=device_class,
            unit_of_meas=unit,
            state_class=STATE_CLASS,
            name=f"{model_id}-{measurement}",
            uniq_id=f"{compact_id}-{measurement}",
            val_tpl=f"{{{{ value_json.{measurement} | is_defined }}}}",
            device=device,
        )
        announcements.append(
            DiscoveryAnnouncement(
                topic=discovery_topic(discovery_topic_prefix, device_id, measurement),
                payload=payload,
            )
        )
    return announcements
