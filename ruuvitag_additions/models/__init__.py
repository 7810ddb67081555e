# Message models
from ruuvitag_additions.models.discovery import DiscoveryDevice, DiscoveryPayload
from ruuvitag_additions.models.reading import EnrichedReading, Reading, parse_reading

__all__ = ["DiscoveryDevice", "DiscoveryPayload", "EnrichedReading", "Reading", "parse_reading"]
