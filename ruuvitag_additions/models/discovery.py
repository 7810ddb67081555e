"""
Discovery models - Home Assistant MQTT discovery config payload

Abbreviated keys as accepted by Home Assistant. Example:

Topic: homeassistant/sensor/E08BAE6FD896-mov/config

{
    "stat_t": "+/+/BTtoMQTT/E69FBF983814",
    "dev_cla": "humidity",
    "unit_of_meas": "%",
    "state_class": "measurement",
    "name": "RuuviTag_RAWv2-hum",
    "uniq_id": "E69FBF983814-hum",
    "val_tpl": "{{ value_json.hum | is_defined }}",
    "device": {"ids": ["E69FBF983814"], "cns": [["mac", "E69FBF983814"]], "mf": "Ruuvi",
               "mdl": "RuuviTag_RAWv2", "name": "RuuviTag-983814", "via_device": "TheengsGateway"}
}
"""

from pydantic import BaseModel, ConfigDict


class DiscoveryDevice(BaseModel):
    """Device block shared by all entities of one tag."""

    model_config = ConfigDict(frozen=True)

    ids: list[str]
    cns: list[tuple[str, str]]  # (connection kind, value)
    mf: str
    mdl: str
    name: str
    via_device: str


class DiscoveryPayload(BaseModel):
    """Config payload for one sensor entity."""

    model_config = ConfigDict(frozen=True)

    stat_t: str
    dev_cla: str
    unit_of_meas: str
    state_class: str
    name: str
    uniq_id: str
    val_tpl: str
    device: DiscoveryDevice
