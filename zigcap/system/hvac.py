"""Capabilities on the thermostat cluster."""

from __future__ import annotations

import typing

from zigcap.clusters import CLUSTER
from zigcap.config import (
    CONF_GET,
    CONF_GET_ON_START,
    CONF_GET_OPTS,
    CONF_REPORT,
    CONF_REPORT_PARSER,
    CONF_SET,
    CONF_SET_PARSER,
)
from zigcap.system import SYSTEM_CAPABILITIES

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

HEATING_TYPE_UNOCCUPIED = 0


def setpoint_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    """Write the heating setpoint matching the thermostat's occupancy."""
    if device.heating_type == HEATING_TYPE_UNOCCUPIED:
        attribute = "unoccupied_heating_setpoint"
    else:
        attribute = "occupied_heating_setpoint"

    return {"attributes": {attribute: round(value * 100)}}


def parse_setpoint(device: ZigbeeDevice, value: int) -> float:
    return round(value / 100, 1)


@SYSTEM_CAPABILITIES.register("target_temperature", CLUSTER.THERMOSTAT)
def target_temperature_thermostat() -> dict[str, typing.Any]:
    return {
        CONF_GET: "occupied_heating_setpoint",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "write_attributes",
        CONF_SET_PARSER: setpoint_set_parser,
        CONF_REPORT: "occupied_heating_setpoint",
        CONF_REPORT_PARSER: parse_setpoint,
    }
