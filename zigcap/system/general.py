"""Capabilities on the general clusters: on/off, level control and power."""

from __future__ import annotations

import typing

from zigcap.clusters import CLUSTER
from zigcap.config import (
    CONF_GET,
    CONF_GET_ON_ONLINE,
    CONF_GET_ON_START,
    CONF_GET_OPTS,
    CONF_REPORT,
    CONF_REPORT_PARSER,
    CONF_SET,
    CONF_SET_PARSER,
)
from zigcap.const import MAX_DIM, SETTING_BATTERY_THRESHOLD
from zigcap.system import SYSTEM_CAPABILITIES
from zigcap.util import calculate_dim_duration

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

BATTERY_PERCENTAGE_MAX = 200
BATTERY_PERCENTAGE_UNKNOWN = 0xFF


def onoff_command(device: ZigbeeDevice, value: bool, opts: dict) -> str:
    return "on" if value else "off"


def empty_payload(device: ZigbeeDevice, value: typing.Any, opts: dict) -> dict:
    """The command itself carries the action."""
    return {}


def parse_onoff(device: ZigbeeDevice, value: typing.Any) -> bool:
    result = value == 1
    device.debug("`onoff` report parser: on_off %s -> %s", value, result)
    return result


@SYSTEM_CAPABILITIES.register("onoff", CLUSTER.ON_OFF)
def onoff_on_off() -> dict[str, typing.Any]:
    return {
        CONF_GET: "on_off",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: onoff_command,
        CONF_SET_PARSER: empty_payload,
        CONF_REPORT: "on_off",
        CONF_REPORT_PARSER: parse_onoff,
    }


async def dim_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    host = device.host

    if value == 0:
        await host.set_capability_value("onoff", False)
    elif value > 0 and host.get_capability_value("onoff") is False:
        await host.set_capability_value("onoff", True)

    return {
        "level": round(value * MAX_DIM),
        "transition_time": calculate_dim_duration(opts, host.get_settings()),
    }


def parse_dim(device: ZigbeeDevice, value: int) -> float:
    result = value / MAX_DIM
    device.debug("`dim` report parser: current_level %s -> %s", value, result)
    return result


@SYSTEM_CAPABILITIES.register("dim", CLUSTER.LEVEL_CONTROL)
def dim_level_control() -> dict[str, typing.Any]:
    return {
        CONF_GET: "current_level",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "move_to_level_with_on_off",
        CONF_SET_PARSER: dim_set_parser,
        CONF_REPORT: "current_level",
        CONF_REPORT_PARSER: parse_dim,
    }


def parse_battery_percentage(device: ZigbeeDevice, value: int) -> int | None:
    # 0xFF means the reading is invalid or unknown
    if value <= BATTERY_PERCENTAGE_MAX and value != BATTERY_PERCENTAGE_UNKNOWN:
        result = round(value / 2)
        device.debug(
            "`measure_battery` report parser: battery_percentage_remaining %s -> %s",
            value,
            result,
        )
        return result

    return None


@SYSTEM_CAPABILITIES.register("measure_battery", CLUSTER.POWER_CONFIGURATION)
def measure_battery_power_configuration() -> dict[str, typing.Any]:
    return {
        CONF_GET: "battery_percentage_remaining",
        CONF_GET_OPTS: {CONF_GET_ON_ONLINE: True},
        CONF_REPORT: "battery_percentage_remaining",
        CONF_REPORT_PARSER: parse_battery_percentage,
    }


def parse_battery_alarm(device: ZigbeeDevice, value: int) -> bool:
    threshold = (
        device.host.get_setting(SETTING_BATTERY_THRESHOLD)
        or device.battery_threshold
        or 1
    )
    return value <= threshold


@SYSTEM_CAPABILITIES.register("alarm_battery", CLUSTER.POWER_CONFIGURATION)
def alarm_battery_power_configuration() -> dict[str, typing.Any]:
    return {
        CONF_GET: "battery_voltage",
        CONF_REPORT: "battery_voltage",
        CONF_REPORT_PARSER: parse_battery_alarm,
    }
