"""Capabilities on the color control cluster."""

from __future__ import annotations

import asyncio
import typing

import zigpy.exceptions

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
from zigcap.const import MAX_HUE, MAX_SATURATION
from zigcap.system import SYSTEM_CAPABILITIES
from zigcap.util import map_value_range, setting_transition_time

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

COLOR_MODE_HUE_SATURATION = 0
COLOR_MODE_XY = 1
COLOR_MODE_TEMPERATURE = 2

LIGHT_MODE_COLOR = "color"
LIGHT_MODE_TEMPERATURE = "temperature"


def _color_temp_range(device: ZigbeeDevice) -> tuple[int, int] | None:
    low, high = device.color_temp_min, device.color_temp_max

    if not isinstance(low, int) or not isinstance(high, int):
        return None

    return low, high


def hue_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    return {
        "hue": round(value * MAX_HUE),
        "direction": 0,
        "transition_time": setting_transition_time(device.host.get_settings()),
    }


def parse_hue(device: ZigbeeDevice, value: int) -> float:
    result = value / MAX_HUE
    device.debug("`light_hue` report parser: current_hue %s -> %s", value, result)
    return result


@SYSTEM_CAPABILITIES.register("light_hue", CLUSTER.COLOR_CONTROL)
def light_hue_color_control() -> dict[str, typing.Any]:
    return {
        CONF_GET: "current_hue",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "move_to_hue",
        CONF_SET_PARSER: hue_set_parser,
        CONF_REPORT: "current_hue",
        CONF_REPORT_PARSER: parse_hue,
    }


def saturation_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    return {
        "saturation": round(value * MAX_SATURATION),
        "transition_time": setting_transition_time(device.host.get_settings()),
    }


def parse_saturation(device: ZigbeeDevice, value: int) -> float:
    result = value / MAX_SATURATION
    device.debug(
        "`light_saturation` report parser: current_saturation %s -> %s", value, result
    )
    return result


@SYSTEM_CAPABILITIES.register("light_saturation", CLUSTER.COLOR_CONTROL)
def light_saturation_color_control() -> dict[str, typing.Any]:
    return {
        CONF_GET: "current_saturation",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "move_to_saturation",
        CONF_SET_PARSER: saturation_set_parser,
        CONF_REPORT: "current_saturation",
        CONF_REPORT_PARSER: parse_saturation,
    }


def temperature_set_parser(
    device: ZigbeeDevice, value: float, opts: dict
) -> dict | Exception:
    color_temp_range = _color_temp_range(device)

    if color_temp_range is None:
        return ValueError("Color temperature range of the light is unknown")

    return {
        "color_temp_mireds": round(map_value_range(0, 1, *color_temp_range, value)),
        "transition_time": setting_transition_time(device.host.get_settings()),
    }


def parse_temperature(device: ZigbeeDevice, value: int) -> float | None:
    color_temp_range = _color_temp_range(device)

    if color_temp_range is None:
        return None

    result = map_value_range(*color_temp_range, 0, 1, value)
    device.debug(
        "`light_temperature` report parser: color_temperature %s -> %s", value, result
    )
    return result


@SYSTEM_CAPABILITIES.register("light_temperature", CLUSTER.COLOR_CONTROL)
def light_temperature_color_control() -> dict[str, typing.Any]:
    return {
        CONF_GET: "color_temperature",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "move_to_color_temp",
        CONF_SET_PARSER: temperature_set_parser,
        CONF_REPORT: "color_temperature",
        CONF_REPORT_PARSER: parse_temperature,
    }


async def mode_set_parser(
    device: ZigbeeDevice, value: str, opts: dict
) -> Exception | None:
    """Issue the command matching the requested mode, no further command is needed."""
    host = device.host
    cluster = device.get_zcl_cluster(CLUSTER.COLOR_CONTROL)
    transition_time = setting_transition_time(host.get_settings())

    if value == LIGHT_MODE_TEMPERATURE:
        color_temp_range = _color_temp_range(device)

        if color_temp_range is None:
            return ValueError("Color temperature range of the light is unknown")

        color_temp = map_value_range(
            0, 1, *color_temp_range, host.get_capability_value("light_temperature")
        )
        await cluster.move_to_color_temp(
            color_temp_mireds=round(color_temp), transition_time=transition_time
        )
        device.debug("Moved to color temperature %s", round(color_temp))
    elif value == LIGHT_MODE_COLOR:
        hue = host.get_capability_value("light_hue") or 0
        saturation = host.get_capability_value("light_saturation") or 0

        await cluster.move_to_hue_and_saturation(
            hue=round(hue * MAX_HUE),
            saturation=round(saturation * MAX_SATURATION),
            transition_time=transition_time,
        )
        device.debug("Moved to hue %s and saturation %s", hue, saturation)

    return None


async def parse_mode(device: ZigbeeDevice, value: int) -> str | None:
    if value == COLOR_MODE_HUE_SATURATION:
        return LIGHT_MODE_COLOR

    if value == COLOR_MODE_TEMPERATURE:
        return LIGHT_MODE_TEMPERATURE

    if value != COLOR_MODE_XY:
        return None

    # CIE xy does not say which of the two modes is in use, guess from the values
    host = device.host
    hue = host.get_capability_value("light_hue")
    saturation = host.get_capability_value("light_saturation")
    temperature = host.get_capability_value("light_temperature")

    if None in (hue, saturation, temperature):
        cluster = device.get_zcl_cluster(CLUSTER.COLOR_CONTROL)

        try:
            success, _ = await cluster.read_attributes(
                ["color_temperature", "current_hue", "current_saturation"]
            )
        except (zigpy.exceptions.ZigbeeException, asyncio.TimeoutError) as exc:
            device.error("Failed to read the color state of the light: %r", exc)
            success = {}

        temperature = success.get("color_temperature")
        hue = success.get("current_hue")
        saturation = success.get("current_saturation")

    if temperature:
        return LIGHT_MODE_TEMPERATURE

    if hue or saturation:
        return LIGHT_MODE_COLOR

    return LIGHT_MODE_TEMPERATURE


@SYSTEM_CAPABILITIES.register("light_mode", CLUSTER.COLOR_CONTROL)
def light_mode_color_control() -> dict[str, typing.Any]:
    return {
        CONF_GET: "color_mode",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_SET: "move_to_color_temp",
        CONF_SET_PARSER: mode_set_parser,
        CONF_REPORT: "color_mode",
        CONF_REPORT_PARSER: parse_mode,
    }
