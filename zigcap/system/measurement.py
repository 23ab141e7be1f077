"""Capabilities on the measurement, electrical measurement and metering clusters."""

from __future__ import annotations

import typing

from zigcap.clusters import CLUSTER
from zigcap.config import (
    CONF_GET,
    CONF_GET_ON_START,
    CONF_GET_OPTS,
    CONF_REPORT,
    CONF_REPORT_PARSER,
)
from zigcap.system import SYSTEM_CAPABILITIES

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice


def parse_occupancy(device: ZigbeeDevice, value: int) -> bool:
    result = value == 1
    device.debug("`alarm_motion` report parser: occupancy %s -> %s", value, result)
    return result


@SYSTEM_CAPABILITIES.register("alarm_motion", CLUSTER.OCCUPANCY_SENSING)
def alarm_motion_occupancy_sensing() -> dict[str, typing.Any]:
    return {
        CONF_GET: "occupancy",
        CONF_REPORT: "occupancy",
        CONF_REPORT_PARSER: parse_occupancy,
    }


def parse_illuminance(device: ZigbeeDevice, value: int) -> int:
    # measured_value = 10000 * log10(lux) + 1
    result = round(10 ** ((value - 1) / 10000))
    device.debug(
        "`measure_luminance` report parser: measured_value %s -> %s", value, result
    )
    return result


@SYSTEM_CAPABILITIES.register("measure_luminance", CLUSTER.ILLUMINANCE_MEASUREMENT)
def measure_luminance_illuminance_measurement() -> dict[str, typing.Any]:
    return {
        CONF_GET: "measured_value",
        CONF_REPORT: "measured_value",
        CONF_REPORT_PARSER: parse_illuminance,
    }


def parse_temperature(device: ZigbeeDevice, value: int) -> float:
    result = round(value / 100, 1)
    device.debug(
        "`measure_temperature` report parser: measured_value %s -> %s", value, result
    )
    return result


@SYSTEM_CAPABILITIES.register("measure_temperature", CLUSTER.TEMPERATURE_MEASUREMENT)
def measure_temperature_temperature_measurement() -> dict[str, typing.Any]:
    return {
        CONF_GET: "measured_value",
        CONF_REPORT: "measured_value",
        CONF_REPORT_PARSER: parse_temperature,
    }


def parse_active_power(device: ZigbeeDevice, value: int) -> float | None:
    if value < 0:
        return None

    return value * (device.active_power_factor or 1)


@SYSTEM_CAPABILITIES.register("measure_power", CLUSTER.ELECTRICAL_MEASUREMENT)
def measure_power_electrical_measurement() -> dict[str, typing.Any]:
    return {
        CONF_GET: "active_power",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_REPORT: "active_power",
        CONF_REPORT_PARSER: parse_active_power,
    }


def parse_summation_delivered(device: ZigbeeDevice, value: int) -> float | None:
    if value < 0:
        return None

    return value * (device.metering_factor or 1)


@SYSTEM_CAPABILITIES.register("meter_power", CLUSTER.METERING)
def meter_power_metering() -> dict[str, typing.Any]:
    return {
        CONF_GET: "current_summ_delivered",
        CONF_GET_OPTS: {CONF_GET_ON_START: True},
        CONF_REPORT: "current_summ_delivered",
        CONF_REPORT_PARSER: parse_summation_delivered,
    }
