"""Ready made devices for dimmable and color lights."""

from __future__ import annotations

import asyncio
import typing

import zigpy.exceptions

from zigcap.clusters import CLUSTER
from zigcap.color import convert_hsv_to_cie
from zigcap.config import CONF_SET, CONF_SET_PARSER
from zigcap.const import (
    CIE_MULTIPLIER,
    MAX_DIM,
    MAX_HUE,
    MAX_SATURATION,
    STORE_COLOR_TEMP_MAX,
    STORE_COLOR_TEMP_MIN,
)
from zigcap.device import ZigbeeDevice
from zigcap.system.lighting import LIGHT_MODE_COLOR
from zigcap.util import calculate_dim_duration, map_value_range, setting_transition_time

MIN_DIM_WHEN_ON = 0.01

COLOR_CAPABILITIES = ("light_hue", "light_saturation", "light_temperature", "light_mode")


class ZigbeeLightDevice(ZigbeeDevice):
    """Dimmable light, with hue, saturation and color temperature when available."""

    async def on_node_init(self) -> None:
        await super().on_node_init()

        onoff_dim = [
            (capability_id, cluster)
            for capability_id, cluster in (
                ("onoff", CLUSTER.ON_OFF),
                ("dim", CLUSTER.LEVEL_CONTROL),
            )
            if self.host.has_capability(capability_id)
        ]

        if onoff_dim:
            self.register_multiple_capabilities(onoff_dim, self.on_onoff_dim_changed)

        if self.host.has_capability("light_temperature"):
            await self.read_color_temperature_range()

        color = [
            (capability_id, CLUSTER.COLOR_CONTROL)
            for capability_id in COLOR_CAPABILITIES
            if self.host.has_capability(capability_id)
        ]

        if color:
            self.register_multiple_capabilities(color, self.on_color_changed)

    async def read_color_temperature_range(self) -> None:
        """Load the physical color temperature range, reading it once from the light."""
        low = self.host.get_store_value(STORE_COLOR_TEMP_MIN)
        high = self.host.get_store_value(STORE_COLOR_TEMP_MAX)

        if not isinstance(low, int) or not isinstance(high, int):
            cluster = self.get_zcl_cluster(CLUSTER.COLOR_CONTROL)

            try:
                success, _ = await cluster.read_attributes(
                    ["color_temp_physical_min", "color_temp_physical_max"]
                )
            except (zigpy.exceptions.ZigbeeException, asyncio.TimeoutError) as exc:
                self.error("Could not read the color temperature range: %r", exc)
                return

            low = success.get("color_temp_physical_min")
            high = success.get("color_temp_physical_max")

            if isinstance(low, int):
                await self.host.set_store_value(STORE_COLOR_TEMP_MIN, low)
            else:
                self.error("Read non-numeric color_temp_physical_min: %r", low)

            if isinstance(high, int):
                await self.host.set_store_value(STORE_COLOR_TEMP_MAX, high)
            else:
                self.error("Read non-numeric color_temp_physical_max: %r", high)

        self.color_temp_min = low if isinstance(low, int) else None
        self.color_temp_max = high if isinstance(high, int) else None

    async def _move_to_level(self, dim: float, opts: dict | None) -> None:
        cluster = self.get_zcl_cluster(CLUSTER.LEVEL_CONTROL)
        await cluster.move_to_level_with_on_off(
            level=round(dim * MAX_DIM),
            transition_time=calculate_dim_duration(opts, self.host.get_settings()),
        )

    async def on_onoff_dim_changed(
        self, values: dict[str, typing.Any], opts: dict[str, dict]
    ) -> bool:
        if "onoff" not in values:
            dim = values["dim"]

            if dim == 0:
                await self.host.set_capability_value("onoff", False)
            elif dim > 0 and self.host.get_capability_value("onoff") is False:
                await self.host.set_capability_value("onoff", True)

            await self._move_to_level(dim, opts.get("dim"))
            return True

        onoff = values["onoff"]
        on_off_cluster = self.get_zcl_cluster(CLUSTER.ON_OFF)

        if "dim" in values:
            if onoff and values["dim"] > 0:
                await self._move_to_level(values["dim"], opts.get("dim"))
            else:
                # Turned off, or turned on at zero brightness
                await on_off_cluster.off()

            return True

        if not onoff:
            await on_off_cluster.off()
            await self.host.set_capability_value("dim", 0)
            return True

        await on_off_cluster.on()

        if self.host.has_capability("dim"):
            level_cluster = self.get_zcl_cluster(CLUSTER.LEVEL_CONTROL)
            success, _ = await level_cluster.read_attributes(["current_level"])

            if "current_level" in success:
                await self.host.set_capability_value(
                    "dim", max(MIN_DIM_WHEN_ON, success["current_level"] / MAX_DIM)
                )

        return True

    async def on_color_changed(
        self, values: dict[str, typing.Any], opts: dict[str, dict]
    ) -> bool | None:
        cluster = self.get_zcl_cluster(CLUSTER.COLOR_CONTROL)
        transition_time = setting_transition_time(self.host.get_settings())

        if "light_hue" in values and "light_saturation" in values:
            self.debug("Setting hue and saturation")
            await cluster.move_to_hue_and_saturation(
                hue=round(values["light_hue"] * MAX_HUE),
                saturation=round(values["light_saturation"] * MAX_SATURATION),
                transition_time=transition_time,
            )
            return True

        if (
            "light_mode" in values
            and "light_temperature" in values
            and self.color_temp_min is not None
            and self.color_temp_max is not None
        ):
            self.debug("Setting mode and temperature")
            color_temp = map_value_range(
                0,
                1,
                self.color_temp_min,
                self.color_temp_max,
                values["light_temperature"],
            )
            await cluster.move_to_color_temp(
                color_temp_mireds=round(color_temp), transition_time=transition_time
            )
            return True

        if "light_mode" in values and "light_hue" in values:
            self.debug("Setting mode and hue")
            await cluster.move_to_hue(
                hue=round(values["light_hue"] * MAX_HUE),
                direction=0,
                transition_time=transition_time,
            )
            return True

        return None


def _cie_payload(device: ZigbeeDevice, x: float, y: float) -> dict[str, int]:
    return {
        "color_x": round(x * CIE_MULTIPLIER),
        "color_y": round(y * CIE_MULTIPLIER),
        "transition_time": setting_transition_time(device.host.get_settings()),
    }


def _hsv_payload(
    device: ZigbeeDevice,
    hue: float | None,
    saturation: float | None,
) -> dict[str, int]:
    x, y, _ = convert_hsv_to_cie(
        hue=hue,
        saturation=saturation,
        value=device.host.get_capability_value("dim"),
    )
    return _cie_payload(device, x, y)


def _temperature_payload(device: ZigbeeDevice, temperature: float) -> dict[str, int]:
    # Keeps the white point on a pleasant curve
    corrected = 0.2 + temperature / 4
    return _cie_payload(device, corrected, corrected)


def xy_hue_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    return _hsv_payload(
        device, value, device.host.get_capability_value("light_saturation")
    )


def xy_saturation_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    return _hsv_payload(device, device.host.get_capability_value("light_hue"), value)


def xy_temperature_set_parser(device: ZigbeeDevice, value: float, opts: dict) -> dict:
    return _temperature_payload(device, value)


def xy_mode_set_parser(device: ZigbeeDevice, value: str, opts: dict) -> dict:
    host = device.host

    if value == LIGHT_MODE_COLOR:
        return _hsv_payload(
            device,
            host.get_capability_value("light_hue"),
            host.get_capability_value("light_saturation"),
        )

    return _temperature_payload(device, host.get_capability_value("light_temperature") or 0)


XY_SET_PARSERS = {
    "light_hue": xy_hue_set_parser,
    "light_saturation": xy_saturation_set_parser,
    "light_temperature": xy_temperature_set_parser,
    "light_mode": xy_mode_set_parser,
}


class ZigbeeXYLightDevice(ZigbeeDevice):
    """Light controlled through CIE xy coordinates."""

    async def on_node_init(self) -> None:
        await super().on_node_init()

        if self.host.has_capability("onoff"):
            self.register_capability("onoff", CLUSTER.ON_OFF)

        if self.host.has_capability("dim"):
            self.register_capability("dim", CLUSTER.LEVEL_CONTROL)

        color = [
            (
                capability_id,
                CLUSTER.COLOR_CONTROL,
                {CONF_SET: "move_to_color", CONF_SET_PARSER: set_parser},
            )
            for capability_id, set_parser in XY_SET_PARSERS.items()
            if self.host.has_capability(capability_id)
        ]

        if color:
            self.register_multiple_capabilities(color, self.on_color_changed)

    async def on_color_changed(
        self, values: dict[str, typing.Any], opts: dict[str, dict]
    ) -> bool | None:
        host = self.host
        cluster = self.get_zcl_cluster(CLUSTER.COLOR_CONTROL)

        if "light_hue" in values and "light_saturation" in values:
            payload = _hsv_payload(self, values["light_hue"], values["light_saturation"])
        elif "light_mode" in values and "light_temperature" in values:
            temperature = values["light_temperature"]
            payload = _cie_payload(self, temperature, temperature)
        elif "light_mode" in values and "light_hue" in values:
            payload = _hsv_payload(
                self, values["light_hue"], host.get_capability_value("light_saturation")
            )
        else:
            return None

        self.debug("Moving to color %s", payload)
        await cluster.move_to_color(**payload)

        return True
