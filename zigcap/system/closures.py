"""Capabilities on the window covering cluster."""

from __future__ import annotations

import typing

from zigcap.clusters import CLUSTER
from zigcap.config import CONF_SET, CONF_SET_PARSER
from zigcap.system import SYSTEM_CAPABILITIES
from zigcap.system.general import empty_payload

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

WINDOW_COVERING_COMMANDS = {
    "up": "up_open",
    "idle": "stop",
    "down": "down_close",
}


def window_covering_command(device: ZigbeeDevice, value: str, opts: dict) -> str:
    return WINDOW_COVERING_COMMANDS[value]


@SYSTEM_CAPABILITIES.register("windowcoverings_state", CLUSTER.WINDOW_COVERING)
def windowcoverings_state_window_covering() -> dict[str, typing.Any]:
    return {
        CONF_SET: window_covering_command,
        CONF_SET_PARSER: empty_payload,
    }
