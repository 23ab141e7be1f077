"""Common fixtures."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
import typing

import pytest

import zigpy.types as t
from zigpy.util import ListenableMixin
from zigpy.zcl import foundation
from zigpy.zcl.clusters.general import Groups, LevelControl, OnOff
from zigpy.zcl.clusters.lighting import Color

from zigcap.device import ZigbeeDevice
from zigcap.host import Host
from zigcap.store import MemoryStore

from .async_mock import AsyncMock, Mock

if typing.TYPE_CHECKING:
    import zigpy.zcl

NODE_IEEE = t.EUI64.convert("00:0d:6f:00:0a:90:69:e7")


class FailOnBadFormattingHandler(logging.Handler):
    def emit(self, record):
        try:
            record.msg % record.args
        except Exception as e:
            pytest.fail(
                f"Failed to format log message {record.msg!r} with {record.args!r}: {e}"
            )


@pytest.fixture(autouse=True)
def raise_on_bad_log_formatting():
    handler = FailOnBadFormattingHandler()

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    try:
        yield
    finally:
        root.removeHandler(handler)


class FakeCluster(ListenableMixin):
    """zigpy cluster stand-in: attribute reads, commands and reporting are mocks."""

    def __init__(self, cluster_type: type[zigpy.zcl.Cluster]) -> None:
        super().__init__()
        self.cluster_type = cluster_type
        self.cluster_id = cluster_type.cluster_id
        self.ep_attribute = cluster_type.ep_attribute
        self.read_attributes = AsyncMock(return_value=({}, {}))
        self.write_attributes = AsyncMock()
        self.configure_reporting_multiple = AsyncMock(
            return_value=[
                [
                    foundation.ConfigureReportingResponseRecord(
                        status=foundation.Status.SUCCESS
                    )
                ]
            ]
        )

    def __getattr__(self, name: str) -> AsyncMock:
        if name.startswith("_") or name not in self.cluster_type.commands_by_name:
            raise AttributeError(name)

        command = AsyncMock(
            name=f"{self.ep_attribute}.{name}",
            return_value=[0x00, foundation.Status.SUCCESS],
        )
        setattr(self, name, command)

        return command

    def find_attribute(self, name_or_id: int | str) -> foundation.ZCLAttributeDef:
        if isinstance(name_or_id, str):
            return self.cluster_type.attributes_by_name[name_or_id]

        return self.cluster_type.attributes[name_or_id]

    def update_attribute(self, name: str, value: typing.Any) -> None:
        """Simulate an attribute report sent by the device."""
        self.listener_event(
            "attribute_updated",
            self.find_attribute(name).id,
            value,
            datetime.now(timezone.utc),
        )


class FakeEndpoint:
    def __init__(self, endpoint_id: int, clusters: typing.Iterable[type]) -> None:
        self.endpoint_id = endpoint_id
        self.in_clusters = {
            cluster_type.cluster_id: FakeCluster(cluster_type)
            for cluster_type in clusters
        }


class FakeZDO(ListenableMixin):
    def announce(self, device: FakeNode) -> None:
        self.listener_event("device_announce", device)


class FakeNode:
    """zigpy device stand-in exposing endpoints, a ZDO and a node descriptor."""

    def __init__(
        self,
        endpoints: dict[int, typing.Iterable[type]],
        receiver_on_when_idle: bool = True,
        ieee: t.EUI64 = NODE_IEEE,
    ) -> None:
        self.ieee = ieee
        self.zdo = FakeZDO()
        self.node_desc = Mock(is_receiver_on_when_idle=receiver_on_when_idle)
        self.endpoints: dict[int, typing.Any] = {0: self.zdo}

        for endpoint_id, clusters in endpoints.items():
            self.endpoints[endpoint_id] = FakeEndpoint(endpoint_id, clusters)

    def cluster(self, cluster_type: type, endpoint_id: int = 1) -> FakeCluster:
        return self.endpoints[endpoint_id].in_clusters[cluster_type.cluster_id]

    def announce(self) -> None:
        self.zdo.announce(self)


LIGHT_CLUSTERS = [OnOff, LevelControl, Color, Groups]


@pytest.fixture
def make_node():
    def inner(endpoints=None, **kwargs) -> FakeNode:
        if endpoints is None:
            endpoints = {1: LIGHT_CLUSTERS}

        return FakeNode(endpoints, **kwargs)

    return inner


@pytest.fixture
def make_host():
    def inner(capabilities=("onoff", "dim"), settings=None, store=None) -> Host:
        return Host(
            str(NODE_IEEE),
            capabilities=capabilities,
            settings=settings,
            store=store,
        )

    return inner


@pytest.fixture
def make_device(make_node, make_host):
    """Device whose node already finished its first initialization."""

    def inner(
        capabilities=("onoff", "dim"),
        endpoints=None,
        first_init=False,
        device_cls=ZigbeeDevice,
        settings=None,
        config=None,
        **node_kwargs,
    ) -> ZigbeeDevice:
        store = MemoryStore(
            str(NODE_IEEE), {} if first_init else {"zb_first_init": False}
        )
        host = make_host(capabilities=capabilities, settings=settings, store=store)
        node = make_node(endpoints, **node_kwargs)

        return device_cls(
            host, node, {"capabilities_debounce": 10, **(config or {})}
        )

    return inner


async def wait_for_tasks(device: ZigbeeDevice) -> None:
    """Let every background task of the device run to completion."""
    await asyncio.sleep(0)

    while device._tasks:
        await asyncio.gather(*list(device._tasks), return_exceptions=True)
        await asyncio.sleep(0)
