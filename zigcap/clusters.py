"""ZCL cluster specifications used to address capability configurations."""

from __future__ import annotations

import dataclasses
import typing

from zigpy.zcl.clusters import CLUSTERS_BY_ID, CLUSTERS_BY_NAME
from zigpy.zcl.clusters.closures import WindowCovering
from zigpy.zcl.clusters.general import (
    Groups,
    LevelControl,
    OnOff,
    PowerConfiguration,
)
from zigpy.zcl.clusters.homeautomation import ElectricalMeasurement
from zigpy.zcl.clusters.hvac import Thermostat
from zigpy.zcl.clusters.lighting import Color
from zigpy.zcl.clusters.lightlink import LightLink
from zigpy.zcl.clusters.measurement import (
    IlluminanceMeasurement,
    OccupancySensing,
    TemperatureMeasurement,
)
from zigpy.zcl.clusters.smartenergy import Metering

from zigcap.exceptions import InvalidClusterSpecification

if typing.TYPE_CHECKING:
    import zigpy.zcl


@dataclasses.dataclass(frozen=True, eq=False)
class ClusterSpecification:
    """Identifies a ZCL cluster, equality is by cluster id only."""

    id: int
    name: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClusterSpecification):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.name}(0x{self.id:04X})"

    @classmethod
    def from_zigpy(
        cls, cluster: type[zigpy.zcl.Cluster] | zigpy.zcl.Cluster
    ) -> ClusterSpecification:
        return cls(id=cluster.cluster_id, name=cluster.ep_attribute)

    @classmethod
    def convert(cls, value: typing.Any) -> ClusterSpecification:
        """Coerce a specification, zigpy cluster, cluster name or cluster id."""
        if isinstance(value, ClusterSpecification):
            spec = value
        elif isinstance(value, str) and value in CLUSTERS_BY_NAME:
            spec = cls.from_zigpy(CLUSTERS_BY_NAME[value])
        elif isinstance(value, int) and not isinstance(value, bool):
            if value not in CLUSTERS_BY_ID:
                raise InvalidClusterSpecification(f"Unknown cluster id: 0x{value:04X}")
            spec = cls.from_zigpy(CLUSTERS_BY_ID[value])
        elif hasattr(value, "cluster_id") and hasattr(value, "ep_attribute"):
            spec = cls.from_zigpy(value)
        else:
            raise InvalidClusterSpecification(f"Invalid cluster: {value!r}")

        if not isinstance(spec.id, int) or isinstance(spec.id, bool):
            raise InvalidClusterSpecification(f"Cluster id must be an int: {spec!r}")
        if not isinstance(spec.name, str) or not spec.name:
            raise InvalidClusterSpecification(f"Cluster name must be set: {spec!r}")

        return spec


class CLUSTER:
    """Specifications of the clusters with built-in capability configurations."""

    ON_OFF = ClusterSpecification.from_zigpy(OnOff)
    LEVEL_CONTROL = ClusterSpecification.from_zigpy(LevelControl)
    COLOR_CONTROL = ClusterSpecification.from_zigpy(Color)
    GROUPS = ClusterSpecification.from_zigpy(Groups)
    TOUCHLINK = ClusterSpecification.from_zigpy(LightLink)
    POWER_CONFIGURATION = ClusterSpecification.from_zigpy(PowerConfiguration)
    OCCUPANCY_SENSING = ClusterSpecification.from_zigpy(OccupancySensing)
    ILLUMINANCE_MEASUREMENT = ClusterSpecification.from_zigpy(IlluminanceMeasurement)
    TEMPERATURE_MEASUREMENT = ClusterSpecification.from_zigpy(TemperatureMeasurement)
    ELECTRICAL_MEASUREMENT = ClusterSpecification.from_zigpy(ElectricalMeasurement)
    METERING = ClusterSpecification.from_zigpy(Metering)
    THERMOSTAT = ClusterSpecification.from_zigpy(Thermostat)
    WINDOW_COVERING = ClusterSpecification.from_zigpy(WindowCovering)
