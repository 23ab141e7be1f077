"""Registry of built-in cluster capability configurations."""

from __future__ import annotations

import collections
import logging
import typing

from zigcap.clusters import ClusterSpecification

_LOGGER = logging.getLogger(__name__)

ConfigurationBuilder = typing.Callable[[], dict[str, typing.Any]]


class SystemCapabilityRegistry:
    """Maps `(capability_id, cluster_name)` to a configuration builder."""

    def __init__(self) -> None:
        self._registry: dict[str, dict[str, ConfigurationBuilder]] = (
            collections.defaultdict(dict)
        )

    def add_to_registry(
        self,
        capability_id: str,
        cluster: ClusterSpecification | str,
        builder: ConfigurationBuilder,
    ) -> None:
        cluster_name = cluster if isinstance(cluster, str) else cluster.name

        if cluster_name in self._registry[capability_id]:
            _LOGGER.debug(
                "Replacing system configuration for %s on %s", capability_id, cluster_name
            )

        self._registry[capability_id][cluster_name] = builder

    def register(
        self, capability_id: str, cluster: ClusterSpecification | str
    ) -> typing.Callable[[ConfigurationBuilder], ConfigurationBuilder]:
        """Decorator registering a configuration builder."""

        def decorator(builder: ConfigurationBuilder) -> ConfigurationBuilder:
            self.add_to_registry(capability_id, cluster, builder)
            return builder

        return decorator

    def get(self, capability_id: str, cluster_name: str) -> dict[str, typing.Any]:
        """Fresh copy of the system configuration, `{}` when there is none."""
        builder = self._registry.get(capability_id, {}).get(cluster_name)

        if builder is None:
            return {}

        return builder()

    def __contains__(self, key: tuple[str, str]) -> bool:
        capability_id, cluster_name = key
        return cluster_name in self._registry.get(capability_id, {})

    def __iter__(self) -> typing.Iterator[tuple[str, str]]:
        for capability_id, clusters in self._registry.items():
            for cluster_name in clusters:
                yield capability_id, cluster_name
