"""Binding of host capabilities onto the ZCL clusters of a zigpy device."""

from __future__ import annotations

import asyncio
import collections
from datetime import datetime, timezone
import logging
import typing

import voluptuous as vol
import zigpy.exceptions
from zigpy.util import CatchingTaskMixin
from zigpy.zcl import foundation

from zigcap.capability import (
    AttributeReportingEntry,
    ClusterCapabilityConfiguration,
)
from zigcap.clusters import CLUSTER, ClusterSpecification
from zigcap.config import (
    CONF_CAPABILITIES_DEBOUNCE,
    CONF_DATABASE,
    CONF_DEBUG,
    CONF_DEFAULT_ENDPOINT,
    CONF_ENDPOINT,
    CONF_RETRY,
    CONF_RETRY_INTERVAL,
    CONF_RETRY_TIMES,
    CONFIG_SCHEMA,
    SCHEMA_ATTRIBUTE_REPORTING,
    SCHEMA_CLUSTER_CAPABILITY,
)
from zigcap.const import (
    ATTR_LAST_UPDATED,
    SETTING_TOUCHLINK_GROUPS,
    SETTING_ZIGBEE_GROUPS,
    STORE_CONFIGURED_ATTRIBUTE_REPORTING,
    STORE_FIRST_INIT,
)
from zigcap.datastructures import AnnounceRetry, CapabilityDebouncer, PollTimer
from zigcap.exceptions import (
    AttributeReadError,
    CommandFailed,
    ConfigurationError,
    GroupMembershipError,
    InvalidGetConfiguration,
    InvalidReportingConfiguration,
    InvalidSetConfiguration,
    MissingCluster,
    MissingConfiguration,
    NodeInitializationFailed,
    ReportingConfigurationRejected,
    UnsupportedCapability,
)
from zigcap.host import Host
from zigcap.store import DeviceStore, MemoryStore, SQLiteStore
from zigcap.system import SYSTEM_CAPABILITIES
from zigcap.util import (
    format_group_ids,
    is_error,
    maybe_await,
    parse_group_ids,
    wrap_with_retry,
)

if typing.TYPE_CHECKING:
    import zigpy.device
    import zigpy.zcl

LOGGER = logging.getLogger(__name__)

MultipleCapabilitiesHandler = typing.Callable[
    [dict[str, typing.Any], dict[str, dict]], typing.Any
]


class ClusterAttributeListener:
    """Routes attribute reports of one cluster to the capabilities reporting them."""

    def __init__(
        self, device: ZigbeeDevice, cluster: zigpy.zcl.Cluster, endpoint_id: int
    ) -> None:
        self._device = device
        self.cluster = cluster
        self.endpoint_id = endpoint_id
        self._reports: dict[str, dict[str, ClusterSpecification]] = (
            collections.defaultdict(dict)
        )

    def add(
        self, attribute_name: str, capability_id: str, cluster: ClusterSpecification
    ) -> None:
        self._reports[attribute_name][capability_id] = cluster

    def attribute_updated(
        self, attrid: int, value: typing.Any, timestamp: datetime | None = None
    ) -> None:
        try:
            attribute_name = self.cluster.find_attribute(attrid).name
        except KeyError:
            return

        for capability_id, cluster in self._reports.get(attribute_name, {}).items():
            self._device.create_catching_task(
                self._device.parse_attribute_report(
                    capability_id, cluster, {attribute_name: value}
                ),
                name=f"report-{capability_id}-{attribute_name}",
            )


class ZigbeeDevice(CatchingTaskMixin):
    """Maps host capabilities onto the clusters of a zigpy device."""

    battery_threshold: int | None = None
    active_power_factor: float | None = None
    metering_factor: float | None = None
    heating_type: int | None = None
    color_temp_min: int | None = None
    color_temp_max: int | None = None

    def __init__(
        self,
        host: Host,
        node: zigpy.device.Device,
        config: dict[str, typing.Any] | None = None,
    ) -> None:
        self.host = host
        self.node = node
        self.config = CONFIG_SCHEMA(config or {})

        self._tasks: set[asyncio.Future[typing.Any]] = set()
        self._configurations: dict[tuple[str, int], ClusterCapabilityConfiguration] = {}
        self._cluster_listeners: dict[tuple[int, int], ClusterAttributeListener] = {}
        self._poll_timers: dict[tuple[str, int], PollTimer] = {}
        self._debouncers: list[CapabilityDebouncer] = []
        self._get_on_online: dict[tuple[str, int], ClusterSpecification] = {}
        self._announce_callbacks: list[
            tuple[typing.Callable[[], typing.Awaitable[typing.Any]], asyncio.Future]
        ] = []
        self._zdo_listener_attached = False
        self._log_level = LOGGER.level

        self.host.register_settings_listener(self.on_settings)

        if self.config[CONF_DEBUG]:
            self.enable_debug()

    @classmethod
    async def create(
        cls,
        node: zigpy.device.Device,
        capabilities: typing.Iterable[str],
        settings: dict[str, typing.Any] | None = None,
        config: dict[str, typing.Any] | None = None,
    ) -> ZigbeeDevice:
        """Create a host for the node, then bind and initialize the device."""
        config = CONFIG_SCHEMA(config or {})
        name = str(node.ieee)

        store: DeviceStore
        if config[CONF_DATABASE] is not None:
            store = await SQLiteStore.new(config[CONF_DATABASE], name)
        else:
            store = MemoryStore(name)

        host = Host(name, capabilities=capabilities, settings=settings, store=store)
        device = cls(host, node, config)
        await device.async_initialize()

        return device

    def log(self, lvl: int, msg: str, *args, **kwargs) -> None:
        msg = "[%s] " + msg
        args = (self.host.name,) + args
        LOGGER.log(lvl, msg, *args, **kwargs)

    @property
    def name(self) -> str:
        return self.host.name

    @property
    def is_first_init(self) -> bool:
        return self.host.get_store_value(STORE_FIRST_INIT) is not False

    @property
    def receive_when_idle(self) -> bool:
        node_desc = getattr(self.node, "node_desc", None)

        if node_desc is None or node_desc.is_receiver_on_when_idle is None:
            return True

        return node_desc.is_receiver_on_when_idle

    @property
    def capabilities_debounce(self) -> float:
        return self.config[CONF_CAPABILITIES_DEBOUNCE]

    def _retry(
        self,
        operation: typing.Callable[[], typing.Awaitable[typing.Any]],
        *extra_exceptions: type[Exception],
    ) -> typing.Awaitable[typing.Any]:
        retry = self.config[CONF_RETRY]
        return wrap_with_retry(
            operation,
            times=retry[CONF_RETRY_TIMES],
            interval=retry[CONF_RETRY_INTERVAL],
            retry_exceptions=(
                zigpy.exceptions.ZigbeeException,
                asyncio.TimeoutError,
                *extra_exceptions,
            ),
        )

    # Clusters and endpoints

    def get_cluster_endpoint(self, cluster: typing.Any) -> int | None:
        """First endpoint exposing `cluster` as an input cluster.

        The configured default endpoint is preferred when it exposes the cluster.
        """
        cluster = ClusterSpecification.convert(cluster)
        default = self.node.endpoints.get(self.config[CONF_DEFAULT_ENDPOINT])

        if default is not None and cluster.id in default.in_clusters:
            return self.config[CONF_DEFAULT_ENDPOINT]

        for endpoint_id, endpoint in sorted(self.node.endpoints.items()):
            # Endpoint 0 is the ZDO
            if endpoint_id == 0:
                continue

            if cluster.id in endpoint.in_clusters:
                return endpoint_id

        self.debug("Cluster %s is not exposed by any endpoint", cluster)
        return None

    def get_zcl_cluster(
        self, cluster: typing.Any, endpoint_id: int | None = None
    ) -> zigpy.zcl.Cluster:
        cluster = ClusterSpecification.convert(cluster)

        if endpoint_id is None:
            endpoint_id = self.get_cluster_endpoint(cluster)

        endpoint = self.node.endpoints.get(endpoint_id) if endpoint_id else None

        if endpoint is None or cluster.id not in endpoint.in_clusters:
            raise MissingCluster(
                f"Cluster {cluster} is not available on endpoint {endpoint_id}"
            )

        return endpoint.in_clusters[cluster.id]

    # Configurations

    def _check_capability(self, capability_id: str) -> None:
        if not self.host.has_capability(capability_id):
            raise UnsupportedCapability(
                f"Device {self.name} has no capability {capability_id!r}"
            )

    def get_cluster_capability_configuration(
        self, capability_id: str, cluster: typing.Any
    ) -> ClusterCapabilityConfiguration:
        cluster = ClusterSpecification.convert(cluster)
        self._check_capability(capability_id)

        try:
            return self._configurations[capability_id, cluster.id]
        except KeyError:
            self.error(
                "Missing configuration for capability %s on cluster %s",
                capability_id,
                cluster,
            )
            raise MissingConfiguration(
                f"No configuration for capability {capability_id!r} on {cluster}"
            ) from None

    def merge_cluster_capability_configuration(
        self,
        capability_id: str,
        cluster: typing.Any,
        config: dict[str, typing.Any] | None = None,
    ) -> ClusterCapabilityConfiguration:
        """Merge the user configuration over the built-in one and store the result."""
        cluster = ClusterSpecification.convert(cluster)
        self._check_capability(capability_id)

        try:
            user_config = SCHEMA_CLUSTER_CAPABILITY(config or {})
        except vol.Invalid as exc:
            raise ConfigurationError(
                f"Invalid configuration for {capability_id!r} on {cluster}: {exc}"
            ) from exc

        merged = {**SYSTEM_CAPABILITIES.get(capability_id, cluster.name), **user_config}

        endpoint_id = user_config.get(CONF_ENDPOINT)

        if endpoint_id is None:
            endpoint_id = self.get_cluster_endpoint(cluster)

        if endpoint_id is None:
            self.error("Expected cluster %s on node", cluster)
            raise MissingCluster(f"Cluster {cluster} is not available on the node")

        configuration = ClusterCapabilityConfiguration.from_config(
            capability_id, cluster, endpoint_id, merged
        )
        self._configurations[capability_id, cluster.id] = configuration

        return configuration

    # Registration

    def register_capability(
        self,
        capability_id: str,
        cluster: typing.Any,
        config: dict[str, typing.Any] | None = None,
    ) -> ClusterCapabilityConfiguration:
        """Bind get, set and report handling of a capability to a cluster."""
        cluster = ClusterSpecification.convert(cluster)
        self.debug("Registering capability %s on cluster %s", capability_id, cluster)

        configuration = self.merge_cluster_capability_configuration(
            capability_id, cluster, config
        )
        self.debug("Registered capability %s: %s", capability_id, configuration)

        self._register_capability_set(capability_id, cluster)
        self._register_capability_get(capability_id, cluster)
        self._register_capability_report(capability_id, cluster)

        return configuration

    def _register_capability_set(
        self, capability_id: str, cluster: ClusterSpecification
    ) -> None:
        async def listener(value: typing.Any, opts: dict) -> typing.Any:
            return await self.set_cluster_capability_value(
                capability_id, cluster, value, opts
            )

        self.host.register_capability_listener(capability_id, listener)

    def _register_capability_get(
        self, capability_id: str, cluster: ClusterSpecification
    ) -> None:
        configuration = self.get_cluster_capability_configuration(capability_id, cluster)
        get_opts = configuration.get_opts

        if configuration.report is not None:
            self._add_report_listener(configuration)

        if configuration.get is not None and self.is_first_init:
            self._run_with_announce_retry(
                f"Initial get of {capability_id}",
                lambda: self.get_cluster_capability_value(capability_id, cluster),
            )
        elif (
            get_opts.get_on_start
            and self.host.get_capability_value(capability_id) is None
            and self.receive_when_idle
        ):
            self._run_with_announce_retry(
                f"Get on start of {capability_id}",
                lambda: self.get_cluster_capability_value(capability_id, cluster),
            )

        if get_opts.get_on_online:
            self._get_on_online[capability_id, cluster.id] = cluster
        else:
            self._get_on_online.pop((capability_id, cluster.id), None)

        poll_interval = get_opts.poll_interval

        if isinstance(poll_interval, str):
            poll_interval = self.host.get_setting(poll_interval)

        self._set_poll_interval(capability_id, cluster, poll_interval)

    def _add_report_listener(self, configuration: ClusterCapabilityConfiguration) -> None:
        key = (configuration.endpoint, configuration.cluster.id)
        listener = self._cluster_listeners.get(key)

        if listener is None:
            zcl_cluster = self.get_zcl_cluster(
                configuration.cluster, configuration.endpoint
            )
            listener = ClusterAttributeListener(self, zcl_cluster, configuration.endpoint)
            zcl_cluster.add_listener(listener)
            self._cluster_listeners[key] = listener

        listener.add(
            configuration.report, configuration.capability_id, configuration.cluster
        )

    def _set_poll_interval(
        self,
        capability_id: str,
        cluster: ClusterSpecification,
        poll_interval: typing.Any,
    ) -> None:
        timer = self._poll_timers.pop((capability_id, cluster.id), None)

        if timer is not None:
            timer.cancel()

        if (
            not isinstance(poll_interval, (int, float))
            or isinstance(poll_interval, bool)
            or poll_interval < 1
        ):
            return

        self.debug(
            "Polling %s on cluster %s every %sms", capability_id, cluster, poll_interval
        )

        async def poll() -> None:
            self.debug("Polling cluster %s for %s", cluster, capability_id)
            await self.get_cluster_capability_value(capability_id, cluster)

        timer = PollTimer(poll_interval, poll)
        timer.start()
        self._poll_timers[capability_id, cluster.id] = timer

    def _register_capability_report(
        self, capability_id: str, cluster: ClusterSpecification
    ) -> None:
        configuration = self.get_cluster_capability_configuration(capability_id, cluster)
        reporting = configuration.report_opts.configure_attribute_reporting

        if (
            not self.is_first_init
            or configuration.report is None
            or configuration.report_parser is None
            or reporting is None
            or not reporting.is_complete
        ):
            return

        entry = {
            "cluster": cluster,
            "attribute_name": configuration.report,
            "min_interval": reporting.min_interval,
            "max_interval": reporting.max_interval,
            "min_change": reporting.min_change,
            "endpoint_id": configuration.endpoint,
        }

        self._run_with_announce_retry(
            f"Attribute reporting configuration of {capability_id}",
            lambda: self.configure_attribute_reporting([entry]),
        )

    def register_multiple_capabilities(
        self,
        configs: typing.Iterable[typing.Any],
        handler: MultipleCapabilitiesHandler,
    ) -> CapabilityDebouncer:
        """Register several capabilities whose changes are handled together.

        Each entry is a dict with `capability_id`, `cluster` and an optional
        `config`, or a `(capability_id, cluster[, config])` tuple. When `handler`
        returns a falsy value or an error, the changed capabilities are set one by
        one in the given order, stopping at the first failure.
        """
        clusters: dict[str, ClusterSpecification] = {}

        for entry in configs:
            if isinstance(entry, dict):
                capability_id = entry["capability_id"]
                cluster = entry["cluster"]
                config = entry.get("config")
            else:
                capability_id, cluster, *rest = entry
                config = rest[0] if rest else None

            cluster = ClusterSpecification.convert(cluster)
            self.merge_cluster_capability_configuration(capability_id, cluster, config)
            self._register_capability_get(capability_id, cluster)
            clusters[capability_id] = cluster

        capability_ids = list(clusters)

        async def listener(values: dict[str, typing.Any], opts: dict[str, dict]):
            self.debug("Multiple capabilities %s changed: %s", capability_ids, values)
            result = await maybe_await(handler(values, opts))

            if result and not is_error(result):
                return result

            self.debug("Falling back to setting %s individually", list(values))

            for capability_id in capability_ids:
                if capability_id not in values:
                    continue

                try:
                    await self.set_cluster_capability_value(
                        capability_id,
                        clusters[capability_id],
                        values[capability_id],
                        opts.get(capability_id),
                    )
                except Exception as exc:  # noqa: BLE001
                    self.warning(
                        "Fallback set of %s failed, skipping the rest: %r",
                        capability_id,
                        exc,
                    )
                    break

            return result

        debouncer = self.host.register_multiple_capability_listener(
            capability_ids, listener, self.capabilities_debounce
        )
        self._debouncers.append(debouncer)

        return debouncer

    # Get, set and report

    async def get_cluster_capability_value(
        self, capability_id: str, cluster: typing.Any
    ) -> typing.Any:
        """Read the configured attribute from the device and parse it."""
        cluster = ClusterSpecification.convert(cluster)
        configuration = self.get_cluster_capability_configuration(capability_id, cluster)
        attribute, endpoint_id = configuration.get, configuration.endpoint

        if not attribute or not isinstance(endpoint_id, int):
            raise InvalidGetConfiguration(
                f"Capability {capability_id!r} on {cluster} has no attribute to get"
            )

        zcl_cluster = self.get_zcl_cluster(cluster, endpoint_id)
        self.debug(
            "Get %s: reading %s from cluster %s on endpoint %s",
            capability_id,
            attribute,
            cluster,
            endpoint_id,
        )

        async def read() -> dict[str, typing.Any]:
            success, failure = await zcl_cluster.read_attributes([attribute])

            if attribute in failure:
                raise AttributeReadError(
                    f"Reading {attribute} from {cluster} failed: {failure[attribute]}",
                    status=failure[attribute],
                )

            return success

        try:
            success = await self._retry(read, AttributeReadError)
        except (
            zigpy.exceptions.ZigbeeException,
            asyncio.TimeoutError,
            AttributeReadError,
        ) as exc:
            self.error(
                "Get %s: failed to read %s from cluster %s: %r",
                capability_id,
                attribute,
                cluster,
                exc,
            )
            raise

        self.debug("Get %s: raw result %s", capability_id, success)
        return await self.parse_attribute_report(capability_id, cluster, success)

    async def parse_attribute_report(
        self, capability_id: str, cluster: typing.Any, payload: dict[str, typing.Any]
    ) -> typing.Any:
        """Parse an attribute payload and push the result to the host."""
        cluster = ClusterSpecification.convert(cluster)
        configuration = self.get_cluster_capability_configuration(capability_id, cluster)
        report, report_parser = configuration.report, configuration.report_parser

        if report_parser is None or report not in payload:
            return None

        self.debug(
            "Handling report of %s on cluster %s: %s", capability_id, cluster, payload
        )

        try:
            parsed = await maybe_await(report_parser(self, payload[report]))
        except Exception as exc:  # noqa: BLE001
            self.warning("Report parser of %s failed: %r", capability_id, exc)
            return None

        if parsed is None or is_error(parsed):
            return None

        self.debug("Parsed report of %s: %r", capability_id, parsed)
        await self.host.set_capability_value(capability_id, parsed)

        return parsed

    async def set_cluster_capability_value(
        self,
        capability_id: str,
        cluster: typing.Any,
        value: typing.Any,
        opts: dict | None = None,
    ) -> dict | None:
        """Send the command for a capability change, returns the parsed payload."""
        cluster = ClusterSpecification.convert(cluster)
        configuration = self.get_cluster_capability_configuration(capability_id, cluster)
        opts = opts or {}
        command = configuration.set
        endpoint_id = configuration.endpoint

        if configuration.set_parser is None:
            raise InvalidSetConfiguration(
                f"Capability {capability_id!r} on {cluster} has no set parser"
            )

        if not isinstance(endpoint_id, int):
            raise InvalidSetConfiguration(f"Invalid endpoint: {endpoint_id!r}")

        if callable(command):
            command = command(self, value, opts)

        if not isinstance(command, str) or not command:
            raise InvalidSetConfiguration(
                f"Capability {capability_id!r} on {cluster} has no command to set"
            )

        zcl_cluster = self.get_zcl_cluster(cluster, endpoint_id)
        self.debug(
            "Set %s to %r (cluster %s, endpoint %s)",
            capability_id,
            value,
            cluster,
            endpoint_id,
        )

        payload = await maybe_await(configuration.set_parser(self, value, opts))

        if is_error(payload):
            raise payload

        if payload is None:
            self.debug(
                "Set parser of %s returned None, not sending %s", capability_id, command
            )
            return None

        try:
            method = getattr(zcl_cluster, command)
        except AttributeError as exc:
            raise InvalidSetConfiguration(
                f"Cluster {cluster} has no command {command!r}"
            ) from exc

        self.debug("Sending %s to cluster %s: %s", command, cluster, payload)

        try:
            await self._retry(lambda: method(**payload))
        except (zigpy.exceptions.ZigbeeException, asyncio.TimeoutError) as exc:
            self.error(
                "Could not perform %s on cluster %s, endpoint %s for %s: %r",
                command,
                cluster,
                endpoint_id,
                capability_id,
                exc,
            )
            raise CommandFailed() from exc

        return payload

    # Attribute reporting

    async def configure_attribute_reporting(
        self, configs: typing.Iterable[dict[str, typing.Any] | AttributeReportingEntry]
    ) -> list[dict[str, typing.Any]]:
        """Configure reporting, sending one request per cluster and endpoint."""
        grouped: dict[int, dict[ClusterSpecification, dict[str, AttributeReportingEntry]]]
        grouped = collections.defaultdict(lambda: collections.defaultdict(dict))

        for config in configs:
            if not isinstance(config, AttributeReportingEntry):
                try:
                    config = SCHEMA_ATTRIBUTE_REPORTING(config)
                except vol.Invalid as exc:
                    raise InvalidReportingConfiguration(
                        f"Invalid attribute reporting configuration: {exc}"
                    ) from exc

                config = AttributeReportingEntry(**config)

            entry = config.validated()
            self.get_zcl_cluster(entry.cluster, entry.endpoint_id)
            grouped[entry.endpoint_id][entry.cluster][entry.attribute_name] = entry

        results = await asyncio.gather(
            *(
                self._configure_cluster_reporting(endpoint_id, cluster, entries)
                for endpoint_id, clusters in grouped.items()
                for cluster, entries in clusters.items()
            )
        )

        return [result for batch in results for result in batch]

    async def _configure_cluster_reporting(
        self,
        endpoint_id: int,
        cluster: ClusterSpecification,
        entries: dict[str, AttributeReportingEntry],
    ) -> list[dict[str, typing.Any]]:
        zcl_cluster = self.get_zcl_cluster(cluster, endpoint_id)
        attributes = {
            name: (entry.min_interval, entry.max_interval, entry.min_change)
            for name, entry in entries.items()
        }
        self.debug(
            "Configuring reporting of cluster %s on endpoint %s: %s",
            cluster,
            endpoint_id,
            attributes,
        )

        try:
            response = await self._retry(
                lambda: zcl_cluster.configure_reporting_multiple(attributes)
            )
        except (zigpy.exceptions.ZigbeeException, asyncio.TimeoutError) as exc:
            self.error(
                "Failed to configure reporting of cluster %s on endpoint %s: %r",
                cluster,
                endpoint_id,
                exc,
            )
            raise

        rejected = self._rejected_attributes(zcl_cluster, list(entries), response)
        records = await self._store_reporting_records(
            endpoint_id,
            cluster,
            {name: entry for name, entry in entries.items() if name not in rejected},
        )

        if rejected:
            self.error(
                "Device rejected reporting of cluster %s on endpoint %s: %s",
                cluster,
                endpoint_id,
                rejected,
            )
            details = ", ".join(
                f"{name} ({status!r})" for name, status in rejected.items()
            )
            raise ReportingConfigurationRejected(
                f"Reporting configuration of cluster {cluster} was rejected: {details}",
                statuses=rejected,
            )

        return records

    @staticmethod
    def _rejected_attributes(
        zcl_cluster: zigpy.zcl.Cluster,
        attribute_names: list[str],
        response: typing.Any,
    ) -> dict[str, foundation.Status]:
        records = response[0]

        if not isinstance(records, list):
            # Default response, a single status for the whole request
            status = foundation.Status(response[1])
            if status == foundation.Status.SUCCESS:
                return {}

            return {name: status for name in attribute_names}

        # A single success record is sent when every attribute was accepted
        if len(records) == 1 and records[0].status == foundation.Status.SUCCESS:
            return {}

        names_by_id = {
            zcl_cluster.find_attribute(name).id: name for name in attribute_names
        }
        rejected = {}

        for record in records:
            if record.status == foundation.Status.SUCCESS:
                continue

            if record.attrid not in names_by_id:
                return {name: record.status for name in attribute_names}

            rejected[names_by_id[record.attrid]] = record.status

        return rejected

    async def _store_reporting_records(
        self,
        endpoint_id: int,
        cluster: ClusterSpecification,
        entries: dict[str, AttributeReportingEntry],
    ) -> list[dict[str, typing.Any]]:
        if not entries:
            return []

        last_updated = datetime.now(timezone.utc).isoformat()
        records = {
            entry.key: {
                "endpoint_id": endpoint_id,
                "cluster_id": cluster.id,
                "cluster_name": cluster.name,
                "attribute_name": name,
                "min_interval": entry.min_interval,
                "max_interval": entry.max_interval,
                "min_change": entry.min_change,
                ATTR_LAST_UPDATED: last_updated,
            }
            for name, entry in entries.items()
        }

        stored = self.host.get_store_value(STORE_CONFIGURED_ATTRIBUTE_REPORTING) or {}
        await self.host.set_store_value(
            STORE_CONFIGURED_ATTRIBUTE_REPORTING, {**stored, **records}
        )
        self.debug("Stored reporting configuration: %s", list(records))

        return list(records.values())

    # End device announce

    def schedule_for_next_end_device_announce(
        self, method: typing.Callable[[], typing.Awaitable[typing.Any]]
    ) -> asyncio.Future:
        """Run `method` once, on the next end device announce of the node."""
        future = asyncio.get_running_loop().create_future()
        self._announce_callbacks.append((method, future))

        return future

    def _run_with_announce_retry(
        self, name: str, operation: typing.Callable[[], typing.Awaitable[typing.Any]]
    ) -> AnnounceRetry:
        retry = AnnounceRetry(self, name, operation)
        self.create_catching_task(retry.run(), name=name)

        return retry

    def device_announce(self, device: zigpy.device.Device) -> None:
        """Called by the ZDO listener when the node announces itself."""
        self.debug("Received end device announce")
        callbacks, self._announce_callbacks = self._announce_callbacks, []

        for method, future in callbacks:
            self.create_catching_task(self._run_announce_callback(method, future))

        for (capability_id, _), cluster in list(self._get_on_online.items()):
            self.create_catching_task(self._get_on_online_value(capability_id, cluster))

        self.create_catching_task(maybe_await(self.on_end_device_announce()))

    async def _run_announce_callback(
        self,
        method: typing.Callable[[], typing.Awaitable[typing.Any]],
        future: asyncio.Future,
    ) -> None:
        try:
            result = await method()
        except Exception as exc:  # noqa: BLE001
            if not future.done():
                future.set_exception(exc)
        else:
            if not future.done():
                future.set_result(result)

    async def _get_on_online_value(
        self, capability_id: str, cluster: ClusterSpecification
    ) -> None:
        try:
            await self.get_cluster_capability_value(capability_id, cluster)
        except Exception as exc:  # noqa: BLE001
            self.warning("Get on online of %s failed: %r", capability_id, exc)

    def on_end_device_announce(self) -> typing.Any:
        """Runs on every end device announce of the node."""

    # Node lifecycle

    async def on_node_init(self) -> None:
        """Register capabilities here."""

    async def async_initialize(self) -> None:
        """Initialize the node, marking the host unavailable on failure."""
        try:
            if not self._zdo_listener_attached:
                self.node.zdo.add_listener(self)
                self._zdo_listener_attached = True

            self.print_node()

            if self.is_first_init:
                if self.get_cluster_endpoint(CLUSTER.TOUCHLINK) is not None:
                    self._run_with_announce_retry(
                        "Touchlink group discovery", self._get_touchlink_groups
                    )

                if self.get_cluster_endpoint(CLUSTER.GROUPS) is not None:
                    self._run_with_announce_retry(
                        "Group membership discovery", self._get_group_memberships
                    )

            await self.on_node_init()
            await self.host.set_store_value(STORE_FIRST_INIT, False)
        except Exception as exc:  # noqa: BLE001
            self.error("Could not initialize node: %r", exc, exc_info=True)
            await self.host.set_unavailable(NodeInitializationFailed().args[0])

    async def _get_touchlink_groups(self) -> None:
        cluster = self.get_zcl_cluster(CLUSTER.TOUCHLINK)
        self.debug("Reading touchlink groups")

        rsp = await self._retry(lambda: cluster.get_group_identifiers(start_index=0))
        self.debug("Touchlink groups: %s", rsp)

        if rsp is not None and rsp.total >= 1:
            group_ids = format_group_ids(r.group_id for r in rsp.group_info_records)
            await self.host.set_settings({SETTING_TOUCHLINK_GROUPS: group_ids})

    async def _get_group_memberships(self) -> None:
        cluster = self.get_zcl_cluster(CLUSTER.GROUPS)
        self.debug("Reading group memberships")

        rsp = await self._retry(lambda: cluster.get_membership(groups=[]))
        self.debug("Group memberships: %s", rsp)

        if rsp is not None and rsp.groups:
            group_ids = format_group_ids(g for g in rsp.groups if g != 0)
            await self.host.set_settings({SETTING_ZIGBEE_GROUPS: group_ids})

    async def _add_group_membership(self, group_id: int) -> None:
        cluster = self.get_zcl_cluster(CLUSTER.GROUPS)
        self.debug("Adding group membership %s", group_id)

        rsp = await self._retry(lambda: cluster.add(group_id=group_id, group_name=""))
        status = getattr(rsp, "status", None)

        if status not in (foundation.Status.SUCCESS, foundation.Status.DUPLICATE_EXISTS):
            self.error("Failed to add group membership %s: %s", group_id, rsp)
            raise GroupMembershipError(f"Failed to add group membership {group_id}")

    async def _remove_group_membership(self, group_id: int) -> None:
        cluster = self.get_zcl_cluster(CLUSTER.GROUPS)
        self.debug("Removing group membership %s", group_id)

        rsp = await self._retry(lambda: cluster.remove(group_id=group_id))
        status = getattr(rsp, "status", None)

        if status not in (foundation.Status.SUCCESS, foundation.Status.NOT_FOUND):
            self.error("Failed to remove group membership %s: %s", group_id, rsp)
            raise GroupMembershipError(f"Failed to remove group membership {group_id}")

    async def on_settings(
        self,
        old_settings: dict[str, typing.Any],
        new_settings: dict[str, typing.Any],
        changed_keys: list[str],
    ) -> dict[str, typing.Any]:
        if SETTING_ZIGBEE_GROUPS not in changed_keys:
            return new_settings

        new_ids = parse_group_ids(new_settings.get(SETTING_ZIGBEE_GROUPS))
        old_ids = parse_group_ids(old_settings.get(SETTING_ZIGBEE_GROUPS))
        added = [group_id for group_id in new_ids if group_id not in old_ids]
        removed = [group_id for group_id in old_ids if group_id not in new_ids]
        self.debug("Group ids added: %s, removed: %s", added, removed)

        await asyncio.gather(
            *(self._add_group_membership(group_id) for group_id in added),
            *(self._remove_group_membership(group_id) for group_id in removed),
        )

        return {**new_settings, SETTING_ZIGBEE_GROUPS: format_group_ids(new_ids)}

    async def on_deleted(self) -> None:
        """Tear down everything the device registered, then close its store."""
        for listener in self._cluster_listeners.values():
            listener.cluster.remove_listener(listener)

        self._cluster_listeners.clear()

        if self._zdo_listener_attached:
            self.node.zdo.remove_listener(self)
            self._zdo_listener_attached = False

        for timer in self._poll_timers.values():
            timer.cancel()

        self._poll_timers.clear()

        for debouncer in self._debouncers:
            debouncer.cancel()

        self._debouncers.clear()

        for _, future in self._announce_callbacks:
            future.cancel()

        self._announce_callbacks.clear()
        self._get_on_online.clear()

        tasks = [task for task in self._tasks if task is not asyncio.current_task()]

        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)

        self.host.unregister_capability_listeners()
        await self.host.store.shutdown()
        self.debug("Deleted device")

    # Diagnostics

    def print_node(self) -> None:
        self.info("------------------------------------------")
        self.info("Node: %s", self.node.ieee)
        self.info("- Receive when idle: %s", self.receive_when_idle)

        for endpoint_id, endpoint in sorted(self.node.endpoints.items()):
            if endpoint_id == 0:
                continue

            self.info("- Endpoint: %s", endpoint_id)
            self.info("-- Clusters:")

            for cluster in endpoint.in_clusters.values():
                self.info("--- %s (0x%04X)", cluster.ep_attribute, cluster.cluster_id)

        self.info("------------------------------------------")

    def enable_debug(self) -> None:
        if LOGGER.level != logging.DEBUG:
            self._log_level = LOGGER.level

        LOGGER.setLevel(logging.DEBUG)

    def disable_debug(self) -> None:
        LOGGER.setLevel(self._log_level)
