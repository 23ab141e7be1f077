"""Records describing how a capability maps onto a ZCL cluster."""

from __future__ import annotations

import dataclasses
import typing

from zigcap.clusters import ClusterSpecification
from zigcap.config import (
    CONF_CONFIGURE_ATTRIBUTE_REPORTING,
    CONF_GET,
    CONF_GET_ON_ONLINE,
    CONF_GET_ON_START,
    CONF_GET_OPTS,
    CONF_MAX_INTERVAL,
    CONF_MIN_CHANGE,
    CONF_MIN_INTERVAL,
    CONF_POLL_INTERVAL,
    CONF_REPORT,
    CONF_REPORT_OPTS,
    CONF_REPORT_PARSER,
    CONF_SET,
    CONF_SET_PARSER,
)
from zigcap.const import (
    DEFAULT_ENDPOINT_ID,
    MIN_REPORTING_MAX_INTERVAL,
    MIN_REPORTING_MIN_INTERVAL,
    REPORTING_DEFAULT_MIN_INTERVAL,
)
from zigcap.exceptions import InvalidMaxInterval, InvalidMinInterval

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

    SetCommand = typing.Union[
        str, typing.Callable[[ZigbeeDevice, typing.Any, dict], str]
    ]
    SetParser = typing.Callable[
        [ZigbeeDevice, typing.Any, dict],
        typing.Union[dict, None, Exception, typing.Awaitable[typing.Any]],
    ]
    ReportParser = typing.Callable[[ZigbeeDevice, typing.Any], typing.Any]


@dataclasses.dataclass(frozen=True)
class GetOptions:
    get_on_start: bool = False
    get_on_online: bool = False
    # Milliseconds, or the key of a host setting holding the interval
    poll_interval: int | float | str | None = None


@dataclasses.dataclass(frozen=True)
class AttributeReportingConfiguration:
    min_interval: int | None = None
    max_interval: int | None = None
    min_change: int | float | None = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.min_interval, self.max_interval, self.min_change)


@dataclasses.dataclass(frozen=True)
class ReportOptions:
    configure_attribute_reporting: AttributeReportingConfiguration | None = None


@dataclasses.dataclass(frozen=True)
class ClusterCapabilityConfiguration:
    """Merged and immutable description of how to get, set and report a capability."""

    capability_id: str
    cluster: ClusterSpecification
    endpoint: int = DEFAULT_ENDPOINT_ID
    get: str | None = None
    get_opts: GetOptions = dataclasses.field(default_factory=GetOptions)
    set: SetCommand | None = None
    set_parser: SetParser | None = None
    report: str | None = None
    report_parser: ReportParser | None = None
    report_opts: ReportOptions = dataclasses.field(default_factory=ReportOptions)

    @classmethod
    def from_config(
        cls,
        capability_id: str,
        cluster: ClusterSpecification,
        endpoint: int,
        config: dict[str, typing.Any],
    ) -> ClusterCapabilityConfiguration:
        get_opts = config.get(CONF_GET_OPTS) or {}
        report_opts = config.get(CONF_REPORT_OPTS) or {}
        reporting = report_opts.get(CONF_CONFIGURE_ATTRIBUTE_REPORTING)

        if reporting is not None:
            reporting = AttributeReportingConfiguration(
                min_interval=reporting.get(CONF_MIN_INTERVAL),
                max_interval=reporting.get(CONF_MAX_INTERVAL),
                min_change=reporting.get(CONF_MIN_CHANGE),
            )

        return cls(
            capability_id=capability_id,
            cluster=cluster,
            endpoint=endpoint,
            get=config.get(CONF_GET),
            get_opts=GetOptions(
                get_on_start=bool(get_opts.get(CONF_GET_ON_START, False)),
                get_on_online=bool(get_opts.get(CONF_GET_ON_ONLINE, False)),
                poll_interval=get_opts.get(CONF_POLL_INTERVAL),
            ),
            set=config.get(CONF_SET),
            set_parser=config.get(CONF_SET_PARSER),
            report=config.get(CONF_REPORT),
            report_parser=config.get(CONF_REPORT_PARSER),
            report_opts=ReportOptions(configure_attribute_reporting=reporting),
        )


@dataclasses.dataclass(frozen=True)
class AttributeReportingEntry:
    """A single attribute reporting request for `configure_attribute_reporting`."""

    cluster: ClusterSpecification
    attribute_name: str
    min_interval: int
    max_interval: int
    min_change: int | float
    endpoint_id: int = DEFAULT_ENDPOINT_ID

    def validated(self) -> AttributeReportingEntry:
        """Check the intervals and return the entry that should be sent."""
        if self.min_interval < MIN_REPORTING_MIN_INTERVAL:
            raise InvalidMinInterval(
                f"min_interval must be at least {MIN_REPORTING_MIN_INTERVAL},"
                f" got {self.min_interval} for {self.attribute_name}"
            )

        if self.max_interval != 0 and (
            self.max_interval < MIN_REPORTING_MAX_INTERVAL
            or self.max_interval < self.min_interval
        ):
            raise InvalidMaxInterval(
                f"max_interval must be 0, or at least {MIN_REPORTING_MAX_INTERVAL} and"
                f" min_interval ({self.min_interval}), got {self.max_interval}"
                f" for {self.attribute_name}"
            )

        # The device reverts to its default reporting, the change threshold is moot
        if (
            self.max_interval == 0
            and self.min_interval == REPORTING_DEFAULT_MIN_INTERVAL
            and self.min_change != 0
        ):
            return dataclasses.replace(self, min_change=0)

        return self

    @property
    def key(self) -> str:
        return f"{self.endpoint_id}:{self.cluster.id}:{self.attribute_name}"
