from __future__ import annotations


class ZigcapException(Exception):
    """Base exception class"""


class ConfigurationError(ZigcapException):
    """A capability was registered or accessed with an unusable configuration"""


class InvalidClusterSpecification(ConfigurationError):
    """Cluster is missing a numeric id or a name"""


class UnsupportedCapability(ConfigurationError):
    """The host device does not expose the capability"""


class MissingConfiguration(ConfigurationError):
    """No configuration was registered for a capability and cluster pair"""


class MissingCluster(ConfigurationError):
    """No endpoint on the node exposes the cluster"""


class InvalidGetConfiguration(ConfigurationError):
    """Configuration cannot be used to get a capability value"""


class InvalidSetConfiguration(ConfigurationError):
    """Configuration cannot be used to set a capability value"""


class InvalidReportingConfiguration(ZigcapException, ValueError):
    """Attribute reporting parameters are out of range"""


class InvalidMinInterval(InvalidReportingConfiguration):
    """Minimum reporting interval must be at least 1"""


class InvalidMaxInterval(InvalidReportingConfiguration):
    """Maximum reporting interval must be 0, or at least 60 and the minimum interval"""


class InvalidGroupId(ZigcapException, ValueError):
    """Group id is not an integer in the uint16 range"""


class AttributeReadError(ZigcapException):
    """Device reported a failure status when reading an attribute"""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ReportingConfigurationRejected(ZigcapException):
    """Device rejected the attribute reporting configuration"""

    def __init__(self, message: str, statuses: dict[str, int] | None = None):
        super().__init__(message)
        self.statuses = statuses or {}


class GroupMembershipError(ZigcapException):
    """Adding or removing a group membership was rejected by the device"""


class CommandFailed(ZigcapException):
    """A command could not be delivered to the device"""

    def __init__(self, message: str = "Could not perform the command") -> None:
        super().__init__(message)


class NodeInitializationFailed(ZigcapException):
    """Node initialization did not complete"""

    def __init__(self, message: str = "Node initialization failed") -> None:
        super().__init__(message)
