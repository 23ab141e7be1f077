"""Built-in cluster capability configurations."""

from __future__ import annotations

from zigcap.system.registry import SystemCapabilityRegistry

SYSTEM_CAPABILITIES = SystemCapabilityRegistry()

# Populate the registry
from zigcap.system import (  # noqa: E402
    closures,
    general,
    hvac,
    lighting,
    measurement,
)

__all__ = [
    "SYSTEM_CAPABILITIES",
    "SystemCapabilityRegistry",
    "closures",
    "general",
    "hvac",
    "lighting",
    "measurement",
]
