"""The host device the binding engine reads and writes capability state through."""

from __future__ import annotations

import logging
import typing

from zigpy.util import LocalLogMixin

from zigcap.datastructures import CapabilityDebouncer
from zigcap.exceptions import UnsupportedCapability
from zigcap.store import DeviceStore, MemoryStore
from zigcap.util import maybe_await

LOGGER = logging.getLogger(__name__)

CapabilityListener = typing.Callable[[typing.Any, dict], typing.Awaitable[typing.Any]]
MultipleCapabilityListener = typing.Callable[
    [dict[str, typing.Any], dict[str, dict]], typing.Awaitable[typing.Any]
]
SettingsListener = typing.Callable[
    [dict[str, typing.Any], dict[str, typing.Any], list[str]],
    typing.Awaitable[typing.Any],
]


class Host(LocalLogMixin):
    """In-process host device holding capability values, settings and store values."""

    def __init__(
        self,
        name: str,
        capabilities: typing.Iterable[str] = (),
        settings: dict[str, typing.Any] | None = None,
        store: DeviceStore | None = None,
    ) -> None:
        self.name = name
        self.store = store if store is not None else MemoryStore(name)
        self.available = True
        self.unavailable_message: str | None = None

        self._capabilities: dict[str, typing.Any] = dict.fromkeys(capabilities)
        self._settings: dict[str, typing.Any] = dict(settings or {})
        self._listeners: dict[str, CapabilityListener] = {}
        self._debouncers: list[CapabilityDebouncer] = []
        self._settings_listener: SettingsListener | None = None

    def log(self, lvl: int, msg: str, *args, **kwargs) -> None:
        msg = "[%s] " + msg
        args = (self.name,) + args
        LOGGER.log(lvl, msg, *args, **kwargs)

    # Capabilities

    def has_capability(self, capability_id: str) -> bool:
        return capability_id in self._capabilities

    def add_capability(self, capability_id: str) -> None:
        self._capabilities.setdefault(capability_id, None)

    @property
    def capabilities(self) -> list[str]:
        return list(self._capabilities)

    def get_capability_value(self, capability_id: str) -> typing.Any:
        return self._capabilities.get(capability_id)

    async def set_capability_value(self, capability_id: str, value: typing.Any) -> None:
        if not self.has_capability(capability_id):
            raise UnsupportedCapability(f"Device has no capability {capability_id!r}")

        self.debug("Capability %s = %r", capability_id, value)
        self._capabilities[capability_id] = value

    def register_capability_listener(
        self, capability_id: str, listener: CapabilityListener
    ) -> None:
        if not self.has_capability(capability_id):
            raise UnsupportedCapability(f"Device has no capability {capability_id!r}")

        self._listeners[capability_id] = listener

    def register_multiple_capability_listener(
        self,
        capability_ids: typing.Iterable[str],
        listener: MultipleCapabilityListener,
        debounce: float,
    ) -> CapabilityDebouncer:
        """Listen to changes of several capabilities, debounced by `debounce` ms."""
        capability_ids = list(capability_ids)

        for capability_id in capability_ids:
            if not self.has_capability(capability_id):
                raise UnsupportedCapability(
                    f"Device has no capability {capability_id!r}"
                )

        kept = []

        for existing in self._debouncers:
            if set(existing.capability_ids) & set(capability_ids):
                existing.cancel()
            else:
                kept.append(existing)

        debouncer = CapabilityDebouncer(capability_ids, listener, debounce)
        self._debouncers = kept + [debouncer]

        return debouncer

    def unregister_capability_listeners(self) -> None:
        for debouncer in self._debouncers:
            debouncer.cancel()

        self._debouncers.clear()
        self._listeners.clear()

    async def trigger_capability_listener(
        self, capability_id: str, value: typing.Any, opts: dict | None = None
    ) -> typing.Any:
        """Deliver a capability change coming from the user."""
        for debouncer in self._debouncers:
            if capability_id in debouncer:
                result = await debouncer.submit(capability_id, value, opts)
                break
        else:
            listener = self._listeners.get(capability_id)

            if listener is None:
                raise KeyError(f"No listener registered for {capability_id!r}")

            result = await listener(value, opts or {})

        self._capabilities[capability_id] = value

        return result

    # Settings

    def get_setting(self, key: str) -> typing.Any:
        return self._settings.get(key)

    def get_settings(self) -> dict[str, typing.Any]:
        return dict(self._settings)

    async def set_settings(self, settings: dict[str, typing.Any]) -> None:
        self.debug("Updating settings: %s", settings)
        self._settings.update(settings)

    def register_settings_listener(self, listener: SettingsListener) -> None:
        self._settings_listener = listener

    async def update_settings(self, settings: dict[str, typing.Any]) -> None:
        """Apply settings changed by the user, running the settings listener first."""
        old_settings = self.get_settings()
        new_settings = {**old_settings, **settings}
        changed_keys = [
            key for key, value in settings.items() if old_settings.get(key) != value
        ]

        if self._settings_listener is not None and changed_keys:
            result = await maybe_await(
                self._settings_listener(old_settings, new_settings, changed_keys)
            )

            if isinstance(result, dict):
                new_settings = result

        self._settings = new_settings

    # Store

    def get_store_value(self, key: str) -> typing.Any:
        return self.store.get(key)

    async def set_store_value(self, key: str, value: typing.Any) -> None:
        await self.store.set(key, value)

    # Availability

    async def set_unavailable(self, message: str | None = None) -> None:
        self.warning("Marked unavailable: %s", message)
        self.available = False
        self.unavailable_message = message

    async def set_available(self) -> None:
        self.available = True
        self.unavailable_message = None
