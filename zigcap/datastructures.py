from __future__ import annotations

import asyncio
import enum
import logging
import typing

from zigpy.datastructures import ReschedulableTimeout

if typing.TYPE_CHECKING:
    from zigcap.device import ZigbeeDevice

LOGGER = logging.getLogger(__name__)

BatchCallback = typing.Callable[
    [dict[str, typing.Any], dict[str, dict]], typing.Awaitable[typing.Any]
]


class CapabilityDebouncer:
    """Trailing-edge debouncer coalescing changes to a group of capabilities.

    Only the latest value and options per capability are kept. Every change that
    lands in the same window shares the future of that batch.
    """

    def __init__(
        self,
        capability_ids: typing.Iterable[str],
        callback: BatchCallback,
        delay: float,
    ) -> None:
        self.capability_ids = tuple(capability_ids)
        self._callback = callback
        self._delay = delay / 1000
        self._timeout = ReschedulableTimeout(self._flush)

        self._values: dict[str, typing.Any] = {}
        self._opts: dict[str, dict] = {}
        self._future: asyncio.Future | None = None
        self._tasks: set[asyncio.Task] = set()

    def __contains__(self, capability_id: str) -> bool:
        return capability_id in self.capability_ids

    @property
    def pending(self) -> bool:
        return self._future is not None

    def submit(
        self, capability_id: str, value: typing.Any, opts: dict | None = None
    ) -> asyncio.Future:
        if capability_id not in self.capability_ids:
            raise KeyError(f"{capability_id!r} is not debounced by {self!r}")

        self._values[capability_id] = value
        self._opts[capability_id] = opts or {}

        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()

        self._timeout.reschedule(self._delay)

        return self._future

    def _flush(self) -> None:
        values, opts, future = self._values, self._opts, self._future
        self._values, self._opts, self._future = {}, {}, None

        if future is None:
            return

        task = asyncio.get_running_loop().create_task(self._run(values, opts, future))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self, values: dict[str, typing.Any], opts: dict[str, dict], future: asyncio.Future
    ) -> None:
        try:
            result = await self._callback(values, opts)
        except Exception as exc:  # noqa: BLE001
            if not future.done():
                future.set_exception(exc)
        else:
            if not future.done():
                future.set_result(result)

    def cancel(self) -> None:
        self._timeout.cancel()

        if self._future is not None and not self._future.done():
            self._future.cancel()

        self._values, self._opts, self._future = {}, {}, None

        for task in self._tasks:
            task.cancel()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} capability_ids={self.capability_ids!r}>"


class OperationState(enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED_ONCE = "failed_once"
    RETRYING = "retrying"
    ABANDONED = "abandoned"


class AnnounceRetry:
    """Run an operation once and, if it fails, once more on the next device announce.

    PENDING -> SUCCEEDED, or
    PENDING -> FAILED_ONCE -> RETRYING -> SUCCEEDED | ABANDONED
    """

    def __init__(
        self,
        device: ZigbeeDevice,
        name: str,
        operation: typing.Callable[[], typing.Awaitable[typing.Any]],
    ) -> None:
        self._device = device
        self._operation = operation
        self.name = name
        self.state = OperationState.PENDING

    async def run(self) -> OperationState:
        try:
            await self._operation()
        except Exception as exc:  # noqa: BLE001
            self._device.error(
                "%s failed, retrying on next end device announce: %r", self.name, exc
            )
            self.state = OperationState.FAILED_ONCE
            self._device.schedule_for_next_end_device_announce(self._retry)
        else:
            self.state = OperationState.SUCCEEDED

        return self.state

    async def _retry(self) -> OperationState:
        self.state = OperationState.RETRYING

        try:
            await self._operation()
        except Exception as exc:  # noqa: BLE001
            self._device.error(
                "%s failed again after end device announce, giving up: %r",
                self.name,
                exc,
            )
            self.state = OperationState.ABANDONED
        else:
            self.state = OperationState.SUCCEEDED

        return self.state

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} state={self.state.name}>"


class PollTimer:
    """Repeatedly await a callback, `interval` is in milliseconds."""

    def __init__(
        self,
        interval: float,
        callback: typing.Callable[[], typing.Awaitable[typing.Any]],
    ) -> None:
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.interval / 1000)

            try:
                await self._callback()
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning("Poll of %s failed: %r", self._callback, exc)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
