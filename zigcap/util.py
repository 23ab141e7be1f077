from __future__ import annotations

import asyncio
import inspect
import logging
import numbers
import typing

import zigpy.util

from zigcap.const import MAX_GROUP_ID
from zigcap.exceptions import InvalidGroupId

LOGGER = logging.getLogger(__name__)

T = typing.TypeVar("T")

MAX_DIM_DURATION = 6553
MAX_LEVEL_TRANSITION_TIME = 0xFFFE
LEVEL_TRANSITION_TIME_DEFAULT = 0xFFFF
MAX_COLOR_TRANSITION_TIME = 0xFFFF


async def wrap_with_retry(
    operation: typing.Callable[[], typing.Awaitable[T]],
    times: int = 1,
    interval: float | typing.Callable[[int], float] = 0,
    retry_exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Run `operation`, retrying it up to `times` more times when it fails.

    `interval` is either a fixed delay in seconds or a function of the retry count.
    The last error is raised once all retries are exhausted.
    """
    if not callable(interval):
        return await zigpy.util.retry(
            operation, retry_exceptions, tries=times + 1, delay=interval
        )

    retries = 0

    while True:
        try:
            return await operation()
        except retry_exceptions as exc:
            if retries >= times:
                raise

            retries += 1
            delay = interval(retries)
            LOGGER.debug(
                "Operation failed (%r), retry %s of %s in %ss", exc, retries, times, delay
            )
            await asyncio.sleep(delay)


async def maybe_await(result: typing.Any) -> typing.Any:
    if inspect.isawaitable(result):
        return await result

    return result


def is_error(result: typing.Any) -> bool:
    """Parsers signal an error by returning an exception instance."""
    return isinstance(result, BaseException)


def _is_number(value: typing.Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def map_value_range(
    original_start: float,
    original_end: float,
    new_start: float,
    new_end: float,
    value: float,
) -> float:
    """Map a value from one range onto another, clamping it to the original range."""
    for name, arg in (
        ("original_start", original_start),
        ("original_end", original_end),
        ("new_start", new_start),
        ("new_end", new_end),
        ("value", value),
    ):
        if not _is_number(arg):
            raise TypeError(f"{name} must be a number, not {arg!r}")

    clamped = min(max(original_start, value), original_end)
    scale = (new_end - new_start) / (original_end - original_start)

    return new_start + scale * (clamped - original_start)


def calculate_dim_duration(
    opts: dict[str, typing.Any] | None = None,
    settings: dict[str, typing.Any] | None = None,
) -> int:
    """Transition time in tenths of a second.

    `opts["duration"]` is in milliseconds and takes precedence over the
    `transition_time` setting, which is in seconds.
    """
    opts = opts or {}
    settings = settings or {}
    transition_time: float = 0

    if _is_number(opts.get("duration")):
        transition_time = opts["duration"] / 100
    elif _is_number(settings.get("transition_time")):
        transition_time = round(settings["transition_time"] * 10)

    return int(round(max(min(transition_time, MAX_DIM_DURATION), 0)))


def calculate_level_control_transition_time(
    opts: dict[str, typing.Any] | None = None,
) -> int:
    """Level control transition time, 0xFFFF lets the device use its default."""
    duration = (opts or {}).get("duration")

    if not _is_number(duration):
        return LEVEL_TRANSITION_TIME_DEFAULT

    return int(max(min(round(duration / 100), MAX_LEVEL_TRANSITION_TIME), 0))


def calculate_color_control_transition_time(
    opts: dict[str, typing.Any] | None = None,
) -> int:
    duration = (opts or {}).get("duration")

    if not _is_number(duration):
        return 0

    return int(max(min(round(duration / 100), MAX_COLOR_TRANSITION_TIME), 0))


def setting_transition_time(settings: dict[str, typing.Any]) -> int:
    """Transition time from the `transition_time` setting, 0 if unset."""
    transition_time = settings.get("transition_time")

    if not transition_time:
        return 0

    return int(round(transition_time * 10))


def parse_group_ids(setting: str | None) -> list[int]:
    """Parse a comma separated list of group ids, e.g. `"123, 456,34"`."""
    if setting is None:
        return []

    if not isinstance(setting, str):
        raise InvalidGroupId(f"Group setting must be a string, not {setting!r}")

    group_ids = []

    for part in setting.split(","):
        part = part.strip()

        if not part:
            continue

        try:
            group_id = int(part, 10)
        except ValueError as exc:
            raise InvalidGroupId(f"Invalid group id: {part!r}") from exc

        if not 0 <= group_id <= MAX_GROUP_ID:
            raise InvalidGroupId(
                f"Group id {group_id} is outside of the range 0-{MAX_GROUP_ID}"
            )

        group_ids.append(group_id)

    return group_ids


def format_group_ids(group_ids: typing.Iterable[int]) -> str:
    return ", ".join(str(group_id) for group_id in group_ids)
