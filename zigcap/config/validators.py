from __future__ import annotations

import numbers
import typing

import voluptuous as vol
from zigpy.config.validators import cv_boolean  # noqa: F401

from zigcap.clusters import ClusterSpecification


def cv_number(value: typing.Any) -> int | float:
    """Validate a real number, rejecting booleans."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return value

    raise vol.Invalid(f"{value!r} is not a number")


def cv_integer(value: typing.Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    raise vol.Invalid(f"{value!r} is not an integer")


def cv_callable(value: typing.Any) -> typing.Callable:
    if not callable(value):
        raise vol.Invalid(f"{value!r} is not callable")

    return value


def cv_command(value: str | typing.Callable) -> str | typing.Callable:
    """A command name or a function returning one."""
    if isinstance(value, str) and value:
        return value

    if callable(value):
        return value

    raise vol.Invalid(f"{value!r} is neither a command name nor a callable")


def cv_poll_interval(value: int | float | str) -> int | float | str:
    """A poll interval in milliseconds, or the host setting key that holds one."""
    if isinstance(value, str):
        if not value:
            raise vol.Invalid("poll interval setting key cannot be empty")
        return value

    return cv_number(value)


def cv_cluster(value: typing.Any) -> ClusterSpecification:
    """Coerce a cluster specification.

    `InvalidClusterSpecification` is raised as-is so callers see the typed error.
    """
    return ClusterSpecification.convert(value)
