# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Pluggable logging for discovery and registration.

Any object with ``info``, ``warning`` and ``error`` methods taking a
%-style format string plus arguments can be passed as ``OAuthConfig.logger``.
A stdlib ``logging.Logger`` works as-is:

    >>> import logging
    >>> config = OAuthConfig(logger=logging.getLogger("myapp.oauth"))

Objects that spell the warning method ``warn`` (or otherwise need adapting)
go through :func:`wrap_logger`. When no logger is configured the default
stderr sink prefixed with ``[oauth-helpers]`` is used; :class:`NoopLogger`
silences output entirely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .utils import get_prefixed_logger


if TYPE_CHECKING:
    from .config import OAuthConfig


DEFAULT_PREFIX = "oauth-helpers"


@runtime_checkable
class OAuthLogger(Protocol):
    def info(self, msg: str, *args: Any) -> Any: ...

    def warning(self, msg: str, *args: Any) -> Any: ...

    def error(self, msg: str, *args: Any) -> Any: ...


class NoopLogger:
    """Logger that discards everything."""

    def info(self, msg: str, *args: Any) -> None:
        pass

    def warning(self, msg: str, *args: Any) -> None:
        pass

    def error(self, msg: str, *args: Any) -> None:
        pass


class _WrappedLogger:
    """Routes the three logging operations to differently named methods."""

    __slots__ = ("_info", "_warning", "_error", "wrapped")

    def __init__(self, wrapped: Any) -> None:
        self.wrapped = wrapped
        self._info = _lookup(wrapped, "info")
        self._warning = _lookup(wrapped, "warning", "warn")
        self._error = _lookup(wrapped, "error")

    def info(self, msg: str, *args: Any) -> None:
        self._info(msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self._warning(msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self._error(msg, *args)


def _lookup(obj: Any, *names: str) -> Any:
    for name in names:
        method = getattr(obj, name, None)
        if callable(method):
            return method
    raise TypeError(f"{type(obj).__name__} has no callable {' or '.join(names)}()")


def wrap_logger(obj: Any) -> OAuthLogger:
    """Adapt any object exposing info/warning (or warn)/error to OAuthLogger.

    Raises:
        TypeError: If one of the three operations is missing
    """
    if isinstance(obj, (NoopLogger, _WrappedLogger)):
        return obj
    return _WrappedLogger(obj)


def new_prefix_logger(prefix: str) -> OAuthLogger:
    """Return a stderr logger whose lines start with ``[prefix]``."""
    return get_prefixed_logger(f"oauth_helpers.prefixed.{prefix}", prefix)


def default_logger() -> OAuthLogger:
    """Return the built-in stderr sink."""
    return get_prefixed_logger("oauth_helpers", DEFAULT_PREFIX)


def resolve_logger(config: OAuthConfig | None) -> OAuthLogger:
    """Return the logger configured on ``config``, or the default sink."""
    if config is None or config.logger is None:
        return default_logger()
    return config.logger


__all__ = [
    "DEFAULT_PREFIX",
    "NoopLogger",
    "OAuthLogger",
    "default_logger",
    "new_prefix_logger",
    "resolve_logger",
    "wrap_logger",
]
