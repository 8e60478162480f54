# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Thin wrappers over the standard library logging module."""

from __future__ import annotations

import logging
import sys


DEFAULT_FORMAT = "%(asctime)s %(levelname)s: %(message)s"

_HANDLER_ATTR = "_oauth_helpers_handler"


def get_logger(name: str) -> logging.Logger:
    """Return the named stdlib logger."""
    return logging.getLogger(name)


def get_prefixed_logger(name: str, prefix: str) -> logging.Logger:
    """Return a logger that writes ``[prefix] ...`` lines to stderr.

    The stderr handler is attached once per logger name; repeated calls
    reuse it. Records do not propagate to the root logger, so an application
    that configures root logging does not see every line twice.
    """
    logger = logging.getLogger(name)
    if not any(getattr(h, _HANDLER_ATTR, False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(f"[{prefix}] {DEFAULT_FORMAT}"))
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)
        logger.propagate = False
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging for scripts and examples."""
    logging.basicConfig(level=level, format=DEFAULT_FORMAT, stream=sys.stderr)


__all__ = ["configure_logging", "get_logger", "get_prefixed_logger"]
