"""Utility helpers for oauth_helpers."""

from .logger import configure_logging, get_logger, get_prefixed_logger

__all__ = ["configure_logging", "get_logger", "get_prefixed_logger"]
