# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Shared fixtures for oauth_helpers tests."""

from __future__ import annotations

from typing import Any

import pytest


class RecordingLogger:
    """Captures formatted log lines per level."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def _record(self, level: str, msg: str, args: tuple[Any, ...]) -> None:
        self.records.append((level, msg % args if args else msg))

    def info(self, msg: str, *args: Any) -> None:
        self._record("info", msg, args)

    def warning(self, msg: str, *args: Any) -> None:
        self._record("warning", msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._record("error", msg, args)

    def lines(self, level: str | None = None) -> list[str]:
        return [line for lvl, line in self.records if level is None or lvl == level]

    def contains(self, fragment: str, level: str | None = None) -> bool:
        return any(fragment in line for line in self.lines(level))


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def config(recording_logger: RecordingLogger):
    from oauth_helpers.config import OAuthConfig

    return OAuthConfig(logger=recording_logger)
