# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Exceptions raised by OAuth discovery and client registration."""

from __future__ import annotations

import copy
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes, one per failure class.

    Callers that need to branch on the failure kind without importing every
    exception class can match on ``exc.code``.
    """

    PARSE = "PARSE"
    CONFIGURATION = "CONFIGURATION"
    VALIDATION = "VALIDATION"
    NETWORK = "NETWORK"
    PROTOCOL = "PROTOCOL"
    REGISTRATION = "REGISTRATION"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"


class OAuthError(Exception):
    """Base class for every error raised by oauth_helpers."""

    code: ErrorCode = ErrorCode.ERROR

    def with_context(self, context: str) -> OAuthError:
        """Return a copy of this error whose message is prefixed with ``context``.

        The copy keeps the concrete class and any extra attributes, so callers
        can still catch e.g. ``NetworkError`` after a stage has wrapped it:

            >>> err = NetworkError("connection refused")
            >>> str(err.with_context("fetching authorization server metadata"))
            'fetching authorization server metadata: connection refused'
        """
        wrapped = copy.copy(self)
        wrapped.args = (f"{context}: {self}",)
        return wrapped


class ParseError(OAuthError, ValueError):
    """Malformed WWW-Authenticate header or JSON body."""

    code = ErrorCode.PARSE


class ConfigurationError(OAuthError):
    """A required endpoint or setting is missing (e.g. no registration endpoint)."""

    code = ErrorCode.CONFIGURATION


class ValidationError(OAuthError, ValueError):
    """A redirect URI was rejected by the allowlist."""

    code = ErrorCode.VALIDATION


class NetworkError(OAuthError):
    """Transport or connection failure."""

    code = ErrorCode.NETWORK


class ProtocolError(OAuthError):
    """Unexpected HTTP status or missing required metadata field.

    Attributes:
        status_code: HTTP status of the offending response, if any
    """

    code = ErrorCode.PROTOCOL

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RegistrationError(ProtocolError):
    """Dynamic client registration was refused or returned an unusable body.

    Attributes:
        error: RFC 7591 ``error`` code from the response body, if any
        error_description: Human readable description from the server, if any
    """

    code = ErrorCode.REGISTRATION

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.error = error
        self.error_description = error_description


class CancelledError(OAuthError):
    """The call's deadline expired or the transport timed out.

    Distinct from ``asyncio.CancelledError``: cancelling the caller's task or
    cancel scope propagates the event loop's own cancellation exception.
    """

    code = ErrorCode.CANCELLED


__all__ = [
    "CancelledError",
    "ConfigurationError",
    "ErrorCode",
    "NetworkError",
    "OAuthError",
    "ParseError",
    "ProtocolError",
    "RegistrationError",
    "ValidationError",
]
