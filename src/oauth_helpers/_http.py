# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""HTTP plumbing shared by discovery and registration."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import anyio
import httpx

from .config import OAuthConfig
from .exceptions import CancelledError, NetworkError, ParseError, ProtocolError


_JSON_HEADERS = {"Accept": "application/json"}


@asynccontextmanager
async def http_client(client: httpx.AsyncClient | None, config: OAuthConfig) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a fresh one closed on exit."""
    if client is not None:
        yield client
        return
    headers = {"User-Agent": config.user_agent} if config.user_agent else None
    async with httpx.AsyncClient(follow_redirects=True, headers=headers) as owned:
        yield owned


@contextmanager
def deadline(config: OAuthConfig, operation: str) -> Iterator[None]:
    """Bound the enclosed block by ``config.timeout`` seconds, if set."""
    try:
        with anyio.fail_after(config.timeout):
            yield
    except TimeoutError as exc:
        raise CancelledError(f"{operation} exceeded its deadline of {config.timeout}s") from exc


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    json: Any = None,
    accept_json: bool = True,
) -> httpx.Response:
    """Issue one request, mapping httpx failures onto the error taxonomy.

    Raises:
        CancelledError: The transport timed out
        NetworkError: Connection or other transport failure, or an unusable URL
    """
    headers = _JSON_HEADERS if accept_json else None
    try:
        return await client.request(method, url, json=json, headers=headers)
    except httpx.TimeoutException as exc:
        raise CancelledError(f"{method} {url} timed out") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"{method} {url} failed: {exc}") from exc


def expect_success(response: httpx.Response, document: str) -> None:
    if not response.is_success:
        raise ProtocolError(
            f"{document} request to {response.request.url} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )


def decode_json_object(response: httpx.Response, document: str) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise ParseError(f"{document} is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ParseError(f"{document} must be a JSON object, got {type(data).__name__}")
    return data
