# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""OAuth requirement discovery (RFC 9728, RFC 8414).

The pipeline for one resource:

1. Probe the resource without credentials. Anything but 401 means no OAuth.
2. Locate Protected Resource Metadata: the ``resource_metadata`` parameter of
   the WWW-Authenticate header, or ``/.well-known/oauth-protected-resource``
   on the resource's origin when the header is missing or unusable.
3. Fetch Protected Resource Metadata.
4. Fetch Authorization Server Metadata for the first listed server.
5. Assemble a :class:`~oauth_helpers.models.Discovery`.

Nothing is cached between calls.

Example:
    >>> discovery = await discover_oauth_requirements("https://mcp.example.com/mcp")
    >>> if discovery.requires_oauth and discovery.supports_dcr:
    ...     creds = await perform_dcr(discovery, "example")
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

import httpx

from ._http import decode_json_object, deadline, expect_success, http_client, send
from .challenge import find_resource_metadata_url, parse_www_authenticate
from .config import OAuthConfig
from .exceptions import ConfigurationError, OAuthError, ParseError, ProtocolError
from .log import OAuthLogger, resolve_logger
from .models import AuthorizationServerMetadata, Discovery, ProtectedResourceMetadata


PROTECTED_RESOURCE_WELL_KNOWN = "/.well-known/oauth-protected-resource"
AUTHORIZATION_SERVER_WELL_KNOWN = "/.well-known/oauth-authorization-server"

AUTH_SERVER_STAGE = "fetching authorization server metadata"
RESOURCE_METADATA_STAGE = "fetching protected resource metadata"
PROBE_STAGE = "probing resource"


# =============================================================================
# URL construction
# =============================================================================


def _origin(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"expected an absolute http(s) URL, got {url!r}")
    return f"{parts.scheme}://{parts.netloc}"


def build_protected_resource_metadata_url(resource_url: str) -> str:
    """``<resource origin>/.well-known/oauth-protected-resource``."""
    return _origin(resource_url) + PROTECTED_RESOURCE_WELL_KNOWN


def resolve_resource_metadata_url(resource_url: str, value: str) -> str:
    """Resolve a ``resource_metadata`` value, which may be relative, against the resource."""
    return urljoin(resource_url, value)


def build_authorization_server_metadata_url(auth_server: str) -> str:
    """Metadata URL for an authorization server identifier.

    A value that already points at a ``/.well-known/`` document is used as-is.
    """
    if "/.well-known/" in urlsplit(auth_server).path:
        return auth_server
    return _origin(auth_server) + AUTHORIZATION_SERVER_WELL_KNOWN


# =============================================================================
# Metadata fetchers
# =============================================================================


async def fetch_protected_resource_metadata(
    client: httpx.AsyncClient, url: str, *, default_resource: str = ""
) -> ProtectedResourceMetadata:
    """GET and decode a Protected Resource Metadata document.

    Raises:
        NetworkError: Transport failure
        ProtocolError: Non-2xx status or missing required field
        ParseError: Body is not a JSON object
    """
    response = await send(client, "GET", url)
    expect_success(response, "protected resource metadata")
    data = decode_json_object(response, "protected resource metadata")
    return ProtectedResourceMetadata.from_dict(data, default_resource=default_resource)


async def fetch_authorization_server_metadata(
    client: httpx.AsyncClient, auth_server: str
) -> AuthorizationServerMetadata:
    """GET and decode the metadata of ``auth_server``.

    Raises:
        NetworkError: Transport failure
        ProtocolError: Non-2xx status or missing endpoint
        ParseError: Body is not a JSON object
    """
    response = await send(client, "GET", build_authorization_server_metadata_url(auth_server))
    expect_success(response, "authorization server metadata")
    return AuthorizationServerMetadata.from_dict(decode_json_object(response, "authorization server metadata"))


# =============================================================================
# Discovery pipeline
# =============================================================================


def _fallback_metadata_url(resource_url: str, log: OAuthLogger) -> str:
    url = build_protected_resource_metadata_url(resource_url)
    log.info("FALLBACK: trying well-known endpoint %s", url)
    return url


def _locate_resource_metadata(resource_url: str, header: str | None, log: OAuthLogger) -> str:
    if not header:
        log.warning("no WWW-Authenticate header present in 401 response from %s", resource_url)
        return _fallback_metadata_url(resource_url, log)

    log.info("WWW-Authenticate header present: %s", header)
    try:
        challenges = parse_www_authenticate(header)
    except ParseError as exc:
        log.warning("unparseable WWW-Authenticate header from %s: %s", resource_url, exc)
        return _fallback_metadata_url(resource_url, log)

    value = find_resource_metadata_url(challenges)
    if not value:
        log.warning("WWW-Authenticate header from %s has no resource_metadata parameter", resource_url)
        return _fallback_metadata_url(resource_url, log)
    return resolve_resource_metadata_url(resource_url, value)


async def _discover(client: httpx.AsyncClient, resource_url: str, log: OAuthLogger) -> Discovery:
    try:
        probe = await send(client, "GET", resource_url, accept_json=False)
    except OAuthError as exc:
        log.error("%s %s: %s", PROBE_STAGE, resource_url, exc)
        raise exc.with_context(PROBE_STAGE) from exc

    if probe.status_code >= 500:
        exc = ProtocolError(f"{resource_url} returned HTTP {probe.status_code}", status_code=probe.status_code)
        log.error("%s %s: %s", PROBE_STAGE, resource_url, exc)
        raise exc.with_context(PROBE_STAGE)
    if probe.status_code != 401:
        log.info("%s returned HTTP %d, no OAuth required", resource_url, probe.status_code)
        return Discovery.not_required(resource_url)

    metadata_url = _locate_resource_metadata(resource_url, probe.headers.get("WWW-Authenticate"), log)

    try:
        resource_meta = await fetch_protected_resource_metadata(client, metadata_url, default_resource=resource_url)
    except OAuthError as exc:
        log.error("%s from %s: %s", RESOURCE_METADATA_STAGE, metadata_url, exc)
        raise exc.with_context(RESOURCE_METADATA_STAGE) from exc

    auth_server = resource_meta.authorization_server
    try:
        server_meta = await fetch_authorization_server_metadata(client, auth_server)
    except OAuthError as exc:
        log.error("%s for %s: %s", AUTH_SERVER_STAGE, auth_server, exc)
        raise exc.with_context(AUTH_SERVER_STAGE) from exc

    discovery = Discovery(
        requires_oauth=True,
        resource_url=resource_meta.resource,
        authorization_endpoint=server_meta.authorization_endpoint,
        token_endpoint=server_meta.token_endpoint,
        registration_endpoint=server_meta.registration_endpoint or "",
        scopes=list(resource_meta.scopes_supported),
        supports_pkce=server_meta.supports_pkce,
        authorization_server=auth_server,
    )
    log.info(
        "discovered OAuth for %s: authorization server %s (PKCE: %s, DCR: %s)",
        resource_url,
        auth_server,
        discovery.supports_pkce,
        discovery.supports_dcr,
    )
    return discovery


async def discover_oauth_requirements(
    resource_url: str,
    *,
    client: httpx.AsyncClient | None = None,
    config: OAuthConfig | None = None,
) -> Discovery:
    """Discover what OAuth a resource requires.

    Args:
        resource_url: The protected resource (e.g. an MCP endpoint)
        client: HTTP client to use. A client is created for this call if omitted.
        config: Logger, deadline and other settings

    Returns:
        Discovery with ``requires_oauth=False`` when the probe is not answered
        with 401, otherwise the fully assembled result.

    Raises:
        ConfigurationError: ``resource_url`` is not an absolute http(s) URL
        NetworkError: Transport failure at any step
        ProtocolError: Unexpected status or missing metadata field. Failures
            while fetching authorization server metadata carry the message
            prefix "fetching authorization server metadata".
        ParseError: A metadata body is not a JSON object
        CancelledError: ``config.timeout`` expired or the transport timed out
    """
    config = config or OAuthConfig()
    log = resolve_logger(config)
    _origin(resource_url)  # reject non-http(s) input before any request

    with deadline(config, "OAuth discovery"):
        async with http_client(client, config) as http:
            return await _discover(http, resource_url, log)


__all__ = [
    "AUTHORIZATION_SERVER_WELL_KNOWN",
    "PROTECTED_RESOURCE_WELL_KNOWN",
    "build_authorization_server_metadata_url",
    "build_protected_resource_metadata_url",
    "discover_oauth_requirements",
    "fetch_authorization_server_metadata",
    "fetch_protected_resource_metadata",
    "resolve_resource_metadata_url",
]
