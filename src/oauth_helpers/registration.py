# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Dynamic Client Registration (RFC 7591).

Registers a public client (``token_endpoint_auth_method="none"``) with the
authorization server found by discovery. The redirect URI is checked against
the configured allowlist before anything is sent.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ._http import deadline, http_client, send
from .config import OAuthConfig
from .exceptions import ConfigurationError, OAuthError, RegistrationError, ValidationError
from .log import resolve_logger
from .models import ClientCredentials, ClientRegistrationRequest, ClientRegistrationResponse, Discovery
from .redirect import validate_redirect_uri


REGISTRATION_STAGE = "registering client"


def build_registration_request(
    discovery: Discovery, server_name: str, redirect_uri: str, config: OAuthConfig
) -> ClientRegistrationRequest:
    return ClientRegistrationRequest(
        redirect_uris=[redirect_uri],
        grant_types=["authorization_code", "refresh_token"],
        token_endpoint_auth_method="none",
        client_name=config.client_name_template.format(server=server_name),
        scope=" ".join(discovery.scopes) or None,
    )


def _parse_registration_response(response: httpx.Response) -> ClientRegistrationResponse:
    body: Any
    try:
        body = response.json()
    except ValueError:
        body = None

    if not response.is_success:
        error = body.get("error") if isinstance(body, dict) else None
        description = body.get("error_description") if isinstance(body, dict) else None
        detail = f": {error}" if error else ""
        if description:
            detail += f" ({description})"
        raise RegistrationError(
            f"registration endpoint returned HTTP {response.status_code}{detail}",
            status_code=response.status_code,
            error=error,
            error_description=description,
        )

    if not isinstance(body, dict):
        raise RegistrationError("registration response is not a JSON object", status_code=response.status_code)

    try:
        return ClientRegistrationResponse.model_validate(body)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise RegistrationError(
            f"invalid registration response (fields: {fields})", status_code=response.status_code
        ) from exc


async def perform_dcr(
    discovery: Discovery,
    server_name: str,
    redirect_uri: str = "",
    *,
    client: httpx.AsyncClient | None = None,
    config: OAuthConfig | None = None,
) -> ClientCredentials:
    """Register a public OAuth client with the discovered authorization server.

    Args:
        discovery: Result of :func:`~oauth_helpers.discovery.discover_oauth_requirements`
        server_name: Identifies the resource; used to derive ``client_name``
        redirect_uri: Callback to register. ``""`` selects the policy default.
        client: HTTP client to use. A client is created for this call if omitted.
        config: Logger, deadline, redirect policy and client name template

    Returns:
        ClientCredentials whose ``server_url`` is ``discovery.resource_url``.

    Raises:
        ConfigurationError: Discovery has no registration endpoint (no request is made)
        ValidationError: ``redirect_uri`` is not allowed (no request is made)
        NetworkError: Transport failure
        RegistrationError: Non-2xx status or unusable response body
        CancelledError: ``config.timeout`` expired or the transport timed out
    """
    config = config or OAuthConfig()
    log = resolve_logger(config)

    if not discovery.registration_endpoint:
        raise ConfigurationError(
            f"authorization server for {server_name!r} does not support dynamic client registration "
            "(no registration_endpoint)"
        )

    try:
        resolved_redirect = validate_redirect_uri(redirect_uri, config.redirect_policy)
    except ValidationError as exc:
        log.error("refusing to register %s: %s", server_name, exc)
        raise

    request = build_registration_request(discovery, server_name, resolved_redirect, config)
    payload = request.model_dump(exclude_none=True)
    endpoint = discovery.registration_endpoint

    try:
        with deadline(config, "dynamic client registration"):
            async with http_client(client, config) as http:
                response = await send(http, "POST", endpoint, json=payload)
        registration = _parse_registration_response(response)
    except OAuthError as exc:
        log.error("%s at %s: %s", REGISTRATION_STAGE, endpoint, exc)
        raise exc.with_context(REGISTRATION_STAGE) from exc

    credentials = ClientCredentials(
        client_id=registration.client_id,
        client_secret=registration.client_secret or "",
        server_url=discovery.resource_url,
        redirect_uri=resolved_redirect,
    )
    log.info(
        "registered client %s for %s (public: %s, auth method: %s)",
        credentials.client_id,
        server_name,
        credentials.is_public,
        registration.token_endpoint_auth_method or request.token_endpoint_auth_method,
    )
    return credentials


__all__ = ["build_registration_request", "perform_dcr"]
