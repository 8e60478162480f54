# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Discover a resource's OAuth requirements and register a public client.

Probes the resource, follows its protected resource metadata to the
authorization server and, when the server supports dynamic client
registration, registers a client for a loopback callback.

Usage:
    python examples/discover_and_register.py https://mcp.example.com/mcp
    python examples/discover_and_register.py https://mcp.example.com/mcp --redirect http://localhost:5000/callback
"""

from __future__ import annotations

import argparse
import logging

import anyio

from oauth_helpers import OAuthConfig, OAuthError, discover_oauth_requirements, perform_dcr, wrap_logger
from oauth_helpers.utils import configure_logging, get_logger


log = get_logger("examples.discover_and_register")


async def main(resource_url: str, server_name: str, redirect_uri: str) -> int:
    config = OAuthConfig(logger=wrap_logger(log), timeout=30.0)

    try:
        discovery = await discover_oauth_requirements(resource_url, config=config)
    except OAuthError as exc:
        log.error("discovery failed [%s]: %s", exc.code.value, exc)
        return 1

    if not discovery.requires_oauth:
        log.info("%s does not require OAuth", resource_url)
        return 0

    log.info("authorization endpoint: %s", discovery.authorization_endpoint)
    log.info("token endpoint: %s", discovery.token_endpoint)
    log.info("scopes: %s", " ".join(discovery.scopes) or "(none)")
    log.info("PKCE (S256): %s", discovery.supports_pkce)

    if not discovery.supports_dcr:
        log.warning("authorization server does not support dynamic client registration")
        return 0

    try:
        creds = await perform_dcr(discovery, server_name, redirect_uri, config=config)
    except OAuthError as exc:
        log.error("registration failed [%s]: %s", exc.code.value, exc)
        return 1

    log.info("client_id: %s (public: %s)", creds.client_id, creds.is_public)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("resource_url")
    parser.add_argument("--name", default="example", help="server name used in client_name")
    parser.add_argument("--redirect", default="http://localhost:5000/callback", help="redirect URI to register")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.debug else logging.INFO)
    raise SystemExit(anyio.run(main, args.resource_url, args.name, args.redirect))
