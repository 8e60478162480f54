# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Request-scoped configuration dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .log import OAuthLogger


DEFAULT_PRODUCTION_HOST = "mcp.docker.com"
DEFAULT_REDIRECT_URI = f"https://{DEFAULT_PRODUCTION_HOST}/oauth/callback"

REDIRECT_HOSTS_ENV = "OAUTH_HELPERS_REDIRECT_HOSTS"
DEFAULT_REDIRECT_URI_ENV = "OAUTH_HELPERS_DEFAULT_REDIRECT_URI"


@dataclass(slots=True, frozen=True)
class RedirectPolicy:
    """Which redirect URIs may be registered with an authorization server.

    Loopback hosts are accepted on ``http`` and ``https`` with any port and
    path. Production hosts are accepted on ``https`` only and must match
    exactly; ``evil.mcp.docker.com`` is not ``mcp.docker.com``.

    Example:
        >>> policy = RedirectPolicy(
        ...     production_hosts=frozenset({"auth.example.com"}),
        ...     default_redirect_uri="https://auth.example.com/oauth/callback",
        ... )
    """

    loopback_hosts: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})
    """Hosts accepted on either scheme. IPv6 entries are compared in normalized form."""

    production_hosts: frozenset[str] = frozenset({DEFAULT_PRODUCTION_HOST})
    """Hosts accepted on https only."""

    default_redirect_uri: str = DEFAULT_REDIRECT_URI
    """URI registered when the caller passes an empty redirect URI."""

    @classmethod
    def from_env(cls) -> RedirectPolicy:
        """Build a policy from ``OAUTH_HELPERS_REDIRECT_HOSTS`` (comma separated)
        and ``OAUTH_HELPERS_DEFAULT_REDIRECT_URI``, falling back to defaults."""
        policy = cls()
        hosts = os.environ.get(REDIRECT_HOSTS_ENV, "")
        production = frozenset(h.strip().lower() for h in hosts.split(",") if h.strip())
        default_uri = os.environ.get(DEFAULT_REDIRECT_URI_ENV, "").strip()
        return cls(
            loopback_hosts=policy.loopback_hosts,
            production_hosts=production or policy.production_hosts,
            default_redirect_uri=default_uri or policy.default_redirect_uri,
        )


@dataclass(slots=True)
class OAuthConfig:
    """Tunable parameters for discovery and client registration.

    All fields have sane defaults. Override only what you need.

    Example:
        >>> import logging
        >>> config = OAuthConfig(logger=logging.getLogger("gateway.oauth"), timeout=10.0)
        >>> discovery = await discover_oauth_requirements(url, config=config)
    """

    logger: OAuthLogger | None = None
    """Logging capability. ``None`` selects the built-in stderr sink."""

    timeout: float | None = None
    """Deadline in seconds for a whole call. ``None`` means no deadline."""

    redirect_policy: RedirectPolicy = field(default_factory=RedirectPolicy)
    """Redirect URI allowlist used by dynamic client registration."""

    client_name_template: str = "MCP Gateway ({server})"
    """``client_name`` sent during registration; ``{server}`` is the server name."""

    user_agent: str | None = None
    """User-Agent header for requests made on a client created by this package."""


__all__ = ["DEFAULT_REDIRECT_URI", "OAuthConfig", "RedirectPolicy"]
