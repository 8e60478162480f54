# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""OAuth discovery and dynamic client registration for protected resources.

Discover what a resource requires, then register a public client:

    >>> from oauth_helpers import discover_oauth_requirements, perform_dcr
    >>>
    >>> discovery = await discover_oauth_requirements("https://mcp.example.com/mcp")
    >>> if discovery.requires_oauth:
    ...     creds = await perform_dcr(discovery, "example", "http://localhost:5000/callback")

Lower-level pieces live in their own modules:

- ``oauth_helpers.challenge`` - WWW-Authenticate parsing
- ``oauth_helpers.redirect`` - redirect URI allowlist
- ``oauth_helpers.log`` - pluggable logging
- ``oauth_helpers.config`` - per-call configuration
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .challenge import (
    WWWAuthenticateChallenge,
    find_required_scopes,
    find_resource_metadata_url,
    parse_www_authenticate,
)
from .config import OAuthConfig, RedirectPolicy
from .discovery import (
    build_authorization_server_metadata_url,
    build_protected_resource_metadata_url,
    discover_oauth_requirements,
    fetch_authorization_server_metadata,
    fetch_protected_resource_metadata,
)
from .exceptions import (
    CancelledError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    OAuthError,
    ParseError,
    ProtocolError,
    RegistrationError,
    ValidationError,
)
from .log import NoopLogger, OAuthLogger, default_logger, new_prefix_logger, wrap_logger
from .models import (
    AuthorizationServerMetadata,
    ClientCredentials,
    ClientRegistrationRequest,
    ClientRegistrationResponse,
    Discovery,
    ProtectedResourceMetadata,
)
from .redirect import is_valid_redirect_uri, validate_redirect_uri
from .registration import perform_dcr


try:
    __version__ = version("oauth-helpers")
except PackageNotFoundError:
    __version__ = "0.0.0+local"


__all__ = [
    # Entry points
    "discover_oauth_requirements",
    "perform_dcr",
    "parse_www_authenticate",
    "find_resource_metadata_url",
    "find_required_scopes",
    "validate_redirect_uri",
    "is_valid_redirect_uri",
    # Discovery helpers
    "build_authorization_server_metadata_url",
    "build_protected_resource_metadata_url",
    "fetch_authorization_server_metadata",
    "fetch_protected_resource_metadata",
    # Models
    "AuthorizationServerMetadata",
    "ClientCredentials",
    "ClientRegistrationRequest",
    "ClientRegistrationResponse",
    "Discovery",
    "ProtectedResourceMetadata",
    "WWWAuthenticateChallenge",
    # Configuration and logging
    "OAuthConfig",
    "RedirectPolicy",
    "OAuthLogger",
    "NoopLogger",
    "default_logger",
    "new_prefix_logger",
    "wrap_logger",
    # Errors
    "OAuthError",
    "ErrorCode",
    "ParseError",
    "ConfigurationError",
    "ValidationError",
    "NetworkError",
    "ProtocolError",
    "RegistrationError",
    "CancelledError",
]
