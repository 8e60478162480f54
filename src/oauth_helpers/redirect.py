# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Redirect URI allowlist for dynamic client registration.

Registering an attacker-controlled callback would hand them authorization
codes, so only loopback callbacks and the exact production callback host(s)
of the configured :class:`~oauth_helpers.config.RedirectPolicy` are accepted.
"""

from __future__ import annotations

import ipaddress
from urllib.parse import urlsplit

from .config import RedirectPolicy
from .exceptions import ValidationError


_ALLOWED_SCHEMES = ("http", "https")


def _normalize_host(host: str) -> str:
    host = host.strip("[]").lower()
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        return host


def validate_redirect_uri(uri: str, policy: RedirectPolicy | None = None) -> str:
    """Check ``uri`` against the allowlist and return the URI to register.

    An empty string means "use the default" and resolves to
    ``policy.default_redirect_uri``.

    Raises:
        ValidationError: If the URI is not absolute http(s), carries a
            fragment or userinfo, or its host is not allowed for its scheme
    """
    policy = policy or RedirectPolicy()
    if uri == "":
        return policy.default_redirect_uri

    try:
        parts = urlsplit(uri)
        host = parts.hostname
        _ = parts.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise ValidationError(f"invalid redirect URI {uri!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(f"redirect URI {uri!r} must use http or https")
    if not host:
        raise ValidationError(f"redirect URI {uri!r} has no host")
    if parts.fragment:
        raise ValidationError(f"redirect URI {uri!r} must not contain a fragment")
    if parts.username is not None or parts.password is not None:
        raise ValidationError(f"redirect URI {uri!r} must not contain user info")

    host = _normalize_host(host)
    if host in {_normalize_host(h) for h in policy.loopback_hosts}:
        return uri
    if scheme == "https" and host in {h.lower() for h in policy.production_hosts}:
        return uri

    raise ValidationError(f"redirect URI host {host!r} is not allowed")


def is_valid_redirect_uri(uri: str, policy: RedirectPolicy | None = None) -> bool:
    """Boolean form of :func:`validate_redirect_uri`."""
    try:
        validate_redirect_uri(uri, policy)
    except ValidationError:
        return False
    return True


__all__ = ["is_valid_redirect_uri", "validate_redirect_uri"]
