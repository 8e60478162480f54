# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Metadata, discovery and registration models.

- ProtectedResourceMetadata: RFC 9728 document served by the resource
- AuthorizationServerMetadata: RFC 8414 document served by the AS
- Discovery: what a client needs to start an authorization-code flow
- ClientRegistrationRequest / ClientRegistrationResponse: RFC 7591 payloads
- ClientCredentials: the outcome of a registration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from .exceptions import ProtocolError


def _string(data: dict[str, Any], key: str, document: str, *, required: bool = False) -> str:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ProtocolError(f"{document} is missing required field {key!r}")
        return ""
    if not isinstance(value, str):
        raise ProtocolError(f"{document} field {key!r} must be a string, got {type(value).__name__}")
    return value


def _string_list(data: dict[str, Any], key: str, document: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ProtocolError(f"{document} field {key!r} must be a list of strings")
    return list(value)


# =============================================================================
# RFC 9728 - Protected Resource Metadata
# =============================================================================

_PRM_FIELDS = frozenset(
    {"resource", "authorization_servers", "authorization_server", "scopes_supported", "scopes", "bearer_methods_supported"}
)


@dataclass(slots=True)
class ProtectedResourceMetadata:
    """OAuth 2.0 Protected Resource Metadata (RFC 9728).

    Besides the standard ``authorization_servers`` array, the singular
    ``authorization_server`` string emitted by some servers is accepted.
    Unrecognised fields are kept in ``extra``.
    """

    resource: str
    authorization_servers: list[str]
    scopes_supported: list[str] = field(default_factory=list)
    bearer_methods_supported: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def authorization_server(self) -> str:
        """The primary (first listed) authorization server."""
        return self.authorization_servers[0]

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, default_resource: str = "") -> ProtectedResourceMetadata:
        """Build from a decoded JSON document.

        Args:
            data: Decoded metadata document
            default_resource: Used when the document omits ``resource``

        Raises:
            ProtocolError: If no authorization server is listed or a field has
                the wrong type
        """
        doc = "protected resource metadata"
        servers = _string_list(data, "authorization_servers", doc) or _string_list(data, "authorization_server", doc)
        servers = [s for s in servers if s]
        if not servers:
            raise ProtocolError(f"{doc} is missing required field 'authorization_servers'")

        resource = _string(data, "resource", doc) or default_resource
        if not resource:
            raise ProtocolError(f"{doc} is missing required field 'resource'")

        return cls(
            resource=resource,
            authorization_servers=servers,
            scopes_supported=_string_list(data, "scopes_supported", doc) or _string_list(data, "scopes", doc),
            bearer_methods_supported=_string_list(data, "bearer_methods_supported", doc),
            extra={k: v for k, v in data.items() if k not in _PRM_FIELDS},
        )


# =============================================================================
# RFC 8414 - Authorization Server Metadata
# =============================================================================

_ASM_FIELDS = frozenset(
    {
        "issuer",
        "authorization_endpoint",
        "token_endpoint",
        "registration_endpoint",
        "code_challenge_methods_supported",
        "grant_types_supported",
        "scopes_supported",
    }
)


@dataclass(slots=True)
class AuthorizationServerMetadata:
    """OAuth 2.0 Authorization Server Metadata (RFC 8414)."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    registration_endpoint: str | None = None
    code_challenge_methods_supported: list[str] = field(default_factory=list)
    grant_types_supported: list[str] = field(default_factory=list)
    scopes_supported: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def supports_pkce(self) -> bool:
        return "S256" in self.code_challenge_methods_supported

    def supports_grant_type(self, grant_type: str) -> bool:
        return grant_type in self.grant_types_supported

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthorizationServerMetadata:
        """Build from a decoded JSON document.

        Raises:
            ProtocolError: If ``authorization_endpoint`` or ``token_endpoint``
                is missing, or a field has the wrong type
        """
        doc = "authorization server metadata"
        return cls(
            issuer=_string(data, "issuer", doc),
            authorization_endpoint=_string(data, "authorization_endpoint", doc, required=True),
            token_endpoint=_string(data, "token_endpoint", doc, required=True),
            registration_endpoint=_string(data, "registration_endpoint", doc) or None,
            code_challenge_methods_supported=_string_list(data, "code_challenge_methods_supported", doc),
            grant_types_supported=_string_list(data, "grant_types_supported", doc),
            scopes_supported=_string_list(data, "scopes_supported", doc),
            extra={k: v for k, v in data.items() if k not in _ASM_FIELDS},
        )


# =============================================================================
# Discovery result
# =============================================================================


@dataclass(slots=True, frozen=True)
class Discovery:
    """Unified result of probing a resource and reading its metadata.

    When ``requires_oauth`` is true, ``authorization_endpoint`` and
    ``token_endpoint`` are guaranteed to be non-empty.
    """

    requires_oauth: bool
    resource_url: str
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    registration_endpoint: str = ""
    scopes: list[str] = field(default_factory=list)
    supports_pkce: bool = False
    authorization_server: str = ""

    def __post_init__(self) -> None:
        if self.requires_oauth and not (self.authorization_endpoint and self.token_endpoint):
            raise ValueError("a Discovery that requires OAuth needs authorization and token endpoints")

    @classmethod
    def not_required(cls, resource_url: str) -> Discovery:
        """Result for a resource that did not answer with 401."""
        return cls(requires_oauth=False, resource_url=resource_url)

    @property
    def supports_dcr(self) -> bool:
        return bool(self.registration_endpoint)


# =============================================================================
# RFC 7591 - Dynamic Client Registration
# =============================================================================


class ClientRegistrationRequest(BaseModel):
    """OAuth 2.0 Dynamic Client Registration Request (RFC 7591 §2)."""

    redirect_uris: list[str]
    grant_types: list[Literal["authorization_code", "refresh_token"]] = [
        "authorization_code",
        "refresh_token",
    ]
    token_endpoint_auth_method: Literal["none", "client_secret_basic", "client_secret_post"] = "none"
    client_name: str
    scope: str | None = None


class ClientRegistrationResponse(BaseModel):
    """OAuth 2.0 Dynamic Client Registration Response (RFC 7591 §3.2.1)."""

    model_config = ConfigDict(extra="allow")

    client_id: str
    client_secret: str | None = None
    client_id_issued_at: int | None = None
    client_secret_expires_at: int | None = None
    token_endpoint_auth_method: str | None = None
    grant_types: list[str] | None = None
    redirect_uris: list[str] | None = None
    registration_access_token: str | None = None
    registration_client_uri: str | None = None


@dataclass(slots=True, frozen=True)
class ClientCredentials:
    """Credentials issued by dynamic client registration.

    A client without a secret is a public client and must use PKCE.
    """

    client_id: str
    server_url: str
    client_secret: str = ""
    redirect_uri: str = ""

    @property
    def is_public(self) -> bool:
        return self.client_secret == ""


__all__ = [
    "AuthorizationServerMetadata",
    "ClientCredentials",
    "ClientRegistrationRequest",
    "ClientRegistrationResponse",
    "Discovery",
    "ProtectedResourceMetadata",
]
