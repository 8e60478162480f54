# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Tests for OAuth requirement discovery (RFC 9728, RFC 8414).

Covers the header path, the well-known fallback for servers that answer 401
without a WWW-Authenticate header, and stage-tagged failures.
"""

from __future__ import annotations

import anyio
import httpx
import pytest
import respx

from oauth_helpers.config import OAuthConfig
from oauth_helpers.discovery import (
    build_authorization_server_metadata_url,
    build_protected_resource_metadata_url,
    discover_oauth_requirements,
    fetch_authorization_server_metadata,
    fetch_protected_resource_metadata,
    resolve_resource_metadata_url,
)
from oauth_helpers.exceptions import (
    CancelledError,
    ConfigurationError,
    NetworkError,
    ParseError,
    ProtocolError,
)
from oauth_helpers.log import NoopLogger


MCP_URL = "https://mcp.example.com/mcp"
PRM_URL = "https://mcp.example.com/.well-known/oauth-protected-resource"
AS_URL = "https://as.example.com"
ASM_URL = "https://as.example.com/.well-known/oauth-authorization-server"


def as_metadata(base: str = AS_URL, **overrides) -> dict:
    data = {
        "issuer": base,
        "authorization_endpoint": f"{base}/authorize",
        "token_endpoint": f"{base}/token",
        "registration_endpoint": f"{base}/register",
        "code_challenge_methods_supported": ["S256"],
    }
    data.update(overrides)
    return data


# =============================================================================
# URL construction
# =============================================================================


class TestMetadataUrls:
    def test_protected_resource_url_uses_origin(self):
        assert build_protected_resource_metadata_url("https://mcp.example.com/api/mcp?x=1") == PRM_URL

    def test_protected_resource_url_keeps_port(self):
        url = build_protected_resource_metadata_url("http://127.0.0.1:8080/mcp")
        assert url == "http://127.0.0.1:8080/.well-known/oauth-protected-resource"

    def test_protected_resource_url_rejects_relative(self):
        with pytest.raises(ConfigurationError):
            build_protected_resource_metadata_url("/mcp")

    def test_resolve_absolute_path(self):
        assert resolve_resource_metadata_url(MCP_URL, "/.well-known/oauth-protected-resource") == PRM_URL

    def test_resolve_full_url(self):
        url = resolve_resource_metadata_url(MCP_URL, "https://other.example.com/.well-known/prm")
        assert url == "https://other.example.com/.well-known/prm"

    def test_authorization_server_url(self):
        assert build_authorization_server_metadata_url(AS_URL) == ASM_URL

    def test_authorization_server_url_strips_trailing_slash(self):
        assert build_authorization_server_metadata_url(f"{AS_URL}/") == ASM_URL

    def test_authorization_server_url_uses_origin(self):
        assert build_authorization_server_metadata_url(f"{AS_URL}/tenant1") == ASM_URL

    def test_authorization_server_metadata_document_used_directly(self):
        url = "https://as.example.com/.well-known/openid-configuration"
        assert build_authorization_server_metadata_url(url) == url


# =============================================================================
# Metadata fetchers
# =============================================================================


class TestFetchResourceMetadata:
    @respx.mock
    @pytest.mark.anyio
    async def test_success(self):
        respx.get(PRM_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "resource": "https://mcp.example.com",
                    "authorization_servers": [AS_URL],
                    "scopes_supported": ["openid"],
                },
            )
        )

        async with httpx.AsyncClient() as client:
            meta = await fetch_protected_resource_metadata(client, PRM_URL)

        assert meta.resource == "https://mcp.example.com"
        assert meta.authorization_server == AS_URL
        assert meta.scopes_supported == ["openid"]

    @respx.mock
    @pytest.mark.anyio
    async def test_not_found(self):
        respx.get(PRM_URL).mock(return_value=httpx.Response(404))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ProtocolError, match="404") as exc_info:
                await fetch_protected_resource_metadata(client, PRM_URL)

        assert exc_info.value.status_code == 404

    @respx.mock
    @pytest.mark.anyio
    async def test_invalid_json(self):
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, content=b"not json"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ParseError, match="JSON"):
                await fetch_protected_resource_metadata(client, PRM_URL)

    @respx.mock
    @pytest.mark.anyio
    async def test_connection_error(self):
        respx.get(PRM_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError, match="connection refused"):
                await fetch_protected_resource_metadata(client, PRM_URL)


class TestFetchASMetadata:
    @respx.mock
    @pytest.mark.anyio
    async def test_success(self):
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        async with httpx.AsyncClient() as client:
            meta = await fetch_authorization_server_metadata(client, AS_URL)

        assert meta.token_endpoint == f"{AS_URL}/token"
        assert meta.supports_pkce is True

    @respx.mock
    @pytest.mark.anyio
    async def test_missing_token_endpoint(self):
        body = as_metadata()
        del body["token_endpoint"]
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=body))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ProtocolError, match="token_endpoint"):
                await fetch_authorization_server_metadata(client, AS_URL)


# =============================================================================
# Full discovery
# =============================================================================


class TestDiscoverFallback:
    """401 without WWW-Authenticate falls back to the well-known endpoint."""

    @respx.mock
    @pytest.mark.anyio
    async def test_fallback_to_well_known(self, config, recording_logger):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(
            return_value=httpx.Response(200, json={"resource": "https://mcp.example.com", "authorization_server": AS_URL})
        )
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert discovery.requires_oauth is True
        assert discovery.supports_pkce is True
        assert discovery.token_endpoint == f"{AS_URL}/token"
        assert discovery.authorization_endpoint == f"{AS_URL}/authorize"
        assert discovery.registration_endpoint == f"{AS_URL}/register"
        assert discovery.resource_url == "https://mcp.example.com"
        assert recording_logger.contains("no WWW-Authenticate header present", level="warning")
        assert recording_logger.contains("FALLBACK: trying well-known", level="info")

    @respx.mock
    @pytest.mark.anyio
    async def test_header_without_resource_metadata_falls_back(self, config, recording_logger):
        respx.get(MCP_URL).mock(
            return_value=httpx.Response(401, headers={"WWW-Authenticate": 'Bearer error="invalid_token"'})
        )
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert discovery.requires_oauth is True
        assert discovery.resource_url == MCP_URL
        assert recording_logger.contains("has no resource_metadata", level="warning")
        assert recording_logger.contains("FALLBACK", level="info")

    @respx.mock
    @pytest.mark.anyio
    async def test_unparseable_header_falls_back(self, config, recording_logger):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401, headers={"WWW-Authenticate": 'realm="orphan"'}))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert discovery.requires_oauth is True
        assert recording_logger.contains("unparseable WWW-Authenticate", level="warning")


class TestDiscoverWithHeader:
    """401 with a WWW-Authenticate header naming the metadata document."""

    @respx.mock
    @pytest.mark.anyio
    async def test_header_path(self, config, recording_logger):
        metadata_url = "https://metadata.example.com/prm"
        respx.get(MCP_URL).mock(
            return_value=httpx.Response(
                401, headers={"WWW-Authenticate": f'Bearer realm="test", resource_metadata="{metadata_url}"'}
            )
        )
        respx.get(metadata_url).mock(
            return_value=httpx.Response(
                200,
                json={
                    "resource": "https://api.example.com",
                    "authorization_servers": [AS_URL],
                    "scopes_supported": ["read", "write"],
                },
            )
        )
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert discovery.requires_oauth is True
        assert discovery.scopes == ["read", "write"]
        assert discovery.resource_url == "https://api.example.com"
        assert discovery.authorization_server == AS_URL
        assert not recording_logger.contains("FALLBACK")
        assert recording_logger.contains("WWW-Authenticate header present", level="info")

    @respx.mock
    @pytest.mark.anyio
    async def test_relative_resource_metadata(self, config):
        respx.get(MCP_URL).mock(
            return_value=httpx.Response(
                401,
                headers={"WWW-Authenticate": 'Bearer resource_metadata="/.well-known/oauth-protected-resource"'},
            )
        )
        prm_route = respx.get(PRM_URL).mock(
            return_value=httpx.Response(200, json={"resource": "https://mcp.example.com", "authorization_servers": [AS_URL]})
        )
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert prm_route.called
        assert discovery.requires_oauth is True

    @respx.mock
    @pytest.mark.anyio
    async def test_no_pkce_and_no_registration(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        body = as_metadata(code_challenge_methods_supported=["plain"])
        del body["registration_endpoint"]
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=body))

        discovery = await discover_oauth_requirements(MCP_URL, config=config)

        assert discovery.supports_pkce is False
        assert discovery.registration_endpoint == ""
        assert discovery.supports_dcr is False
        assert discovery.scopes == []

    @respx.mock
    @pytest.mark.anyio
    async def test_uses_caller_client(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))

        async with httpx.AsyncClient() as client:
            discovery = await discover_oauth_requirements(MCP_URL, client=client, config=config)
            assert not client.is_closed

        assert discovery.requires_oauth is True


class TestDiscoverNotRequired:
    @pytest.mark.parametrize("status", [200, 204, 400, 403, 404])
    @respx.mock
    @pytest.mark.anyio
    async def test_non_401_means_no_oauth(self, status: int):
        respx.get(MCP_URL).mock(return_value=httpx.Response(status))

        discovery = await discover_oauth_requirements(MCP_URL, config=OAuthConfig(logger=NoopLogger()))

        assert discovery.requires_oauth is False
        assert discovery.resource_url == MCP_URL
        assert discovery.token_endpoint == ""

    @respx.mock
    @pytest.mark.anyio
    async def test_server_error_raises(self, config, recording_logger):
        respx.get(MCP_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(ProtocolError, match="503") as exc_info:
            await discover_oauth_requirements(MCP_URL, config=config)

        assert exc_info.value.status_code == 503
        assert str(exc_info.value).startswith("probing resource: ")
        assert recording_logger.contains("probing resource", level="error")


class TestDiscoverFailures:
    """Any failing stage aborts the call; nothing partial is returned."""

    @respx.mock
    @pytest.mark.anyio
    async def test_unreachable_auth_server(self, config, recording_logger):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(
            return_value=httpx.Response(
                200, json={"resource": "https://mcp.example.com", "authorization_server": "http://localhost:9"}
            )
        )
        respx.get("http://localhost:9/.well-known/oauth-authorization-server").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        with pytest.raises(NetworkError) as exc_info:
            await discover_oauth_requirements(MCP_URL, config=config)

        assert "fetching authorization server metadata" in str(exc_info.value)
        assert recording_logger.lines("error")

    @respx.mock
    @pytest.mark.anyio
    async def test_auth_server_404_is_tagged(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        respx.get(ASM_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(ProtocolError, match="fetching authorization server metadata") as exc_info:
            await discover_oauth_requirements(MCP_URL, config=config)

        assert exc_info.value.status_code == 404

    @respx.mock
    @pytest.mark.anyio
    async def test_auth_server_bad_json_is_tagged(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        respx.get(ASM_URL).mock(return_value=httpx.Response(200, content=b"<html>"))

        with pytest.raises(ParseError, match="fetching authorization server metadata"):
            await discover_oauth_requirements(MCP_URL, config=config)

    @respx.mock
    @pytest.mark.anyio
    async def test_resource_metadata_missing(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(ProtocolError, match="fetching protected resource metadata"):
            await discover_oauth_requirements(MCP_URL, config=config)

    @respx.mock
    @pytest.mark.anyio
    async def test_resource_metadata_without_auth_server(self, config):
        respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"resource": "https://mcp.example.com"}))

        with pytest.raises(ProtocolError, match="authorization_servers"):
            await discover_oauth_requirements(MCP_URL, config=config)

    @respx.mock
    @pytest.mark.anyio
    async def test_probe_connection_error(self, config):
        respx.get(MCP_URL).mock(side_effect=httpx.ConnectError("no route to host"))

        with pytest.raises(NetworkError, match="probing resource"):
            await discover_oauth_requirements(MCP_URL, config=config)

    @respx.mock
    @pytest.mark.anyio
    async def test_transport_timeout_is_cancelled_error(self, config):
        respx.get(MCP_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(CancelledError):
            await discover_oauth_requirements(MCP_URL, config=config)

    @pytest.mark.anyio
    async def test_invalid_resource_url(self, config):
        with pytest.raises(ConfigurationError):
            await discover_oauth_requirements("mcp.example.com/mcp", config=config)

    @respx.mock
    @pytest.mark.anyio
    async def test_deadline_is_cancelled_error(self, recording_logger):
        async def slow(request: httpx.Request) -> httpx.Response:
            await anyio.sleep(5)
            return httpx.Response(401)

        respx.get(MCP_URL).mock(side_effect=slow)
        config = OAuthConfig(logger=recording_logger, timeout=0.1)

        with pytest.raises(CancelledError, match="deadline"):
            await discover_oauth_requirements(MCP_URL, config=config)


# =============================================================================
# Request headers
# =============================================================================


class TestDiscoverRequestHeaders:
    @respx.mock
    @pytest.mark.anyio
    async def test_accept_and_user_agent(self, recording_logger):
        probe = respx.get(MCP_URL).mock(return_value=httpx.Response(401))
        prm = respx.get(PRM_URL).mock(return_value=httpx.Response(200, json={"authorization_servers": [AS_URL]}))
        asm = respx.get(ASM_URL).mock(return_value=httpx.Response(200, json=as_metadata()))
        config = OAuthConfig(logger=recording_logger, user_agent="gateway/1.2")

        await discover_oauth_requirements(MCP_URL, config=config)

        assert probe.calls[0].request.headers.get("Accept") != "application/json"
        assert prm.calls[0].request.headers["Accept"] == "application/json"
        assert asm.calls[0].request.headers["Accept"] == "application/json"
        for route in (probe, prm, asm):
            assert route.calls[0].request.headers["User-Agent"] == "gateway/1.2"
