"""
OAuth 2.0 discovery documents (RFC 9728 protected resource metadata and
RFC 8414 authorization server metadata) that point MCP clients at our
/oauth endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Request

from .config import STRAVA_SCOPES
from .deps import get_base_url

router = APIRouter()


def protected_resource_metadata(base_url: str) -> Dict[str, Any]:
    return {
        "resource": f"{base_url}/mcp",
        "authorization_servers": [base_url],
        "scopes_supported": list(STRAVA_SCOPES),
    }


def authorization_server_metadata(base_url: str) -> Dict[str, Any]:
    # PKCE is advertised but not verified at /oauth/token
    return {
        "issuer": base_url,
        "authorization_endpoint": f"{base_url}/oauth/authorize",
        "token_endpoint": f"{base_url}/oauth/token",
        "registration_endpoint": f"{base_url}/oauth/register",
        "scopes_supported": list(STRAVA_SCOPES),
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code", "refresh_token"],
        "token_endpoint_auth_methods_supported": ["none"],
        "code_challenge_methods_supported": ["S256"],
    }


@router.get("/.well-known/oauth-protected-resource")
@router.get("/.well-known/oauth-protected-resource/mcp")
def get_protected_resource_metadata(request: Request):
    """Tells clients where to authenticate for the /mcp resource."""
    return protected_resource_metadata(get_base_url(request))


@router.get("/.well-known/oauth-authorization-server")
def get_authorization_server_metadata(request: Request):
    return authorization_server_metadata(get_base_url(request))
