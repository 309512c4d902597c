"""
The /mcp tool-invocation endpoint.

Stateless streamable HTTP: every POST builds a fresh MCP server bound to the
caller's bearer token, which is passed to Strava untouched. The token is not
validated here; Strava rejects bad tokens when a tool runs.
"""
import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from .config import Settings
from .strava_api import StravaClient
from .tools import build_mcp_server

logger = logging.getLogger(__name__)

# JSON-RPC error codes used by the MCP transport
MISSING_TOKEN_ERROR = -32001
METHOD_NOT_ALLOWED_ERROR = -32000


def jsonrpc_error(code: int, message: str, status_code: int) -> JSONResponse:
    body: Dict[str, Any] = {
        "jsonrpc": "2.0",
        "error": {"code": code, "message": message},
        "id": None,
    }
    return JSONResponse(body, status_code=status_code)


def bearer_token(request: Request) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


class MCPEndpoint:
    """Raw ASGI app so the MCP transport can write its own response."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)

        if request.method != "POST":
            response = jsonrpc_error(METHOD_NOT_ALLOWED_ERROR, "Method not allowed in stateless mode", 405)
            await response(scope, receive, send)
            return

        access_token = bearer_token(request)
        if not access_token:
            response = jsonrpc_error(MISSING_TOKEN_ERROR, "Missing authorization token", 401)
            await response(scope, receive, send)
            return

        client = StravaClient(
            access_token,
            api_url=self.settings.STRAVA_API_BASE_URL,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
        )
        server = build_mcp_server(client)

        # The session manager is created along with the streamable HTTP app
        server.streamable_http_app()
        session_manager = server.session_manager
        async with session_manager.run():
            await session_manager.handle_request(scope, receive, send)
