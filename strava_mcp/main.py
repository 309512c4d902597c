import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__
from .auth import router as auth_router
from .config import Settings, configure_logging
from .errors import OAuthError
from .flow import DelegationFlow
from .mcp_endpoint import MCPEndpoint
from .metadata import router as metadata_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the HTTP front end: discovery, OAuth delegation and the /mcp endpoint."""
    settings = settings or Settings()

    app = FastAPI(
        title="Strava MCP Server",
        description="MCP server for the Strava API with OAuth delegation",
        version=__version__,
    )
    app.state.settings = settings
    app.state.flow = DelegationFlow(settings)

    if not settings.oauth_configured:
        logger.warning("STRAVA_CLIENT_ID, STRAVA_CLIENT_SECRET or OAUTH_STATE_SECRET missing; OAuth endpoints disabled")

    @app.exception_handler(OAuthError)
    async def oauth_error_handler(request: Request, exc: OAuthError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "error_description": "Internal Server Error"},
        )

    @app.get("/", response_class=PlainTextResponse)
    def read_root():
        return "Strava MCP server"

    app.include_router(metadata_router)
    app.include_router(auth_router, prefix="/oauth", tags=["oauth"])
    app.add_route("/mcp", MCPEndpoint(settings), include_in_schema=False)

    return app


def main() -> None:
    """Main entry point for the server."""
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    try:
        logger.info(f"Starting Strava MCP Server on {settings.HOST}:{settings.PORT}...")
        uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)
    except Exception as e:
        logger.error(f"Server error: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
