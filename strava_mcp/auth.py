import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from .deps import get_base_url, get_flow
from .errors import ConfigurationError, OAuthError
from .flow import DelegationFlow
from .models import RegistrationRequest

logger = logging.getLogger(__name__)

router = APIRouter()


async def _json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    return json.loads(raw)


async def parse_token_request(request: Request) -> Dict[str, str]:
    """
    Normalize a token request body, form-encoded or JSON, into one flat mapping.
    """
    content_type = request.headers.get("content-type", "")

    if "application/x-www-form-urlencoded" in content_type:
        raw = (await request.body()).decode("utf-8", errors="replace")
        return dict(parse_qsl(raw, keep_blank_values=True))

    try:
        body = await _json_body(request)
    except ValueError:
        raise OAuthError("invalid_request", "Malformed request body")

    if not isinstance(body, dict):
        raise OAuthError("invalid_request", "Malformed request body")

    return {key: str(value) for key, value in body.items() if value is not None}


@router.post("/register")
async def register(request: Request, flow: DelegationFlow = Depends(get_flow)):
    """Dynamic Client Registration (RFC 7591) - MCP clients register here."""
    try:
        registration = RegistrationRequest.model_validate(await _json_body(request))
    except (ValueError, ValidationError):
        logger.info("Registration body unreadable, registering without redirect URIs")
        registration = RegistrationRequest()

    return flow.register(registration).model_dump()


@router.get("/authorize")
def authorize(
    request: Request,
    redirect_uri: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    flow: DelegationFlow = Depends(get_flow),
):
    """Start the OAuth flow by redirecting the user to Strava."""
    url = flow.authorize(get_base_url(request), redirect_uri, state)
    return RedirectResponse(url=url, status_code=302)


@router.get("/callback")
def callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    flow: DelegationFlow = Depends(get_flow),
):
    """Strava redirects here; wrap its code and hand it to the MCP client."""
    result = flow.callback(code, state, error, error_description)
    if result.redirect_url:
        return RedirectResponse(url=result.redirect_url, status_code=302)
    return {"code": result.code}


@router.post("/token")
async def token(request: Request, flow: DelegationFlow = Depends(get_flow)):
    """Exchange a wrapped authorization code or a refresh token for Strava tokens."""
    if not flow.settings.oauth_configured:
        # Report misconfiguration before complaining about the body
        raise ConfigurationError()

    params = await parse_token_request(request)
    token_response = await flow.token(params)
    return JSONResponse(
        content=token_response.model_dump(exclude_none=True),
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )
