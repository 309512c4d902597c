"""
Token exchanges against Strava's OAuth endpoint.
Both legs return our normalized TokenResponse; upstream error detail is
logged here and never handed back to the MCP client.
"""
import logging
from typing import Dict

import httpx
from pydantic import ValidationError

from .config import STRAVA_SCOPE_STRING, STRAVA_TOKEN_URL, Settings
from .errors import OAuthError
from .models import TokenResponse

logger = logging.getLogger(__name__)


class StravaOAuthBridge:
    def __init__(self, settings: Settings, token_url: str = STRAVA_TOKEN_URL):
        self.settings = settings
        self.token_url = token_url

    async def exchange_authorization_code(self, code: str) -> TokenResponse:
        """Exchange a Strava authorization code for tokens."""
        return await self._exchange(
            {"code": code, "grant_type": "authorization_code"},
            failure="Token exchange failed",
        )

    async def exchange_refresh_token(self, refresh_token: str) -> TokenResponse:
        """Exchange a Strava refresh token for a fresh access token."""
        return await self._exchange(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            failure="Token refresh failed",
        )

    async def _exchange(self, grant: Dict[str, str], failure: str) -> TokenResponse:
        data = {
            "client_id": self.settings.STRAVA_CLIENT_ID,
            "client_secret": self.settings.STRAVA_CLIENT_SECRET,
            **grant,
        }

        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(self.token_url, data=data)
        except httpx.RequestError as e:
            logger.error(f"Strava {grant['grant_type']} request failed: {e}")
            raise OAuthError("invalid_grant", failure)

        if not response.is_success:
            logger.error(f"Strava {grant['grant_type']} exchange failed ({response.status_code}): {response.text}")
            raise OAuthError("invalid_grant", failure)

        try:
            token_data = response.json()
        except ValueError:
            logger.error(f"Strava {grant['grant_type']} returned a non-JSON body")
            raise OAuthError("invalid_grant", failure)

        if not isinstance(token_data, dict):
            logger.error(f"Strava {grant['grant_type']} returned an unexpected body")
            raise OAuthError("invalid_grant", failure)

        # Strava may report errors inside a 200 body
        if token_data.get("error"):
            logger.warning(f"Strava {grant['grant_type']} returned error: {token_data['error']}")
            raise OAuthError(str(token_data["error"]))

        try:
            return TokenResponse(
                access_token=token_data.get("access_token"),
                token_type=token_data.get("token_type") or "Bearer",
                expires_in=token_data.get("expires_in"),
                refresh_token=token_data.get("refresh_token"),
                scope=STRAVA_SCOPE_STRING,
            )
        except ValidationError as e:
            logger.error(f"Strava {grant['grant_type']} returned malformed token fields: {e}")
            raise OAuthError("invalid_grant", failure)
