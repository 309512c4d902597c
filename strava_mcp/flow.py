"""
OAuth delegation flow between an MCP client and Strava.

We act as the authorization server for the MCP client and as an OAuth client
of Strava. Nothing is stored server-side: the client's redirect target travels
through Strava inside a signed AuthorizeState, and Strava's code travels back
to the client inside a signed WrappedCode.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .config import STATE_MAX_AGE_MS, STRAVA_AUTHORIZE_URL, STRAVA_SCOPE_STRING, Settings
from .errors import ConfigurationError, OAuthError
from .models import (
    AuthorizeState,
    RegistrationRequest,
    RegistrationResponse,
    TokenResponse,
    WrappedCode,
    parse_payload,
)
from .security import decode_state, encode_state
from .strava_oauth import StravaOAuthBridge

logger = logging.getLogger(__name__)

INVALID_STATE = "Invalid state"


def _now_ms() -> int:
    return int(time.time() * 1000)


def with_query(url: str, params: Dict[str, str]) -> str:
    """Set query parameters on a URL, keeping any others it already has (repeated keys included)."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in params]
    query.extend(params.items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


@dataclass(frozen=True)
class CallbackResult:
    """Either a redirect back to the MCP client or, without a redirect_uri, the wrapped code itself."""
    redirect_url: Optional[str] = None
    code: Optional[str] = None


class DelegationFlow:
    def __init__(
        self,
        settings: Settings,
        bridge: Optional[StravaOAuthBridge] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.settings = settings
        self.bridge = bridge or StravaOAuthBridge(settings)
        self.clock = clock

    def _require_config(self) -> None:
        if not self.settings.oauth_configured:
            logger.error("OAuth request rejected: Strava client credentials or state secret not configured")
            raise ConfigurationError()

    @property
    def _secret(self) -> str:
        return self.settings.OAUTH_STATE_SECRET

    # ========== Register ==========

    def register(self, request: RegistrationRequest) -> RegistrationResponse:
        """Dynamic client registration. Nothing is stored; the client_id carries no authority."""
        client_id = str(uuid.uuid4())
        logger.info(f"Registered MCP client {client_id}")
        return RegistrationResponse(client_id=client_id, redirect_uris=request.redirect_uris)

    # ========== Authorize ==========

    def authorize(self, base_url: str, redirect_uri: Optional[str], client_state: Optional[str]) -> str:
        """Return the Strava authorize URL carrying the client's redirect target in a signed state."""
        self._require_config()

        state = encode_state(
            AuthorizeState(
                redirect_uri=redirect_uri,
                client_state=client_state,
                timestamp=self.clock(),
            ).model_dump(),
            self._secret,
        )

        return with_query(STRAVA_AUTHORIZE_URL, {
            "client_id": self.settings.STRAVA_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": f"{base_url}/oauth/callback",
            "scope": STRAVA_SCOPE_STRING,
            "state": state,
            "approval_prompt": "auto",
        })

    # ========== Callback ==========

    def callback(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> CallbackResult:
        """Handle Strava's redirect: wrap the Strava code and send it to the MCP client."""
        self._require_config()

        if error:
            # Hand control back to the client's app when we can still recover its redirect target
            state_data = parse_payload(AuthorizeState, decode_state(state, self._secret)) if state else None
            if state_data and state_data.redirect_uri:
                params = {"error": error}
                if error_description:
                    params["error_description"] = error_description
                if state_data.client_state:
                    params["state"] = state_data.client_state
                logger.info(f"Strava authorization failed ({error}), redirecting to client")
                return CallbackResult(redirect_url=with_query(state_data.redirect_uri, params))
            raise OAuthError("access_denied", f"OAuth error: {error_description or error}")

        if not code or not state:
            raise OAuthError("invalid_request", "Missing code or state")

        state_data = parse_payload(AuthorizeState, decode_state(state, self._secret))
        if state_data is None:
            logger.warning("Callback state failed verification")
            raise OAuthError("invalid_grant", INVALID_STATE)

        age = self.clock() - state_data.timestamp
        if age > STATE_MAX_AGE_MS:
            logger.warning(f"Callback state expired ({age // 1000}s old)")
            raise OAuthError("invalid_grant", INVALID_STATE)

        wrapped_code = encode_state(WrappedCode(strava_code=code).model_dump(), self._secret)

        if state_data.redirect_uri:
            params = {"code": wrapped_code}
            if state_data.client_state:
                params["state"] = state_data.client_state
            return CallbackResult(redirect_url=with_query(state_data.redirect_uri, params))

        # No redirect_uri - just return the wrapped code
        return CallbackResult(code=wrapped_code)

    # ========== Token ==========

    async def token(self, params: Dict[str, str]) -> TokenResponse:
        """Exchange a wrapped code or a refresh token for Strava tokens."""
        self._require_config()

        grant_type = params.get("grant_type")

        if grant_type == "refresh_token":
            refresh_token = params.get("refresh_token")
            if not refresh_token:
                raise OAuthError("invalid_request", "Missing refresh_token")
            return await self.bridge.exchange_refresh_token(refresh_token)

        if grant_type != "authorization_code":
            raise OAuthError("unsupported_grant_type")

        code = params.get("code")
        if not code:
            raise OAuthError("invalid_request", "Missing code")

        code_data = parse_payload(WrappedCode, decode_state(code, self._secret))
        if code_data is None:
            logger.warning("Token request carried an invalid wrapped code")
            raise OAuthError("invalid_grant", "Invalid code")

        return await self.bridge.exchange_authorization_code(code_data.strava_code)
