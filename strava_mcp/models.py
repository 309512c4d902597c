from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator


class AuthorizeState(BaseModel):
    """Payload carried through Strava's authorize redirect in the state parameter."""
    redirect_uri: Optional[str] = None
    client_state: Optional[str] = None
    timestamp: int  # epoch millis


class WrappedCode(BaseModel):
    """Strava authorization code re-signed for redemption at our token endpoint."""
    strava_code: str

    @field_validator("strava_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("strava_code must not be empty")
        return v


class RegistrationRequest(BaseModel):
    redirect_uris: List[str] = Field(default_factory=list)


class RegistrationResponse(BaseModel):
    client_id: str
    client_secret_expires_at: int = 0
    redirect_uris: List[str] = Field(default_factory=list)
    grant_types: List[str] = Field(default_factory=lambda: ["authorization_code", "refresh_token"])
    response_types: List[str] = Field(default_factory=lambda: ["code"])
    token_endpoint_auth_method: str = "none"


class TokenResponse(BaseModel):
    """OAuth2 token response returned to the MCP client."""
    access_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: Optional[Union[int, float]] = None
    refresh_token: Optional[str] = None
    scope: str


def parse_payload(model, payload: Optional[Dict[str, Any]]):
    """Validate a decoded state payload against one of the state models. Returns None on mismatch."""
    if payload is None:
        return None
    try:
        return model.model_validate(payload)
    except ValidationError:
        return None
