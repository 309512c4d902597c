import logging
import sys

from pydantic_settings import BaseSettings

# Strava OAuth URLs
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"

# Scopes we request from Strava
STRAVA_SCOPES = [
    "read",
    "read_all",
    "profile:read_all",
    "activity:read",
    "activity:read_all",
    "activity:write",
]
STRAVA_SCOPE_STRING = ",".join(STRAVA_SCOPES)

# Authorize state older than this is rejected at the callback
STATE_MAX_AGE_MS = 10 * 60 * 1000


class Settings(BaseSettings):
    # Strava API
    STRAVA_CLIENT_ID: str = ""
    STRAVA_CLIENT_SECRET: str = ""
    STRAVA_API_BASE_URL: str = "https://www.strava.com/api/v3"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Security
    OAUTH_STATE_SECRET: str = ""

    # URLs
    PUBLIC_BASE_URL: str = ""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"
        frozen = True

    @property
    def oauth_configured(self) -> bool:
        """True when all three OAuth secrets are present."""
        return bool(self.STRAVA_CLIENT_ID and self.STRAVA_CLIENT_SECRET and self.OAUTH_STATE_SECRET)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )
