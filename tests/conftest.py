import pytest
from fastapi.testclient import TestClient

from strava_mcp.config import Settings
from strava_mcp.main import create_app

STATE_SECRET = "test-state-secret"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        STRAVA_CLIENT_ID="12345",
        STRAVA_CLIENT_SECRET="strava-secret",
        OAUTH_STATE_SECRET=STATE_SECRET,
    )


@pytest.fixture
def unconfigured_settings():
    return Settings(
        _env_file=None,
        STRAVA_CLIENT_ID="",
        STRAVA_CLIENT_SECRET="",
        OAUTH_STATE_SECRET="",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def unconfigured_client(unconfigured_settings):
    return TestClient(create_app(unconfigured_settings), follow_redirects=False)
