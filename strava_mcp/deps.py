from fastapi import Request

from .config import Settings
from .flow import DelegationFlow


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_flow(request: Request) -> DelegationFlow:
    return request.app.state.flow


def get_base_url(request: Request) -> str:
    """
    Public base URL of this server. PUBLIC_BASE_URL wins; otherwise it is
    derived from the Host header, plain http only for localhost.
    """
    settings = get_settings(request)
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL.rstrip("/")

    host = request.headers.get("host") or "localhost"
    protocol = "http" if "localhost" in host else "https"
    return f"{protocol}://{host}"
