from typing import Any, Dict, Optional


class OAuthError(Exception):
    """
    An OAuth protocol failure that is rendered to the caller as
    {"error": ..., "error_description": ...} with the given HTTP status.
    """

    def __init__(self, error: str, description: Optional[str] = None, status_code: int = 400):
        super().__init__(description or error)
        self.error = error
        self.description = description
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error}
        if self.description:
            body["error_description"] = self.description
        return body


class ConfigurationError(OAuthError):
    """Raised when the OAuth secrets are not configured."""

    def __init__(self, description: str = "OAuth not configured"):
        super().__init__("server_error", description, status_code=500)
