import json
from fastapi import status

class BaseAppException(Exception):
    def __init__(self, code: str, message: str, http_status: int):
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)

    def to_body(self) -> dict:
        return {"error": self.message}

class UnauthenticatedError(BaseAppException):
    def __init__(self, message: str = "認証が必要です"):
        super().__init__("UNAUTHENTICATED", message, status.HTTP_401_UNAUTHORIZED)

class UpstreamError(BaseAppException):
    """Graph call failed (non-success status, transport error or unusable body).

    ``message`` is the user-facing text, ``details`` the raw diagnostic string.
    """
    def __init__(self, message: str, details: str, upstream_status: int | None = None):
        super().__init__("UPSTREAM_ERROR", message, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.details = details
        self.upstream_status = upstream_status

    def to_body(self) -> dict:
        return {"error": self.message, "details": self.details}

class OAuthError(BaseAppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status.HTTP_400_BAD_REQUEST)

    def to_body(self) -> dict:
        return {"error": self.message, "code": self.code}

class GraphApiError(Exception):
    """Non-success response from Microsoft Graph."""
    def __init__(self, status_code: int, body: object):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Graph API Error: {status_code} - {_render_body(body)}")

def _render_body(body: object) -> str:
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False)
