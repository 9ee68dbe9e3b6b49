from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..errors import UnauthenticatedError


@dataclass(frozen=True)
class Session:
    """Signed-in user as recognized for the current request."""
    authenticated: bool
    access_token: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def has_token(self) -> bool:
        return self.authenticated and bool(self.access_token)


def require_access_token(session: Optional[Session]) -> str:
    """Return the bearer token or raise UnauthenticatedError."""
    if session is None or not session.has_token:
        raise UnauthenticatedError()
    return session.access_token  # type: ignore[return-value]
