"""Session cookie encoding.

The cookie is a JWT signed with SESSION_SECRET. The Graph access token rides
along Fernet-encrypted in the ``at`` claim, so the cookie never exposes it in
clear text even though JWT payloads are only base64.
"""
from __future__ import annotations
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import Settings, get_settings
from ..domain.session import Session
from .encryption_service import EncryptionService, get_encryption_service

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class SessionService:
    def __init__(self, settings: Settings, encryption: EncryptionService):
        self.settings = settings
        self.encryption = encryption
        self._secret = settings.session_secret
        if not self._secret:
            logger.warning("SESSION_SECRET not set; sessions will not survive a restart")
            self._secret = secrets.token_urlsafe(32)

    @property
    def cookie_name(self) -> str:
        return self.settings.session_cookie_name

    def issue(self, token_result: Dict[str, Any], now: Optional[datetime] = None) -> tuple[str, int]:
        """Encode an MSAL token result into a cookie value.

        Returns the cookie value and its max-age in seconds.
        """
        now = now or datetime.now(timezone.utc)
        access_token = token_result.get("access_token")
        if not access_token:
            raise ValueError("token result carries no access_token")
        claims = token_result.get("id_token_claims") or {}
        lifetime = self.settings.session_max_age_seconds
        expires_in = token_result.get("expires_in")
        if expires_in:
            lifetime = min(lifetime, int(expires_in))
        payload = {
            "sub": claims.get("oid") or claims.get("sub") or "",
            "name": claims.get("name"),
            "email": claims.get("email") or claims.get("preferred_username"),
            "at": self.encryption.encrypt(access_token),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM), lifetime

    def read(self, cookie_value: Optional[str]) -> Optional[Session]:
        if not cookie_value:
            return None
        try:
            payload = jwt.decode(cookie_value, self._secret, algorithms=[ALGORITHM])
        except JWTError as e:
            logger.info("Rejected session cookie: %s", e.__class__.__name__)
            return None
        encrypted = payload.get("at")
        if not encrypted:
            return None
        try:
            access_token = self.encryption.decrypt(encrypted)
        except ValueError:
            logger.info("Rejected session cookie: undecryptable token")
            return None
        return Session(
            authenticated=True,
            access_token=access_token,
            user_name=payload.get("name"),
            user_email=payload.get("email"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


@lru_cache(maxsize=1)
def get_session_service() -> SessionService:
    return SessionService(get_settings(), get_encryption_service())
