"""Fernet wrapper for the Graph access token carried inside the session cookie.

Without SESSION_ENCRYPTION_KEY a per-process key is generated, so cookies do not
survive a restart (users simply sign in again).
"""
from __future__ import annotations
import logging
from functools import lru_cache
from cryptography.fernet import Fernet, InvalidToken

from ..config import get_settings

logger = logging.getLogger(__name__)


class EncryptionService:
    def __init__(self, key: bytes | str | None = None):
        if not key:
            logger.warning("SESSION_ENCRYPTION_KEY not set; using an ephemeral key")
            key = Fernet.generate_key()
        if isinstance(key, str):
            key = key.encode()
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: str) -> str:
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken:
            raise ValueError("INVALID_ENCRYPTED_VALUE")

@lru_cache(maxsize=1)
def get_encryption_service() -> EncryptionService:
    return EncryptionService(get_settings().session_encryption_key)
