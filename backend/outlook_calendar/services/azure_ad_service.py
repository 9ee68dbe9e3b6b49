"""Azure AD sign-in via MSAL.

MSAL drives the authorization-code flow (with PKCE); this service only keeps
the pending flow between the redirect and the callback and tracks outcomes.
"""
import logging
import time
from typing import Dict, Any, Optional
from urllib.parse import urlencode

import msal
from prometheus_client import Counter

from ..config import Settings
from ..errors import OAuthError
from .state_store import MemoryStateStore, RedisStateStore, StateStore

logger = logging.getLogger(__name__)

SIGNIN_COUNT = Counter("outlook_calendar_signin_total", "Sign-in attempts", ["outcome"])

FLOW_TTL_SECONDS = 600
FLOW_MAX_ENTRIES = 50


def build_state_store(settings: Settings) -> StateStore:
    if settings.oauth_state_backend == "redis":
        try:
            import redis
            client = redis.from_url(settings.redis_url)
            return RedisStateStore(client, FLOW_TTL_SECONDS, FLOW_MAX_ENTRIES)
        except Exception:
            logger.warning("Redis state store unavailable, falling back to memory", exc_info=True)
    return MemoryStateStore(FLOW_TTL_SECONDS, FLOW_MAX_ENTRIES)


class AzureADAuthService:
    def __init__(self, settings: Settings, state_store: Optional[StateStore] = None):
        self.settings = settings
        self.state_store = state_store or build_state_store(settings)

    @property
    def backend_name(self) -> str:
        return "redis" if isinstance(self.state_store, RedisStateStore) else "memory"

    def _msal_app(self) -> msal.ConfidentialClientApplication:
        if not self.settings.azure_configured:
            raise OAuthError("OAUTH_CONFIG_MISSING", "Azure AD credentials not configured")
        return msal.ConfidentialClientApplication(
            self.settings.azure_client_id,
            client_credential=self.settings.azure_client_secret,
            authority=self.settings.authority,
        )

    def _now(self) -> float:
        if isinstance(self.state_store, MemoryStateStore):
            return self.state_store.time_provider()
        return time.time()

    def start_sign_in(self, redirect_uri: str, callback_url: Optional[str] = None) -> Dict[str, str]:
        """Create a new flow. Returns the Azure AD authorization URL and its state."""
        app = self._msal_app()
        flow = app.initiate_auth_code_flow(
            scopes=self.settings.azure_scopes,
            redirect_uri=redirect_uri,
            prompt="select_account",
        )
        if "error" in flow:
            raise OAuthError("OAUTH_FLOW_FAILED", flow.get("error_description") or flow["error"])
        flow["callback_url"] = callback_url
        self.state_store.put(flow["state"], flow, self._now())
        return {"authorization_url": flow["auth_uri"], "state": flow["state"]}

    def complete_sign_in(self, auth_response: Dict[str, str]) -> Dict[str, Any]:
        """Redeem the callback parameters. Returns the MSAL token result plus ``callback_url``."""
        state = auth_response.get("state")
        flow = self.state_store.pop(state) if state else None
        if not flow:
            SIGNIN_COUNT.labels(outcome="invalid_state").inc()
            raise OAuthError("OAUTH_STATE_INVALID", "State not found or expired")
        callback_url = flow.pop("callback_url", None)
        if "error" in auth_response:
            SIGNIN_COUNT.labels(outcome="denied").inc()
            raise OAuthError(
                "OAUTH_CODE_INVALID",
                auth_response.get("error_description") or auth_response["error"],
            )
        app = self._msal_app()
        try:
            result = app.acquire_token_by_auth_code_flow(flow, auth_response)
        except ValueError as e:
            SIGNIN_COUNT.labels(outcome="error").inc()
            raise OAuthError("OAUTH_CODE_INVALID", f"Failed to exchange code: {e}")
        if "access_token" not in result:
            SIGNIN_COUNT.labels(outcome="error").inc()
            raise OAuthError(
                "OAUTH_CODE_INVALID",
                result.get("error_description") or result.get("error") or "no access token returned",
            )
        SIGNIN_COUNT.labels(outcome="success").inc()
        result["callback_url"] = callback_url
        return result

    def logout_url(self, post_logout_redirect: str) -> str:
        query = urlencode({"post_logout_redirect_uri": post_logout_redirect})
        return f"{self.settings.authority}/oauth2/v2.0/logout?{query}"
