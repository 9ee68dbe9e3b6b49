from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from ..config import get_settings
from ..domain.session import Session
from ..services.azure_ad_service import AzureADAuthService
from ..services.session_service import SessionService, get_session_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@lru_cache(maxsize=1)
def get_auth_service() -> AzureADAuthService:
    return AzureADAuthService(get_settings())


def get_session(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> Optional[Session]:
    """Session resolver: the signed-in session from the cookie, or None."""
    return sessions.read(request.cookies.get(sessions.cookie_name))


def _redirect_uri(request: Request) -> str:
    return get_settings().azure_redirect_uri or str(request.url_for("auth_callback"))


def _safe_callback(url: Optional[str]) -> Optional[str]:
    # Relative paths only; keeps the callback from becoming an open redirect.
    if url and url.startswith("/") and not url.startswith("//"):
        return url
    return None


@router.get("/signin")
def signin(
    request: Request,
    callback_url: Optional[str] = Query(default=None, alias="callbackUrl"),
    auth: AzureADAuthService = Depends(get_auth_service),
):
    started = auth.start_sign_in(_redirect_uri(request), callback_url=_safe_callback(callback_url))
    return RedirectResponse(started["authorization_url"])


@router.get("/callback/azure-ad", name="auth_callback")
def auth_callback(
    request: Request,
    auth: AzureADAuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
):
    result = auth.complete_sign_in(dict(request.query_params))
    cookie_value, max_age = sessions.issue(result)
    target = result.get("callback_url") or get_settings().post_login_redirect
    response = RedirectResponse(target, status_code=302)
    response.set_cookie(
        sessions.cookie_name,
        cookie_value,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=get_settings().session_cookie_secure,
    )
    return response


@router.get("/signout")
def signout(
    request: Request,
    auth: AzureADAuthService = Depends(get_auth_service),
    sessions: SessionService = Depends(get_session_service),
):
    post_logout = str(request.base_url)
    response = RedirectResponse(auth.logout_url(post_logout), status_code=302)
    response.delete_cookie(sessions.cookie_name)
    return response


@router.get("/session")
def current_session(session: Optional[Session] = Depends(get_session)):
    if session is None or not session.has_token:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "user": {"name": session.user_name, "email": session.user_email},
        "expires": session.expires_at.isoformat() if session.expires_at else None,
    }
