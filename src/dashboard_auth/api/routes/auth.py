"""Authentication Routes

Purpose: Thin HTTP surface over the authentication facade

Key Endpoints:
- GET /api/v1/auth/providers: Public OAuth provider list
- POST /api/v1/auth/login: Credentials sign-in (form post)
- POST /api/v1/auth/signin/{provider_id}: Start OAuth sign-in
- GET /api/v1/auth/callback/{provider_id}: OAuth callback
- POST /api/v1/auth/signup: Create account and sign in
- GET /api/v1/auth/session: Current session from the session cookie
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from dashboard_auth.config.settings import get_settings
from dashboard_auth.core.auth import Redirect, get_auth_facade, get_provider_registry
from dashboard_auth.core.auth.facade import INVALID_CREDENTIALS_MESSAGE, AuthenticationFacade
from dashboard_auth.core.auth.registry import OAuthProviderRegistry
from dashboard_auth.domain.models import (
    AuthMessageResponse,
    ProviderResponse,
    SessionResponse,
    SignupState,
)

router = APIRouter(prefix="/api/v1/auth", tags=["authentication"])
logger = logging.getLogger(__name__)

NOT_SIGNED_IN_MESSAGE = "Not signed in."


def redirect_response(redirect: Redirect) -> RedirectResponse:
    """303 to the redirect target, setting the session cookie when one was issued"""
    response = RedirectResponse(redirect.location, status_code=status.HTTP_303_SEE_OTHER)
    if redirect.session_token:
        settings = get_settings()
        response.set_cookie(
            key=settings.session_cookie_name,
            value=redirect.session_token,
            max_age=settings.session_ttl_seconds,
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
            path="/",
        )
    return response


@router.get("/providers", response_model=List[ProviderResponse])
async def list_providers(registry: OAuthProviderRegistry = Depends(get_provider_registry)):
    """Public OAuth providers, in display order (credentials excluded)"""
    return [ProviderResponse(id=p.id, name=p.display_name) for p in registry.list_providers()]


@router.post(
    "/login",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={401: {"model": AuthMessageResponse}, 503: {"model": AuthMessageResponse}},
)
async def login(
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    callback_url: Optional[str] = Form(None, alias="callbackUrl"),
    facade: AuthenticationFacade = Depends(get_auth_facade),
):
    """Credentials sign-in.

    Redirects to ``callbackUrl`` (or ``/dashboard``) with the session cookie.
    Otherwise answers with the message to show under the form: 401 for bad
    credentials, 503 when a backend (datastore, session store) failed.
    """
    form = {"email": email, "password": password, "callbackUrl": callback_url}
    try:
        state = await facade.submit_credentials(None, form)
    except Redirect as redirect:
        return redirect_response(redirect)

    if state.message == INVALID_CREDENTIALS_MESSAGE:
        status_code = status.HTTP_401_UNAUTHORIZED
    else:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(
        status_code=status_code,
        content=AuthMessageResponse(message=state.message).model_dump(),
    )


@router.post(
    "/signin/{provider_id}",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={400: {"model": AuthMessageResponse}},
)
async def signin_oauth(
    provider_id: str,
    callback_url: Optional[str] = Form(None, alias="callbackUrl"),
    facade: AuthenticationFacade = Depends(get_auth_facade),
):
    """Start OAuth sign-in; redirects to the provider's consent page"""
    try:
        message = await facade.submit_oauth(provider_id, callback_url)
    except Redirect as redirect:
        return redirect_response(redirect)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=AuthMessageResponse(message=message).model_dump(),
    )


@router.get(
    "/callback/{provider_id}",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={400: {"model": AuthMessageResponse}},
)
async def oauth_callback(
    provider_id: str,
    code: str = Query(..., description="Authorization code from provider"),
    state: str = Query(..., description="CSRF protection state"),
    facade: AuthenticationFacade = Depends(get_auth_facade),
):
    """Finish OAuth sign-in; redirects to the remembered target with the session cookie"""
    try:
        message = await facade.complete_oauth(provider_id, code, state)
    except Redirect as redirect:
        return redirect_response(redirect)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=AuthMessageResponse(message=message).model_dump(),
    )


@router.post(
    "/signup",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={400: {"model": SignupState}},
)
async def signup(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    confirm_password: Optional[str] = Form(None, alias="confirmPassword"),
    facade: AuthenticationFacade = Depends(get_auth_facade),
):
    """Create an account and sign in"""
    form = {
        key: value
        for key, value in {
            "name": name,
            "email": email,
            "password": password,
            "confirmPassword": confirm_password,
        }.items()
        if value is not None
    }
    try:
        state = await facade.signup(None, form)
    except Redirect as redirect:
        return redirect_response(redirect)

    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=state.model_dump())


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"model": AuthMessageResponse}},
)
async def current_session(
    request: Request,
    facade: AuthenticationFacade = Depends(get_auth_facade),
):
    """Session behind the session cookie; 401 when signed out or expired"""
    token = request.cookies.get(get_settings().session_cookie_name)
    session = await facade.current_session(token)
    if session is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=AuthMessageResponse(message=NOT_SIGNED_IN_MESSAGE).model_dump(),
        )

    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        provider=session.provider,
        expires_at=session.expires_at,
    )
