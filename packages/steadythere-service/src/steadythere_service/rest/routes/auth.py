"""Auth endpoints: signup, login, refresh, logout, /me."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, field_validator

from steadythere.context import AuthContext
from steadythere.models import Session
from steadythere.session.base import AuthError, AuthResult
from steadythere_service.auth.deps import AuthBackendDep, AuthContextDep, SessionStoreDep
from steadythere_service.auth.guard import ProtectedRoute
from steadythere_service.db.deps import SessionDep
from steadythere_service.rest.schemas import MeResponse, me_response
from steadythere_service.settings import settings

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str | None = None

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid e-mail address")
        return v

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user_id: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def set_access_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.access_cookie_name,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def _token_response(response: Response, session: Session) -> TokenResponse:
    set_access_cookie(response, session.access_token)
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user_id=session.user.id,
    )


def _raise_for(result: AuthResult) -> Session:
    if result.error is not None:
        raise HTTPException(status_code=result.error.status, detail=result.error.message)
    if result.session is None:
        raise HTTPException(status_code=401, detail="No session issued")
    return result.session


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(
    request: SignupRequest, response: Response, store: SessionStoreDep, session: SessionDep
) -> TokenResponse:
    """Create a user and profile, returning tokens. The user starts with no organizations."""
    issued = _raise_for(await store.sign_up(request.email, request.password, request.name))
    await session.commit()
    return _token_response(response, issued)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest, response: Response, store: SessionStoreDep, session: SessionDep
) -> TokenResponse:
    issued = _raise_for(await store.sign_in(request.email, request.password))
    # Sign-in may have created a missing profile.
    await session.commit()
    return _token_response(response, issued)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshRequest, response: Response, backend: AuthBackendDep
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    try:
        issued = await backend.refresh_session(request.refresh_token)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status, detail=exc.message) from exc
    return _token_response(response, issued)


@router.post("/logout", status_code=204)
async def logout(ctx: AuthContextDep) -> Response:
    """Sign out and forget the current-organization selection."""
    await ctx.sign_out()
    response = Response(status_code=204)
    response.delete_cookie(settings.access_cookie_name)
    response.delete_cookie(settings.org_cookie_name)
    return response


@router.get("/me", response_model=MeResponse)
async def me(
    ctx: AuthContext = Depends(ProtectedRoute(require_org=False, redirect=False)),
) -> MeResponse:
    """The caller's user, profile, memberships and current organization."""
    return me_response(ctx.state)
