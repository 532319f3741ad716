"""Page routes of the application shell, protected by the route guard.

Each handler returns the view it would render; redirects and loading
responses come from the guard dependencies.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from steadythere.context import AuthContext
from steadythere.permissions import Permission
from steadythere_service.auth.guard import ProtectedRoute, RedirectRequired, require_permission
from steadythere_service.rest.schemas import ShellView, organization_schema, user_schema

router = APIRouter(tags=["app"])

HOME_PATH = "/app"


def _view(name: str, ctx: AuthContext) -> ShellView:
    member = ctx.current_org_member
    return ShellView(
        view=name,
        user=user_schema(ctx.user) if ctx.user else None,
        organization=organization_schema(ctx.current_org) if ctx.current_org else None,
        role=member.role.value if member else None,
    )


@router.get("/login", response_model=ShellView)
async def login_page(next_path: str | None = Query(default=None, alias="next")) -> ShellView:
    # Only same-site paths are honoured as return targets.
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return ShellView(view="login", next=next_path)
    return ShellView(view="login", next=HOME_PATH)


@router.get("/onboarding", response_model=ShellView)
async def onboarding_page(
    ctx: AuthContext = Depends(ProtectedRoute(require_org=False)),
) -> ShellView:
    if ctx.organizations:
        raise RedirectRequired(HOME_PATH)
    return _view("onboarding", ctx)


@router.get("/app", response_model=ShellView)
async def dashboard_page(ctx: AuthContext = Depends(ProtectedRoute())) -> ShellView:
    return _view("dashboard", ctx)


@router.get("/app/settings", response_model=ShellView)
async def settings_page(
    ctx: AuthContext = require_permission(Permission.ORG_EDIT, redirect=True),
) -> ShellView:
    return _view("settings", ctx)
