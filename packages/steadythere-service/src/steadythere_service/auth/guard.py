"""Route protection for the HTTP service."""

from fastapi import Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from steadythere.context import AuthContext
from steadythere.guard import GuardOutcome, RouteGuard
from steadythere.permissions import Permission, has_all_permissions
from steadythere_service.auth.deps import AuthContextDep, auth_config

RETRY_AFTER_SECONDS = "1"


class RedirectRequired(Exception):
    """Raised from a dependency to answer the request with a redirect."""

    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


async def redirect_required_handler(request: Request, exc: RedirectRequired) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=307)


def request_location(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class ProtectedRoute:
    """Dependency that runs the route guard and returns the request's AuthContext.

    With ``redirect=True`` (page routes) guard redirects become 307s via
    RedirectRequired. With ``redirect=False`` (API routes) they become 401
    for a missing session and 403 for a missing organization. A context
    that is still loading yields 503 with ``Retry-After`` either way.
    """

    def __init__(self, require_org: bool = True, redirect: bool = True) -> None:
        self.require_org = require_org
        self.redirect = redirect
        self._guard = RouteGuard(auth_config())

    async def __call__(self, request: Request, ctx: AuthContextDep) -> AuthContext:
        decision = self._guard.evaluate(ctx.state, request_location(request), self.require_org)
        if decision.outcome is GuardOutcome.RENDER:
            return ctx
        if decision.outcome is GuardOutcome.LOADING:
            raise HTTPException(
                status_code=503,
                detail="Session is still loading",
                headers={"Retry-After": RETRY_AFTER_SECONDS},
            )
        if self.redirect:
            raise RedirectRequired(decision.redirect_url)
        if decision.outcome is GuardOutcome.REDIRECT_LOGIN:
            raise HTTPException(status_code=401, detail="Authentication required")
        raise HTTPException(status_code=403, detail="Organization membership required")


def require_permission(*permissions: Permission, redirect: bool = False):
    """Dependency factory that enforces permissions in the current organization."""

    async def _check(
        ctx: AuthContext = Depends(ProtectedRoute(require_org=True, redirect=redirect)),
    ) -> AuthContext:
        member = ctx.current_org_member
        role = member.role if member else None
        if not has_all_permissions(role, permissions):
            raise HTTPException(
                status_code=403,
                detail=f"Role '{role.value if role else None}' lacks: {[p.value for p in permissions]}",
            )
        return ctx

    return Depends(_check)
