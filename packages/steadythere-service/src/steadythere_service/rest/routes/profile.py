"""Profile endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from steadythere.context import AuthContext
from steadythere_service.auth.guard import ProtectedRoute
from steadythere_service.db.deps import ProfilesRepoDep, SessionDep
from steadythere_service.rest.schemas import ProfileSchema, ProfileUpdateRequest, profile_schema

router = APIRouter(prefix="/profile", tags=["profile"])

signed_in = ProtectedRoute(require_org=False, redirect=False)


@router.get("", response_model=ProfileSchema)
async def get_profile(ctx: AuthContext = Depends(signed_in)) -> ProfileSchema:
    if ctx.profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile_schema(ctx.profile)


@router.patch("", response_model=ProfileSchema)
async def update_profile(
    request: ProfileUpdateRequest,
    repo: ProfilesRepoDep,
    session: SessionDep,
    ctx: AuthContext = Depends(signed_in),
) -> ProfileSchema:
    fields = request.model_dump(exclude_unset=True)
    updated = await repo.update_profile(UUID(ctx.user.id), **fields)
    if updated is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    await session.commit()
    await ctx.refresh_profile()
    return profile_schema(ctx.profile)
