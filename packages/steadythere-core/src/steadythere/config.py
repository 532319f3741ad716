"""Configuration for the session and organization context."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class DefaultOrgPolicy(str, Enum):
    """How the current organization is picked when no saved choice applies."""
    LOADER_ORDER = "loader_order"                # first membership as returned by the data source
    EARLIEST_MEMBERSHIP = "earliest_membership"  # oldest membership by created_at


class AuthConfig(BaseModel):
    """Top-level configuration for an AuthContext and its route guard."""
    selection_key: str = Field(
        default="steady_current_org", description="Slot key holding the selected organization id"
    )
    token_key: str = Field(
        default="steady_access_token", description="Slot key holding the persisted access token"
    )
    login_path: str = "/login"
    onboarding_path: str = "/onboarding"
    fetch_timeout_seconds: float | None = Field(
        default=None, gt=0, description="Per-fetch timeout for profile/membership loads"
    )
    default_org_policy: DefaultOrgPolicy = DefaultOrgPolicy.LOADER_ORDER
