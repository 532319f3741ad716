"""Route guard: render, wait, or redirect based on auth and membership state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from steadythere.config import AuthConfig
from steadythere.context import AuthState


class GuardOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_ONBOARDING = "redirect_onboarding"
    RENDER = "render"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    location: str | None = None  # redirect target path
    return_to: str | None = None  # originally requested location, for post-login return

    @property
    def is_redirect(self) -> bool:
        return self.location is not None

    @property
    def redirect_url(self) -> str | None:
        if self.location is None:
            return None
        if self.return_to:
            return f"{self.location}?{urlencode({'next': self.return_to})}"
        return self.location


class RouteGuard:
    """Decides what a protected route shows for a given AuthState.

    Checks run in a fixed order and the first match wins. The loading
    check must come first: before it, a session that is still resolving
    looks signed out, and memberships that have not arrived look empty.
    """

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()

    def evaluate(self, state: AuthState, location: str, require_org: bool = True) -> GuardDecision:
        if state.is_loading or not state.orgs_loaded:
            return GuardDecision(GuardOutcome.LOADING)
        if state.user is None:
            return GuardDecision(
                GuardOutcome.REDIRECT_LOGIN,
                location=self._config.login_path,
                return_to=location,
            )
        if require_org and not state.organizations:
            return GuardDecision(
                GuardOutcome.REDIRECT_ONBOARDING, location=self._config.onboarding_path
            )
        return GuardDecision(GuardOutcome.RENDER)
