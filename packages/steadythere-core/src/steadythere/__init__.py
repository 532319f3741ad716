"""SteadyThere - session, organization membership and route guarding."""

__all__ = ["AuthConfig", "AuthContext", "AuthState", "RouteGuard"]
__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy imports keep ``import steadythere`` free of structlog/pydantic setup."""
    if name == "AuthConfig":
        from steadythere.config import AuthConfig

        return AuthConfig
    if name in ("AuthContext", "AuthState"):
        from steadythere import context

        return getattr(context, name)
    if name == "RouteGuard":
        from steadythere.guard import RouteGuard

        return RouteGuard
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
