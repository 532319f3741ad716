"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from steadythere_service.auth.guard import RedirectRequired, redirect_required_handler
from steadythere_service.db.engine import close_db, init_db
from steadythere_service.rest.routes.app_shell import router as app_shell_router
from steadythere_service.rest.routes.auth import router as auth_router
from steadythere_service.rest.routes.health import router as health_router
from steadythere_service.rest.routes.organizations import router as organizations_router
from steadythere_service.rest.routes.profile import router as profile_router
from steadythere_service.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db(create_tables=settings.database_create_tables)
    yield
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="SteadyThere API",
        description="Session, organization membership and route guarding service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RedirectRequired, redirect_required_handler)

    # Public routes
    app.include_router(health_router, tags=["health"])

    # API routes (signup/login/refresh are public; the rest are guarded inside the routers)
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(organizations_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")

    # Page routes
    app.include_router(app_shell_router)

    return app
