"""Health check endpoints."""

from fastapi import APIRouter, HTTPException

from steadythere_service.db.engine import get_session_factory

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> dict[str, str]:
    try:
        get_session_factory()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail="Database not initialized") from exc
    return {"status": "ready"}
