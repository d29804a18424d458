"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe — always returns 200 if the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(req: Request) -> dict[str, str]:
    """Readiness probe: 503 until the lifespan has wired the service."""
    if getattr(req.app.state, "service", None) is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return {"status": "ready"}
