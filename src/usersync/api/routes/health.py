"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    loop = getattr(request.app.state, "consumer", None)
    consumer_state = "running" if loop is not None and loop.running else "stopped"
    return {"status": "ready", "consumer": consumer_state}
