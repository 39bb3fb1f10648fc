"""Liveness endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request


router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": request.app.state.settings.environment,
    }
