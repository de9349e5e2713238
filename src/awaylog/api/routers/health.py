"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from awaylog.api.dependencies import get_storage_backend
from awaylog.storage.base import StorageBackend

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(storage: StorageBackend = Depends(get_storage_backend)) -> dict:
    healthy = await storage.health_check()
    return {"status": "ok" if healthy else "degraded", "storage": healthy}
