from __future__ import annotations

from fastapi import APIRouter, Depends

from authentic import __version__
from authentic.libs.schemas.settings import AppSettings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: AppSettings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "app": settings.app_name, "version": __version__}


__all__ = ["router"]
