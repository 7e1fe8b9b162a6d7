from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request, status

from authentic.libs.llm_router import CompletionGateway
from authentic.libs.schemas.settings import AppSettings, get_settings
from authentic.libs.store import RowStore

from .registry import SessionRegistry


@lru_cache(maxsize=1)
def get_row_store() -> RowStore:
    from authentic.libs.store.supabase_store import SupabaseRowStore

    return SupabaseRowStore.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_gateway() -> CompletionGateway:
    return CompletionGateway.from_settings(get_settings())


def get_registry(
    request: Request,
    store: RowStore = Depends(get_row_store),
    gateway: CompletionGateway = Depends(get_gateway),
    settings: AppSettings = Depends(get_settings),
) -> SessionRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        registry = SessionRegistry(store, gateway, settings)
        request.app.state.registry = registry
    return registry


async def get_current_user_id(
    x_user_id: str | None = Header(default=None),
    settings: AppSettings = Depends(get_settings),
) -> str:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()

    if settings.demo_mode and settings.demo_user_id:
        return settings.demo_user_id

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")


__all__ = ["get_current_user_id", "get_gateway", "get_registry", "get_row_store"]
