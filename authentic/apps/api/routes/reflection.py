"""Guided reflection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from authentic.apps.api.deps import get_current_user_id, get_registry
from authentic.apps.api.registry import SessionRegistry
from authentic.libs.reflection import ReflectionState, get_theme, reflection_themes
from authentic.libs.reflection.orchestrator import SESSION_NOT_FOUND_ERROR
from authentic.libs.schemas import ReflectionSession, ReflectionTheme

router = APIRouter(prefix="/reflection", tags=["reflection"])


class StartSessionRequest(BaseModel):
    theme_id: str = Field(min_length=1)


class AnswerRequest(BaseModel):
    answer: str


@router.get("/themes", response_model=list[ReflectionTheme])
async def list_themes() -> list[ReflectionTheme]:
    return list(reflection_themes())


@router.post("/sessions", response_model=ReflectionState)
async def start_session(
    body: StartSessionRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ReflectionState:
    theme = get_theme(body.theme_id)
    if theme is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown theme")
    orchestrator = registry.reflection(user_id)
    await orchestrator.start(theme)
    return orchestrator.snapshot()


@router.post("/sessions/answer", response_model=ReflectionState)
async def answer_question(
    body: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ReflectionState:
    orchestrator = registry.reflection(user_id)
    await orchestrator.answer(body.answer)
    return orchestrator.snapshot()


@router.get("/sessions/current", response_model=ReflectionState)
async def current_session(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ReflectionState:
    return registry.reflection(user_id).snapshot()


@router.get("/sessions/history", response_model=list[ReflectionSession])
async def session_history(
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> list[ReflectionSession]:
    return await registry.sessions.list_recent(user_id, limit=limit)


@router.post("/sessions/{session_id}/load", response_model=ReflectionState)
async def load_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ReflectionState:
    orchestrator = registry.reflection(user_id)
    await orchestrator.load_saved_session(session_id)
    if orchestrator.error == SESSION_NOT_FOUND_ERROR:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SESSION_NOT_FOUND_ERROR)
    return orchestrator.snapshot()


__all__ = ["router"]
