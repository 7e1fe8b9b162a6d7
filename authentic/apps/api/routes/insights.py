"""Saved insights and milestone insights."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from authentic.apps.api.deps import get_current_user_id, get_registry
from authentic.apps.api.registry import SessionRegistry
from authentic.libs.insights.milestones import MILESTONE_EVERY
from authentic.libs.schemas import AIInsight, InsightSource, SavedInsight
from authentic.libs.store import fetch_entries

router = APIRouter(prefix="/insights", tags=["insights"])


class SavedInsightIn(BaseModel):
    message: str
    source: InsightSource = "ai"
    entry_id: Optional[str] = None
    entry_date: Optional[str] = None
    tags: Optional[list[str]] = None


class SavedInsightPatch(BaseModel):
    message: Optional[str] = None
    source: Optional[InsightSource] = None
    entry_id: Optional[str] = None
    entry_date: Optional[str] = None
    tags: Optional[list[str]] = None


class BookmarkInsightRequest(BaseModel):
    is_bookmarked: bool = True


class MilestoneCheckOut(BaseModel):
    entry_count: int
    insight: Optional[AIInsight] = None


@router.get("/saved", response_model=list[SavedInsight])
async def list_saved(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> list[SavedInsight]:
    return await registry.insights(user_id).list()


@router.post("/saved", response_model=SavedInsight, status_code=status.HTTP_201_CREATED)
async def create_saved(
    body: SavedInsightIn,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SavedInsight:
    return await registry.insights(user_id).save(SavedInsight(**body.model_dump()))


@router.patch("/saved/{insight_id}", response_model=SavedInsight)
async def update_saved(
    insight_id: str,
    body: SavedInsightPatch,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> SavedInsight:
    updated = await registry.insights(user_id).update(insight_id, body.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="insight not found")
    return updated


@router.delete("/saved/{insight_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved(
    insight_id: str,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    if not await registry.insights(user_id).delete(insight_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="insight not found")


@router.get("/milestones", response_model=list[AIInsight])
async def list_milestones(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> list[AIInsight]:
    return await registry.milestones(user_id).list_insights()


@router.post("/milestones/generate", response_model=AIInsight, status_code=status.HTTP_201_CREATED)
async def generate_milestone(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> AIInsight:
    entries = await fetch_entries(registry.store, user_id)
    if len(entries) < MILESTONE_EVERY:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"at least {MILESTONE_EVERY} entries are needed",
        )
    insight = await registry.milestones(user_id).generate_latest(entries)
    if insight is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="insight generation failed")
    return insight


@router.post("/milestones/check", response_model=MilestoneCheckOut)
async def check_milestone(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> MilestoneCheckOut:
    """Called after an entry is saved; generates an insight when the entry count just hit a multiple of ten."""

    entries = await fetch_entries(registry.store, user_id)
    insight = await registry.milestones(user_id).maybe_generate(entries)
    return MilestoneCheckOut(entry_count=len(entries), insight=insight)


@router.post("/milestones/{insight_id}/bookmark", response_model=BookmarkInsightRequest)
async def bookmark_milestone(
    insight_id: str,
    body: BookmarkInsightRequest,
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> BookmarkInsightRequest:
    if not await registry.milestones(user_id).bookmark_insight(insight_id, body.is_bookmarked):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="insight not found")
    return body


__all__ = ["router"]
