"""
Insights endpoint: triage progress, linked ARR and top ideas.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.aggregation.engine import insights
from src.api.dependencies import get_repository
from src.storage.repository import TriageRepository

router = APIRouter()


@router.get("/insights", summary="Pipeline overview")
async def get_insights(
    top: int = Query(default=10, ge=1, le=100, description="Number of top ideas by ARR"),
    repository: TriageRepository = Depends(get_repository),
) -> dict[str, Any]:
    feedback = await repository.list_feedback()
    ideas = await repository.list_ideas()
    links = await repository.list_links()
    return insights(feedback, ideas, links, top_limit=top).to_dict()
