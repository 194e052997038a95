"""
Matching endpoints: evidence search, idea suggestions and summaries.

Thin wrappers over MatchingService. Nothing is persisted here; the client
decides which matches to accept.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_matching_service
from src.api.models import (
    EvidenceRequest,
    IdeaSuggestionRequest,
    MatchResponse,
    MatchResponseItem,
    SuggestedNewIdeaModel,
    SummarizeRequest,
    SummarizeResponse,
)
from src.matching.service import MatchingService, MatchOptions

router = APIRouter()


def _records(payloads):
    try:
        return [p.to_record() for p in payloads]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.post(
    "/match/evidence",
    response_model=MatchResponse,
    summary="Find feedback that supports an idea",
)
async def find_evidence(
    body: EvidenceRequest,
    service: MatchingService = Depends(get_matching_service),
) -> MatchResponse:
    result = await service.find_evidence_for_idea(
        body.title,
        body.description,
        _records(body.candidates),
        MatchOptions(exclude_ids=set(body.exclude_ids), limit=body.limit),
    )
    return MatchResponse(
        status=result.status,
        strategy=result.strategy,
        matches=[MatchResponseItem.from_candidate(m) for m in result.matches],
    )


@router.post(
    "/match/ideas",
    response_model=MatchResponse,
    summary="Suggest ideas for a feedback item",
)
async def suggest_ideas(
    body: IdeaSuggestionRequest,
    service: MatchingService = Depends(get_matching_service),
) -> MatchResponse:
    result = await service.suggest_matching_ideas(
        body.description,
        _records(body.ideas),
        MatchOptions(exclude_ids=set(body.exclude_ids), limit=body.limit),
    )
    return MatchResponse(
        status=result.status,
        strategy=result.strategy,
        matches=[MatchResponseItem.from_candidate(m) for m in result.matches],
        suggested_new_idea=(
            SuggestedNewIdeaModel.from_hint(result.suggested_new_idea)
            if result.suggested_new_idea
            else None
        ),
    )


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    summary="Summarize key themes in linked feedback",
)
async def summarize(
    body: SummarizeRequest,
    service: MatchingService = Depends(get_matching_service),
) -> SummarizeResponse:
    items = _records(body.items)
    if not items:
        return SummarizeResponse(status="empty")
    summary = await service.summarize(items, title=body.title)
    if summary is None:
        return SummarizeResponse(status="ai_unavailable")
    return SummarizeResponse(summary=summary, status="ok")
