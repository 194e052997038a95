"""
Owner routing endpoint.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.aggregation.thresholds import is_displayable
from src.api.dependencies import get_owner_router
from src.api.models import OwnerRoutingRequest, OwnerRoutingResponse, OwnerSuggestionModel
from src.routing.owner_router import OwnerRouter

router = APIRouter()


@router.post(
    "/route/owners",
    response_model=OwnerRoutingResponse,
    summary="Suggest owners for feedback via product areas",
)
async def route_owners(
    body: OwnerRoutingRequest,
    owner_router: OwnerRouter = Depends(get_owner_router),
) -> OwnerRoutingResponse:
    """One suggestion per feedback item, in request order."""
    try:
        feedback = [p.to_record() for p in body.feedback]
        areas = [p.to_record() for p in body.product_areas]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    suggestions = []
    async for batch in owner_router.stream_owner_suggestions(feedback, areas):
        suggestions.extend(batch)

    return OwnerRoutingResponse(
        suggestions=[
            OwnerSuggestionModel.from_suggestion(s, displayable=s.matched and is_displayable(s.confidence))
            for s in suggestions
        ]
    )
