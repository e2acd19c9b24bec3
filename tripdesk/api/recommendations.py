# api/recommendations.py
"""
AI Recommendations API
Scores catalog candidates for a user and returns the best few.
"""

import time

from fastapi import APIRouter, Depends
from loguru import logger

from ..algorithms import calculate_confidence, recommend
from ..config import Settings
from ..interfaces import ListingQuery, ListingRepository
from ..schemas import Recommendation, RecommendationRequest
from .dependencies import enforce_rate_limit, get_listing_repository, get_settings


router = APIRouter(
    prefix="/api/ai/recommendations",
    tags=["AI Recommendations"],
    dependencies=[Depends(enforce_rate_limit)]
)


@router.post("")
def get_recommendations(
    request: RecommendationRequest,
    repository: ListingRepository = Depends(get_listing_repository),
    settings: Settings = Depends(get_settings)
):
    """
    Recommend listings in a category.

    Candidates are listings inside the requested price range with at least
    one seat, room or spot left.
    """
    context = request.context
    candidates = repository.search(
        request.category,
        ListingQuery(
            min_price=context.min_price if context else None,
            max_price=context.max_price if context else None,
            min_availability=1,
            limit=settings.RECOMMENDATION_CANDIDATES
        )
    )

    ranked = recommend(candidates, context, limit=settings.MAX_RECOMMENDATIONS)

    now_ms = int(time.time() * 1000)
    recommendations = [
        Recommendation(
            id=f"REC_{now_ms}_{scored.item.id}",
            user_id=request.user_id,
            item_id=scored.item.id,
            category=request.category,
            score=scored.score.total_score,
            reason=" • ".join(scored.score.reasons),
            reasons=scored.score.reasons,
            confidence=calculate_confidence(scored.score.total_score, len(scored.score.reasons)),
            item=scored.item.to_record()
        ).model_dump(by_alias=True, mode="json")
        for scored in ranked
    ]

    logger.info(
        f"Recommendations for {request.user_id} in {request.category.value}: "
        f"{len(recommendations)} of {len(candidates)} candidates"
    )

    return {
        "success": True,
        "data": recommendations,
        "count": len(recommendations),
        "message": "Recommendations generated successfully"
    }
