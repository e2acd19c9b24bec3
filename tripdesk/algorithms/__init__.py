"""
Scoring Algorithms Module
Recommendation scoring for candidate listings
"""

from .recommendation_scorer import (
    calculate_confidence,
    recommend,
    score_listing,
    RecommendationScore,
    ScoredListing
)

__all__ = [
    "calculate_confidence",
    "recommend",
    "score_listing",
    "RecommendationScore",
    "ScoredListing"
]
