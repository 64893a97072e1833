"""Tax recommendations.

AI-generated recommendations for a company's tax situation, with a
rule-based fallback when the model is unavailable.
"""

from .ai_recommendations import (
    AIRecommendationGenerator,
    build_prompt,
    fallback_recommendations,
    get_recommendation_generator,
    parse_recommendations,
    reset_recommendation_generator,
)

__all__ = [
    "AIRecommendationGenerator",
    "build_prompt",
    "fallback_recommendations",
    "get_recommendation_generator",
    "parse_recommendations",
    "reset_recommendation_generator",
]
