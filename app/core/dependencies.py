"""
Dependencies - BD Scoring Platform
app/core/dependencies.py

FastAPI dependency injection for the scoring services.
"""

from functools import lru_cache

from app.scoring.engine import ScoringEngine
from app.scoring.weighting_engine import WeightingEngine


@lru_cache()
def get_scoring_engine() -> ScoringEngine:
    """Get cached ScoringEngine instance."""
    return ScoringEngine()


@lru_cache()
def get_weighting_engine() -> WeightingEngine:
    """Get cached WeightingEngine instance."""
    return get_scoring_engine().weighting_engine
