"""
Health Check Router - BD Scoring Platform
app/routers/health.py

Liveness plus a pillar registry check. The scoring core has no external
dependencies, so health only reports whether every pillar is registered.
"""
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.config import settings
from app.core.dependencies import get_scoring_engine
from app.models.enumerations import Pillar
from app.scoring.engine import ScoringEngine

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/scoring", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str
    pillars: Dict[str, str]


@router.get("/health", response_model=HealthResponse, summary="Service health")
def health_check(engine: ScoringEngine = Depends(get_scoring_engine)):
    pillars = {p.value: ("registered" if p in engine.pillars else "missing") for p in Pillar}
    healthy = all(state == "registered" for state in pillars.values())
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
        pillars=pillars,
    )
