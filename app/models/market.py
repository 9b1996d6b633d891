from datetime import date
from typing import List

from pydantic import Field

from app.models.base import FrozenModel
from app.models.company import CompanyData
from app.models.enumerations import (
    DevelopmentStage,
    FundingEnvironment,
    IPOActivity,
    RegulatoryClimate,
)


class BenchmarkData(FrozenModel):
    therapeutic_area: str
    stage: DevelopmentStage
    average_score: float = Field(..., ge=0, le=5)
    standard_deviation: float = Field(default=0.0, ge=0)
    sample_size: int = Field(default=0, ge=0)


class MarketConditions(FrozenModel):
    biotech_index: float = 1000.0
    ipo_activity: IPOActivity = IPOActivity.MODERATE
    funding_environment: FundingEnvironment = FundingEnvironment.MODERATE
    regulatory_climate: RegulatoryClimate = RegulatoryClimate.NEUTRAL


class IndustryMetrics(FrozenModel):
    average_valuation: float = 500.0   # $M
    median_timeline: int = 36          # months
    success_rate: float = 0.15
    average_runway: int = 18           # months


class MarketContext(FrozenModel):
    """
    Auxiliary input shared by every pillar in one evaluation.

    ``evaluation_date`` is the reference "today" for every date-based
    heuristic, so re-running an evaluation against the same context is
    reproducible.
    """

    benchmark_data: List[BenchmarkData] = Field(default_factory=list)
    market_conditions: MarketConditions = Field(default_factory=MarketConditions)
    comparable_companies: List[CompanyData] = Field(default_factory=list)
    industry_metrics: IndustryMetrics = Field(default_factory=IndustryMetrics)
    evaluation_date: date = Field(default_factory=date.today)

    @classmethod
    def default(cls, evaluation_date: date = None) -> "MarketContext":
        if evaluation_date is None:
            return cls()
        return cls(evaluation_date=evaluation_date)

    def benchmarks_for(self, therapeutic_areas: List[str], stage: DevelopmentStage) -> List[BenchmarkData]:
        """Benchmarks at ``stage`` whose area matches one of the company's areas."""
        areas = {a.lower() for a in therapeutic_areas}
        return [
            b for b in self.benchmark_data
            if b.stage == stage and b.therapeutic_area.lower() in areas
        ]
