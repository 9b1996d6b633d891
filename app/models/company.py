import math
from datetime import date
from typing import Optional, List
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from app.models.base import FrozenModel
from app.models.enumerations import (
    ApprovalType,
    DevelopmentStage,
    FundingType,
    MilestoneStatus,
    RegulatoryPathway,
    ReimbursementEnvironment,
    RiskLevel,
    TrialStatus,
)


# =============================================================================
# BASIC INFO
# =============================================================================

class BasicInfo(FrozenModel):
    name: str = Field(..., description="Company name")
    ticker: Optional[str] = Field(default=None, max_length=10)
    sector: str = Field(default="Biotechnology")
    therapeutic_areas: List[str] = Field(default_factory=list)
    stage: DevelopmentStage
    description: Optional[str] = None


# =============================================================================
# PIPELINE
# =============================================================================

class ProgramRisk(FrozenModel):
    description: str
    probability: RiskLevel = RiskLevel.MEDIUM
    impact: RiskLevel = RiskLevel.MEDIUM
    mitigation: Optional[str] = None


class Milestone(FrozenModel):
    name: str
    expected_date: date
    status: MilestoneStatus = MilestoneStatus.UPCOMING


class Program(FrozenModel):
    name: str
    indication: str = ""
    stage: DevelopmentStage
    mechanism: str = ""
    differentiators: List[str] = Field(default_factory=list)
    risks: List[ProgramRisk] = Field(default_factory=list)
    timeline: List[Milestone] = Field(default_factory=list)


class Pipeline(FrozenModel):
    programs: List[Program] = Field(default_factory=list)

    @property
    def total_programs(self) -> int:
        return len(self.programs)

    @property
    def lead_program(self) -> Optional[Program]:
        """First listed program is treated as the lead asset."""
        return self.programs[0] if self.programs else None


# =============================================================================
# FINANCIALS
# =============================================================================

class FundingRound(FrozenModel):
    type: FundingType
    amount: float = Field(..., ge=0, description="Amount raised ($M)")
    date: date
    investors: List[str] = Field(default_factory=list)


class Financials(FrozenModel):
    """
    Cash figures are in $M, burn rate in $M per month.

    Runway (months) is derived from cash / burn when the producer does not
    supply it, the burn rate is positive and the ratio is finite.
    """

    cash_position: float
    burn_rate: float
    runway: Optional[int] = None
    last_funding: Optional[FundingRound] = None
    funding_history: List[FundingRound] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def derive_runway(cls, values):
        if not isinstance(values, dict) or values.get("runway") is not None:
            return values
        cash = values.get("cashPosition", values.get("cash_position"))
        burn = values.get("burnRate", values.get("burn_rate"))
        if isinstance(cash, (int, float)) and isinstance(burn, (int, float)) and burn > 0:
            months = cash / burn
            if math.isfinite(months):
                values = dict(values)
                values["runway"] = int(months)
        return values

    @property
    def latest_funding(self) -> Optional[FundingRound]:
        if self.last_funding is not None:
            return self.last_funding
        if not self.funding_history:
            return None
        return max(self.funding_history, key=lambda r: r.date)


# =============================================================================
# MARKET
# =============================================================================

class Competitor(FrozenModel):
    name: str
    stage: DevelopmentStage
    market_share: Optional[float] = Field(default=None, ge=0, le=1)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)


class MarketDynamics(FrozenModel):
    growth_rate: float = Field(default=0.0, description="Annual growth as a fraction (0.15 = 15%)")
    barriers: List[str] = Field(default_factory=list)
    drivers: List[str] = Field(default_factory=list)
    reimbursement: ReimbursementEnvironment = ReimbursementEnvironment.UNKNOWN


class Market(FrozenModel):
    addressable_market: float = Field(..., description="Addressable market ($B)")
    competitors: List[Competitor] = Field(default_factory=list)
    market_dynamics: MarketDynamics = Field(default_factory=MarketDynamics)


# =============================================================================
# REGULATORY
# =============================================================================

class Approval(FrozenModel):
    indication: str
    region: str
    date: date
    type: ApprovalType = ApprovalType.FULL


class ClinicalTrial(FrozenModel):
    name: str
    phase: DevelopmentStage
    indication: str = ""
    status: TrialStatus = TrialStatus.PLANNED
    start_date: Optional[date] = None
    expected_completion: Optional[date] = None
    patient_count: Optional[int] = None


class RegulatoryStrategy(FrozenModel):
    pathway: RegulatoryPathway = RegulatoryPathway.STANDARD
    timeline: int = Field(default=0, description="Months to approval")
    risks: List[str] = Field(default_factory=list)
    mitigations: List[str] = Field(default_factory=list)


class Regulatory(FrozenModel):
    approvals: List[Approval] = Field(default_factory=list)
    clinical_trials: List[ClinicalTrial] = Field(default_factory=list)
    regulatory_strategy: RegulatoryStrategy = Field(default_factory=RegulatoryStrategy)


# =============================================================================
# COMPANY SNAPSHOT
# =============================================================================

class CompanyData(FrozenModel):
    """Snapshot of one company, read-only for the duration of an evaluation."""

    id: UUID = Field(default_factory=uuid4)
    basic_info: BasicInfo
    pipeline: Pipeline = Field(default_factory=Pipeline)
    financials: Financials
    market: Market
    regulatory: Regulatory = Field(default_factory=Regulatory)
