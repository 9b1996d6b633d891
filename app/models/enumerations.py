from enum import Enum


class Pillar(str, Enum):
    ASSET_QUALITY = "asset_quality"
    MARKET_OUTLOOK = "market_outlook"
    CAPITAL_INTENSITY = "capital_intensity"
    STRATEGIC_FIT = "strategic_fit"
    FINANCIAL_READINESS = "financial_readiness"
    REGULATORY_RISK = "regulatory_risk"


class DevelopmentStage(str, Enum):
    PRECLINICAL = "preclinical"
    PHASE_1 = "phase1"
    PHASE_2 = "phase2"
    PHASE_3 = "phase3"
    APPROVED = "approved"
    MARKETED = "marketed"


class MilestoneStatus(str, Enum):
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class FundingType(str, Enum):
    SEED = "seed"
    SERIES_A = "series_a"
    SERIES_B = "series_b"
    SERIES_C = "series_c"
    IPO = "ipo"
    DEBT = "debt"


class ReimbursementEnvironment(str, Enum):
    FAVORABLE = "favorable"
    MODERATE = "moderate"
    CHALLENGING = "challenging"
    UNKNOWN = "unknown"


class ApprovalType(str, Enum):
    FULL = "full"
    CONDITIONAL = "conditional"
    BREAKTHROUGH = "breakthrough"
    FAST_TRACK = "fast_track"
    ORPHAN = "orphan"


class TrialStatus(str, Enum):
    PLANNED = "planned"
    RECRUITING = "recruiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class RegulatoryPathway(str, Enum):
    STANDARD = "standard"
    ACCELERATED = "accelerated"
    BREAKTHROUGH = "breakthrough"
    FAST_TRACK = "fast_track"
    ORPHAN = "orphan"


class IPOActivity(str, Enum):
    HOT = "hot"
    MODERATE = "moderate"
    COLD = "cold"


class FundingEnvironment(str, Enum):
    ABUNDANT = "abundant"
    MODERATE = "moderate"
    CONSTRAINED = "constrained"


class RegulatoryClimate(str, Enum):
    SUPPORTIVE = "supportive"
    NEUTRAL = "neutral"
    RESTRICTIVE = "restrictive"


class ValidationSeverity(str, Enum):
    CRITICAL = "critical"
    ERROR = "error"


class InvestmentRecommendation(str, Enum):
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    STRONG_SELL = "strong_sell"
