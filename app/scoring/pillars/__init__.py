"""
scoring/pillars/ — Pillar scorers

Modules:
    base.py                 - BasePillar contract, shared validation/aggregation
    asset_quality.py        - Pipeline breadth, maturity, differentiation
    market_outlook.py       - Market size, growth, competition, reimbursement
    capital_intensity.py    - Development cost, capital efficiency, regulatory cost
    strategic_fit.py        - Therapeutic alignment, capabilities, synergies
    financial_readiness.py  - Cash, burn, runway, financing timing
    regulatory_risk.py      - Pathway, trial complexity, precedent, approval probability
"""

from typing import List, Optional

from app.scoring.confidence_calculator import ConfidenceCalculator
from app.scoring.pillars.asset_quality import AssetQualityPillar
from app.scoring.pillars.base import BasePillar, ScoringPillar
from app.scoring.pillars.capital_intensity import CapitalIntensityPillar
from app.scoring.pillars.financial_readiness import FinancialReadinessPillar
from app.scoring.pillars.market_outlook import MarketOutlookPillar
from app.scoring.pillars.regulatory_risk import RegulatoryRiskPillar
from app.scoring.pillars.strategic_fit import StrategicFitPillar
from app.scoring.validation_service import ValidationService

# Registration order: AQ, MO, CI, SF, FR, RR
PILLAR_CLASSES = [
    AssetQualityPillar,
    MarketOutlookPillar,
    CapitalIntensityPillar,
    StrategicFitPillar,
    FinancialReadinessPillar,
    RegulatoryRiskPillar,
]


def default_pillars(
    validation_service: Optional[ValidationService] = None,
    confidence_calculator: Optional[ConfidenceCalculator] = None,
) -> List[BasePillar]:
    """One instance of every pillar, configured from settings."""
    return [
        cls(validation_service=validation_service, confidence_calculator=confidence_calculator)
        for cls in PILLAR_CLASSES
    ]


__all__ = [
    "AssetQualityPillar",
    "BasePillar",
    "CapitalIntensityPillar",
    "FinancialReadinessPillar",
    "MarketOutlookPillar",
    "PILLAR_CLASSES",
    "RegulatoryRiskPillar",
    "ScoringPillar",
    "StrategicFitPillar",
    "default_pillars",
]
