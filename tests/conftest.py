# tests/conftest.py

"""
Pytest Fixtures - Shared company snapshots, market context and API client

Every fixture uses EVALUATION_DATE as "today" so date-based heuristics
(funding staleness, milestone years) are reproducible.
"""

import copy
from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.company import CompanyData
from app.models.market import MarketContext
from app.scoring.engine import ScoringEngine

EVALUATION_DATE = date(2024, 6, 1)


# =============================================================================
# COMPANY PAYLOADS (wire format, camelCase)
# =============================================================================

BASE_COMPANY = {
    "basicInfo": {
        "name": "Acme Therapeutics",
        "ticker": "ACME",
        "sector": "Biotechnology",
        "therapeuticAreas": ["Immunology"],
        "stage": "phase2",
        "description": "Clinical-stage immunology company",
    },
    "pipeline": {
        "programs": [
            {
                "name": "ACM-101",
                "indication": "Rheumatoid Arthritis",
                "stage": "phase2",
                "mechanism": "Oral JAK1 inhibitor",
                "differentiators": ["First-in-class selectivity", "Once-daily dosing"],
                "risks": [{"description": "Liver enzyme elevation", "probability": "low", "impact": "high"}],
                "timeline": [
                    {"name": "Phase 2 readout", "expectedDate": "2024-11-01", "status": "upcoming"},
                    {"name": "Phase 3 start", "expectedDate": "2025-06-01", "status": "upcoming"},
                ],
            },
            {
                "name": "ACM-202",
                "indication": "Psoriasis",
                "stage": "phase1",
                "mechanism": "Oral TYK2 inhibitor",
                "differentiators": ["Proprietary scaffold"],
                "risks": [{"description": "Dose-limiting toxicity"}],
                "timeline": [{"name": "Phase 1 completion", "expectedDate": "2025-02-01"}],
            },
        ],
    },
    "financials": {
        "cashPosition": 120.0,
        "burnRate": 4.0,
        "lastFunding": {
            "type": "series_b",
            "amount": 80.0,
            "date": "2024-01-15",
            "investors": ["Sample Ventures"],
        },
    },
    "market": {
        "addressableMarket": 6.5,
        "competitors": [
            {"name": "BigPharma Co", "stage": "marketed", "weaknesses": ["Injectable only"]},
            {"name": "Rival Bio", "stage": "phase2", "weaknesses": ["Twice-daily dosing"]},
        ],
        "marketDynamics": {
            "growthRate": 0.09,
            "drivers": ["Aging population", "Shift to oral therapies"],
            "barriers": ["Pricing pressure"],
            "reimbursement": "favorable",
        },
    },
    "regulatory": {
        "approvals": [],
        "clinicalTrials": [
            {
                "name": "ACM-101-201",
                "phase": "phase2",
                "indication": "Rheumatoid Arthritis",
                "status": "active",
                "startDate": "2023-03-01",
                "expectedCompletion": "2024-10-01",
                "patientCount": 240,
            },
        ],
        "regulatoryStrategy": {
            "pathway": "standard",
            "timeline": 48,
            "risks": ["Class safety labeling"],
            "mitigations": ["Long-term safety extension study"],
        },
    },
}


def company_payload(**sections) -> dict:
    """
    Deep copy of BASE_COMPANY with each keyword merged over its section.

    Example:
        company_payload(financials={"burnRate": 0.0})
    """
    payload = copy.deepcopy(BASE_COMPANY)
    for section, values in sections.items():
        if isinstance(values, dict) and isinstance(payload.get(section), dict):
            payload[section] = {**payload[section], **values}
        else:
            payload[section] = values
    return payload


# =============================================================================
# MODEL FIXTURES
# =============================================================================

@pytest.fixture
def make_company():
    """Factory: make_company(financials={...}, ...) -> CompanyData."""
    def _make(**sections) -> CompanyData:
        return CompanyData.model_validate(company_payload(**sections))
    return _make


@pytest.fixture
def company(make_company) -> CompanyData:
    return make_company()


@pytest.fixture
def context() -> MarketContext:
    return MarketContext.default(EVALUATION_DATE)


@pytest.fixture
def efficient_preclinical_company(make_company) -> CompanyData:
    """One preclinical program, burn 1.5, cash 30, no complex areas."""
    return make_company(
        basicInfo={**BASE_COMPANY["basicInfo"], "stage": "preclinical", "therapeuticAreas": ["Dermatology"]},
        pipeline={"programs": [{
            "name": "ACM-001",
            "indication": "Atopic Dermatitis",
            "stage": "preclinical",
            "mechanism": "Topical small molecule",
            "differentiators": ["Novel target"],
            "risks": [{"description": "Translational risk"}],
            "timeline": [{"name": "IND filing", "expectedDate": "2025-03-01"}],
        }]},
        financials={"cashPosition": 30.0, "burnRate": 1.5},
        regulatory={"approvals": [], "clinicalTrials": [], "regulatoryStrategy": {
            "pathway": "standard", "timeline": 72, "risks": ["Novel target biology"],
        }},
    )


@pytest.fixture
def engine() -> ScoringEngine:
    return ScoringEngine()


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture(scope="module")
def client():
    """Create a TestClient for FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
