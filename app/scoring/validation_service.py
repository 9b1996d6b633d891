"""
scoring/validation_service.py — Company Data Validation

Structural validation and completeness of a CompanyData snapshot.

Errors block scoring; warnings are advisory and only lower completeness or
confidence. Completeness is the mean of five section scores:

    basic info   name, ticker, sector, therapeutic areas, description
    pipeline     mean per-program completeness (6 fields each)
    financials   cash > 0, burn > 0, funding data present
    market       market > 0, competitors, drivers or barriers
    regulatory   timeline > 0, clinical trials, strategy risks
"""

from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from app.models.company import ClinicalTrial, CompanyData, Program
from app.models.enumerations import DevelopmentStage, ReimbursementEnvironment, ValidationSeverity
from app.models.validation import ValidationError, ValidationResult, ValidationWarning
from app.scoring.utils import days_between

logger = structlog.get_logger(__name__)

Issues = Tuple[List[ValidationError], List[ValidationWarning]]


def _lead_program(data: CompanyData) -> Optional[Program]:
    return data.pipeline.lead_program


# Presence predicates keyed by wire field path. Paths not listed here are
# treated as present.
FIELD_CHECKS: Dict[str, Callable[[CompanyData], bool]] = {
    "basicInfo.name": lambda d: bool(d.basic_info.name.strip()),
    "basicInfo.sector": lambda d: bool(d.basic_info.sector.strip()),
    "basicInfo.therapeuticAreas": lambda d: bool(d.basic_info.therapeutic_areas),
    "basicInfo.stage": lambda d: d.basic_info.stage is not None,
    "pipeline.programs": lambda d: bool(d.pipeline.programs),
    "pipeline.leadProgram.differentiators": lambda d: bool(
        _lead_program(d) and _lead_program(d).differentiators
    ),
    "pipeline.leadProgram.risks": lambda d: bool(_lead_program(d) and _lead_program(d).risks),
    "financials.cashPosition": lambda d: d.financials.cash_position > 0,
    "financials.burnRate": lambda d: d.financials.burn_rate > 0,
    "financials.runway": lambda d: d.financials.runway is not None and d.financials.runway > 0,
    "financials.lastFunding": lambda d: d.financials.latest_funding is not None,
    "market.addressableMarket": lambda d: d.market.addressable_market > 0,
    "market.competitors": lambda d: bool(d.market.competitors),
    "market.marketDynamics": lambda d: bool(
        d.market.market_dynamics.drivers
        or d.market.market_dynamics.barriers
        or d.market.market_dynamics.reimbursement != ReimbursementEnvironment.UNKNOWN
    ),
    "regulatory.approvals": lambda d: bool(d.regulatory.approvals),
    "regulatory.clinicalTrials": lambda d: bool(d.regulatory.clinical_trials),
    "regulatory.regulatoryStrategy": lambda d: d.regulatory.regulatory_strategy.timeline > 0,
}

STALE_FUNDING_DAYS = 730
LONG_TIMELINE_MONTHS = 180


class ValidationService:
    """Company-level validation and field presence checks."""

    # ------------------------------------------------------------------ #
    # Field presence
    # ------------------------------------------------------------------ #

    @staticmethod
    def is_field_present(data: CompanyData, field: str) -> bool:
        check = FIELD_CHECKS.get(field)
        return True if check is None else check(data)

    def get_missing_fields(self, data: CompanyData, fields: List[str]) -> List[str]:
        return [f for f in fields if not self.is_field_present(data, f)]

    def validate_field(self, data: CompanyData, field: str) -> Optional[ValidationError]:
        """Critical error for an absent required field, else None."""
        if self.is_field_present(data, field):
            return None
        return ValidationError(
            field=field,
            message=f"Required field '{field}' is missing",
            severity=ValidationSeverity.CRITICAL,
        )

    def field_completeness(self, data: CompanyData, required: List[str], optional: List[str]) -> float:
        """Fraction of the given required + optional fields that are present."""
        fields = list(required) + list(optional)
        if not fields:
            return 1.0
        present = sum(1 for f in fields if self.is_field_present(data, f))
        return present / len(fields)

    # ------------------------------------------------------------------ #
    # Whole-company validation
    # ------------------------------------------------------------------ #

    def validate_company_data(self, data: CompanyData, as_of: Optional[date] = None) -> ValidationResult:
        as_of = as_of or date.today()
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []

        for section in (
            self._validate_basic_info(data),
            self._validate_pipeline(data),
            self._validate_financials(data, as_of),
            self._validate_market(data),
            self._validate_regulatory(data),
        ):
            errors.extend(section[0])
            warnings.extend(section[1])

        result = ValidationResult.build(errors, warnings, self.check_data_completeness(data))
        logger.debug(
            "company_validated",
            company=data.basic_info.name,
            is_valid=result.is_valid,
            errors=len(errors),
            warnings=len(warnings),
            completeness=result.completeness,
        )
        return result

    def check_data_completeness(self, data: CompanyData) -> float:
        sections = [
            self._basic_info_completeness(data),
            self._pipeline_completeness(data),
            self._financials_completeness(data),
            self._market_completeness(data),
            self._regulatory_completeness(data),
        ]
        return sum(sections) / len(sections)

    # ------------------------------------------------------------------ #
    # Sections
    # ------------------------------------------------------------------ #

    def _validate_basic_info(self, data: CompanyData) -> Issues:
        info = data.basic_info
        errors, warnings = [], []
        if not info.name.strip():
            errors.append(ValidationError(field="basicInfo.name", message="Company name is required"))
        if not info.sector.strip():
            errors.append(ValidationError(field="basicInfo.sector", message="Company sector is required"))
        if not info.therapeutic_areas:
            errors.append(ValidationError(
                field="basicInfo.therapeuticAreas",
                message="At least one therapeutic area must be specified",
            ))
        if not info.ticker:
            warnings.append(ValidationWarning(
                field="basicInfo.ticker",
                message="Ticker symbol not provided",
                suggestion="Ticker helps identify public comparables",
            ))
        if not info.description:
            warnings.append(ValidationWarning(
                field="basicInfo.description",
                message="Company description not provided",
                suggestion="A short description improves report context",
            ))
        return errors, warnings

    def _validate_pipeline(self, data: CompanyData) -> Issues:
        errors, warnings = [], []
        if not data.pipeline.programs:
            warnings.append(ValidationWarning(
                field="pipeline.programs",
                message="No pipeline programs provided",
                suggestion="Pipeline data is central to asset and strategic assessment",
            ))
        for index, program in enumerate(data.pipeline.programs):
            prefix = f"pipeline.programs[{index}]"
            if not program.name.strip():
                errors.append(ValidationError(field=f"{prefix}.name", message="Program name is required"))
            if not program.indication.strip():
                warnings.append(ValidationWarning(
                    field=f"{prefix}.indication",
                    message="Program indication is not specified",
                    suggestion="Specify the target indication",
                ))
            if not program.mechanism.strip():
                warnings.append(ValidationWarning(
                    field=f"{prefix}.mechanism",
                    message="Mechanism of action is not specified",
                    suggestion="Mechanism drives manufacturing and safety assessment",
                ))
            if not program.differentiators:
                warnings.append(ValidationWarning(
                    field=f"{prefix}.differentiators",
                    message="No differentiators specified",
                    suggestion="Identify competitive advantages of the program",
                ))
            if not program.risks:
                warnings.append(ValidationWarning(
                    field=f"{prefix}.risks",
                    message="No risks identified",
                    suggestion="Risk assessment is important for due diligence",
                ))
            if not program.timeline:
                warnings.append(ValidationWarning(
                    field=f"{prefix}.timeline",
                    message="No milestones defined",
                    suggestion="Development milestones support timeline assessment",
                ))
            dates = [m.expected_date for m in program.timeline]
            if dates != sorted(dates):
                warnings.append(ValidationWarning(
                    field=f"{prefix}.timeline",
                    message="Milestone dates may not be in chronological order",
                    suggestion="Review milestone sequencing",
                ))
        return errors, warnings

    def _validate_financials(self, data: CompanyData, as_of: date) -> Issues:
        fin = data.financials
        errors, warnings = [], []
        if fin.cash_position < 0:
            errors.append(ValidationError(
                field="financials.cashPosition", message="Cash position cannot be negative"
            ))
        elif fin.cash_position == 0:
            warnings.append(ValidationWarning(
                field="financials.cashPosition",
                message="Zero cash position indicates potential financial distress",
                suggestion="Verify cash position accuracy or consider immediate funding needs",
            ))
        if fin.burn_rate < 0:
            errors.append(ValidationError(field="financials.burnRate", message="Burn rate cannot be negative"))
        elif fin.burn_rate == 0:
            warnings.append(ValidationWarning(
                field="financials.burnRate",
                message="Zero burn rate is unusual for biotech companies",
                suggestion="Verify burn rate calculation includes R&D and operational expenses",
            ))
        if fin.runway is not None and fin.runway < 12:
            warnings.append(ValidationWarning(
                field="financials.runway",
                message="Runway less than 12 months indicates urgent funding need",
                suggestion="Company may be under pressure for quick partnership or financing",
            ))
        funding = fin.latest_funding
        if funding is None:
            warnings.append(ValidationWarning(
                field="financials.lastFunding",
                message="No funding history provided",
                suggestion="Funding history helps assess financial management and investor confidence",
            ))
        else:
            if days_between(funding.date, as_of) > STALE_FUNDING_DAYS:
                warnings.append(ValidationWarning(
                    field="financials.lastFunding.date",
                    message="Last funding was over 2 years ago",
                    suggestion="Financial data may be stale, consider updating cash position and burn rate",
                ))
            if funding.amount <= 0:
                errors.append(ValidationError(
                    field="financials.lastFunding.amount", message="Funding amount must be positive"
                ))
        return errors, warnings

    def _validate_market(self, data: CompanyData) -> Issues:
        market = data.market
        errors, warnings = [], []
        if market.addressable_market <= 0:
            errors.append(ValidationError(
                field="market.addressableMarket", message="Addressable market size must be positive"
            ))
        elif market.addressable_market < 0.1:
            warnings.append(ValidationWarning(
                field="market.addressableMarket",
                message="Small addressable market may limit commercial potential",
                suggestion="Consider niche market dynamics and pricing strategies",
            ))
        growth = market.market_dynamics.growth_rate
        if growth < -0.5 or growth > 2.0:
            warnings.append(ValidationWarning(
                field="market.marketDynamics.growthRate",
                message="Unusual market growth rate detected",
                suggestion="Verify growth rate calculation and market assumptions",
            ))
        if not market.competitors:
            warnings.append(ValidationWarning(
                field="market.competitors",
                message="No competitors identified",
                suggestion="Competitive analysis is important for market positioning assessment",
            ))
        for index, competitor in enumerate(market.competitors):
            if not competitor.name.strip():
                errors.append(ValidationError(
                    field=f"market.competitors[{index}].name", message="Competitor name is required"
                ))
        return errors, warnings

    def _validate_regulatory(self, data: CompanyData) -> Issues:
        strategy = data.regulatory.regulatory_strategy
        errors, warnings = [], []
        if strategy.timeline <= 0:
            warnings.append(ValidationWarning(
                field="regulatory.regulatoryStrategy.timeline",
                message="Regulatory timeline not provided",
                suggestion="Provide expected months to approval",
            ))
        elif strategy.timeline > LONG_TIMELINE_MONTHS:
            warnings.append(ValidationWarning(
                field="regulatory.regulatoryStrategy.timeline",
                message="Very long regulatory timeline detected",
                suggestion="Consider if timeline is realistic for the development stage",
            ))
        for index, trial in enumerate(data.regulatory.clinical_trials):
            trial_errors, trial_warnings = self._validate_trial(trial, f"regulatory.clinicalTrials[{index}]")
            errors.extend(trial_errors)
            warnings.extend(trial_warnings)
        return errors, warnings

    @staticmethod
    def _validate_trial(trial: ClinicalTrial, prefix: str) -> Issues:
        errors, warnings = [], []
        if not trial.name.strip():
            errors.append(ValidationError(field=f"{prefix}.name", message="Clinical trial name is required"))
        if not trial.indication.strip():
            warnings.append(ValidationWarning(
                field=f"{prefix}.indication",
                message="Clinical trial indication is not specified",
                suggestion="Specify the indication studied",
            ))
        if trial.start_date and trial.expected_completion and trial.start_date >= trial.expected_completion:
            errors.append(ValidationError(
                field=f"{prefix}.expectedCompletion",
                message="Expected completion date must be after start date",
            ))
        count = trial.patient_count
        if count is None:
            return errors, warnings
        if count <= 0:
            errors.append(ValidationError(field=f"{prefix}.patientCount", message="Patient count must be positive"))
        elif trial.phase == DevelopmentStage.PHASE_1 and count > 100:
            warnings.append(ValidationWarning(
                field=f"{prefix}.patientCount",
                message="Large patient count for Phase I trial",
                suggestion="Verify patient count is appropriate for safety study",
            ))
        elif trial.phase == DevelopmentStage.PHASE_2 and (count < 20 or count > 500):
            warnings.append(ValidationWarning(
                field=f"{prefix}.patientCount",
                message="Unusual patient count for Phase II trial",
                suggestion="Typical Phase II trials have 20-500 patients",
            ))
        elif trial.phase == DevelopmentStage.PHASE_3 and count < 100:
            warnings.append(ValidationWarning(
                field=f"{prefix}.patientCount",
                message="Small patient count for Phase III trial",
                suggestion="Phase III trials typically require larger patient populations",
            ))
        return errors, warnings

    # ------------------------------------------------------------------ #
    # Section completeness
    # ------------------------------------------------------------------ #

    @staticmethod
    def _basic_info_completeness(data: CompanyData) -> float:
        info = data.basic_info
        present = [
            bool(info.name.strip()),
            bool(info.ticker),
            bool(info.sector.strip()),
            bool(info.therapeutic_areas),
            bool(info.description),
        ]
        return sum(present) / len(present)

    @staticmethod
    def _program_completeness(program: Program) -> float:
        present = [
            bool(program.name.strip()),
            bool(program.indication.strip()),
            bool(program.mechanism.strip()),
            bool(program.differentiators),
            bool(program.risks),
            bool(program.timeline),
        ]
        return sum(present) / len(present)

    def _pipeline_completeness(self, data: CompanyData) -> float:
        programs = data.pipeline.programs
        if not programs:
            return 0.0
        return sum(self._program_completeness(p) for p in programs) / len(programs)

    @staticmethod
    def _financials_completeness(data: CompanyData) -> float:
        fin = data.financials
        present = [fin.cash_position > 0, fin.burn_rate > 0, fin.latest_funding is not None]
        return sum(present) / len(present)

    @staticmethod
    def _market_completeness(data: CompanyData) -> float:
        market = data.market
        dynamics = market.market_dynamics
        present = [
            market.addressable_market > 0,
            bool(market.competitors),
            bool(dynamics.barriers or dynamics.drivers),
        ]
        return sum(present) / len(present)

    @staticmethod
    def _regulatory_completeness(data: CompanyData) -> float:
        reg = data.regulatory
        present = [
            reg.regulatory_strategy.timeline > 0,
            bool(reg.clinical_trials),
            bool(reg.regulatory_strategy.risks),
        ]
        return sum(present) / len(present)
