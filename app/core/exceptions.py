"""
Custom Exceptions - BD Scoring Platform
app/core/exceptions.py

Failure taxonomy for company evaluation. Every subclass aborts the
evaluation it is raised from; no partial result is produced.
"""

from typing import List, Optional


class ScoringError(Exception):
    """Base exception for scoring operations."""

    error_code = "SCORING_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidDataError(ScoringError):
    """Company data is structurally missing or out of range."""

    error_code = "INVALID_DATA"

    def __init__(self, message: str, errors: Optional[List] = None):
        self.errors = list(errors or [])
        super().__init__(message)


class MissingRequiredFieldError(InvalidDataError):
    """A named required field is absent."""

    error_code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str, errors: Optional[List] = None):
        self.field = field
        super().__init__(f"Required field '{field}' is missing", errors=errors)


class CalculationError(ScoringError):
    """An internal arithmetic precondition was violated."""

    error_code = "CALCULATION_ERROR"


class ConfigurationError(ScoringError):
    """Weight configuration or pillar set is unusable."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.details = details or {}
        super().__init__(message)
