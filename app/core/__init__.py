"""
Core Package - BD Scoring Platform
app/core/__init__.py

Core infrastructure: dependencies, exceptions, logging.
"""

from app.core.exceptions import (
    CalculationError,
    ConfigurationError,
    InvalidDataError,
    MissingRequiredFieldError,
    ScoringError,
)

__all__ = [
    "CalculationError",
    "ConfigurationError",
    "InvalidDataError",
    "MissingRequiredFieldError",
    "ScoringError",
]
