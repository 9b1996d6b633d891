from typing import List, Optional

from pydantic import Field

from app.models.base import FrozenModel
from app.models.enumerations import ValidationSeverity


class ValidationError(FrozenModel):
    """Blocking problem with one field."""
    field: str
    message: str
    severity: ValidationSeverity = ValidationSeverity.ERROR


class ValidationWarning(FrozenModel):
    """Advisory problem; never blocks scoring."""
    field: str
    message: str
    suggestion: Optional[str] = None


class ValidationResult(FrozenModel):
    is_valid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    completeness: float = Field(default=1.0, ge=0.0, le=1.0)

    @classmethod
    def build(
        cls,
        errors: List[ValidationError],
        warnings: List[ValidationWarning],
        completeness: float,
    ) -> "ValidationResult":
        """isValid is derived from the error list, never set independently."""
        return cls(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            completeness=max(0.0, min(1.0, completeness)),
        )

    @property
    def critical_errors(self) -> List[ValidationError]:
        return [e for e in self.errors if e.severity == ValidationSeverity.CRITICAL]
