"""
Wizard State Definitions - Core state model for a form wizard session.

WizardState is immutable: every transition produces a new instance through
``model_copy``. The state machine in ``formwizard.services`` is the only
place that decides which transition is allowed; the helpers here only apply
them.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WizardPhase(str, Enum):
    """Lifecycle phase of a wizard session."""
    COLLECTING = "collecting"
    REVIEW_PENDING = "review_pending"
    SUBMITTING = "submitting"
    SUBMIT_FAILED = "submit_failed"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


REVIEW_PHASES = frozenset({WizardPhase.REVIEW_PENDING, WizardPhase.SUBMITTING, WizardPhase.SUBMIT_FAILED})
CLOSED_PHASES = frozenset({WizardPhase.SUBMITTED, WizardPhase.CANCELLED})


class ValidationSeverity(str, Enum):
    """Severity level for validation and action decisions."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    BLOCKING = "blocking"


class WizardValidationResult(BaseModel):
    """Outcome of validating one step: Valid, or Invalid with per-field errors."""

    is_valid: bool = Field(..., description="Whether every governed field passed")
    errors: Dict[str, str] = Field(default_factory=dict, description="Field name -> first failing rule message")
    step: Optional[int] = Field(default=None, description="Step position that was validated")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def valid(cls, step: Optional[int] = None) -> "WizardValidationResult":
        return cls(is_valid=True, errors={}, step=step)

    @classmethod
    def invalid(cls, errors: Dict[str, str], step: Optional[int] = None) -> "WizardValidationResult":
        if not errors:
            raise ValueError("An invalid result needs at least one field error")
        return cls(is_valid=False, errors=dict(errors), step=step)


class WizardState(BaseModel):
    """Complete state of a form wizard session."""

    wizard_id: str = Field(default_factory=lambda: f"wizard_{uuid4().hex[:12]}", description="Session id")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    step_count: int = Field(..., ge=1, description="Number of steps (N)")
    current_step: int = Field(default=1, description="Active step position, 1..N")
    phase: WizardPhase = Field(default=WizardPhase.COLLECTING, description="Lifecycle phase")

    values: Dict[str, str] = Field(default_factory=dict, description="Latest value of every field seen")
    errors: Dict[str, str] = Field(default_factory=dict, description="Errors for the current step only")
    validation_history: List[WizardValidationResult] = Field(
        default_factory=list,
        description="Every advance() validation outcome, oldest first",
    )

    submission_attempts: int = Field(default=0, description="Number of submit attempts")
    submission_error: Optional[str] = Field(default=None, description="Message of the last failed submission")
    submission_reference: Optional[str] = Field(default=None, description="Reference returned by the sink")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_current_step(self) -> "WizardState":
        if not 1 <= self.current_step <= self.step_count:
            raise ValueError(f"current_step {self.current_step} outside [1, {self.step_count}]")
        return self

    @property
    def confirmation_open(self) -> bool:
        return self.phase in REVIEW_PHASES

    @property
    def is_closed(self) -> bool:
        return self.phase in CLOSED_PHASES

    @property
    def is_last_step(self) -> bool:
        return self.current_step == self.step_count

    @property
    def can_go_back(self) -> bool:
        return self.phase == WizardPhase.COLLECTING and self.current_step > 1

    @property
    def progress_percent(self) -> float:
        """0 on the first step, 100 on the last."""
        if self.step_count == 1:
            return 0.0
        return (self.current_step - 1) / (self.step_count - 1) * 100.0

    def snapshot_values(self) -> Dict[str, str]:
        """Detached copy of the collected values."""
        return dict(self.values)

    def _update(self, **updates) -> "WizardState":
        updates["updated_at"] = datetime.now()
        return self.model_copy(update=updates)

    def with_field(self, name: str, value: str) -> "WizardState":
        """Create a new state with one field value merged in."""
        return self._update(values={**self.values, name: value})

    def with_field_error(self, name: str, message: Optional[str]) -> "WizardState":
        """Create a new state with one field error set, or cleared when message is None."""
        errors = {k: v for k, v in self.errors.items() if k != name}
        if message is not None:
            errors[name] = message
        return self._update(errors=errors)

    def with_validation(self, result: WizardValidationResult) -> "WizardState":
        """Record a step validation; errors are replaced by the result's errors."""
        return self._update(
            errors=dict(result.errors),
            validation_history=self.validation_history + [result],
        )

    def move_to_step(self, step: int) -> "WizardState":
        return self._update(current_step=step, errors={})

    def open_review(self) -> "WizardState":
        return self._update(phase=WizardPhase.REVIEW_PENDING, errors={})

    def close_review(self) -> "WizardState":
        return self._update(phase=WizardPhase.COLLECTING, submission_error=None)

    def mark_submitting(self) -> "WizardState":
        return self._update(
            phase=WizardPhase.SUBMITTING,
            submission_attempts=self.submission_attempts + 1,
            submission_error=None,
        )

    def mark_submit_failed(self, message: str) -> "WizardState":
        return self._update(phase=WizardPhase.SUBMIT_FAILED, submission_error=message)

    def mark_submitted(self, reference: Optional[str], clear_values: bool = True) -> "WizardState":
        return self._update(
            phase=WizardPhase.SUBMITTED,
            submission_reference=reference,
            values={} if clear_values else dict(self.values),
            errors={},
        )

    def mark_cancelled(self) -> "WizardState":
        return self._update(phase=WizardPhase.CANCELLED, values={}, errors={})


def create_wizard_state(step_count: int) -> WizardState:
    """Fresh state: step 1, no values, no errors, review closed."""
    return WizardState(step_count=step_count)
