"""
Wizard Result Definitions - Submission outcomes and read-only views.

These models are what leaves the core: the submission outcome reported by
the coordinator, the review sections shown before confirming, the step
indicators for progress display, and the final session summary.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .wizard_state import WizardPhase, WizardState


class SubmissionResult(BaseModel):
    """Outcome of one submission attempt."""

    success: bool = Field(..., description="Whether the sink accepted the values")
    reference: Optional[str] = Field(default=None, description="Reference returned by the sink")
    message: str = Field(default="", description="Human-readable outcome")
    attempt: int = Field(default=1, description="1-based attempt number")
    submitted_at: datetime = Field(default_factory=datetime.now, description="Attempt timestamp")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def succeeded(cls, reference: Optional[str] = None, attempt: int = 1) -> "SubmissionResult":
        return cls(success=True, reference=reference, message="Details submitted", attempt=attempt)

    @classmethod
    def failed(cls, message: str, attempt: int = 1) -> "SubmissionResult":
        return cls(success=False, message=message, attempt=attempt)


class ReviewField(BaseModel):
    name: str
    label: str
    value: str

    model_config = ConfigDict(frozen=True)


class ReviewSection(BaseModel):
    """One step's values as shown in the confirmation view."""

    step: int = Field(..., description="Step position")
    title: str = Field(..., description="Step title")
    fields: List[ReviewField] = Field(default_factory=list, description="Fields in declaration order")

    model_config = ConfigDict(frozen=True)


class StepIndicator(BaseModel):
    """Progress marker for one step."""

    position: int
    title: str
    reached: bool = Field(..., description="Step is at or before the current step")
    active: bool = Field(..., description="Step is the current step")

    model_config = ConfigDict(frozen=True)


class WizardResult(BaseModel):
    """Summary of a finished (submitted or cancelled) wizard session."""

    wizard_id: str = Field(..., description="Wizard session ID")
    phase: WizardPhase = Field(..., description="Final wizard phase")
    completed_at: datetime = Field(default_factory=datetime.now, description="Completion timestamp")
    duration_seconds: float = Field(..., description="Total duration in seconds")
    step_count: int = Field(..., description="Number of steps")
    validation_passed: int = Field(..., description="Number of step validations passed")
    validation_failed: int = Field(..., description="Number of step validations failed")
    submission_attempts: int = Field(default=0, description="Number of submit attempts")
    submission_reference: Optional[str] = Field(default=None, description="Reference returned by the sink")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_wizard_state(
        cls,
        wizard_state: WizardState,
        end_time: Optional[datetime] = None,
    ) -> "WizardResult":
        """Create wizard result from a closed wizard state."""
        if end_time is None:
            end_time = datetime.now()

        duration = (end_time - wizard_state.created_at).total_seconds()
        validation_passed = sum(1 for v in wizard_state.validation_history if v.is_valid)
        validation_failed = len(wizard_state.validation_history) - validation_passed

        return cls(
            wizard_id=wizard_state.wizard_id,
            phase=wizard_state.phase,
            completed_at=end_time,
            duration_seconds=duration,
            step_count=wizard_state.step_count,
            validation_passed=validation_passed,
            validation_failed=validation_failed,
            submission_attempts=wizard_state.submission_attempts,
            submission_reference=wizard_state.submission_reference,
        )
