"""
Wizard Action Definitions - Actions a presentation layer can emit.

``validate_wizard_action`` is the single transition table of the wizard:
it decides, from the current phase and step alone, whether an action may
run. Every blocked action carries a reason_code so the caller can explain
why nothing happened.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import error_for
from .wizard_state import REVIEW_PHASES, ValidationSeverity, WizardPhase, WizardState


class WizardActionType(str, Enum):
    """Type of wizard action."""

    UPDATE_FIELD = "update_field"
    NEXT = "next"
    PREVIOUS = "previous"
    CANCEL_REVIEW = "cancel_review"
    CONFIRM_SUBMIT = "confirm_submit"
    CANCEL = "cancel"
    RESET = "reset"


class WizardAction(BaseModel):
    """Wizard action with context."""

    action_type: WizardActionType = Field(..., description="Type of action")
    context: Dict[str, Any] = Field(default_factory=dict, description="Action context")
    timestamp: float = Field(default_factory=lambda: datetime.now().timestamp(), description="Action timestamp")

    model_config = ConfigDict(frozen=True)


class WizardActionDecision(BaseModel):
    """Decision result for a wizard action."""

    allowed: bool = Field(..., description="Whether action is allowed")
    reason_code: str = Field(..., description="Reason code for decision")
    message: str = Field(..., description="Human-readable message")
    severity: ValidationSeverity = Field(default=ValidationSeverity.INFO, description="Severity level")
    recommended_action: Optional[str] = Field(default=None, description="Recommended action if blocked")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional details")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def allow(cls, reason_code: str = "ACTION_ALLOWED", message: str = "Action allowed",
              details: Optional[Dict[str, Any]] = None) -> "WizardActionDecision":
        """Create an allowed decision."""
        return cls(
            allowed=True,
            reason_code=reason_code,
            message=message,
            severity=ValidationSeverity.INFO,
            details=details,
        )

    @classmethod
    def block(
        cls,
        reason_code: str,
        message: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        recommended_action: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "WizardActionDecision":
        """Create a blocked decision."""
        return cls(
            allowed=False,
            reason_code=reason_code,
            message=message,
            severity=severity,
            recommended_action=recommended_action,
            details=details,
        )

    def raise_if_blocked(self) -> "WizardActionDecision":
        """Raise the exception matching reason_code when not allowed."""
        if not self.allowed:
            raise error_for(self.reason_code, self.message)
        return self


def _closed(state: WizardState) -> WizardActionDecision:
    return WizardActionDecision.block(
        reason_code="WIZARD_CLOSED",
        message=f"Wizard is {state.phase.value}",
        recommended_action="Reset the wizard to start over",
    )


def _in_flight() -> WizardActionDecision:
    return WizardActionDecision.block(
        reason_code="SUBMISSION_IN_PROGRESS",
        message="A submission is already in progress",
        severity=ValidationSeverity.BLOCKING,
        recommended_action="Wait for the current submission to finish",
    )


def validate_wizard_action(action: WizardAction, state: WizardState) -> WizardActionDecision:
    """
    Validate a wizard action against the current state.

    Only phase and step position are consulted here. Field validation for
    NEXT happens afterwards in the state machine, since it needs the step
    schema and the clock.
    """
    action_type = action.action_type
    phase = state.phase

    if action_type == WizardActionType.RESET:
        if phase == WizardPhase.SUBMITTING:
            return _in_flight()
        return WizardActionDecision.allow("RESET_ALLOWED", "Wizard can be reset")

    if state.is_closed:
        return _closed(state)

    if phase == WizardPhase.SUBMITTING:
        return _in_flight()

    if action_type == WizardActionType.UPDATE_FIELD:
        if not action.context.get("name"):
            return WizardActionDecision.block(
                reason_code="NO_FIELD_NAME",
                message="No field name provided",
                severity=ValidationSeverity.WARNING,
                recommended_action="Provide 'name' in the action context",
            )
        return WizardActionDecision.allow("FIELD_UPDATE_ALLOWED", "Field can be updated")

    if action_type == WizardActionType.NEXT:
        if phase in REVIEW_PHASES:
            return WizardActionDecision.block(
                reason_code="ALREADY_AT_REVIEW",
                message="Review is already open",
                recommended_action="Confirm or cancel the review",
            )
        return WizardActionDecision.allow("NEXT_STEP_ALLOWED", "Can validate and proceed")

    if action_type == WizardActionType.PREVIOUS:
        if phase in REVIEW_PHASES:
            return WizardActionDecision.block(
                reason_code="ALREADY_AT_REVIEW",
                message="Review is open, cannot go back",
                recommended_action="Cancel the review first",
            )
        if state.current_step <= 1:
            return WizardActionDecision.block(
                reason_code="NO_PREVIOUS_STEP",
                message="No previous step to go back to",
                severity=ValidationSeverity.WARNING,
            )
        return WizardActionDecision.allow("PREVIOUS_STEP_ALLOWED", "Can go back to previous step")

    if action_type in (WizardActionType.CANCEL_REVIEW, WizardActionType.CONFIRM_SUBMIT):
        if phase not in REVIEW_PHASES:
            return WizardActionDecision.block(
                reason_code="REVIEW_NOT_OPEN",
                message="Review is not open",
                recommended_action="Complete the last step first",
            )
        return WizardActionDecision.allow(f"{action_type.name}_ALLOWED", f"Can {action_type.value}")

    if action_type == WizardActionType.CANCEL:
        return WizardActionDecision.allow("CANCEL_ALLOWED", "Wizard can be cancelled")

    return WizardActionDecision.block(
        reason_code="UNKNOWN_ACTION",
        message=f"Unknown wizard action: {action_type}",
    )
