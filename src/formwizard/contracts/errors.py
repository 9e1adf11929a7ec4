"""
Wizard Error Taxonomy - Exceptions raised by the form wizard.

Field validation failures are never raised: they are surfaced as state
(see WizardValidationResult). Transition errors are returned as blocked
WizardActionDecision objects and only become exceptions when a caller asks
for it via ``WizardActionDecision.raise_if_blocked()``.
"""

from typing import Optional


class FormWizardError(Exception):
    """Base exception for all form wizard errors."""
    pass


class TransitionError(FormWizardError):
    """A transition was attempted from a state that does not allow it."""

    reason_code = "INVALID_TRANSITION"

    def __init__(self, message: str, reason_code: Optional[str] = None):
        super().__init__(message)
        if reason_code is not None:
            self.reason_code = reason_code


class UnknownStep(TransitionError):
    """Step position is outside the registry range."""

    reason_code = "UNKNOWN_STEP"


class AlreadyAtReview(TransitionError):
    """advance() called while the review is already open."""

    reason_code = "ALREADY_AT_REVIEW"


class NoPreviousStep(TransitionError):
    """retreat() called on the first step."""

    reason_code = "NO_PREVIOUS_STEP"


class ReviewNotOpen(TransitionError):
    """Review-only operation called while collecting."""

    reason_code = "REVIEW_NOT_OPEN"


class SubmissionInProgress(TransitionError):
    """A submission is already in flight."""

    reason_code = "SUBMISSION_IN_PROGRESS"


class WizardClosed(TransitionError):
    """The wizard was already submitted or cancelled."""

    reason_code = "WIZARD_CLOSED"


class StepValidationFailed(TransitionError):
    """advance() was refused because the current step has field errors."""

    reason_code = "STEP_VALIDATION_FAILED"


class SubmissionError(FormWizardError):
    """The submission sink failed to deliver the collected values."""

    reason_code = "SUBMISSION_FAILED"


TRANSITION_ERRORS = {
    cls.reason_code: cls
    for cls in (
        TransitionError,
        UnknownStep,
        AlreadyAtReview,
        NoPreviousStep,
        ReviewNotOpen,
        SubmissionInProgress,
        WizardClosed,
        StepValidationFailed,
    )
}


def error_for(reason_code: str, message: str) -> FormWizardError:
    """Build the exception matching a blocked decision's reason code."""
    if reason_code == SubmissionError.reason_code:
        return SubmissionError(message)
    error_cls = TRANSITION_ERRORS.get(reason_code, TransitionError)
    return error_cls(message, reason_code=reason_code)
