"""
Form Wizard Contracts - Pure models for the multi-step form wizard.

Key Principles:
1. Pure Pydantic models (no presentation imports)
2. Frozen models (immutable after creation)
3. Step schemas are looked up by position, never branched on
4. Every blocked action has a reason_code
"""

from .errors import (
    AlreadyAtReview,
    FormWizardError,
    NoPreviousStep,
    ReviewNotOpen,
    SubmissionError,
    StepValidationFailed,
    SubmissionInProgress,
    TransitionError,
    UnknownStep,
    WizardClosed,
)
from .field_rules import EmailRule, FieldRule, NotExpiredRule, PatternRule, RequiredRule
from .wizard_actions import WizardAction, WizardActionDecision, WizardActionType, validate_wizard_action
from .wizard_results import ReviewField, ReviewSection, StepIndicator, SubmissionResult, WizardResult
from .wizard_state import (
    ValidationSeverity,
    WizardPhase,
    WizardState,
    WizardValidationResult,
    create_wizard_state,
)
from .wizard_steps import (
    CHECKOUT_STEPS,
    FieldDefinition,
    FieldSchemaRegistry,
    StepDefinition,
    create_checkout_registry,
)

__all__ = [
    "AlreadyAtReview",
    "FormWizardError",
    "NoPreviousStep",
    "ReviewNotOpen",
    "SubmissionError",
    "StepValidationFailed",
    "SubmissionInProgress",
    "TransitionError",
    "UnknownStep",
    "WizardClosed",
    "EmailRule",
    "FieldRule",
    "NotExpiredRule",
    "PatternRule",
    "RequiredRule",
    "WizardAction",
    "WizardActionDecision",
    "WizardActionType",
    "validate_wizard_action",
    "ReviewField",
    "ReviewSection",
    "StepIndicator",
    "SubmissionResult",
    "WizardResult",
    "ValidationSeverity",
    "WizardPhase",
    "WizardState",
    "WizardValidationResult",
    "create_wizard_state",
    "CHECKOUT_STEPS",
    "FieldDefinition",
    "FieldSchemaRegistry",
    "StepDefinition",
    "create_checkout_registry",
]
