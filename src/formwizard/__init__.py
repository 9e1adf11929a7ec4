"""
formwizard - Step-validation-and-transition engine for multi-step forms.

Collects a fixed sequence of field groups, validates each group before the
user may move on, keeps validated values across steps and hands them to a
submission sink after a final review.
"""

from formwizard.contracts import (
    FieldSchemaRegistry,
    StepDefinition,
    WizardActionDecision,
    WizardPhase,
    WizardState,
    WizardValidationResult,
    create_checkout_registry,
)
from formwizard.services import (
    InMemorySink,
    SubmissionCoordinator,
    WizardViewModel,
    create_checkout_wizard,
)

__version__ = "0.1.0"

__all__ = [
    "FieldSchemaRegistry",
    "StepDefinition",
    "WizardActionDecision",
    "WizardPhase",
    "WizardState",
    "WizardValidationResult",
    "create_checkout_registry",
    "InMemorySink",
    "SubmissionCoordinator",
    "WizardViewModel",
    "create_checkout_wizard",
]
