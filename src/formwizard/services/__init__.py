"""
Form Wizard Services - Pure logic layer for the multi-step form wizard.

Key Principles:
1. Pure logic (no presentation imports)
2. Action gating with reason codes
3. Validation against position-keyed step schemas
4. A single in-flight submission per session
"""

from .field_validator import StepValidator, validate, validate_field
from .submission import InMemorySink, LoggingSink, SubmissionCoordinator, build_payload
from .wizard_action_executor import WizardActionExecutor, create_wizard_action_executor
from .wizard_viewmodel import WizardViewModel, create_checkout_wizard

__all__ = [
    "StepValidator",
    "validate",
    "validate_field",
    "InMemorySink",
    "LoggingSink",
    "SubmissionCoordinator",
    "build_payload",
    "WizardActionExecutor",
    "create_wizard_action_executor",
    "WizardViewModel",
    "create_checkout_wizard",
]
