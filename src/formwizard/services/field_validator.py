"""
Step Validator - Applies a step schema to collected field values.

Validation is pure: same values and same reference time always give the
same result. The reference time comes from an injectable clock so expiry
checks can be pinned in tests.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional

from formwizard.contracts import FieldDefinition, StepDefinition, WizardValidationResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def validate_field(field_def: FieldDefinition, value: str, now: datetime) -> Optional[str]:
    """Return the message of the first failing rule, or None when the value passes."""
    for rule in field_def.rules:
        if not rule.check(value, now):
            return rule.message
    return None


def validate(
    step: StepDefinition,
    values: Mapping[str, str],
    now: Optional[datetime] = None,
) -> WizardValidationResult:
    """
    Validate every field governed by ``step``.

    Fields missing from ``values`` are treated as empty strings. Fields that
    pass are absent from the error mapping.
    """
    if now is None:
        now = datetime.now()

    errors: Dict[str, str] = {}
    for field_def in step.fields:
        message = validate_field(field_def, values.get(field_def.name, ""), now)
        if message is not None:
            errors[field_def.name] = message

    if errors:
        logger.debug(f"Step {step.position} invalid: {sorted(errors)}")
        return WizardValidationResult.invalid(errors, step=step.position)
    return WizardValidationResult.valid(step=step.position)


class StepValidator:
    """Validator bound to a clock."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock: Clock = clock or datetime.now

    def validate_step(self, step: StepDefinition, values: Mapping[str, str]) -> WizardValidationResult:
        return validate(step, values, now=self.clock())

    def validate_field(self, field_def: FieldDefinition, value: str) -> Optional[str]:
        return validate_field(field_def, value, self.clock())
