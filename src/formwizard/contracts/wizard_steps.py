"""
Wizard Step Definitions - Field Schema Registry for multi-step forms.

Each step owns an ordered set of fields and the rules that validate them.
Steps are looked up by position (1..N) instead of being selected by
branching on the step counter, so adding, removing or reordering steps only
touches the registry.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import UnknownStep
from .field_rules import (
    MONTH_YEAR_PATTERN,
    EmailRule,
    FieldRule,
    NotExpiredRule,
    PatternRule,
    RequiredRule,
)


class FieldDefinition(BaseModel):
    """A single form field and its rules, applied in declared order."""

    name: str = Field(..., min_length=1, description="Field key used in collected values")
    label: str = Field(..., description="Human-readable label for review output")
    placeholder: str = Field(default="", description="Input hint for the presentation layer")
    rules: Tuple[FieldRule, ...] = Field(default=(), description="Rules applied in order")

    model_config = ConfigDict(frozen=True)


class StepDefinition(BaseModel):
    """One ordered stage of the wizard."""

    position: int = Field(..., ge=1, description="1-based step position")
    title: str = Field(..., description="Human-readable step title")
    fields: Tuple[FieldDefinition, ...] = Field(..., description="Fields governed by this step")

    model_config = ConfigDict(frozen=True)

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v: Tuple[FieldDefinition, ...]) -> Tuple[FieldDefinition, ...]:
        if not v:
            raise ValueError("A step must govern at least one field")
        names = [f.name for f in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names in step: {duplicates}")
        return v

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for field_def in self.fields:
            if field_def.name == name:
                return field_def
        return None


class FieldSchemaRegistry(BaseModel):
    """Immutable, position-keyed registry of step definitions."""

    steps: Tuple[StepDefinition, ...] = Field(..., description="Steps ordered by position")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_steps(self) -> "FieldSchemaRegistry":
        if not self.steps:
            raise ValueError("Registry must contain at least one step")

        positions = [step.position for step in self.steps]
        expected = list(range(1, len(self.steps) + 1))
        if positions != expected:
            raise ValueError(f"Step positions must be contiguous from 1 in order, got {positions}")

        seen: Dict[str, int] = {}
        for step in self.steps:
            for name in step.field_names:
                if name in seen:
                    raise ValueError(
                        f"Field '{name}' is governed by both step {seen[name]} and step {step.position}"
                    )
                seen[name] = step.position
        return self

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def get_step(self, position: int) -> StepDefinition:
        """Return the step at ``position`` or raise UnknownStep."""
        if not 1 <= position <= self.step_count:
            raise UnknownStep(f"Step {position} is outside [1, {self.step_count}]")
        return self.steps[position - 1]

    def all_field_names(self) -> List[str]:
        """Field names of every step, in step then declaration order."""
        return [name for step in self.steps for name in step.field_names]

    def step_for_field(self, name: str) -> Optional[StepDefinition]:
        for step in self.steps:
            if name in step.field_names:
                return step
        return None


def _required(message: str) -> RequiredRule:
    return RequiredRule(message=message)


CHECKOUT_STEPS: Tuple[StepDefinition, ...] = (
    StepDefinition(
        position=1,
        title="Personal Details",
        fields=(
            FieldDefinition(
                name="firstName",
                label="First Name",
                placeholder="First Name",
                rules=(_required("First name is required"),),
            ),
            FieldDefinition(
                name="lastName",
                label="Last Name",
                placeholder="Last Name",
                rules=(_required("Last name is required"),),
            ),
            FieldDefinition(
                name="email",
                label="Email",
                placeholder="Email",
                rules=(
                    _required("Email is required"),
                    EmailRule(message="Invalid email"),
                ),
            ),
        ),
    ),
    StepDefinition(
        position=2,
        title="Address Details",
        fields=(
            FieldDefinition(
                name="address",
                label="Address",
                placeholder="Address",
                rules=(_required("Address is required"),),
            ),
            FieldDefinition(
                name="city",
                label="City",
                placeholder="City",
                rules=(_required("City is required"),),
            ),
            FieldDefinition(
                name="postalCode",
                label="Postal Code",
                placeholder="Postal Code",
                rules=(
                    _required("Postal code is required"),
                    PatternRule(regex=r"[0-9]{5,6}", message="Postal code must be 5 or 6 digits"),
                ),
            ),
        ),
    ),
    StepDefinition(
        position=3,
        title="Payment Details",
        fields=(
            FieldDefinition(
                name="cardNumber",
                label="Card Number",
                placeholder="Card Number",
                rules=(
                    _required("Card number is required"),
                    PatternRule(regex=r"[0-9]{16}", message="Card number must be exactly 16 digits"),
                ),
            ),
            FieldDefinition(
                name="expiryDate",
                label="Expiry Date",
                placeholder="Expiry Date (MM/YY)",
                rules=(
                    _required("Expiry date is required"),
                    PatternRule(regex=MONTH_YEAR_PATTERN, message="Expiry date must be in MM/YY format"),
                    NotExpiredRule(message="Expiry date cannot be in the past"),
                ),
            ),
            FieldDefinition(
                name="cvv",
                label="CVV",
                placeholder="CVV",
                rules=(
                    _required("CVV is required"),
                    PatternRule(regex=r"[0-9]{3,4}", message="CVV must be 3 or 4 digits"),
                ),
            ),
        ),
    ),
)


def create_checkout_registry() -> FieldSchemaRegistry:
    """Registry for the personal / address / payment checkout flow."""
    return FieldSchemaRegistry(steps=CHECKOUT_STEPS)
