"""
Wizard ViewModel - Step-validation-and-transition engine.

This service owns the WizardState of one session, validates actions against
the transition table, runs step validation before advancing and hands the
collected values to the SubmissionCoordinator once the review is confirmed.

Key Principles:
1. Every operation runs to completion before the next one starts
2. Rejected operations return a blocked WizardActionDecision, never raise
3. Collected values survive navigation, review cancellation and failed submissions
4. Only one submission may be in flight
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from formwizard.config.settings import WizardSettings, load_settings
from formwizard.config.steps import load_step_registry
from formwizard.contracts import (
    FieldSchemaRegistry,
    ReviewField,
    ReviewSection,
    StepDefinition,
    StepIndicator,
    SubmissionInProgress,
    SubmissionResult,
    ValidationSeverity,
    WizardAction,
    WizardActionDecision,
    WizardActionType,
    WizardPhase,
    WizardResult,
    WizardState,
    create_checkout_registry,
    create_wizard_state,
    validate_wizard_action,
)

from .field_validator import Clock, StepValidator
from .submission import LoggingSink, SubmissionCoordinator, SubmissionSink, build_payload

logger = logging.getLogger(__name__)


@dataclass
class WizardViewModel:
    """State machine for one multi-step form session."""

    registry: FieldSchemaRegistry = field(default_factory=create_checkout_registry)
    coordinator: Optional[SubmissionCoordinator] = None
    settings: WizardSettings = field(default_factory=WizardSettings)
    clock: Optional[Clock] = None

    # Callbacks for UI updates
    on_state_changed: Optional[Callable[[WizardState], None]] = None
    on_action_validated: Optional[Callable[[WizardAction, WizardActionDecision], None]] = None
    on_error: Optional[Callable[[str, Dict[str, Any]], None]] = None

    state: WizardState = field(init=False)
    result: Optional[WizardResult] = field(default=None, init=False)
    last_submission: Optional[SubmissionResult] = field(default=None, init=False)

    def __post_init__(self):
        self.validator = StepValidator(self.clock)
        if self.coordinator is None:
            self.coordinator = SubmissionCoordinator(sink=LoggingSink(self.settings), settings=self.settings)
        self.state = create_wizard_state(self.registry.step_count)
        self._previous_phase = WizardPhase.REVIEW_PENDING

    @classmethod
    def from_config(
        cls,
        sink: Optional[SubmissionSink] = None,
        settings_path: Optional[Path] = None,
        registry_path: Optional[Path] = None,
        clock: Optional[Clock] = None,
    ) -> "WizardViewModel":
        """Create a viewmodel from YAML settings and step registry."""
        settings = load_settings(settings_path)
        registry = load_step_registry(registry_path)
        coordinator = None
        if sink is not None:
            coordinator = SubmissionCoordinator(sink=sink, settings=settings)
        return cls(registry=registry, coordinator=coordinator, settings=settings, clock=clock)

    # Read-only views for the presentation layer

    @property
    def phase(self) -> WizardPhase:
        return self.state.phase

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def current_step_definition(self) -> StepDefinition:
        return self.registry.get_step(self.state.current_step)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self.state.errors)

    @property
    def values(self) -> Dict[str, str]:
        return self.state.snapshot_values()

    @property
    def confirmation_open(self) -> bool:
        return self.state.confirmation_open

    def review_sections(self) -> List[ReviewSection]:
        """Collected values grouped by step, masked per settings."""
        sections = []
        for step in self.registry.steps:
            sections.append(
                ReviewSection(
                    step=step.position,
                    title=step.title,
                    fields=[
                        ReviewField(
                            name=f.name,
                            label=f.label,
                            value=self.settings.mask(f.name, self.state.values.get(f.name, "")),
                        )
                        for f in step.fields
                    ],
                )
            )
        return sections

    def step_indicators(self) -> List[StepIndicator]:
        current = self.state.current_step
        return [
            StepIndicator(
                position=step.position,
                title=step.title,
                reached=step.position <= current,
                active=step.position == current and self.state.phase == WizardPhase.COLLECTING,
            )
            for step in self.registry.steps
        ]

    # Operations

    def update_field(self, name: str, value: str) -> WizardActionDecision:
        return self.handle_action(
            WizardAction(action_type=WizardActionType.UPDATE_FIELD, context={"name": name, "value": value})
        )

    def advance(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.NEXT))

    def retreat(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.PREVIOUS))

    def cancel_review(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.CANCEL_REVIEW))

    def confirm_submit(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.CONFIRM_SUBMIT))

    async def confirm_submit_async(self) -> WizardActionDecision:
        return await self.handle_action_async(WizardAction(action_type=WizardActionType.CONFIRM_SUBMIT))

    def cancel(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.CANCEL))

    def reset(self) -> WizardActionDecision:
        return self.handle_action(WizardAction(action_type=WizardActionType.RESET))

    def handle_action(self, action: WizardAction) -> WizardActionDecision:
        """
        Handle a wizard action with validation and execution.

        1. Validate action against the transition table
        2. Execute action if allowed
        3. Update state and notify UI

        Returns:
            WizardActionDecision: allowed when the action took effect
        """
        try:
            decision = self._gate(action)
            if not decision.allowed:
                return decision
            if action.action_type == WizardActionType.CONFIRM_SUBMIT:
                payload = self._begin_submission()
                return self._finish_submission(self.coordinator.submit(payload, self.state.submission_attempts))
            return self._execute_action(action)
        except SubmissionInProgress as e:
            return self._reject_concurrent_submission(e)
        except Exception as e:
            self._report_error(action, e)
            raise

    async def handle_action_async(self, action: WizardAction) -> WizardActionDecision:
        """Like handle_action, but awaits asynchronous submission sinks."""
        if action.action_type != WizardActionType.CONFIRM_SUBMIT:
            return self.handle_action(action)
        try:
            decision = self._gate(action)
            if not decision.allowed:
                return decision
            payload = self._begin_submission()
            try:
                result = await self.coordinator.submit_async(payload, self.state.submission_attempts)
            except asyncio.CancelledError:
                self._finish_submission(
                    SubmissionResult.failed("Submission cancelled", attempt=self.state.submission_attempts)
                )
                raise
            return self._finish_submission(result)
        except SubmissionInProgress as e:
            return self._reject_concurrent_submission(e)
        except Exception as e:
            self._report_error(action, e)
            raise

    def _gate(self, action: WizardAction) -> WizardActionDecision:
        decision = validate_wizard_action(action, self.state)
        if self.on_action_validated:
            self.on_action_validated(action, decision)
        if not decision.allowed:
            logger.warning(
                f"Wizard action blocked: {action.action_type.value}, reason: {decision.reason_code}"
            )
        return decision

    def _report_error(self, action: WizardAction, error: Exception) -> None:
        error_msg = f"Failed to handle wizard action {action.action_type.value}: {error}"
        logger.exception(error_msg)
        if self.on_error:
            self.on_error(error_msg, {"action": action.action_type.value, "exception": str(error)})

    def _set_state(self, state: WizardState) -> None:
        self.state = state
        if self.on_state_changed:
            self.on_state_changed(state)

    def _execute_action(self, action: WizardAction) -> WizardActionDecision:
        action_type = action.action_type

        if action_type == WizardActionType.UPDATE_FIELD:
            return self._execute_update_field(action)
        elif action_type == WizardActionType.NEXT:
            return self._execute_next()
        elif action_type == WizardActionType.PREVIOUS:
            return self._execute_previous()
        elif action_type == WizardActionType.CANCEL_REVIEW:
            return self._execute_cancel_review()
        elif action_type == WizardActionType.CANCEL:
            return self._execute_cancel()
        elif action_type == WizardActionType.RESET:
            return self._execute_reset()

        logger.warning(f"Unknown wizard action type: {action_type}")
        return WizardActionDecision.block("UNKNOWN_ACTION", f"Unknown wizard action: {action_type}")

    def _execute_update_field(self, action: WizardAction) -> WizardActionDecision:
        name = str(action.context["name"])
        value = action.context.get("value")
        value = "" if value is None else str(value)

        state = self.state.with_field(name, value)
        review_closed = state.confirmation_open
        if review_closed:
            # Reviewed data changed, the last step has to be validated again
            logger.debug(f"Field {name} edited during review, closing review")
            state = state.close_review()

        if self.settings.validate_on_change and state.phase == WizardPhase.COLLECTING:
            field_def = self.registry.get_step(state.current_step).get_field(name)
            if field_def is not None:
                state = state.with_field_error(name, self.validator.validate_field(field_def, value))

        if self.registry.step_for_field(name) is None:
            logger.debug(f"Field {name} is not governed by any step and will not be submitted")

        self._set_state(state)
        if review_closed:
            return WizardActionDecision.allow(
                "REVIEW_CLOSED_BY_EDIT",
                f"Field {name} updated, review closed until the last step is validated again",
                details={"field": name, "step": state.current_step},
            )
        return WizardActionDecision.allow("FIELD_UPDATED", f"Field {name} updated")

    def _execute_next(self) -> WizardActionDecision:
        step = self.registry.get_step(self.state.current_step)
        validation = self.validator.validate_step(step, self.state.values)
        state = self.state.with_validation(validation)

        if not validation.is_valid:
            self._set_state(state)
            logger.warning(f"Step {step.position} validation failed: {sorted(validation.errors)}")
            return WizardActionDecision.block(
                reason_code="STEP_VALIDATION_FAILED",
                message=f"{step.title} has {len(validation.errors)} invalid field(s)",
                severity=ValidationSeverity.BLOCKING,
                recommended_action="Fix validation issues before proceeding",
                details={"step": step.position, "errors": dict(validation.errors)},
            )

        if state.is_last_step:
            self._set_state(state.open_review())
            logger.debug(f"Step {step.position} valid, review opened")
            return WizardActionDecision.allow("REVIEW_OPENED", "All steps valid, review opened")

        self._set_state(state.move_to_step(step.position + 1))
        logger.debug(f"Step {step.position} valid, moved to step {step.position + 1}")
        return WizardActionDecision.allow("STEP_ADVANCED", f"Moved to step {step.position + 1}")

    def _execute_previous(self) -> WizardActionDecision:
        previous_step = self.state.current_step - 1
        self._set_state(self.state.move_to_step(previous_step))
        return WizardActionDecision.allow("STEP_RETREATED", f"Returned to step {previous_step}")

    def _execute_cancel_review(self) -> WizardActionDecision:
        self._set_state(self.state.close_review())
        return WizardActionDecision.allow("REVIEW_CANCELLED", "Review closed, values kept")

    def _execute_cancel(self) -> WizardActionDecision:
        self._set_state(self.state.mark_cancelled())
        self.result = WizardResult.from_wizard_state(self.state)
        logger.info(f"Wizard {self.state.wizard_id} cancelled")
        return WizardActionDecision.allow("WIZARD_CANCELLED", "Wizard cancelled")

    def _execute_reset(self) -> WizardActionDecision:
        self.result = None
        self.last_submission = None
        self._set_state(create_wizard_state(self.registry.step_count))
        return WizardActionDecision.allow("WIZARD_RESET", "Wizard reset to step 1")

    def _begin_submission(self) -> Dict[str, str]:
        payload = build_payload(self.registry, self.state.values)
        self._previous_phase = self.state.phase
        self._set_state(self.state.mark_submitting())
        return payload

    def _finish_submission(self, result: SubmissionResult) -> WizardActionDecision:
        self.last_submission = result

        if not result.success:
            self._set_state(self.state.mark_submit_failed(result.message))
            return WizardActionDecision.block(
                reason_code="SUBMISSION_FAILED",
                message=f"Submission failed: {result.message}",
                severity=ValidationSeverity.ERROR,
                recommended_action="Retry confirm_submit; collected values were kept",
                details={"attempt": result.attempt},
            )

        self._set_state(self.state.mark_submitted(result.reference, self.settings.clear_values_on_submit))
        self.result = WizardResult.from_wizard_state(self.state)
        return WizardActionDecision.allow(
            "SUBMITTED",
            "Details submitted",
            details={"reference": result.reference},
        )

    def _reject_concurrent_submission(self, error: SubmissionInProgress) -> WizardActionDecision:
        # Coordinator shared with another session is busy; undo mark_submitting
        if self.state.phase == WizardPhase.SUBMITTING:
            self._set_state(
                self.state.model_copy(
                    update={
                        "phase": self._previous_phase,
                        "submission_attempts": self.state.submission_attempts - 1,
                    }
                )
            )
        logger.warning(f"Submission rejected: {error}")
        return WizardActionDecision.block(
            reason_code=error.reason_code,
            message=str(error),
            severity=ValidationSeverity.BLOCKING,
            recommended_action="Wait for the current submission to finish",
        )


def create_checkout_wizard(
    sink: Optional[SubmissionSink] = None,
    settings: Optional[WizardSettings] = None,
    clock: Optional[Clock] = None,
) -> WizardViewModel:
    """Create a viewmodel for the built-in personal / address / payment flow."""
    settings = settings or WizardSettings()
    coordinator = SubmissionCoordinator(sink=sink, settings=settings) if sink is not None else None
    return WizardViewModel(
        registry=create_checkout_registry(),
        coordinator=coordinator,
        settings=settings,
        clock=clock,
    )
