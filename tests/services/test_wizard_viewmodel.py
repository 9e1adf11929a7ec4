"""
Tests for the wizard state machine.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from formwizard.config.settings import WizardSettings
from formwizard.contracts import (
    FieldDefinition,
    FieldSchemaRegistry,
    RequiredRule,
    StepDefinition,
    StepValidationFailed,
    WizardPhase,
)
from formwizard.services import InMemorySink, SubmissionCoordinator, WizardViewModel, create_checkout_wizard


def fill(wizard, values):
    for name, value in values.items():
        assert wizard.update_field(name, value).allowed


def reach_review(wizard, all_values):
    fill(wizard, all_values)
    for _ in range(3):
        assert wizard.advance().allowed
    assert wizard.phase == WizardPhase.REVIEW_PENDING


class TestAdvance:
    """Test advance()."""

    @pytest.mark.parametrize("position", [1, 2, 3])
    def test_empty_step_blocks_with_error_per_field(self, wizard, all_values, position):
        registry = wizard.registry
        for earlier in range(1, position):
            fill(wizard, {n: all_values[n] for n in registry.get_step(earlier).field_names})
            assert wizard.advance().allowed

        decision = wizard.advance()

        assert not decision.allowed
        assert decision.reason_code == "STEP_VALIDATION_FAILED"
        assert wizard.current_step == position
        assert set(wizard.errors) == set(registry.get_step(position).field_names)
        assert decision.details["errors"] == wizard.errors
        with pytest.raises(StepValidationFailed):
            decision.raise_if_blocked()

    def test_success_clears_errors_and_moves_on(self, wizard, personal_values):
        wizard.advance()
        assert wizard.errors

        fill(wizard, personal_values)
        decision = wizard.advance()

        assert decision.reason_code == "STEP_ADVANCED"
        assert wizard.current_step == 2
        assert wizard.errors == {}

    def test_revalidates_on_every_call(self, wizard, personal_values):
        fill(wizard, {**personal_values, "email": "bad"})
        assert wizard.advance().details["errors"] == {"email": "Invalid email"}
        assert wizard.advance().details["errors"] == {"email": "Invalid email"}
        wizard.update_field("email", "a@b.co")
        assert wizard.advance().allowed
        assert len(wizard.state.validation_history) == 3

    def test_update_field_does_not_validate(self, wizard):
        wizard.update_field("email", "bad")
        assert wizard.errors == {}

    def test_last_step_opens_review_instead_of_incrementing(self, wizard, all_values):
        fill(wizard, all_values)
        wizard.advance()
        wizard.advance()
        decision = wizard.advance()

        assert decision.reason_code == "REVIEW_OPENED"
        assert wizard.current_step == 3
        assert wizard.confirmation_open

    def test_advance_twice_at_review_does_not_move(self, wizard, all_values):
        reach_review(wizard, all_values)
        values_before = wizard.values

        decision = wizard.advance()

        assert decision.reason_code == "ALREADY_AT_REVIEW"
        assert wizard.current_step == 3
        assert wizard.phase == WizardPhase.REVIEW_PENDING
        assert wizard.values == values_before

    def test_same_transition_after_going_back(self, wizard, personal_values):
        fill(wizard, personal_values)
        assert wizard.advance().reason_code == "STEP_ADVANCED"
        wizard.retreat()
        assert wizard.advance().reason_code == "STEP_ADVANCED"
        assert wizard.current_step == 2


class TestRetreat:
    """Test retreat()."""

    def test_first_step_is_floor(self, wizard):
        decision = wizard.retreat()
        assert decision.reason_code == "NO_PREVIOUS_STEP"
        assert wizard.current_step == 1
        assert wizard.errors == {}

    def test_does_not_validate_and_clears_errors(self, wizard, personal_values):
        fill(wizard, personal_values)
        wizard.advance()
        wizard.advance()
        assert wizard.errors

        decision = wizard.retreat()

        assert decision.allowed
        assert wizard.current_step == 1
        assert wizard.errors == {}

    def test_values_survive_navigation(self, wizard, personal_values, address_values):
        fill(wizard, personal_values)
        wizard.advance()
        fill(wizard, {"city": "London"})
        wizard.retreat()
        assert wizard.values == {**personal_values, "city": "London"}
        wizard.advance()
        assert wizard.values["city"] == "London"

    def test_blocked_during_review(self, wizard, all_values):
        reach_review(wizard, all_values)
        assert wizard.retreat().reason_code == "ALREADY_AT_REVIEW"
        assert wizard.confirmation_open


class TestReview:
    """Test review, cancel and confirm."""

    def test_cancel_review_keeps_values(self, wizard, all_values):
        reach_review(wizard, all_values)
        values_before = wizard.values

        decision = wizard.cancel_review()

        assert decision.allowed
        assert wizard.phase == WizardPhase.COLLECTING
        assert wizard.current_step == 3
        assert wizard.values == values_before

        assert wizard.advance().reason_code == "REVIEW_OPENED"
        assert wizard.values == values_before

    def test_cancel_review_when_not_open(self, wizard):
        assert wizard.cancel_review().reason_code == "REVIEW_NOT_OPEN"

    def test_confirm_without_review(self, wizard, sink):
        assert wizard.confirm_submit().reason_code == "REVIEW_NOT_OPEN"
        assert sink.delivered == []

    def test_end_to_end_delivers_union(self, wizard, sink, all_values):
        reach_review(wizard, all_values)
        decision = wizard.confirm_submit()

        assert decision.reason_code == "SUBMITTED"
        assert wizard.phase == WizardPhase.SUBMITTED
        assert sink.delivered == [all_values]
        assert decision.details["reference"] == "submission-1"
        assert wizard.result.submission_reference == "submission-1"
        assert wizard.result.validation_passed == 3

    def test_payload_excludes_unknown_fields_and_fills_missing(self, sink, fixed_clock):
        registry = FieldSchemaRegistry(steps=(
            StepDefinition(position=1, title="Only", fields=(
                FieldDefinition(name="a", label="A", rules=(RequiredRule(message="A is required"),)),
                FieldDefinition(name="b", label="B"),
            )),
        ))
        wizard = WizardViewModel(
            registry=registry,
            coordinator=SubmissionCoordinator(sink=sink),
            clock=fixed_clock,
        )
        wizard.update_field("a", "1")
        wizard.update_field("extra", "x")
        assert wizard.advance().reason_code == "REVIEW_OPENED"
        wizard.confirm_submit()
        assert sink.delivered == [{"a": "1", "b": ""}]

    def test_values_cleared_after_submit(self, wizard, all_values):
        reach_review(wizard, all_values)
        wizard.confirm_submit()
        assert wizard.values == {}
        assert wizard.advance().reason_code == "WIZARD_CLOSED"

    def test_values_kept_after_submit_when_configured(self, sink, fixed_clock, all_values):
        wizard = create_checkout_wizard(
            sink=sink, settings=WizardSettings(clear_values_on_submit=False), clock=fixed_clock
        )
        reach_review(wizard, all_values)
        wizard.confirm_submit()
        assert wizard.values == all_values

    def test_failed_submission_keeps_values_and_allows_retry(self, fixed_clock, all_values):
        sink = InMemorySink(failures_remaining=1, failure_message="gateway timeout")
        wizard = create_checkout_wizard(sink=sink, clock=fixed_clock)
        reach_review(wizard, all_values)

        failed = wizard.confirm_submit()

        assert failed.reason_code == "SUBMISSION_FAILED"
        assert wizard.phase == WizardPhase.SUBMIT_FAILED
        assert wizard.confirmation_open
        assert wizard.values == all_values
        assert wizard.state.submission_error == "gateway timeout"

        retried = wizard.confirm_submit()

        assert retried.reason_code == "SUBMITTED"
        assert sink.delivered == [all_values]
        assert wizard.state.submission_attempts == 2

    def test_cancel_review_after_failed_submission(self, fixed_clock, all_values):
        wizard = create_checkout_wizard(sink=InMemorySink(failures_remaining=1), clock=fixed_clock)
        reach_review(wizard, all_values)
        wizard.confirm_submit()

        assert wizard.cancel_review().allowed
        assert wizard.phase == WizardPhase.COLLECTING
        assert wizard.state.submission_error is None
        assert wizard.values == all_values

    def test_editing_during_review_closes_it(self, wizard, all_values):
        reach_review(wizard, all_values)
        decision = wizard.update_field("cvv", "999")
        assert decision.allowed
        assert decision.reason_code == "REVIEW_CLOSED_BY_EDIT"
        assert decision.details == {"field": "cvv", "step": 3}
        assert wizard.phase == WizardPhase.COLLECTING
        assert wizard.current_step == 3
        assert wizard.values["cvv"] == "999"

    def test_edit_outside_review_is_plain_update(self, wizard):
        assert wizard.update_field("city", "Oslo").reason_code == "FIELD_UPDATED"

    def test_aware_clock_reaches_review(self, sink, all_values):
        wizard = create_checkout_wizard(sink=sink, clock=lambda: datetime(2026, 10, 18, tzinfo=timezone.utc))
        reach_review(wizard, all_values)
        assert wizard.confirm_submit().reason_code == "SUBMITTED"

    def test_aware_clock_rejects_current_month(self, sink, all_values):
        wizard = create_checkout_wizard(sink=sink, clock=lambda: datetime(2026, 10, 18, tzinfo=timezone.utc))
        fill(wizard, {**all_values, "expiryDate": "10/26"})
        wizard.advance()
        wizard.advance()
        decision = wizard.advance()
        assert decision.reason_code == "STEP_VALIDATION_FAILED"
        assert wizard.errors == {"expiryDate": "Expiry date cannot be in the past"}

    def test_review_sections_mask_payment_fields(self, wizard, all_values):
        reach_review(wizard, all_values)
        sections = wizard.review_sections()

        assert [s.title for s in sections] == ["Personal Details", "Address Details", "Payment Details"]
        payment = {f.name: f.value for f in sections[2].fields}
        assert payment["cardNumber"] == "************1111"
        assert payment["cvv"] == "***"
        assert payment["expiryDate"] == "12/30"
        assert [f.label for f in sections[0].fields] == ["First Name", "Last Name", "Email"]


class TestAsyncSubmission:
    """Test confirm_submit_async()."""

    def test_second_confirm_rejected_while_in_flight(self, fixed_clock, all_values):
        delivered = []

        async def slow_sink(payload):
            await asyncio.sleep(0.01)
            delivered.append(payload)
            return "async-1"

        wizard = create_checkout_wizard(sink=slow_sink, clock=fixed_clock)
        reach_review(wizard, all_values)

        async def run():
            first = asyncio.ensure_future(wizard.confirm_submit_async())
            await asyncio.sleep(0)
            assert wizard.phase == WizardPhase.SUBMITTING
            second = await wizard.confirm_submit_async()
            return await first, second

        first, second = asyncio.run(run())

        assert first.reason_code == "SUBMITTED"
        assert second.reason_code == "SUBMISSION_IN_PROGRESS"
        assert delivered == [all_values]

    def test_sync_confirm_with_async_sink_fails_cleanly(self, fixed_clock, all_values):
        async def async_sink(payload):
            return "never"

        wizard = create_checkout_wizard(sink=async_sink, clock=fixed_clock)
        reach_review(wizard, all_values)

        decision = wizard.confirm_submit()

        assert decision.reason_code == "SUBMISSION_FAILED"
        assert wizard.phase == WizardPhase.SUBMIT_FAILED
        assert asyncio.run(wizard.confirm_submit_async()).reason_code == "SUBMITTED"

    def test_non_submit_actions_pass_through(self, wizard):
        from formwizard.contracts import WizardAction, WizardActionType

        decision = asyncio.run(wizard.handle_action_async(WizardAction(action_type=WizardActionType.NEXT)))
        assert decision.reason_code == "STEP_VALIDATION_FAILED"


class TestLiveValidation:
    """Test validate_on_change."""

    def test_sets_and_clears_field_error(self, sink, fixed_clock):
        wizard = create_checkout_wizard(
            sink=sink, settings=WizardSettings(validate_on_change=True), clock=fixed_clock
        )
        wizard.update_field("email", "bad")
        assert wizard.errors == {"email": "Invalid email"}
        wizard.update_field("email", "a@b.co")
        assert wizard.errors == {}

    def test_ignores_fields_of_other_steps(self, sink, fixed_clock):
        wizard = create_checkout_wizard(
            sink=sink, settings=WizardSettings(validate_on_change=True), clock=fixed_clock
        )
        wizard.update_field("cvv", "1")
        assert wizard.errors == {}


class TestLifecycle:
    """Test cancel(), reset(), callbacks and views."""

    def test_cancel_discards_values(self, wizard, personal_values):
        fill(wizard, personal_values)
        assert wizard.cancel().allowed
        assert wizard.phase == WizardPhase.CANCELLED
        assert wizard.values == {}
        assert wizard.result.phase == WizardPhase.CANCELLED
        assert wizard.update_field("city", "x").reason_code == "WIZARD_CLOSED"

    def test_reset_starts_over(self, wizard, all_values):
        reach_review(wizard, all_values)
        wizard.confirm_submit()
        old_id = wizard.state.wizard_id

        assert wizard.reset().allowed
        assert wizard.phase == WizardPhase.COLLECTING
        assert wizard.current_step == 1
        assert wizard.values == {}
        assert wizard.result is None
        assert wizard.state.wizard_id != old_id

    def test_callbacks(self, sink, fixed_clock, personal_values):
        on_state_changed = Mock()
        on_action_validated = Mock()
        wizard = create_checkout_wizard(sink=sink, clock=fixed_clock)
        wizard.on_state_changed = on_state_changed
        wizard.on_action_validated = on_action_validated

        fill(wizard, personal_values)
        wizard.advance()

        assert on_state_changed.call_count == 4
        assert on_state_changed.call_args[0][0].current_step == 2
        assert on_action_validated.call_count == 4

    def test_unexpected_error_is_reported_and_raised(self, wizard):
        on_error = Mock()
        wizard.on_error = on_error
        wizard.on_state_changed = Mock(side_effect=RuntimeError("render failed"))

        with pytest.raises(RuntimeError):
            wizard.update_field("city", "x")
        on_error.assert_called_once()

    def test_step_indicators(self, wizard, personal_values):
        fill(wizard, personal_values)
        wizard.advance()
        indicators = wizard.step_indicators()
        assert [i.reached for i in indicators] == [True, True, False]
        assert [i.active for i in indicators] == [False, True, False]
        assert wizard.state.progress_percent == 50.0
        assert wizard.state.can_go_back

    def test_current_step_definition(self, wizard):
        assert wizard.current_step_definition.title == "Personal Details"
