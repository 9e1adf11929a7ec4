"""
Wizard Action Executor - Executes wizard actions with result tracking.

This module replays WizardAction objects, as a presentation layer emits
them, against a WizardViewModel and keeps execution statistics.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from formwizard.contracts import WizardAction, WizardActionDecision, WizardActionType, WizardState

from .wizard_viewmodel import WizardViewModel

logger = logging.getLogger(__name__)

CRITICAL_ACTIONS = frozenset({
    WizardActionType.NEXT,
    WizardActionType.CONFIRM_SUBMIT,
})


@dataclass
class WizardActionExecutor:
    """Executor for wizard actions."""

    viewmodel: WizardViewModel

    # Execution statistics
    execution_count: int = field(default=0, init=False)
    success_count: int = field(default=0, init=False)
    blocked_count: int = field(default=0, init=False)

    on_execution_blocked: Optional[Callable[[WizardAction, WizardActionDecision], None]] = None
    on_execution_success: Optional[Callable[[WizardAction, WizardState], None]] = None

    def execute(self, action: WizardAction) -> WizardActionDecision:
        """
        Execute a wizard action.

        Args:
            action: Wizard action to execute

        Returns:
            WizardActionDecision from the viewmodel
        """
        self.execution_count += 1
        decision = self.viewmodel.handle_action(action)

        if decision.allowed:
            self.success_count += 1
            logger.debug(f"Action execution succeeded: {action.action_type.value}")
            if self.on_execution_success:
                self.on_execution_success(action, self.viewmodel.state)
        else:
            self.blocked_count += 1
            logger.warning(f"Action execution blocked: {action.action_type.value} ({decision.reason_code})")
            if self.on_execution_blocked:
                self.on_execution_blocked(action, decision)

        return decision

    def execute_batch(self, actions: List[WizardAction]) -> Dict[str, Any]:
        """
        Execute a batch of wizard actions.

        Execution stops after a blocked critical action (NEXT, CONFIRM_SUBMIT),
        since every later action assumes it went through.

        Returns:
            Dict with execution results
        """
        results: Dict[str, Any] = {
            "total": len(actions),
            "succeeded": 0,
            "failed": 0,
            "stopped_at": None,
            "results": [],
        }

        for i, action in enumerate(actions):
            logger.debug(f"Executing batch action {i + 1}/{len(actions)}: {action.action_type.value}")
            decision = self.execute(action)

            results["results"].append({
                "index": i,
                "action_type": action.action_type.value,
                "success": decision.allowed,
                "reason_code": decision.reason_code,
            })

            if decision.allowed:
                results["succeeded"] += 1
                continue

            results["failed"] += 1
            if action.action_type in CRITICAL_ACTIONS:
                logger.warning(f"Stopping batch execution due to critical action failure: {action.action_type.value}")
                results["stopped_at"] = i
                break

        return results

    def get_execution_stats(self) -> Dict[str, Any]:
        success_rate = (self.success_count / self.execution_count * 100) if self.execution_count > 0 else 0

        return {
            "execution_count": self.execution_count,
            "success_count": self.success_count,
            "blocked_count": self.blocked_count,
            "success_rate": success_rate,
            "phase": self.viewmodel.state.phase.value,
            "current_step": self.viewmodel.state.current_step,
        }

    def reset_stats(self):
        self.execution_count = 0
        self.success_count = 0
        self.blocked_count = 0
        logger.debug("Execution statistics reset")

    def create_action(self, action_type: WizardActionType, **context) -> WizardAction:
        return WizardAction(action_type=action_type, context=context)

    # Convenience methods for common actions

    def execute_fill(self, values: Dict[str, str]) -> List[WizardActionDecision]:
        """Execute one UPDATE_FIELD action per value."""
        return [
            self.execute(self.create_action(WizardActionType.UPDATE_FIELD, name=name, value=value))
            for name, value in values.items()
        ]

    def execute_next(self) -> WizardActionDecision:
        return self.execute(self.create_action(WizardActionType.NEXT))

    def execute_previous(self) -> WizardActionDecision:
        return self.execute(self.create_action(WizardActionType.PREVIOUS))

    def execute_cancel_review(self) -> WizardActionDecision:
        return self.execute(self.create_action(WizardActionType.CANCEL_REVIEW))

    def execute_confirm_submit(self) -> WizardActionDecision:
        return self.execute(self.create_action(WizardActionType.CONFIRM_SUBMIT))


def create_wizard_action_executor(viewmodel: WizardViewModel) -> WizardActionExecutor:
    """Create a wizard action executor for the given viewmodel."""
    return WizardActionExecutor(viewmodel=viewmodel)
