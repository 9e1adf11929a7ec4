"""
Submission Coordinator - Hands collected values to an external sink.

A sink is any callable taking the payload mapping and returning an optional
reference string (sync) or an awaitable of one (async). Delivery failures
are raised by the sink and reported back as a failed SubmissionResult; they
never escape the coordinator.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from formwizard.config.settings import WizardSettings
from formwizard.contracts import FieldSchemaRegistry, SubmissionError, SubmissionInProgress, SubmissionResult

logger = logging.getLogger(__name__)

SubmissionSink = Callable[[Dict[str, str]], Any]


def build_payload(registry: FieldSchemaRegistry, values: Mapping[str, str]) -> Dict[str, str]:
    """Union of every registered field, missing ones as empty strings."""
    return {name: values.get(name, "") for name in registry.all_field_names()}


@dataclass
class SubmissionCoordinator:
    """Delivers payloads to a sink, one at a time."""

    sink: SubmissionSink
    settings: WizardSettings = field(default_factory=WizardSettings)

    in_flight: bool = field(default=False, init=False)

    def _masked(self, payload: Mapping[str, str]) -> Dict[str, str]:
        return {name: self.settings.mask(name, value) for name, value in payload.items()}

    def _begin(self) -> None:
        if self.in_flight:
            raise SubmissionInProgress("A submission is already in progress")
        self.in_flight = True

    def _finish(self, reference: Any, attempt: int) -> SubmissionResult:
        ref = None if reference is None else str(reference)
        logger.info(f"Submission accepted (attempt {attempt}, reference={ref})")
        return SubmissionResult.succeeded(reference=ref, attempt=attempt)

    def _fail(self, error: Exception, attempt: int) -> SubmissionResult:
        logger.exception(f"Submission failed (attempt {attempt}): {error}")
        return SubmissionResult.failed(message=str(error) or type(error).__name__, attempt=attempt)

    def submit(self, payload: Dict[str, str], attempt: int = 1) -> SubmissionResult:
        """Deliver ``payload`` through a synchronous sink."""
        self._begin()
        try:
            logger.debug(f"Submitting payload: {self._masked(payload)}")
            reference = self.sink(dict(payload))
            if inspect.isawaitable(reference):
                if inspect.iscoroutine(reference):
                    reference.close()
                raise SubmissionError("Sink is asynchronous, use submit_async()")
            return self._finish(reference, attempt)
        except Exception as e:
            return self._fail(e, attempt)
        finally:
            self.in_flight = False

    async def submit_async(self, payload: Dict[str, str], attempt: int = 1) -> SubmissionResult:
        """Deliver ``payload`` through a sync or async sink."""
        self._begin()
        try:
            logger.debug(f"Submitting payload: {self._masked(payload)}")
            reference = self.sink(dict(payload))
            if inspect.isawaitable(reference):
                reference = await reference
            return self._finish(reference, attempt)
        except Exception as e:
            return self._fail(e, attempt)
        finally:
            self.in_flight = False


@dataclass
class InMemorySink:
    """Sink that keeps every delivered payload; optionally fails the next deliveries."""

    delivered: List[Dict[str, str]] = field(default_factory=list)
    failures_remaining: int = 0
    failure_message: str = "Delivery failed"

    def __call__(self, payload: Dict[str, str]) -> str:
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise SubmissionError(self.failure_message)
        self.delivered.append(dict(payload))
        return f"submission-{len(self.delivered)}"


@dataclass
class LoggingSink:
    """Sink that only logs the payload, masking sensitive fields."""

    settings: WizardSettings = field(default_factory=WizardSettings)
    log_level: int = logging.INFO

    def __call__(self, payload: Dict[str, str]) -> None:
        masked = {name: self.settings.mask(name, value) for name, value in payload.items()}
        logger.log(self.log_level, f"Details submitted: {masked}")
        return None
