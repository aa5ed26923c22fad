"""
Submission controller: the submit lifecycle of one form instance.

Phases::

    idle ──valid──> submitting ──ok──────> succeeded ──> idle
                               └─raised──> failed ─────> idle

- An invalid form never leaves ``idle``: the validation errors are written
  into the form state and the submit collaborator is not called.
- ``idle -> submitting`` happens before the controller first suspends, so
  a second ``submit()`` scheduled on the same instance sees ``submitting``
  and is ignored. At most one submission is in flight per instance.
- ``succeeded`` and ``failed`` are momentary: listeners are told about
  them, then the controller returns to ``idle``.
- Cancelling the awaiting caller puts the form back in ``idle`` with its
  values kept, then re-raises ``CancelledError``. No signal is sent.

Usage::

    state = FormState()
    controller = SubmissionController(state, submitter=save_registration)
    controller.add_listener(push_state_to_client)

    state.set_values(request_data)
    outcome = await controller.submit()
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Union

from asgiref.sync import sync_to_async

from .config import config
from .error_handling import safe_error_message
from .exceptions import IllegalTransitionError, SubmissionTimeoutError
from .signals import submission_failed, submission_started, submission_succeeded
from .validation import ValidationOutcome

if TYPE_CHECKING:
    from .forms import FormState

logger = logging.getLogger(__name__)


class SubmissionPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: Dict[SubmissionPhase, FrozenSet[SubmissionPhase]] = {
    SubmissionPhase.IDLE: frozenset({SubmissionPhase.SUBMITTING}),
    SubmissionPhase.SUBMITTING: frozenset({SubmissionPhase.SUCCEEDED, SubmissionPhase.FAILED}),
    SubmissionPhase.SUCCEEDED: frozenset({SubmissionPhase.IDLE}),
    SubmissionPhase.FAILED: frozenset({SubmissionPhase.IDLE}),
}

Submitter = Callable[[Any], Union[Awaitable[None], None]]
Listener = Callable[[SubmissionPhase, "FormState"], Union[Awaitable[None], None]]

_DEFAULT = object()


async def simulated_submit(data: Any, delay: Optional[float] = None) -> None:
    """
    Stand-in for a remote registration endpoint.

    Waits ``delay`` seconds (``submit_delay`` from config by default) and
    always succeeds.
    """
    if delay is None:
        delay = config.get("submit_delay", 1.5)
    log_data = data.for_log() if hasattr(data, "for_log") else data
    logger.info("Form data before submission: %s", log_data)
    await asyncio.sleep(delay)
    logger.info("Form submitted successfully: %s", log_data)


def _as_coroutine_function(submitter: Submitter) -> Callable[[Any], Awaitable[None]]:
    """Async callables are used as-is; plain callables run in a worker thread."""
    if inspect.iscoroutinefunction(submitter):
        return submitter
    return sync_to_async(submitter)


class SubmissionController:
    """
    State machine driving validation-gated submission for a ``FormState``.

    Args:
        state: The form instance this controller owns.
        submitter: External submit operation, ``submitter(data)``. Async
            functions are awaited directly; sync callables run via
            ``sync_to_async``. Defaults to ``simulated_submit``.
        timeout: Seconds to wait for ``submitter`` before failing. Defaults
            to ``submit_timeout`` from config; ``None`` waits indefinitely.
        success_message: Notification shown after a successful submission.
            Defaults to ``success_message`` from config.
    """

    def __init__(
        self,
        state: "FormState",
        submitter: Optional[Submitter] = None,
        timeout: Any = _DEFAULT,
        success_message: Optional[str] = None,
    ):
        self.state = state
        self._submitter = _as_coroutine_function(submitter or simulated_submit)
        self.timeout: Optional[float] = config.get("submit_timeout") if timeout is _DEFAULT else timeout
        self.success_message = (
            success_message if success_message is not None else config.get("success_message", "")
        )
        self._listeners: List[Listener] = []
        self.last_outcome: Optional[ValidationOutcome] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SubmissionPhase:
        return self.state.phase

    @property
    def busy(self) -> bool:
        return self.state.phase is not SubmissionPhase.IDLE

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        """
        Register a callback invoked with ``(phase, state)`` after every
        transition and after a rejected (invalid) submit.

        Async listeners are awaited in registration order.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def submit(self) -> Optional[ValidationOutcome]:
        """
        Validate the form and, if valid, run the submit collaborator.

        Returns:
            The validation outcome, or None when the trigger was ignored
            because a submission is already in flight.
        """
        if self.busy:
            logger.debug("Ignoring submit trigger while %s", self.state.phase.value)
            return None

        self.state.submit_count += 1
        outcome = self.state.validate()
        self.last_outcome = outcome

        if not outcome.is_valid:
            logger.debug("Submission blocked by invalid fields: %s", [f.value for f in outcome.errors])
            await self._notify()
            return outcome

        data = outcome.data
        self.state.success_message = ""
        self.state.submit_error = ""
        self._transition(SubmissionPhase.SUBMITTING)
        self._send(submission_started, data=data)

        try:
            await self._notify()
            try:
                await self._call_submitter(data)
            except Exception as exc:
                await self._fail(data, exc)
            else:
                await self._succeed(data)
        except asyncio.CancelledError:
            # Cancelled callers must not leave the form locked
            logger.debug("Submission cancelled during %s", self.state.phase.value)
            self.state.phase = SubmissionPhase.IDLE
            raise

        return outcome

    async def _call_submitter(self, data: Any) -> None:
        if self.timeout is None:
            await self._submitter(data)
            return
        try:
            await asyncio.wait_for(self._submitter(data), self.timeout)
        except asyncio.TimeoutError:
            raise SubmissionTimeoutError(self.timeout) from None

    async def _succeed(self, data: Any) -> None:
        self._transition(SubmissionPhase.SUCCEEDED)
        self._send(submission_succeeded, data=data)
        self.state.reset()
        self.state.success_message = self.success_message
        await self._notify()

        self._transition(SubmissionPhase.IDLE)
        await self._notify()

    async def _fail(self, data: Any, exc: Exception) -> None:
        self._transition(SubmissionPhase.FAILED)
        logger.error("Submission failed: %s", type(exc).__name__, exc_info=exc)
        self.state.submit_error = safe_error_message(exc, "submit")
        self._send(submission_failed, data=data, error=exc)
        await self._notify()

        self._transition(SubmissionPhase.IDLE)
        await self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, target: SubmissionPhase) -> None:
        current = self.state.phase
        if target not in _TRANSITIONS[current]:
            raise IllegalTransitionError(current.value, target.value)
        logger.debug("Submission phase %s -> %s", current.value, target.value)
        self.state.phase = target

    def _send(self, signal, **kwargs) -> None:
        for receiver, result in signal.send_robust(sender=type(self), form_state=self.state, **kwargs):
            if isinstance(result, Exception):
                logger.error(
                    "Signal receiver %r failed: %s",
                    receiver,
                    type(result).__name__,
                    exc_info=result,
                )

    async def _notify(self) -> None:
        phase = self.state.phase
        for listener in list(self._listeners):
            try:
                result = listener(phase, self.state)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Submission listener %r failed during %s", listener, phase.value)
