"""
Tests for SubmissionController: validation gating, phase transitions,
re-entrancy, failure handling and signals.
"""

import asyncio
import functools
import logging

import pytest

from regform.exceptions import IllegalTransitionError, SubmissionTimeoutError
from regform.forms import FormState
from regform.registration import RegistrationData
from regform.signals import submission_failed, submission_started, submission_succeeded
from regform.submission import SubmissionController, SubmissionPhase, simulated_submit
from regform.validation import Invalid, Valid


class Recorder:
    """Submit collaborator that records calls and can be told to fail."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def __call__(self, data):
        self.calls.append(data)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error


def _phases(controller):
    seen = []
    controller.add_listener(lambda phase, state: seen.append(phase))
    return seen


class TestGating:
    @pytest.mark.asyncio
    async def test_invalid_form_never_calls_submitter(self):
        submitter = Recorder()
        state = FormState()
        controller = SubmissionController(state, submitter)

        outcome = await controller.submit()

        assert isinstance(outcome, Invalid)
        assert submitter.calls == []
        assert state.phase is SubmissionPhase.IDLE
        assert state.errors == outcome.errors

    @pytest.mark.asyncio
    async def test_mismatch_blocks_submission(self, valid_values):
        submitter = Recorder()
        state = FormState(initial=dict(valid_values, confirmPassword="secret2"))
        controller = SubmissionController(state, submitter)

        outcome = await controller.submit()

        assert outcome.by_name() == {"confirmPassword": "Паролі не співпадають"}
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_invalid_submit_notifies_listeners_in_idle(self):
        controller = SubmissionController(FormState(), Recorder())
        seen = _phases(controller)
        await controller.submit()
        assert seen == [SubmissionPhase.IDLE]


class TestSuccess:
    @pytest.mark.asyncio
    async def test_concrete_scenario(self, valid_values):
        state = FormState(initial=valid_values)
        controller = SubmissionController(state, functools.partial(simulated_submit, delay=0.01))
        seen = _phases(controller)

        outcome = await controller.submit()

        assert isinstance(outcome, Valid)
        assert seen == [SubmissionPhase.SUBMITTING, SubmissionPhase.SUCCEEDED, SubmissionPhase.IDLE]
        assert state.phase is SubmissionPhase.IDLE
        assert state.data["firstName"] == ""
        assert state.data["confirmPassword"] == ""
        assert state.errors == {}
        assert state.success_message == "Форма успішно відправлена!"

    @pytest.mark.asyncio
    async def test_submitter_receives_typed_record(self, valid_values):
        submitter = Recorder()
        state = FormState(initial=dict(valid_values, age="25"))
        await SubmissionController(state, submitter).submit()

        assert submitter.calls == [
            RegistrationData("Jo", "Doe", "jo@x.com", 25, "secret", "secret")
        ]

    @pytest.mark.asyncio
    async def test_success_message_shown_once_per_submission(self, valid_values):
        state = FormState(initial=valid_values)
        controller = SubmissionController(state, Recorder(), success_message="ok")
        messages = []
        controller.add_listener(lambda phase, s: messages.append((phase, s.success_message)))

        await controller.submit()
        state.set_values(valid_values)
        await controller.submit()

        assert messages == [
            (SubmissionPhase.SUBMITTING, ""),
            (SubmissionPhase.SUCCEEDED, "ok"),
            (SubmissionPhase.IDLE, "ok"),
            (SubmissionPhase.SUBMITTING, ""),
            (SubmissionPhase.SUCCEEDED, "ok"),
            (SubmissionPhase.IDLE, "ok"),
        ]

    @pytest.mark.asyncio
    async def test_sync_submitter_runs_in_thread(self, valid_values):
        calls = []

        def submitter(data):
            calls.append(data.email)

        state = FormState(initial=valid_values)
        await SubmissionController(state, submitter).submit()

        assert calls == ["jo@x.com"]
        assert state.success_message

    @pytest.mark.asyncio
    async def test_async_listener_awaited(self, valid_values):
        seen = []

        async def listener(phase, state):
            await asyncio.sleep(0)
            seen.append((phase, state.submit_disabled))

        controller = SubmissionController(FormState(initial=valid_values), Recorder())
        controller.add_listener(listener)
        await controller.submit()

        assert seen == [
            (SubmissionPhase.SUBMITTING, True),
            (SubmissionPhase.SUCCEEDED, False),
            (SubmissionPhase.IDLE, False),
        ]


class TestReentrancy:
    @pytest.mark.asyncio
    async def test_second_trigger_while_submitting_is_noop(self, valid_values):
        release = asyncio.Event()
        calls = []

        async def submitter(data):
            calls.append(data)
            await release.wait()

        state = FormState(initial=valid_values)
        controller = SubmissionController(state, submitter)

        first = asyncio.ensure_future(controller.submit())
        await asyncio.sleep(0)
        assert state.phase is SubmissionPhase.SUBMITTING
        assert state.submit_disabled is True

        assert await controller.submit() is None

        release.set()
        await first
        assert len(calls) == 1
        assert state.phase is SubmissionPhase.IDLE

    @pytest.mark.asyncio
    async def test_concurrent_triggers_submit_once(self, valid_values):
        submitter = Recorder()
        controller = SubmissionController(FormState(initial=valid_values), submitter)

        results = await asyncio.gather(controller.submit(), controller.submit(), controller.submit())

        assert len(submitter.calls) == 1
        assert sum(result is None for result in results) == 2

    @pytest.mark.asyncio
    async def test_can_submit_again_after_completion(self, valid_values):
        submitter = Recorder()
        state = FormState(initial=valid_values)
        controller = SubmissionController(state, submitter)

        await controller.submit()
        state.set_values(valid_values)
        await controller.submit()

        assert len(submitter.calls) == 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_caller_unlocks_form(self, valid_values):
        async def slow(data):
            await asyncio.sleep(10)

        state = FormState(initial=valid_values)
        controller = SubmissionController(state, slow)

        task = asyncio.ensure_future(controller.submit())
        await asyncio.sleep(0)
        assert state.phase is SubmissionPhase.SUBMITTING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert state.phase is SubmissionPhase.IDLE
        assert state.submit_disabled is False
        assert state.data["email"] == "jo@x.com"
        assert state.submit_error == ""

    @pytest.mark.asyncio
    async def test_submit_works_again_after_cancel(self, valid_values):
        submitter = Recorder()
        release = asyncio.Event()

        async def first_then_recorder(data):
            if not submitter.calls:
                submitter.calls.append(data)
                await release.wait()
            else:
                await submitter(data)

        state = FormState(initial=valid_values)
        controller = SubmissionController(state, first_then_recorder)

        task = asyncio.ensure_future(controller.submit())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        outcome = await controller.submit()

        assert outcome is not None and outcome.is_valid
        assert len(submitter.calls) == 2
        assert state.success_message == "Форма успішно відправлена!"

    @pytest.mark.asyncio
    async def test_no_signal_on_cancel(self, valid_values):
        events = []

        def receiver(sender, **kwargs):
            events.append(kwargs)

        async def slow(data):
            await asyncio.sleep(10)

        controller = SubmissionController(FormState(initial=valid_values), slow)
        submission_failed.connect(receiver)
        submission_succeeded.connect(receiver)
        try:
            task = asyncio.ensure_future(controller.submit())
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            submission_failed.disconnect(receiver)
            submission_succeeded.disconnect(receiver)

        assert events == []


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_preserves_values(self, valid_values, caplog):
        submitter = Recorder(error=RuntimeError("backend down"))
        state = FormState(initial=valid_values)
        controller = SubmissionController(state, submitter)
        seen = _phases(controller)

        with caplog.at_level(logging.ERROR, logger="regform.submission"):
            outcome = await controller.submit()

        assert isinstance(outcome, Valid)
        assert seen == [SubmissionPhase.SUBMITTING, SubmissionPhase.FAILED, SubmissionPhase.IDLE]
        assert state.phase is SubmissionPhase.IDLE
        assert state.data == FormState(initial=valid_values).data
        assert state.success_message == ""
        assert state.submit_error
        assert "Submission failed" in caplog.text

    @pytest.mark.asyncio
    async def test_submit_error_generic_outside_debug(self, valid_values, settings):
        settings.DEBUG = False
        state = FormState(initial=valid_values)
        await SubmissionController(state, Recorder(error=RuntimeError("secret dsn"))).submit()
        assert "secret dsn" not in state.submit_error

    @pytest.mark.asyncio
    async def test_submit_error_detailed_in_debug(self, valid_values):
        from regform.config import config

        config.set("debug_errors", True)
        state = FormState(initial=valid_values)
        await SubmissionController(state, Recorder(error=RuntimeError("backend down"))).submit()
        assert state.submit_error == "RuntimeError: backend down"

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, valid_values):
        submitter = Recorder(error=RuntimeError("flaky"))
        state = FormState(initial=valid_values)
        controller = SubmissionController(state, submitter)

        await controller.submit()
        submitter.error = None
        await controller.submit()

        assert len(submitter.calls) == 2
        assert state.submit_error == ""
        assert state.data["firstName"] == ""

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self, valid_values):
        async def slow(data):
            await asyncio.sleep(5)

        state = FormState(initial=valid_values)
        controller = SubmissionController(state, slow, timeout=0.01)
        errors = []

        def receiver(sender, error, **kwargs):
            errors.append(error)

        submission_failed.connect(receiver)
        try:
            await controller.submit()
        finally:
            submission_failed.disconnect(receiver)

        assert len(errors) == 1
        assert isinstance(errors[0], SubmissionTimeoutError)
        assert state.phase is SubmissionPhase.IDLE
        assert state.data["email"] == "jo@x.com"

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_lifecycle(self, valid_values):
        def broken(phase, state):
            raise ValueError("listener bug")

        state = FormState(initial=valid_values)
        controller = SubmissionController(state, Recorder())
        controller.add_listener(broken)
        await controller.submit()

        assert state.phase is SubmissionPhase.IDLE
        assert state.success_message


class TestSignals:
    @pytest.mark.asyncio
    async def test_started_and_succeeded(self, valid_values):
        events = []

        def on_started(sender, form_state, data, **kwargs):
            events.append(("started", form_state.phase, data.email))

        def on_succeeded(sender, form_state, data, **kwargs):
            events.append(("succeeded", form_state.phase, data.email))

        submission_started.connect(on_started)
        submission_succeeded.connect(on_succeeded)
        try:
            await SubmissionController(FormState(initial=valid_values), Recorder()).submit()
        finally:
            submission_started.disconnect(on_started)
            submission_succeeded.disconnect(on_succeeded)

        assert events == [
            ("started", SubmissionPhase.SUBMITTING, "jo@x.com"),
            ("succeeded", SubmissionPhase.SUCCEEDED, "jo@x.com"),
        ]

    @pytest.mark.asyncio
    async def test_no_signal_for_invalid_form(self):
        events = []

        def on_started(sender, **kwargs):
            events.append(kwargs)

        submission_started.connect(on_started)
        try:
            await SubmissionController(FormState(), Recorder()).submit()
        finally:
            submission_started.disconnect(on_started)

        assert events == []


class TestTransitions:
    def test_illegal_transition_raises(self):
        controller = SubmissionController(FormState(), Recorder())
        with pytest.raises(IllegalTransitionError) as exc_info:
            controller._transition(SubmissionPhase.SUCCEEDED)
        assert "idle" in exc_info.value.message
        assert exc_info.value.hint

    def test_timeout_default_from_config(self):
        from regform.config import config

        config.set("submit_timeout", 12)
        assert SubmissionController(FormState()).timeout == 12

    def test_timeout_can_be_disabled(self):
        assert SubmissionController(FormState(), timeout=None).timeout is None

    def test_busy(self):
        state = FormState()
        controller = SubmissionController(state)
        assert controller.busy is False
        state.phase = SubmissionPhase.SUBMITTING
        assert controller.busy is True
        assert controller.phase is SubmissionPhase.SUBMITTING

    def test_remove_listener(self):
        controller = SubmissionController(FormState())
        listener = lambda phase, state: None  # noqa: E731
        controller.add_listener(listener)
        controller.remove_listener(listener)
        controller.remove_listener(listener)
        assert controller._listeners == []
