"""
RegistrationForm: one live registration form instance.

Bundles the form state store and its submission controller behind the two
operations the UI performs: apply an input change, and trigger submit.

Validation runs on submit. Once a submit has been attempted, every input
change re-validates the whole form so messages track the user's edits;
after a successful submission the form is reset and goes back to
validating on submit only.
"""

import logging
from typing import Any, Optional

from .fields import FieldName, FormField
from .forms import FormState
from .registration import REGISTRATION_SCHEMA
from .schema import FormSchema
from .submission import Listener, SubmissionController, Submitter
from .validation import ValidationOutcome

logger = logging.getLogger(__name__)


class RegistrationForm:
    """
    Live registration form.

    Usage::

        form = RegistrationForm()
        form.change("firstName", "Jo")
        ...
        outcome = await form.submit()
        if form.state.success_message:
            ...

    Args:
        schema: Schema to validate against (the registration schema by default).
        submitter: External submit operation, see ``SubmissionController``.
        **controller_kwargs: Passed through to ``SubmissionController``
            (``timeout``, ``success_message``).
    """

    def __init__(
        self,
        schema: FormSchema = REGISTRATION_SCHEMA,
        submitter: Optional[Submitter] = None,
        **controller_kwargs: Any,
    ):
        self.state = FormState(schema)
        self.controller = SubmissionController(self.state, submitter, **controller_kwargs)

    @property
    def schema(self) -> FormSchema:
        return self.state.schema

    @property
    def revalidate_on_change(self) -> bool:
        return self.state.submit_count > 0

    def add_listener(self, listener: Listener) -> None:
        self.controller.add_listener(listener)

    def change(self, name: FieldName, value: Any) -> Optional[str]:
        """
        Apply an input change.

        Returns:
            The field's current error message, or None.
        """
        field = FormField.coerce(name)
        self.state.set_value(field, value)
        if self.revalidate_on_change:
            self.state.validate()
        return self.state.get_field_error(field)

    async def submit(self) -> Optional[ValidationOutcome]:
        """Trigger submission. See ``SubmissionController.submit``."""
        return await self.controller.submit()

    def validate(self) -> ValidationOutcome:
        """Validate the current values without submitting."""
        return self.state.validate()

    def reset(self) -> None:
        if self.controller.busy:
            logger.debug("Ignoring reset while %s", self.state.phase.value)
            return
        self.state.reset()
        self.state.success_message = ""

    def as_context(self):
        return self.state.as_context()

    def __repr__(self) -> str:
        return f"<RegistrationForm phase={self.state.phase.value} errors={[f.value for f in self.state.errors]}>"
