"""
Form state store for the registration form.

Holds what the UI renders: the current raw value of every field, the error
set of the most recent validation run, which fields the user has touched,
and the submission phase. Rendering collaborators read from it; input
collaborators write to it through ``set_value()``.

Errors are only ever replaced wholesale by a validation outcome (or
cleared by ``reset()``), so the displayed messages always belong to a
single validation run.
"""

import logging
from typing import Any, Dict, FrozenSet, Mapping, Optional, Set

from .fields import FieldName, FormField
from .registration import REGISTRATION_SCHEMA
from .schema import FormSchema
from .submission import SubmissionPhase
from .validation import ValidationOutcome, json_safe

logger = logging.getLogger(__name__)


class FormState:
    """
    Mutable state of one form instance.

    Usage::

        state = FormState()
        state.set_value("firstName", "Jo")
        state.set_value("age", "25")      # stored as 25
        state.set_value("age", "abc")     # stored as NaN, reported by validation
        outcome = state.validate()        # writes outcome.errors into state.errors
    """

    def __init__(self, schema: FormSchema = REGISTRATION_SCHEMA, initial: Optional[Mapping[Any, Any]] = None):
        self.schema = schema
        self._values: Dict[FormField, Any] = schema.defaults()
        self._errors: Dict[FormField, str] = {}
        self._touched: Set[FormField] = set()
        self.phase = SubmissionPhase.IDLE
        self.success_message = ""
        self.submit_error = ""
        self.submit_count = 0

        if initial:
            for name, value in initial.items():
                self._store(name, value)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def values(self) -> Dict[FormField, Any]:
        """Current field values keyed by ``FormField``."""
        return dict(self._values)

    @property
    def data(self) -> Dict[str, Any]:
        """Current field values keyed by wire name."""
        return {field.value: value for field, value in self._values.items()}

    @property
    def errors(self) -> Dict[FormField, str]:
        """Current field errors (field -> message)."""
        return dict(self._errors)

    @property
    def touched(self) -> FrozenSet[FormField]:
        return frozenset(self._touched)

    @property
    def submit_disabled(self) -> bool:
        """True while a submission is in flight; the submit control must be disabled."""
        return self.phase is SubmissionPhase.SUBMITTING

    def is_valid(self) -> bool:
        """Whether the current values would pass validation. Does not touch ``errors``."""
        return self.schema.validate(self._values).is_valid

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_field_value(self, name: FieldName) -> Any:
        return self._values[self._resolve(name)]

    def get_field_error(self, name: FieldName) -> Optional[str]:
        return self._errors.get(self._resolve(name))

    def has_field_error(self, name: FieldName) -> bool:
        return self._resolve(name) in self._errors

    def is_touched(self, name: FieldName) -> bool:
        return self._resolve(name) in self._touched

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_value(self, name: FieldName, raw: Any) -> Any:
        """
        Apply an input change and mark the field touched.

        Number fields are coerced here; input that is not a number is kept
        as ``NaN`` and reported by the next validation run.

        Returns:
            The stored value.
        """
        field = self._store(name, raw)
        self._touched.add(field)
        return self._values[field]

    def set_values(self, values: Mapping[Any, Any]) -> None:
        """Apply several input changes in order."""
        for name, raw in values.items():
            self.set_value(name, raw)

    def apply_outcome(self, outcome: ValidationOutcome) -> ValidationOutcome:
        """Replace the error set with the outcome's errors."""
        self._errors = dict(outcome.errors)
        return outcome

    def set_field_error(self, name: FieldName, message: Optional[str]) -> None:
        """Set or clear a single field's error slot."""
        field = self._resolve(name)
        if message is None:
            self._errors.pop(field, None)
        else:
            self._errors[field] = message

    def clear_errors(self) -> None:
        self._errors.clear()

    def validate(self) -> ValidationOutcome:
        """Validate the current values and store the resulting errors."""
        return self.apply_outcome(self.schema.validate(self._values))

    def reset(self) -> None:
        """Restore every field to its default and clear errors and touched flags."""
        self._values = self.schema.defaults()
        self._errors.clear()
        self._touched.clear()
        self.submit_error = ""
        self.submit_count = 0
        logger.debug("Form state reset")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def as_context(self) -> Dict[str, Any]:
        """
        JSON-safe snapshot for templates and the WebSocket client.

        Number fields holding ``NaN`` are rendered as ``None``. Passwords are
        included because the client owns those inputs.
        """
        return {
            "values": {field.value: json_safe(value) for field, value in self._values.items()},
            "errors": {field.value: self._errors[field] for field in FormField if field in self._errors},
            "touched": sorted(field.value for field in self._touched),
            "phase": self.phase.value,
            "submit_disabled": self.submit_disabled,
            "success_message": self.success_message,
            "submit_error": self.submit_error,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(self, name: FieldName) -> FormField:
        field = FormField.coerce(name)
        if field not in self._values:
            raise ValueError(f"Field '{field}' is not declared in this form's schema")
        return field

    def _store(self, name: FieldName, raw: Any) -> FormField:
        field = self._resolve(name)
        self._values[field] = self.schema.get(field).coerce(raw)
        return field

    def __repr__(self) -> str:
        return f"<FormState phase={self.phase.value} errors={[f.value for f in self._errors]}>"
