"""
Declarative form schema: per-field constraints plus cross-field refinements.

A schema is built once and never mutated. Validation is a pure function of
the raw input record and runs in two phases:

1. Every ``FieldSchema`` is evaluated independently. Within a field the
   constraints run in declaration order and the first failure is the
   field's only message.
2. Only when no field failed, the cleaned values are turned into a typed
   record and every ``Refinement`` runs against it. Refinement failures are
   merged by target field, last write wins.

Usage::

    schema = FormSchema(
        [
            FieldSchema(FormField.PASSWORD, FieldKind.TEXT, (min_length(6, "Too short"),)),
            FieldSchema(FormField.CONFIRM_PASSWORD, FieldKind.TEXT, (min_length(6, "Too short"),)),
        ]
    ).refine(
        lambda data: data[FormField.PASSWORD] == data[FormField.CONFIRM_PASSWORD],
        "Passwords do not match",
        path=FormField.CONFIRM_PASSWORD,
    )

    outcome = schema.validate({"password": "secret", "confirmPassword": "secret"})
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .fields import FieldKind, FieldName, FormField
from .validation import (
    NAN,
    Invalid,
    Valid,
    ValidationOutcome,
    coerce_number,
    coerce_text,
    is_number,
    narrow_number,
)

logger = logging.getLogger(__name__)

# Same shape check as zod's string().email()
EMAIL_RE = re.compile(
    r"^(?!\.)(?!.*\.\.)([A-Z0-9_'+\-.]*)[A-Z0-9_+\-]@([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Constraint:
    """A single predicate over a coerced field value and the message shown when it fails."""

    name: str
    check: Callable[[Any], bool]
    message: str

    def __call__(self, value: Any) -> Optional[str]:
        return None if self.check(value) else self.message


# Built-in constraint factories


def min_length(length: int, message: str) -> Constraint:
    return Constraint("min_length", lambda v: len(v) >= length, message)


def max_length(length: int, message: str) -> Constraint:
    return Constraint("max_length", lambda v: len(v) <= length, message)


def pattern(regex: str, message: str) -> Constraint:
    """The whole value must match ``regex``."""
    compiled = re.compile(regex)
    return Constraint("pattern", lambda v: compiled.fullmatch(v) is not None, message)


def email(message: str) -> Constraint:
    return Constraint("email", lambda v: EMAIL_RE.fullmatch(v) is not None, message)


def number(message: str) -> Constraint:
    return Constraint("number", is_number, message)


def min_value(limit: float, message: str) -> Constraint:
    """Inclusive lower bound. Values that are not numbers fail."""
    return Constraint("min", lambda v: is_number(v) and v >= limit, message)


def max_value(limit: float, message: str) -> Constraint:
    """Inclusive upper bound. Values that are not numbers fail."""
    return Constraint("max", lambda v: is_number(v) and v <= limit, message)


@dataclass(frozen=True)
class FieldSchema:
    """
    Validation rules for one input.

    Args:
        field: Which form field the rules apply to.
        kind: Primitive kind the raw value is coerced to before checking.
        constraints: Checked in order; the first failure is reported.
        required: When False, an empty value skips the constraints.
    """

    field: FormField
    kind: FieldKind
    constraints: Tuple[Constraint, ...] = ()
    required: bool = True

    def coerce(self, raw: Any) -> Any:
        if self.kind is FieldKind.NUMBER:
            return coerce_number(raw)
        return coerce_text(raw)

    def default(self) -> Any:
        """Value of an untouched input."""
        return NAN if self.kind is FieldKind.NUMBER else ""

    def is_empty(self, value: Any) -> bool:
        if self.kind is FieldKind.NUMBER:
            return isinstance(value, float) and math.isnan(value)
        return value == ""

    def evaluate(self, raw: Any) -> Optional[str]:
        """Return the first failing constraint's message, or None when the value passes."""
        value = self.coerce(raw)
        if not self.required and self.is_empty(value):
            return None
        for constraint in self.constraints:
            error = constraint(value)
            if error is not None:
                return error
        return None


@dataclass(frozen=True)
class Refinement:
    """
    Cross-field rule evaluated on the typed record once every field passed.

    The failure message is attached to ``path`` only.
    """

    check: Callable[[Any], bool]
    message: str
    path: FormField

    def refine(self, data: Any) -> Optional[Tuple[FormField, str]]:
        if self.check(data):
            return None
        return self.path, self.message


class FormSchema:
    """
    Composition of field schemas and refinements into a single validator.

    Args:
        fields: Field schemas in evaluation (and display) order.
        refinements: Cross-field rules, run in order after every field passes.
        record_factory: Builds the typed record from cleaned values keyed by
            ``FormField``. Defaults to a plain dict.
    """

    def __init__(
        self,
        fields: Sequence[FieldSchema],
        refinements: Sequence[Refinement] = (),
        record_factory: Callable[[Dict[FormField, Any]], Any] = dict,
    ):
        self._fields: Tuple[FieldSchema, ...] = tuple(fields)
        self._by_field: Dict[FormField, FieldSchema] = {f.field: f for f in self._fields}
        if len(self._by_field) != len(self._fields):
            raise ValueError("Each form field may only be declared once in a schema")
        self._refinements: Tuple[Refinement, ...] = tuple(refinements)
        self._record_factory = record_factory

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def fields(self) -> Tuple[FieldSchema, ...]:
        return self._fields

    @property
    def refinements(self) -> Tuple[Refinement, ...]:
        return self._refinements

    def __iter__(self) -> Iterator[FieldSchema]:
        return iter(self._fields)

    def __contains__(self, name: object) -> bool:
        try:
            return FormField.coerce(name) in self._by_field  # type: ignore[arg-type]
        except KeyError:
            return False

    def get(self, name: FieldName) -> FieldSchema:
        field = FormField.coerce(name)
        try:
            return self._by_field[field]
        except KeyError:
            raise ValueError(f"Field '{field}' is not declared in this schema") from None

    def defaults(self) -> Dict[FormField, Any]:
        """Initial value for every declared field."""
        return {f.field: f.default() for f in self._fields}

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def refine(self, check: Callable[[Any], bool], message: str, path: FieldName) -> "FormSchema":
        """Return a new schema with an extra cross-field refinement."""
        refinement = Refinement(check, message, FormField.coerce(path))
        return FormSchema(self._fields, self._refinements + (refinement,), self._record_factory)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def evaluate(self, name: FieldName, raw: Any) -> Optional[str]:
        """Evaluate a single field in isolation."""
        return self.get(name).evaluate(raw)

    def validate(self, raw: Mapping[Any, Any]) -> ValidationOutcome:
        """
        Run the full schema against a raw input record.

        ``raw`` may be keyed by ``FormField`` members or wire names. Keys
        that are not declared fields are ignored; missing fields count as
        empty input.

        Returns:
            ``Valid(record)`` or ``Invalid(errors)``; never both.
        """
        values = _normalize(raw)

        errors: Dict[FormField, str] = {}
        for field_schema in self._fields:
            error = field_schema.evaluate(values.get(field_schema.field))
            if error is not None:
                errors[field_schema.field] = error

        if errors:
            logger.debug("Field validation failed for %s", [f.value for f in errors])
            return Invalid(errors)

        cleaned = {}
        for field_schema in self._fields:
            value = field_schema.coerce(values.get(field_schema.field))
            if field_schema.kind is FieldKind.NUMBER and is_number(value):
                value = narrow_number(value)
            cleaned[field_schema.field] = value
        record = self._record_factory(cleaned)

        for refinement in self._refinements:
            failure = refinement.refine(record)
            if failure is not None:
                target, message = failure
                errors[target] = message

        if errors:
            logger.debug("Refinement failed for %s", [f.value for f in errors])
            return Invalid(errors)

        return Valid(record)


def _normalize(raw: Mapping[Any, Any]) -> Dict[FormField, Any]:
    values: Dict[FormField, Any] = {}
    for key, value in raw.items():
        try:
            values[FormField.coerce(key)] = value
        except KeyError:
            continue
    return values
