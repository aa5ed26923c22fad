"""
Validation outcomes and value coercion.

A schema run never raises for bad input. It returns one of two outcomes:

- ``Valid(data)``: every field and refinement passed; ``data`` is the typed record.
- ``Invalid(errors)``: a mapping of ``FormField`` to a single message.

Coercion helpers convert raw widget input (strings from the browser, numbers
from ``valueAsNumber``-style widgets) into the primitive the schema expects.
Unparseable numbers become ``NaN`` rather than raising, so the number
constraint can report them as a field error.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Union

from .fields import FormField

Number = Union[int, float]

NAN = float("nan")


def coerce_number(value: Any) -> Number:
    """
    Coerce raw input into a number, returning ``NaN`` when it is not one.

    Supported inputs:
        - int / float: returned as-is (bool is rejected)
        - Decimal: converted to float
        - str: stripped, then parsed as int, falling back to float

    Empty strings, ``None``, booleans, non-finite values and anything else
    that cannot be parsed yield ``NaN``.

    Example:
        >>> coerce_number("25")
        25
        >>> coerce_number(" 18.5 ")
        18.5
        >>> math.isnan(coerce_number("abc"))
        True
    """
    if isinstance(value, bool) or value is None:
        return NAN

    if isinstance(value, int):
        return value

    if isinstance(value, (float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else NAN

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return NAN
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return NAN
        return number if math.isfinite(number) else NAN

    return NAN


def is_number(value: Any) -> bool:
    """True for finite ints and floats (booleans excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def narrow_number(value: Number) -> Number:
    """Return ``value`` as an int when it is integral, otherwise unchanged."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def coerce_text(value: Any) -> str:
    """Coerce raw input into text. ``None`` counts as the empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def json_safe(value: Any) -> Any:
    """Replace ``NaN`` with ``None`` so a value can be sent as strict JSON."""
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class Valid:
    """Successful validation carrying the typed record."""

    data: Any
    is_valid: ClassVar[bool] = True

    @property
    def errors(self) -> Dict[FormField, str]:
        return {}


@dataclass(frozen=True)
class Invalid:
    """Failed validation: at most one message per field."""

    errors: Dict[FormField, str] = field(default_factory=dict)
    is_valid: ClassVar[bool] = False

    @property
    def data(self) -> None:
        return None

    def error_for(self, name: Union[FormField, str]) -> Optional[str]:
        return self.errors.get(FormField.coerce(name))

    def by_name(self) -> Dict[str, str]:
        """Errors keyed by wire name, in field declaration order."""
        return {f.value: self.errors[f] for f in FormField if f in self.errors}


ValidationOutcome = Union[Valid, Invalid]
