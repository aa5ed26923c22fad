"""
Field identifiers for the registration form.

The set of fields is closed: every API that takes a field name resolves it
through ``FormField.coerce()`` so that an unknown name fails loudly instead
of silently creating a new error slot.
"""

from enum import Enum
from typing import Union

from .exceptions import UnknownFieldError


class FieldKind(str, Enum):
    """Primitive kind of a field's validated value."""

    TEXT = "text"
    NUMBER = "number"


class FormField(str, Enum):
    """Registration form fields, valued by their wire (template/JSON) names."""

    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    AGE = "age"
    PASSWORD = "password"
    CONFIRM_PASSWORD = "confirmPassword"

    @classmethod
    def coerce(cls, name: Union["FormField", str]) -> "FormField":
        """
        Resolve a field from an enum member or its wire name.

        Raises:
            UnknownFieldError: If ``name`` is not one of the form's fields.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnknownFieldError(str(name), [f.value for f in cls]) from None

    @property
    def attr_name(self) -> str:
        """Python attribute name used on ``RegistrationData``."""
        return _ATTR_NAMES[self]

    def __str__(self) -> str:
        return self.value


_ATTR_NAMES = {
    FormField.FIRST_NAME: "first_name",
    FormField.LAST_NAME: "last_name",
    FormField.EMAIL: "email",
    FormField.AGE: "age",
    FormField.PASSWORD: "password",
    FormField.CONFIRM_PASSWORD: "confirm_password",
}


FieldName = Union[FormField, str]
