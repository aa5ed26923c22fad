"""
The registration form: typed record and its schema.

Messages are fixed Ukrainian strings shown verbatim next to the inputs.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from .fields import FieldKind, FormField
from .schema import (
    FieldSchema,
    FormSchema,
    email,
    max_length,
    max_value,
    min_length,
    min_value,
    number,
)

MIN_AGE = 18
MAX_AGE = 60
NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6

PASSWORD_MISMATCH_MESSAGE = "Паролі не співпадають"


@dataclass(frozen=True)
class RegistrationData:
    """A registration that passed every field constraint and refinement."""

    first_name: str
    last_name: str
    email: str
    age: Union[int, float]
    password: str
    confirm_password: str

    @classmethod
    def from_cleaned(cls, cleaned: Dict[FormField, Any]) -> "RegistrationData":
        return cls(**{field.attr_name: value for field, value in cleaned.items()})

    def __getitem__(self, name: Union[FormField, str]) -> Any:
        return getattr(self, FormField.coerce(name).attr_name)

    def as_dict(self) -> Dict[str, Any]:
        """Values keyed by wire name."""
        return {field.value: self[field] for field in FormField}

    def for_log(self) -> Dict[str, Any]:
        """Like ``as_dict()`` with password values masked."""
        data = self.as_dict()
        for field in (FormField.PASSWORD, FormField.CONFIRM_PASSWORD):
            data[field.value] = "***"
        return data

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.for_log().items())
        return f"RegistrationData({fields})"


def passwords_match(data: RegistrationData) -> bool:
    return data.password == data.confirm_password


REGISTRATION_SCHEMA = FormSchema(
    [
        FieldSchema(
            FormField.FIRST_NAME,
            FieldKind.TEXT,
            (
                min_length(2, "Ім'я має містити щонайменше 2 символи"),
                max_length(NAME_MAX_LENGTH, "Ім'я має містити не більше 30 символів"),
            ),
        ),
        FieldSchema(
            FormField.LAST_NAME,
            FieldKind.TEXT,
            (
                min_length(1, "Прізвище є обов'язковим"),
                max_length(NAME_MAX_LENGTH, "Прізвище має містити не більше 30 символів"),
            ),
        ),
        FieldSchema(
            FormField.EMAIL,
            FieldKind.TEXT,
            (
                email("Некоректна адреса електронної пошти"),
                min_length(1, "Email є обов'язковим"),
            ),
        ),
        FieldSchema(
            FormField.AGE,
            FieldKind.NUMBER,
            (
                number("Вік має бути числом"),
                min_value(MIN_AGE, "Вам має бути щонайменше 18 років"),
                max_value(MAX_AGE, "Вік не може перевищувати 60 років"),
            ),
        ),
        FieldSchema(
            FormField.PASSWORD,
            FieldKind.TEXT,
            (min_length(PASSWORD_MIN_LENGTH, "Пароль має містити щонайменше 6 символів"),),
        ),
        FieldSchema(
            FormField.CONFIRM_PASSWORD,
            FieldKind.TEXT,
            (
                min_length(
                    PASSWORD_MIN_LENGTH,
                    "Підтвердження пароля має містити щонайменше 6 символів",
                ),
            ),
        ),
    ],
    record_factory=RegistrationData.from_cleaned,
).refine(passwords_match, PASSWORD_MISMATCH_MESSAGE, path=FormField.CONFIRM_PASSWORD)
