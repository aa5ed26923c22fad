"""
Custom exceptions and error messages for regform.

Validation failures are never raised: they are returned as ``Invalid``
outcomes. The exceptions here signal programming errors (unknown fields,
forbidden phase changes) and submission failures that the controller
turns into a ``FAILED`` transition.
"""

from typing import Iterable, Optional


class RegFormError(Exception):
    """Base exception for regform errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class UnknownFieldError(RegFormError, KeyError):
    """Raised when a field name is not part of the registration form."""

    def __init__(self, field_name: str, known: Iterable[str]):
        known = list(known)
        message = f"Unknown form field '{field_name}'."
        hint = f"\n    Known fields: {', '.join(known)}"
        super().__init__(message, hint)
        self.field_name = field_name
        self.known = known

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class IllegalTransitionError(RegFormError):
    """Raised when the submission state machine is asked for a forbidden phase change."""

    def __init__(self, current: str, target: str):
        message = f"Cannot move submission from '{current}' to '{target}'."
        hint = (
            "\n    Allowed transitions:\n"
            "        idle -> submitting\n"
            "        submitting -> succeeded | failed\n"
            "        succeeded | failed -> idle"
        )
        super().__init__(message, hint)
        self.current = current
        self.target = target


class SubmissionTimeoutError(RegFormError):
    """Raised when the submit collaborator does not finish within ``submit_timeout``."""

    def __init__(self, timeout: float):
        message = f"Submission did not complete within {timeout:g} seconds."
        hint = (
            "\n    Raise REGFORM_CONFIG['submit_timeout'] in settings, or set it "
            "to None to wait indefinitely."
        )
        super().__init__(message, hint)
        self.timeout = timeout


__all__ = [
    "RegFormError",
    "UnknownFieldError",
    "IllegalTransitionError",
    "SubmissionTimeoutError",
]
