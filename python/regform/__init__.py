"""
regform - declarative registration form validation with a submission state machine
"""

from .exceptions import (
    IllegalTransitionError,
    RegFormError,
    SubmissionTimeoutError,
    UnknownFieldError,
)
from .fields import FieldKind, FormField
from .forms import FormState
from .live_form import RegistrationForm
from .registration import REGISTRATION_SCHEMA, RegistrationData
from .schema import Constraint, FieldSchema, FormSchema, Refinement
from .submission import SubmissionController, SubmissionPhase, simulated_submit
from .validation import Invalid, Valid, ValidationOutcome

__version__ = "0.1.0"

__all__ = [
    "Constraint",
    "FieldKind",
    "FieldSchema",
    "FormField",
    "FormSchema",
    "FormState",
    "IllegalTransitionError",
    "Invalid",
    "REGISTRATION_SCHEMA",
    "RegFormError",
    "Refinement",
    "RegistrationData",
    "RegistrationForm",
    "SubmissionController",
    "SubmissionPhase",
    "SubmissionTimeoutError",
    "UnknownFieldError",
    "Valid",
    "ValidationOutcome",
    "simulated_submit",
]
