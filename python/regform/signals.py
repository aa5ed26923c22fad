"""Django signals emitted by the registration form.

These signals allow other apps (audit logging, analytics) to observe
submissions without coupling to the controller. All are sent with the
``SubmissionController`` class as ``sender``.
"""

from django.dispatch import Signal

submission_started = Signal()
"""
Sent when a valid form enters the ``submitting`` phase.

Kwargs sent:
    form_state (FormState)        the form instance being submitted
    data       (RegistrationData) the validated record
"""

submission_succeeded = Signal()
"""
Sent after the submit collaborator completed, before the form is reset.

Kwargs sent:
    form_state (FormState)
    data       (RegistrationData)
"""

submission_failed = Signal()
"""
Sent when the submit collaborator raised or timed out. Form values are kept.

Kwargs sent:
    form_state (FormState)
    data       (RegistrationData)
    error      (Exception)
"""
