"""
WebSocket consumer for the live registration form.

Each connection owns one ``RegistrationForm``. The browser forwards raw
input and submit clicks; the consumer answers with the full form state so
the client can render values, per-field errors, the disabled submit button
and the success notification.

Client -> server::

    {"type": "change", "field": "email", "value": "jo@x.com"}
    {"type": "submit"}
    {"type": "submit", "values": {"firstName": "Jo", ...}}
    {"type": "ping"}

Server -> client::

    {"type": "state", "state": {...}}   # see FormState.as_context()
    {"type": "pong"}
    {"type": "error", "error": "..."}
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from .config import config as regform_config
from .error_handling import error_response
from .exceptions import RegFormError
from .live_form import RegistrationForm
from .submission import SubmissionPhase, Submitter

logger = logging.getLogger(__name__)


class RegistrationFormConsumer(AsyncWebsocketConsumer):
    """
    Serves one registration form per WebSocket connection.

    Submission runs in a background task so the socket keeps receiving
    input while the submit collaborator is pending. A submit message that
    arrives during that time is ignored.

    Subclass and override ``get_submitter()`` to plug in a real backend.
    """

    form_class = RegistrationForm

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.form: Optional[RegistrationForm] = None
        self._submit_task: Optional[asyncio.Task] = None

    def get_submitter(self) -> Optional[Submitter]:
        """Submit collaborator for new forms. None uses the simulated one."""
        return None

    async def connect(self):
        """Handle WebSocket connection"""
        await self.accept()
        self.form = self.form_class(submitter=self.get_submitter())
        self.form.add_listener(self._on_phase_change)
        await self.send_state()

    async def disconnect(self, close_code):
        """Handle WebSocket disconnection"""
        task = self._submit_task
        if task is not None and not task.done():
            logger.debug("Disconnected (code %s) during submission, cancelling", close_code)
            task.cancel()
        self._submit_task = None
        self.form = None

    async def receive(self, text_data=None, bytes_data=None):
        """Handle incoming WebSocket messages"""
        max_msg_size = regform_config.get("max_message_size", 65536)
        raw = text_data if text_data is not None else bytes_data
        if raw is None:
            return
        raw_size = len(raw.encode("utf-8")) if isinstance(raw, str) else len(raw)
        if max_msg_size and raw_size > max_msg_size:
            logger.warning("Message too large (%d bytes, max %d)", raw_size, max_msg_size)
            await self.send_error(f"Message too large ({raw_size} bytes)")
            return

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Invalid JSON in WebSocket message: %s", e)
            await self.send_json(error_response(e, "message"))
            return

        if not isinstance(data, dict):
            await self.send_error("Message must be a JSON object")
            return

        msg_type = data.get("type")
        try:
            if msg_type == "change":
                await self.handle_change(data)
            elif msg_type == "submit":
                await self.handle_submit(data)
            elif msg_type == "ping":
                await self.send_json({"type": "pong"})
            else:
                logger.warning("Unknown message type: %s", msg_type)
                await self.send_error(f"Unknown message type: {msg_type}")
        except RegFormError as e:
            logger.warning("Rejected %s message: %s", msg_type, e.message)
            await self.send_error(e.message)

    async def handle_change(self, data: Dict[str, Any]):
        field = data.get("field")
        if not isinstance(field, str):
            await self.send_error("field must be a string")
            return
        self.form.change(field, data.get("value"))
        await self.send_state()

    async def handle_submit(self, data: Dict[str, Any]):
        if self._submit_task is not None and not self._submit_task.done():
            logger.debug("Ignoring submit message while a submission is in flight")
            return

        values = data.get("values")
        if values is None:
            values = {}
        elif not isinstance(values, dict):
            await self.send_error("values must be a JSON object")
            return

        for field, value in values.items():
            self.form.change(field, value)

        self._submit_task = asyncio.create_task(self.form.submit())
        self._submit_task.add_done_callback(self._submission_done)

    def _submission_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Submission task crashed: %s", type(exc).__name__, exc_info=exc)

    async def _on_phase_change(self, phase: SubmissionPhase, state) -> None:
        await self.send_state()

    async def send_state(self) -> None:
        if self.form is None:
            return
        await self.send_json({"type": "state", "state": self.form.as_context()})

    async def send_error(self, error: str, **context) -> None:
        """
        Send an error response to the client with consistent formatting.

        Args:
            error: Human-readable error message
            **context: Additional context to include in the response
        """
        response: Dict[str, Any] = {"type": "error", "error": error}
        response.update(context)
        await self.send_json(response)

    async def send_json(self, data: Dict[str, Any]):
        """Send JSON message to client with Django type support"""
        await self.send(text_data=json.dumps(data, cls=DjangoJSONEncoder))
