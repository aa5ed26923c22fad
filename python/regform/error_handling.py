"""
Error Handling - Safe error messages for the form UI

Submission failures and malformed transport messages are shown to the user.
Outside DEBUG mode they get a generic message so exception text (which may
contain backend details) never reaches the browser.
"""

from typing import Any, Dict, Optional

GENERIC_ERROR_MESSAGES = {
    "default": "Сталася помилка. Спробуйте ще раз.",
    "submit": "Не вдалося відправити форму. Спробуйте ще раз.",
    "message": "Некоректне повідомлення.",
}


def safe_error_message(
    exception: Exception,
    error_type: str = "default",
    debug_mode: Optional[bool] = None,
) -> str:
    """
    Generate a safe error message based on DEBUG mode.

    In debug mode, includes exception type and message.
    In production, returns a generic message.

    Args:
        exception: The exception that occurred.
        error_type: Type of error for generic message selection.
        debug_mode: Whether to expose details. If None, uses
            ``config.debug_errors()``.

    Examples:
        >>> safe_error_message(ValueError("backend down"), debug_mode=True)
        'ValueError: backend down'
        >>> safe_error_message(ValueError("backend down"), "submit", debug_mode=False)
        'Не вдалося відправити форму. Спробуйте ще раз.'
    """
    if debug_mode is None:
        from .config import config

        debug_mode = config.debug_errors()

    if debug_mode:
        return f"{type(exception).__name__}: {str(exception)}"
    return GENERIC_ERROR_MESSAGES.get(error_type, GENERIC_ERROR_MESSAGES["default"])


def error_response(
    exception: Exception,
    error_type: str = "default",
    debug_mode: Optional[bool] = None,
) -> Dict[str, Any]:
    """Build an ``{"type": "error", ...}`` frame for the WebSocket client."""
    if debug_mode is None:
        from .config import config

        debug_mode = config.debug_errors()

    response: Dict[str, Any] = {
        "type": "error",
        "error": safe_error_message(exception, error_type, debug_mode),
    }
    hint = getattr(exception, "hint", None)
    if hint and debug_mode:
        response["hint"] = hint.strip()
    return response
