"""
Configuration system for regform

Provides centralized configuration for:
- Simulated submission delay
- Submission timeout
- Success notification text
- Error detail exposure
"""

from typing import Any


class FormConfig:
    """
    Central configuration for registration form behavior.

    Usage:
        # In settings.py
        REGFORM_CONFIG = {
            'submit_delay': 0.5,
            'submit_timeout': 10,
        }

        # Or programmatically
        from regform.config import config
        config.set('submit_timeout', None)
    """

    # Default configuration
    _defaults = {
        # Submission
        "submit_delay": 1.5,  # Seconds the simulated submit collaborator waits
        "submit_timeout": 30.0,  # Seconds before a pending submission fails (None = no limit)
        # Notifications
        "success_message": "Форма успішно відправлена!",
        # Errors
        "debug_errors": None,  # Expose exception details in submit_error (None = follow settings.DEBUG)
        # Transport
        "max_message_size": 65536,  # Largest WebSocket frame the consumer will decode
    }

    def __init__(self):
        self._config = self._defaults.copy()
        self._load_from_settings()

    def _load_from_settings(self):
        """Load configuration from Django settings if available"""
        try:
            from django.conf import settings
            from django.core.exceptions import ImproperlyConfigured
        except ImportError:
            return

        try:
            overrides = getattr(settings, "REGFORM_CONFIG", None)
        except ImproperlyConfigured:
            # Settings not configured yet (e.g. imported outside a project)
            return
        if overrides:
            self._config.update(overrides)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation for nested values)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            config.get('submit_delay')  # 1.5
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default

    def set(self, key: str, value: Any):
        """
        Set a configuration value.

        Args:
            key: Configuration key (supports dot notation for nested values)
            value: Value to set

        Example:
            config.set('submit_delay', 0)
        """
        keys = key.split(".")

        target = self._config
        for k in keys[:-1]:
            if k not in target:
                target[k] = {}
            target = target[k]

        target[keys[-1]] = value

    def debug_errors(self) -> bool:
        """Whether submission errors should expose exception details."""
        explicit = self.get("debug_errors")
        if explicit is not None:
            return bool(explicit)
        try:
            from django.conf import settings

            return bool(getattr(settings, "DEBUG", False))
        except Exception:
            # Django not configured, default to safe mode
            return False

    def reset(self):
        """Reset configuration to defaults"""
        self._config = self._defaults.copy()
        self._load_from_settings()


# Global configuration instance
config = FormConfig()
