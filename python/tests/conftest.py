"""
Pytest configuration and fixtures for regform tests.
"""

import pytest

from regform.config import config as regform_config


@pytest.fixture
def valid_values():
    """Raw input for a registration that passes every rule."""
    return {
        "firstName": "Jo",
        "lastName": "Doe",
        "email": "jo@x.com",
        "age": 25,
        "password": "secret",
        "confirmPassword": "secret",
    }


@pytest.fixture(autouse=True)
def reset_regform_config():
    """Undo programmatic config changes made by a test."""
    yield
    regform_config.reset()
