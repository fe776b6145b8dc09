"""
Pytest-BDD specific configuration and fixtures.

This module provides fixtures specific to BDD step definitions. Fixtures
from tests/conftest.py are available to every step module as well.
"""

from typing import Any

import pytest


@pytest.fixture
def context() -> dict[str, Any]:
    """Scenario state shared between Given, When and Then steps."""
    return {}
