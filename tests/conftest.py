"""Global pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
import respx

from tests.fixtures.env_helpers import empty_env, mock_env_vars
from tests.fixtures.key_stores import (
    fake_keyring,
    key_manager,
    sample_record,
)


@pytest.fixture
def respx_mock() -> Generator[Any, None, None]:
    """Provide respx mock for testing HTTP requests."""
    with respx.mock as mock:
        yield mock
