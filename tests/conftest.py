"""Shared fixtures."""

import pytest
from helpers import MockItemService


@pytest.fixture
def service() -> MockItemService:
    return MockItemService()
