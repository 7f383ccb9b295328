"""Fixtures for integration tests."""

from collections.abc import Generator

import pytest
from aioresponses import aioresponses as aioresponses_cls


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls]:
    """Intercept aiohttp requests made during the test."""
    with aioresponses_cls() as mocked:
        yield mocked
