"""
Pytest configuration and shared fixtures for flame weather tests.
"""

import pytest

from fakes import FakePositioningBackend
from flame_weather.weather.models import Coordinate


@pytest.fixture
def positioning():
    return FakePositioningBackend()


@pytest.fixture
def oslo():
    return Coordinate(latitude=59.9139, longitude=10.7522)
