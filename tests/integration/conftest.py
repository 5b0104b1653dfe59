"""Fixtures for tests against real SQLAlchemy engines."""

from typing import Generator

import pytest
from recording_schema import make_engine
from sqlalchemy import Engine

import tablerewind
from tablerewind.core.config import Settings
from tablerewind.rewinder import Rewinder


@pytest.fixture(scope="session")
def rewinder() -> Rewinder:
    """Install recording for the test session."""
    return tablerewind.install(Settings(environment="testing"))


@pytest.fixture
def engine(rewinder: Rewinder) -> Generator[Engine, None, None]:
    """A fresh database with an empty recording window."""
    engine = make_engine()
    rewinder.clear(engine)
    yield engine
    rewinder.clear(engine)
    engine.dispose()
