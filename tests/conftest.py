"""Test configuration and fixtures."""

import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Set test environment variables BEFORE importing the app
os.environ["ENVIRONMENT"] = "test"

from pedometer.config import Settings
from pedometer.database import Database
from pedometer.ledger import DayLedger
from pedometer.main import create_app


@pytest_asyncio.fixture
async def database(tmp_path):
    """A freshly created store in a temporary file."""
    async with Database(f"sqlite+aiosqlite:///{tmp_path / 'steps.db'}") as db:
        yield db


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def ledger(session):
    return DayLedger(session)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_path=str(tmp_path / "api.db"),
        database_url=None,
        pedometer_secret=None,
        purge_on_startup=True,
    )


@pytest.fixture
def client(settings):
    """Test client with the lifespan (store open + startup purge) running."""
    with TestClient(create_app(settings)) as client:
        yield client
