from datetime import datetime, timedelta, timezone

import pytest

from custom_program_repository import JsonCustomProgramRepository
from heating import HeatingService
from program_catalog import ProgramCatalog
from session_store import InMemorySessionStore

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    """A point in time `seconds` after T0."""
    return T0 + timedelta(seconds=seconds)


@pytest.fixture
def repository(tmp_path):
    return JsonCustomProgramRepository(str(tmp_path / "custom_programs.json"))


@pytest.fixture
def catalog(repository):
    return ProgramCatalog(repository)


@pytest.fixture
def heating_service(catalog):
    return HeatingService(catalog, clock=lambda: T0)


@pytest.fixture
def store():
    return InMemorySessionStore()
