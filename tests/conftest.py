"""Shared test fixtures."""
import os

# Keep the app's module-level engine off the working directory.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date

import pytest

from clinic_api.gateway import InMemoryGateway
from clinic_api.scheduler import ClinicScheduler
from clinic_api.slot_grid import SlotGrid
from factories import DAY


@pytest.fixture
def grid() -> SlotGrid:
    return SlotGrid(8, 18, 30)


@pytest.fixture
def day() -> date:
    return DAY


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def scheduler(gateway, grid) -> ClinicScheduler:
    return ClinicScheduler(gateway, grid, allow_direct_completion=False)
