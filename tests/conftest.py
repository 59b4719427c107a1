"""Shared test fixtures."""

from pathlib import Path

import pytest

from recon.mappers import map_payments, map_registry, map_roster
from recon.reader import read_rows


DATA_DIR = Path(__file__).resolve().parent / 'data'


@pytest.fixture(scope='session')
def data_dir() -> Path:
    """Path to the data directory."""
    return DATA_DIR


@pytest.fixture(scope='session')
def roster_members():
    """Players from roster.csv."""
    return map_roster(read_rows(DATA_DIR / 'roster.csv'))


@pytest.fixture(scope='session')
def payments():
    """Merged payments from payments.csv."""
    return map_payments(read_rows(DATA_DIR / 'payments.csv'))


@pytest.fixture(scope='session')
def registry():
    """Membership records from registry.csv."""
    return map_registry(read_rows(DATA_DIR / 'registry.csv'))
