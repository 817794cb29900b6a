"""Shared pytest fixtures."""

import pytest

from hockeypool.config import clear_config_cache
from hockeypool.draft import create_league, start_draft
from hockeypool.store import MemoryStore

from helpers import FakeStatsClient

ENV_VARS = (
    'HOCKEYPOOL_CONFIG',
    'HOCKEYPOOL_DATA_DIR',
    'NHL_API_BASE_URL',
    'CRON_SECRET',
    'ADMIN_SECRET',
    'DEFAULT_LEAGUE_ID',
    'HOCKEYPOOL_LOG_LEVEL',
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from deployment variables and the cached config."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client():
    return FakeStatsClient()


@pytest.fixture
def live_league(store):
    """Two-team league with its draft started (status live)."""
    create_league(store, 'test-league', 'Test League', ['Ice Holes', 'Puck Dynasty'])
    start_draft(store, 'test-league')
    return 'test-league'
