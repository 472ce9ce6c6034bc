"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "true"
os.environ["DEBUG"] = "false"

from eth_account import Account

from smartsend.config import Settings
from smartsend.custody.dryrun import DryRunKeyProvider
from smartsend.factory import reset_factories
from smartsend.relay.dryrun import DryRunRelay
from smartsend.session import TransferSession


@pytest.fixture(autouse=True)
def _reset_factories():
    """Drop cached settings and collaborators between tests."""
    reset_factories()
    yield
    reset_factories()

@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, dry_run=True, poll_interval_ms=10, environment="test")

@pytest.fixture
def key_provider() -> DryRunKeyProvider:
    return DryRunKeyProvider()

@pytest.fixture
def relay(settings) -> DryRunRelay:
    return DryRunRelay(network_id=settings.network_id)

@pytest.fixture
def session(key_provider, relay, settings) -> TransferSession:
    return TransferSession(key_provider, relay, settings)

@pytest.fixture
def other_account():
    """A key that does not own the smart account."""
    return Account.create()
