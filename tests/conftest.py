"""
Shared fixtures: a client wired to a StubSession so no test touches the network.
"""

import sys
import pathlib

import pytest

# Make the helpers package importable from every test directory
TESTS_DIR = pathlib.Path(__file__).parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from helpers import StubSession  # noqa: E402

from recurly_client import ClientConfig, RecurlyClient  # noqa: E402


@pytest.fixture
def config():
    """Client configuration for the acme test site."""
    return ClientConfig(subdomain="acme", api_key="test-key")


@pytest.fixture
def session():
    """An empty StubSession; queue responses with session.queue(...)."""
    return StubSession()


@pytest.fixture
def client(config, session):
    """A RecurlyClient sending through the stub session."""
    return RecurlyClient(config, session=session)
