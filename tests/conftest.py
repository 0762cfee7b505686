import os
from collections.abc import Callable

import pytest

from tests.fixtures.irc_fixtures import ClientHarness

# Keep log output concise and deterministic regardless of the caller's shell
os.environ.pop("DEBUG", None)


@pytest.fixture
def harness() -> ClientHarness:
    """A client that has completed the transport connect but not logged in."""
    return ClientHarness().connect()


@pytest.fixture
def make_harness() -> Callable[..., ClientHarness]:
    return ClientHarness
