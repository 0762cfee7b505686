# Ensure project root is on sys.path so 'ircflow' is importable when running pytest
# from environments that don't automatically include it.
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_error_aggregator():
    """Start every test with an empty error aggregation window."""
    from ircflow.logging_config import error_aggregator

    error_aggregator.reset()
    yield
    error_aggregator.reset()
