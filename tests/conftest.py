import sys
from pathlib import Path


def _ensure_repo_root_on_path():
    """Allow tests to import project modules without installation."""
    repo_root = Path(__file__).resolve().parent.parent
    repo_str = str(repo_root)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_root_on_path()

import pytest  # noqa: E402

from rmforecast.booking_index import BookingIndex  # noqa: E402
from tests.helpers import TODAY, scenario_a_records  # noqa: E402


@pytest.fixture
def scenario_a_index():
    """Index over the FL100 Sunday history, as seen on ``TODAY``."""
    return BookingIndex.build(scenario_a_records(), as_of=TODAY)
