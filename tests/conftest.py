import sys
import os

import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from target_store import open_target_store  # noqa: E402


@pytest.fixture
def target_url(tmp_path):
    return f"sqlite:///{tmp_path / 'target.db'}"


@pytest.fixture
def store(target_url):
    with open_target_store(target_url) as target:
        yield target
