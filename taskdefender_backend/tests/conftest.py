import os

import pytest

# Default to the memory backend so importing the app never touches the filesystem
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from helpers import FixedClock  # noqa: E402


@pytest.fixture
def clock():
    return FixedClock()
