# tests/conftest.py
# Point the engine module at a throwaway file and keep the app from seeding
# before any clutchline_backend module is imported.

import os
import random
import tempfile

os.environ.setdefault("CLUTCHLINE_DB_PATH", os.path.join(tempfile.mkdtemp(prefix="clutchline-"), "test.db"))
os.environ.setdefault("CLUTCHLINE_TEST_MODE", "1")

import pytest  # noqa: E402


@pytest.fixture
def rng():
    return random.Random(1234)
