import os
import sys

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

sys.path.insert(0, os.path.dirname(__file__))

from support import make_database  # noqa: E402

@pytest.fixture
def db_session():
    """Session on an isolated in-memory database"""
    engine, SessionTesting = make_database()
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
