import os

os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")

import pytest  # noqa: E402

from app.db import Base, db_manager  # noqa: E402

pytest_plugins = [
    "tests.fixtures.chat_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """Fresh schema per test on the test database."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=db_manager.engine)
    session = db_manager.SessionLocal()
    try:
        yield session
    finally:
        session.close()
    # Wait out store work still running on worker threads.
    with db_manager.db_session():
        Base.metadata.drop_all(bind=db_manager.engine)
