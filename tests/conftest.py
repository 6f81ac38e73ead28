# Pytest configuration for API tests.
# Forces a local SQLite DB and a throwaway upload directory, and disables Redis for deterministic runs.
import os
import shutil
import tempfile
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Test-time environment: must be set before the application modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="propfinder-uploads-"))
os.environ.setdefault("STATIC_DIR", os.path.join(ROOT, "static"))
os.environ.setdefault("UPLOAD_REWARD_TOKENS", "10")

import sys
# Ensure the repo root is on sys.path so 'propfinder' resolves without an install
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from propfinder.main import app  # noqa: E402
from propfinder.db import Base, engine  # noqa: E402
from propfinder import storage  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_db() -> Iterator[None]:
    """
    Session-level database bootstrap using a local SQLite file.

    Drops and recreates schema once per test session; removes stored uploads at the end.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    shutil.rmtree(storage.UPLOAD_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_db() -> Iterator[None]:
    """
    Function-level isolation: drop and recreate schema before each test.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """
    FastAPI TestClient bound to the application for HTTP-level tests.
    """
    with TestClient(app) as c:
        yield c
