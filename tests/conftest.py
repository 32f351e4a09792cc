"""
Shared test fixtures and configuration for segmon tests.
"""
import json
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from segmon import create_app
from segmon.config import TestConfig
from segmon.storage.document_store import Segmon


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary base directory for store tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def store(temp_data_dir: Path) -> Segmon:
    """Create a store with default limits rooted in the temporary directory."""
    return Segmon(base_path=temp_data_dir)


@pytest.fixture
def make_store(temp_data_dir: Path):
    """Factory for stores with custom options sharing the temporary directory."""
    def _make(**options) -> Segmon:
        return Segmon(base_path=temp_data_dir, **options)
    return _make


@pytest.fixture
def app(temp_data_dir: Path) -> Flask:
    """Create a test Flask application whose store lives in the temp directory."""

    class _Config(TestConfig):
        SEGMON_BASE_PATH = str(temp_data_dir)
        SEGMON_SEGMENT_SIZE = 50 * 1024
        SEGMON_MAX_ITEMS_PER_SEGMENT = None

    app = create_app(_Config)
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create a Flask test client."""
    return app.test_client()


@pytest.fixture
def segment_on_disk(temp_data_dir: Path):
    """Load a segment file straight from disk."""
    def _read(collection: str, index: int) -> dict:
        with open(temp_data_dir / collection / f"segment_{index}.json", encoding="utf-8") as f:
            return json.load(f)
    return _read
