# tests/api_server/conftest.py
"""
Fixtures for API server tests.

The app's lifespan is not run: ``api_client`` attaches a controller built
from the shared in-process collaborators directly to ``app.state``.
"""

import pytest
from fastapi.testclient import TestClient

from proofday.api_server.main import app


@pytest.fixture
def api_client(controller):
    """Test client whose app state holds the in-process controller."""
    app.state.controller = controller
    client = TestClient(app)
    yield client
    app.state.controller = None


@pytest.fixture
def unavailable_client():
    """Test client for an app whose controller failed to initialize."""
    app.state.controller = None
    return TestClient(app)
