"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat client/mock boilerplate.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from api.main import app
from ingestion.waveform_engine import WaveformEngine

# ---------------------------------------------------------------------------
# FastAPI test client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client():
    """FastAPI ``TestClient`` against the real app, no engine patching."""
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def mock_engine():
    """Patch the shared WaveformEngine used by the waveform routes.

    Yields the ``MagicMock`` so tests can set return values and side effects
    on ``analyze_file``, ``render_file`` and ``peaks_for_file``.
    """
    engine = MagicMock(spec=WaveformEngine)
    with patch("api.routes.waveform._get_engine", return_value=engine):
        yield engine
